"""Metric sources that supply raw platform readings."""
