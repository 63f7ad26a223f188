"""Recorders that receive tagged measurements from sensors."""
