"""Exceptions raised by platform_sensor."""

from __future__ import annotations


class PlatformSensorError(Exception):
    """Base class for all platform_sensor errors."""


class SourceUnavailable(PlatformSensorError):
    """The metric source cannot currently be resolved or read.

    Transient: the sample is skipped and the next tick tries again.
    """


class RecorderWriteFailed(PlatformSensorError):
    """The recorder rejected or failed to accept a measurement batch."""
