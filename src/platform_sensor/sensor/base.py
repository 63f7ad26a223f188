"""Base interface for platform sensors."""

from __future__ import annotations

import abc
from typing import Any


class PlatformSensor(abc.ABC):
    """Abstract base class for periodically sampled platform sensors.

    A sensor folds every :meth:`gather` into a windowed aggregate.  The flush
    cycle reads the window with :meth:`snapshot` and starts a new one with
    :meth:`reset_window`, or does both atomically with :meth:`drain`.
    All four methods are safe to call concurrently.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Sensor name used in configuration and output."""

    @abc.abstractmethod
    def gather(self) -> None:
        """Take one sample and fold it into the current window.

        Raises :class:`~platform_sensor.errors.SourceUnavailable` without
        touching the window when the metric source cannot be read.
        """

    @abc.abstractmethod
    def snapshot(self) -> Any:
        """Return an immutable copy of the current window."""

    @abc.abstractmethod
    def reset_window(self) -> None:
        """Discard the current window and start a new one."""

    @abc.abstractmethod
    def drain(self) -> Any:
        """Snapshot the current window and start a new one in one step."""
