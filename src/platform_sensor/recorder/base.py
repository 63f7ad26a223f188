"""Base interface for recorders."""

from __future__ import annotations

import abc
from typing import Mapping

from .views import View


class Recorder(abc.ABC):
    """Abstract base for backends that receive tagged measurements.

    :meth:`register_view` is called during start-up only.  :meth:`record`
    is called from the sampling path and must not block on transport;
    buffering and flushing are the recorder's own business.
    """

    @abc.abstractmethod
    def register_view(self, view: View) -> None:
        """Register *view*. Re-registering an identical view is a no-op."""

    @abc.abstractmethod
    def record(self, measurements: Mapping[str, float], tags: Mapping[str, str]) -> None:
        """Record one batch of ``{measure_name: value}`` under *tags*.

        Raises :class:`~platform_sensor.errors.RecorderWriteFailed` when the
        batch cannot be accepted.
        """

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""

    @property
    @abc.abstractmethod
    def views(self) -> list[View]:
        """Registered views in registration order."""
