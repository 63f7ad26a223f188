"""Base interface for operating system information providers."""

from __future__ import annotations

import abc


class OperatingSystemInfoProvider(abc.ABC):
    """Supplies raw, unaggregated readings about the monitored process."""

    @abc.abstractmethod
    def retrieve_cpu_usage(self) -> float:
        """Current CPU usage of the process.

        The range is platform-defined and forwarded unchanged by sensors.
        """

    @abc.abstractmethod
    def get_process_cpu_time(self) -> int:
        """Cumulative CPU time of the process in milliseconds."""
