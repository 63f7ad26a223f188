"""psutil-backed operating system information provider."""

from __future__ import annotations

import logging
import os
import time
from typing import Callable

import psutil

from ..errors import SourceUnavailable
from .base import OperatingSystemInfoProvider

logger = logging.getLogger(__name__)

# Shortest interval after priming that yields a meaningful cpu_percent.
DEFAULT_PRIMING_SECONDS = 0.1


class PsutilOperatingSystemInfoProvider(OperatingSystemInfoProvider):
    """Reads CPU usage and CPU time of a process through :mod:`psutil`.

    CPU usage is divided by the logical CPU count and forwarded unclamped;
    psutil can overshoot 100 slightly on short intervals.

    ``cpu_percent`` is primed on construction.  Until *priming_seconds* have
    passed, :meth:`retrieve_cpu_usage` raises :class:`SourceUnavailable`
    instead of returning the near-zero reading of an empty interval.
    """

    def __init__(
        self,
        pid: int | None = None,
        *,
        priming_seconds: float = DEFAULT_PRIMING_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        pid = os.getpid() if pid is None else pid
        try:
            self._proc = psutil.Process(pid)
            self._proc.cpu_percent(interval=None)
        except psutil.Error as exc:
            raise SourceUnavailable(f"cannot attach to process {pid}: {exc}") from exc
        self._cpu_count = psutil.cpu_count(logical=True) or 1
        self._clock = clock
        self._priming_seconds = priming_seconds
        self._primed_at: float | None = clock()
        logger.debug("Attached to pid %d (%d logical CPUs)", pid, self._cpu_count)

    def retrieve_cpu_usage(self) -> float:
        if self._primed_at is not None:
            if self._clock() - self._primed_at < self._priming_seconds:
                raise SourceUnavailable("priming")
            self._primed_at = None
        try:
            return self._proc.cpu_percent(interval=None) / self._cpu_count
        except psutil.Error as exc:
            raise SourceUnavailable(f"cannot read CPU usage: {exc}") from exc

    def get_process_cpu_time(self) -> int:
        try:
            times = self._proc.cpu_times()
        except psutil.Error as exc:
            raise SourceUnavailable(f"cannot read CPU time: {exc}") from exc
        return int((times.user + times.system) * 1000)
