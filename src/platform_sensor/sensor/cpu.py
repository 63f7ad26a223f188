"""CPU information sensor."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ..errors import RecorderWriteFailed
from ..recorder.base import Recorder
from ..recorder.views import Aggregation, Measure, MeasureType, View
from ..source.factory import SourceResolver
from .aggregate import Aggregate, CpuReading
from .base import PlatformSensor

logger = logging.getLogger(__name__)

CPU_TAG_KEY = "cpu"

CPU_USAGE = Measure("cpu_usage", "CPU Usage", "Usage")
CPU_USAGE_MIN = Measure("cpu_usage_min", "CPU Usage Min", "Usage")
CPU_USAGE_MAX = Measure("cpu_usage_max", "CPU Usage Max", "Usage")
CPU_TIME = Measure("cpu_time", "CPU Time", "ms", MeasureType.LONG)

CPU_USAGE_VIEW = View("cpu_usage", "CPU Usage", CPU_USAGE, Aggregation.SUM, (CPU_TAG_KEY,))
CPU_USAGE_MIN_VIEW = View("cpu_usage_min", "Minimum CPU Usage", CPU_USAGE_MIN, Aggregation.LAST_VALUE, (CPU_TAG_KEY,))
CPU_USAGE_MAX_VIEW = View("cpu_usage_max", "Maximum CPU Usage", CPU_USAGE_MAX, Aggregation.LAST_VALUE, (CPU_TAG_KEY,))
CPU_TIME_VIEW = View("cpu_time", "CPU Time", CPU_TIME, Aggregation.LAST_VALUE, (CPU_TAG_KEY,))

CPU_VIEWS = (CPU_USAGE_VIEW, CPU_USAGE_MIN_VIEW, CPU_USAGE_MAX_VIEW, CPU_TIME_VIEW)


def register_cpu_views(recorder: Recorder) -> None:
    """Register the CPU views. Call once during start-up, before any sensor gathers."""
    for view in CPU_VIEWS:
        recorder.register_view(view)


class CpuInformationSensor(PlatformSensor):
    """Samples process CPU usage and CPU time.

    Every :meth:`gather` records ``cpu_usage`` and ``cpu_time``; the
    ``cpu_usage_min`` / ``cpu_usage_max`` points are only recorded when the
    sample moves the window's running minimum / maximum.
    """

    def __init__(
        self,
        recorder: Recorder,
        resolver: SourceResolver | None = None,
        *,
        tag_value: str = "process",
        platform_ident: int = 0,
        sensor_type_ident: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._recorder = recorder
        self._resolver = resolver or SourceResolver()
        self._tags = {CPU_TAG_KEY: tag_value}
        self._platform_ident = platform_ident
        self._sensor_type_ident = sensor_type_ident
        self._clock = clock
        self._lock = threading.Lock()
        self._aggregate = self._new_window()

    @property
    def name(self) -> str:
        return "cpu"

    def _new_window(self) -> Aggregate:
        aggregate = Aggregate()
        aggregate.reset(self._clock())
        return aggregate

    def _reading(self, aggregate: Aggregate) -> CpuReading:
        return CpuReading(
            count=aggregate.count,
            total=aggregate.total,
            min_value=aggregate.min_value,
            max_value=aggregate.max_value,
            cumulative=aggregate.last_cumulative,
            window_start=aggregate.window_start,
            platform_ident=self._platform_ident,
            sensor_type_ident=self._sensor_type_ident,
        )

    def gather(self) -> None:
        # The window start is stamped on reset, not per sample.
        provider = self._resolver.resolve()
        cpu_usage = provider.retrieve_cpu_usage()
        cpu_time = provider.get_process_cpu_time()

        with self._lock:
            min_updated, max_updated = self._aggregate.fold(cpu_usage, cpu_time)

        measurements: dict[str, float] = {
            CPU_USAGE.name: cpu_usage,
            CPU_TIME.name: cpu_time,
        }
        if min_updated:
            measurements[CPU_USAGE_MIN.name] = cpu_usage
        if max_updated:
            measurements[CPU_USAGE_MAX.name] = cpu_usage
        logger.debug("cpu sample usage=%.3f time=%dms", cpu_usage, cpu_time)

        try:
            self._recorder.record(measurements, self._tags)
        except RecorderWriteFailed as exc:
            logger.warning("Recording CPU sample failed: %s", exc)

    def snapshot(self) -> CpuReading:
        with self._lock:
            copy = self._aggregate.clone()
        return self._reading(copy)

    def reset_window(self) -> None:
        fresh = self._new_window()
        with self._lock:
            self._aggregate = fresh

    def drain(self) -> CpuReading:
        fresh = self._new_window()
        with self._lock:
            previous, self._aggregate = self._aggregate, fresh
        return self._reading(previous)
