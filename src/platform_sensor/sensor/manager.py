"""Sensor manager that drives the gather timer and the flush cycle."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from ..config import SensorConfig
from ..errors import SourceUnavailable
from .base import PlatformSensor

logger = logging.getLogger(__name__)


class SensorManager:
    """Runs platform sensors on two independent intervals.

    One background thread calls :meth:`gather_once` every
    ``interval_seconds``; a second one calls :meth:`flush_once` every
    ``flush_interval_seconds`` and hands the drained readings to the sinks
    registered via :meth:`add_sink`.  Neither loop ever sees an exception
    from a sensor or a sink.
    """

    def __init__(self, config: SensorConfig, sensors: list[PlatformSensor]) -> None:
        self._config = config
        self._sensors = list(sensors)
        self._sinks: list[Callable[[dict[str, Any]], None]] = []
        self._threads: list[threading.Thread] = []
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def add_sink(self, sink: Callable[[dict[str, Any]], None]) -> None:
        """Register a callback receiving ``{sensor_name: reading}`` on every flush."""
        self._sinks.append(sink)

    def gather_once(self) -> int:
        """Gather every sensor once. Returns the number of sensors that sampled."""
        gathered = 0
        for sensor in self._sensors:
            try:
                sensor.gather()
                gathered += 1
            except SourceUnavailable as exc:
                logger.warning("Sensor %s skipped sample: %s", sensor.name, exc)
            except Exception:
                logger.exception("Sensor %s failed", sensor.name)
        return gathered

    def flush_once(self) -> dict[str, Any]:
        """Drain every sensor's window and pass the readings to the sinks."""
        readings: dict[str, Any] = {}
        for sensor in self._sensors:
            try:
                readings[sensor.name] = sensor.drain()
            except Exception:
                logger.exception("Sensor %s drain failed", sensor.name)
        for sink in self._sinks:
            try:
                sink(readings)
            except Exception:
                logger.exception("Sink failed")
        return readings

    def _run_gather(self) -> None:
        while not self._stop_event.is_set():
            self.gather_once()
            self._stop_event.wait(self._config.interval_seconds)

    def _run_flush(self) -> None:
        while not self._stop_event.wait(self._config.flush_interval_seconds):
            self.flush_once()

    def start(self) -> None:
        """Start gathering and flushing in the background."""
        if not self._config.enabled:
            return
        if self._threads:
            return
        self._stop_event.clear()
        self._threads = [
            threading.Thread(target=self._run_gather, name="sensor-gather", daemon=True),
            threading.Thread(target=self._run_flush, name="sensor-flush", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        logger.info(
            "SensorManager started (interval=%.1fs, flush=%.1fs)",
            self._config.interval_seconds,
            self._config.flush_interval_seconds,
        )

    def stop(self) -> None:
        """Stop background gathering and flushing."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=5)
        self._threads = []
        logger.info("SensorManager stopped")
