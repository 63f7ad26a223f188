"""In-process recorder that keeps Sum and LastValue aggregations in memory."""

from __future__ import annotations

import logging
import threading
from typing import Mapping

from ..errors import RecorderWriteFailed
from .base import Recorder
from .views import Aggregation, View

logger = logging.getLogger(__name__)

TagValues = tuple[str, ...]


class InMemoryRecorder(Recorder):
    """Aggregates recorded measurements per view and tag values.

    Each view keeps, per tuple of tag values, the aggregated value (running
    sum or last value) and the number of points recorded into it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._views: dict[str, View] = {}
        self._by_measure: dict[str, list[View]] = {}
        self._values: dict[str, dict[TagValues, float]] = {}
        self._points: dict[str, dict[TagValues, int]] = {}

    @property
    def views(self) -> list[View]:
        with self._lock:
            return list(self._views.values())

    def register_view(self, view: View) -> None:
        with self._lock:
            existing = self._views.get(view.name)
            if existing is not None:
                if existing != view:
                    raise ValueError(f"view {view.name!r} already registered with a different definition")
                return
            self._views[view.name] = view
            self._by_measure.setdefault(view.measure.name, []).append(view)
            self._values[view.name] = {}
            self._points[view.name] = {}
        logger.info("Registered view %s (%s)", view.name, view.aggregation.value)

    def record(self, measurements: Mapping[str, float], tags: Mapping[str, str]) -> None:
        with self._lock:
            unknown = [name for name in measurements if name not in self._by_measure]
            if unknown:
                raise RecorderWriteFailed(f"no view registered for measure(s): {', '.join(sorted(unknown))}")
            for name, value in measurements.items():
                for view in self._by_measure[name]:
                    key = tuple(tags.get(k, "") for k in view.tag_keys)
                    values = self._values[view.name]
                    if view.aggregation is Aggregation.SUM:
                        values[key] = values.get(key, 0.0) + value
                    else:
                        values[key] = value
                    points = self._points[view.name]
                    points[key] = points.get(key, 0) + 1

    def _key(self, view_name: str, tags: Mapping[str, str]) -> TagValues:
        view = self._views.get(view_name)
        if view is None:
            raise KeyError(view_name)
        return tuple(tags.get(k, "") for k in view.tag_keys)

    def get_value(self, view_name: str, tags: Mapping[str, str]) -> float | None:
        """Aggregated value of *view_name* for *tags*, or None if nothing was recorded."""
        with self._lock:
            return self._values[view_name].get(self._key(view_name, tags))

    def get_point_count(self, view_name: str, tags: Mapping[str, str]) -> int:
        with self._lock:
            return self._points[view_name].get(self._key(view_name, tags), 0)

    def shutdown(self) -> None:
        logger.info("InMemoryRecorder shut down")
