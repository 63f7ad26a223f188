"""OpenTelemetry recorder – pushes sensor measurements via OTLP/HTTP."""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Sequence

from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from ..config import OtelExporterConfig
from ..errors import RecorderWriteFailed
from .base import Recorder
from .views import Aggregation, View

logger = logging.getLogger(__name__)


class OtelRecorder(Recorder):
    """Records sensor measurements into an OpenTelemetry ``MeterProvider``.

    Sum views become ``UpDownCounter`` instruments and LastValue views
    become ``Gauge`` instruments, both named after the view.  Recording is
    a local, non-blocking SDK call; the ``PeriodicExportingMetricReader``
    ships the aggregated data to the configured OTLP/HTTP endpoint.

    The provider is owned by this recorder and never installed as the
    global meter provider.
    """

    def __init__(
        self,
        config: OtelExporterConfig,
        metric_readers: Sequence[MetricReader] | None = None,
    ) -> None:
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        if metric_readers is None:
            exporter_kwargs: dict[str, Any] = {
                "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
            }
            if config.headers:
                exporter_kwargs["headers"] = config.headers
            metric_readers = [
                PeriodicExportingMetricReader(
                    OTLPMetricExporter(**exporter_kwargs),
                    export_interval_millis=config.export_interval_ms,
                )
            ]

        self._provider = MeterProvider(resource=resource, metric_readers=list(metric_readers))
        self._meter = self._provider.get_meter("platform_sensor")
        self._lock = threading.Lock()
        self._views: dict[str, View] = {}
        self._instruments: dict[str, list[tuple[View, Any]]] = {}

        logger.info(
            "OtelRecorder initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    @property
    def views(self) -> list[View]:
        with self._lock:
            return list(self._views.values())

    def _create_instrument(self, view: View) -> Any:
        if view.aggregation is Aggregation.SUM:
            return self._meter.create_up_down_counter(
                name=view.name,
                unit=view.measure.unit,
                description=view.description,
            )
        return self._meter.create_gauge(
            name=view.name,
            unit=view.measure.unit,
            description=view.description,
        )

    def register_view(self, view: View) -> None:
        with self._lock:
            existing = self._views.get(view.name)
            if existing is not None:
                if existing != view:
                    raise ValueError(f"view {view.name!r} already registered with a different definition")
                return
            instrument = self._create_instrument(view)
            self._views[view.name] = view
            self._instruments.setdefault(view.measure.name, []).append((view, instrument))
        logger.info("Registered view %s (%s)", view.name, view.aggregation.value)

    def record(self, measurements: Mapping[str, float], tags: Mapping[str, str]) -> None:
        with self._lock:
            unknown = [name for name in measurements if name not in self._instruments]
            if unknown:
                raise RecorderWriteFailed(f"no view registered for measure(s): {', '.join(sorted(unknown))}")
            targets = [(value, self._instruments[name]) for name, value in measurements.items()]

        try:
            for value, bound in targets:
                for view, instrument in bound:
                    attributes = {k: tags[k] for k in view.tag_keys if k in tags}
                    if view.aggregation is Aggregation.SUM:
                        instrument.add(value, attributes=attributes)
                    else:
                        instrument.set(value, attributes=attributes)
        except Exception as exc:
            raise RecorderWriteFailed(f"OpenTelemetry rejected measurement: {exc}") from exc

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelRecorder shut down")
