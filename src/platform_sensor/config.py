"""Configuration loading and validation for platform_sensor."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "platform-sensor"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 10000


@dataclass
class SensorConfig:
    """Sensor scheduling and identity settings."""

    enabled: bool = True
    interval_seconds: float = 1.0
    flush_interval_seconds: float = 10.0
    cpu: bool = True
    tag_value: str = "process"
    platform_ident: int = 0
    sensor_type_ident: int = 0


@dataclass
class PlatformSensorConfig:
    """Top-level platform_sensor configuration."""

    mode: str = "local"
    sensor: SensorConfig = field(default_factory=SensorConfig)
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)


_COERCE = {
    "interval_seconds": float,
    "flush_interval_seconds": float,
    "export_interval_ms": int,
    "platform_ident": int,
    "sensor_type_ident": int,
}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using PLATFORM_SENSOR_ prefix."""
    env_map = {
        "PLATFORM_SENSOR_MODE": ("mode",),
        "PLATFORM_SENSOR_INTERVAL": ("sensor", "interval_seconds"),
        "PLATFORM_SENSOR_FLUSH_INTERVAL": ("sensor", "flush_interval_seconds"),
        "PLATFORM_SENSOR_TAG_VALUE": ("sensor", "tag_value"),
        "PLATFORM_SENSOR_PLATFORM_IDENT": ("sensor", "platform_ident"),
        "PLATFORM_SENSOR_OTEL_ENDPOINT": ("otel", "endpoint"),
        "PLATFORM_SENSOR_OTEL_SERVICE_NAME": ("otel", "service_name"),
        "PLATFORM_SENSOR_OTEL_EXPORT_INTERVAL": ("otel", "export_interval_ms"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            coerce = _COERCE.get(final_key)
            obj[final_key] = coerce(value) if coerce else value
    return data


def _dict_to_config(data: dict[str, Any]) -> PlatformSensorConfig:
    """Convert a raw dictionary to a PlatformSensorConfig dataclass."""
    sensor_data = data.get("sensor", {})
    otel_data = data.get("otel", {})

    return PlatformSensorConfig(
        mode=data.get("mode", "local"),
        sensor=SensorConfig(**{
            k: v for k, v in sensor_data.items()
            if k in SensorConfig.__dataclass_fields__
        }),
        otel=OtelExporterConfig(**{
            k: v for k, v in otel_data.items()
            if k in OtelExporterConfig.__dataclass_fields__
        }),
    )


def load_config(path: str | Path | None = None) -> PlatformSensorConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``platform_sensor.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("platform_sensor.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    if data.get("mode", "local") not in ("local", "online"):
        raise ValueError(f"unknown mode {data['mode']!r}; expected 'local' or 'online'")
    return _dict_to_config(data)
