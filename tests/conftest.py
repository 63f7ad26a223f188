"""Shared fixtures: a scripted OS info provider and a batch-capturing recorder."""

from __future__ import annotations

from typing import Callable, Mapping

import pytest

from platform_sensor.errors import SourceUnavailable
from platform_sensor.recorder.memory import InMemoryRecorder
from platform_sensor.sensor.cpu import CpuInformationSensor, register_cpu_views
from platform_sensor.source.base import OperatingSystemInfoProvider
from platform_sensor.source.factory import PlatformSensorInfoProviderFactory, SourceResolver

WINDOW_START = 1_700_000_000.0


class ScriptedProvider(OperatingSystemInfoProvider):
    """Returns queued CPU usage values; CPU time grows by 10ms per reading."""

    def __init__(self, usages: list[float] | None = None, default: float = 1.0) -> None:
        self.usages = list(usages or [])
        self.default = default
        self.cpu_time = 0
        self.available = True

    def retrieve_cpu_usage(self) -> float:
        if not self.available:
            raise SourceUnavailable("provider offline")
        return self.usages.pop(0) if self.usages else self.default

    def get_process_cpu_time(self) -> int:
        if not self.available:
            raise SourceUnavailable("provider offline")
        self.cpu_time += 10
        return self.cpu_time


class CapturingRecorder(InMemoryRecorder):
    """InMemoryRecorder that also remembers every recorded batch."""

    def __init__(self) -> None:
        super().__init__()
        self.batches: list[tuple[dict[str, float], dict[str, str]]] = []

    def record(self, measurements: Mapping[str, float], tags: Mapping[str, str]) -> None:
        self.batches.append((dict(measurements), dict(tags)))
        super().record(measurements, tags)


@pytest.fixture
def window_start() -> float:
    return WINDOW_START


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    return ScriptedProvider


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def resolver(provider: ScriptedProvider) -> SourceResolver:
    factory = PlatformSensorInfoProviderFactory(platform="testos")
    factory.register_provider("testos", lambda: provider)
    return SourceResolver(factory)


@pytest.fixture
def recorder() -> CapturingRecorder:
    rec = CapturingRecorder()
    register_cpu_views(rec)
    return rec


@pytest.fixture
def sensor(recorder: CapturingRecorder, resolver: SourceResolver) -> CpuInformationSensor:
    return CpuInformationSensor(
        recorder,
        resolver,
        tag_value="worker-1",
        platform_ident=7,
        sensor_type_ident=3,
        clock=lambda: WINDOW_START,
    )
