"""Tests for the CPU information sensor."""

import threading

import pytest

from platform_sensor.errors import RecorderWriteFailed, SourceUnavailable
from platform_sensor.sensor.aggregate import MIN_UNSET
from platform_sensor.sensor.cpu import CPU_VIEWS, CpuInformationSensor, register_cpu_views
from platform_sensor.source.factory import PlatformSensorInfoProviderFactory, SourceResolver


def test_gather_sequence_aggregates(sensor, provider, window_start):
    samples = [12.5, 3.0, 44.0, 7.25, 3.0]
    provider.usages = list(samples)
    for _ in samples:
        sensor.gather()

    reading = sensor.snapshot()
    assert reading.count == len(samples)
    assert reading.total == sum(samples)
    assert reading.min_value == min(samples)
    assert reading.max_value == max(samples)
    assert reading.cumulative == 10 * len(samples)
    assert reading.window_start == window_start
    assert reading.platform_ident == 7
    assert reading.sensor_type_ident == 3


def test_min_max_points_only_on_boundary_change(sensor, provider, recorder):
    provider.usages = [10.0, 5.0, 20.0, 5.0]
    for _ in range(4):
        sensor.gather()

    reading = sensor.snapshot()
    assert (reading.count, reading.total, reading.min_value, reading.max_value) == (4, 40.0, 5.0, 20.0)

    measured = [set(batch) for batch, _ in recorder.batches]
    assert measured == [
        {"cpu_usage", "cpu_time", "cpu_usage_min", "cpu_usage_max"},
        {"cpu_usage", "cpu_time", "cpu_usage_min"},
        {"cpu_usage", "cpu_time", "cpu_usage_max"},
        {"cpu_usage", "cpu_time"},
    ]
    assert all(tags == {"cpu": "worker-1"} for _, tags in recorder.batches)

    tags = {"cpu": "worker-1"}
    assert recorder.get_value("cpu_usage", tags) == 40.0
    assert recorder.get_value("cpu_usage_min", tags) == 5.0
    assert recorder.get_point_count("cpu_usage_min", tags) == 2
    assert recorder.get_value("cpu_usage_max", tags) == 20.0
    assert recorder.get_point_count("cpu_usage_max", tags) == 2
    assert recorder.get_value("cpu_time", tags) == 40


def test_reset_window_then_snapshot_is_empty(sensor, provider, window_start):
    provider.usages = [8.0, 2.0]
    sensor.gather()
    sensor.gather()
    sensor.reset_window()

    reading = sensor.snapshot()
    assert reading.count == 0
    assert reading.total == 0.0
    assert reading.min_value == MIN_UNSET
    assert reading.max_value == 0.0
    assert reading.cumulative == 0
    assert reading.window_start == window_start


def test_reset_window_is_idempotent(sensor, provider):
    sensor.gather()
    sensor.reset_window()
    once = sensor.snapshot()
    sensor.reset_window()
    assert sensor.snapshot() == once


def test_reset_stamps_new_window_start(recorder, resolver):
    ticks = iter([100.0, 200.0, 300.0])
    sensor = CpuInformationSensor(recorder, resolver, clock=lambda: next(ticks))
    assert sensor.snapshot().window_start == 100.0
    sensor.gather()
    sensor.gather()
    assert sensor.snapshot().window_start == 100.0
    sensor.reset_window()
    assert sensor.snapshot().window_start == 200.0


def test_source_unavailable_leaves_window_untouched(sensor, provider, recorder):
    provider.usages = [6.0]
    sensor.gather()
    before = sensor.snapshot()
    batches = len(recorder.batches)

    provider.available = False
    with pytest.raises(SourceUnavailable):
        sensor.gather()

    assert sensor.snapshot() == before
    assert len(recorder.batches) == batches


def test_unresolvable_source_is_retried(recorder, make_provider):
    provider = make_provider(default=2.0)
    attempts = []

    def flaky_factory():
        attempts.append(1)
        if len(attempts) == 1:
            raise SourceUnavailable("not registered yet")
        return provider

    factory = PlatformSensorInfoProviderFactory(platform="testos")
    factory.register_provider("testos", flaky_factory)
    sensor = CpuInformationSensor(recorder, SourceResolver(factory))

    with pytest.raises(SourceUnavailable):
        sensor.gather()
    assert sensor.snapshot().count == 0

    sensor.gather()
    sensor.gather()
    assert sensor.snapshot().count == 2
    assert len(attempts) == 2


def test_recorder_failure_keeps_the_fold(resolver, caplog):
    from platform_sensor.recorder.memory import InMemoryRecorder

    class BrokenRecorder(InMemoryRecorder):
        def record(self, measurements, tags):
            raise RecorderWriteFailed("backend down")

    rec = BrokenRecorder()
    register_cpu_views(rec)
    sensor = CpuInformationSensor(rec, resolver)

    sensor.gather()

    assert sensor.snapshot().count == 1
    assert "backend down" in caplog.text


def test_unregistered_views_surface_as_log_only(resolver, caplog):
    from platform_sensor.recorder.memory import InMemoryRecorder

    sensor = CpuInformationSensor(InMemoryRecorder(), resolver)
    sensor.gather()
    assert sensor.snapshot().count == 1
    assert "no view registered" in caplog.text


def test_drain_returns_window_and_starts_new_one(sensor, provider):
    provider.usages = [1.0, 3.0]
    sensor.gather()
    sensor.gather()

    drained = sensor.drain()
    assert drained.count == 2
    assert drained.total == 4.0
    assert sensor.snapshot().count == 0


def test_snapshot_is_consistent_under_concurrent_gather(sensor, provider):
    provider.default = 1.0
    stop = threading.Event()
    torn = []

    def reader():
        while not stop.is_set():
            reading = sensor.snapshot()
            if reading.total != reading.count * 1.0:
                torn.append(reading)

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for _ in range(2000):
        sensor.gather()
    stop.set()
    for t in threads:
        t.join()

    assert torn == []
    assert sensor.snapshot().count == 2000


def test_register_cpu_views(recorder):
    assert [v.name for v in recorder.views] == [v.name for v in CPU_VIEWS]
    # registering again during start-up is harmless
    register_cpu_views(recorder)
    assert len(recorder.views) == 4


def test_drain_loses_no_sample_under_concurrent_gather(sensor, provider):
    total_samples = 3000
    provider.usages = [float(i % 7) for i in range(total_samples)]
    expected_total = sum(provider.usages)
    done = threading.Event()
    drained = []

    def flusher():
        while not done.is_set():
            drained.append(sensor.drain())

    flush_thread = threading.Thread(target=flusher)
    flush_thread.start()
    for _ in range(total_samples):
        sensor.gather()
    done.set()
    flush_thread.join()

    remaining = sensor.snapshot()
    assert sum(r.count for r in drained) + remaining.count == total_samples
    assert sum(r.total for r in drained) + remaining.total == expected_total


def test_reset_window_never_tears_a_fold(sensor, provider):
    provider.default = 1.0
    done = threading.Event()
    torn = []

    def resetter():
        while not done.is_set():
            sensor.reset_window()
            reading = sensor.snapshot()
            if reading.total != reading.count * 1.0:
                torn.append(reading)

    reset_thread = threading.Thread(target=resetter)
    reset_thread.start()
    for _ in range(2000):
        sensor.gather()
    done.set()
    reset_thread.join()

    assert torn == []
    assert sensor.snapshot().count <= 2000


def test_priming_reading_is_skipped_not_folded(recorder):
    from platform_sensor.source.psutil_provider import PsutilOperatingSystemInfoProvider

    now = [0.0]
    provider = PsutilOperatingSystemInfoProvider(priming_seconds=0.5, clock=lambda: now[0])
    factory = PlatformSensorInfoProviderFactory(platform="testos")
    factory.register_provider("testos", lambda: provider)
    sensor = CpuInformationSensor(recorder, SourceResolver(factory))

    with pytest.raises(SourceUnavailable, match="priming"):
        sensor.gather()
    assert sensor.snapshot().count == 0
    assert recorder.get_point_count("cpu_usage_min", {"cpu": "process"}) == 0

    now[0] = 1.0
    sensor.gather()
    assert sensor.snapshot().count == 1
