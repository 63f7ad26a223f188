"""CLI interface for platform_sensor."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import time
from typing import Any

from . import __version__
from .config import PlatformSensorConfig, load_config
from .recorder.base import Recorder

logger = logging.getLogger(__name__)


def _build_recorder(cfg: PlatformSensorConfig) -> Recorder:
    """Create the recorder for the configured mode and register the CPU views."""
    from .sensor.cpu import register_cpu_views

    if cfg.mode == "online":
        from .recorder.otel import OtelRecorder
        recorder: Recorder = OtelRecorder(cfg.otel)
    else:
        from .recorder.memory import InMemoryRecorder
        recorder = InMemoryRecorder()

    register_cpu_views(recorder)
    return recorder


def _build_cpu_sensor(cfg: PlatformSensorConfig, recorder: Recorder) -> Any:
    from .sensor.cpu import CpuInformationSensor

    return CpuInformationSensor(
        recorder,
        tag_value=cfg.sensor.tag_value,
        platform_ident=cfg.sensor.platform_ident,
        sensor_type_ident=cfg.sensor.sensor_type_ident,
    )


def _log_readings(readings: dict[str, Any]) -> None:
    for name, reading in readings.items():
        logger.info("%s %s", name, json.dumps(reading.to_dict()))


def _cmd_run(args: argparse.Namespace) -> None:
    """Run the sensors until interrupted."""
    cfg = load_config(args.config)

    from .sensor.manager import SensorManager

    recorder = _build_recorder(cfg)
    sensors = [_build_cpu_sensor(cfg, recorder)] if cfg.sensor.cpu else []
    manager = SensorManager(cfg.sensor, sensors)
    manager.add_sink(_log_readings)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    manager.start()
    print(
        f"platform_sensor running (mode={cfg.mode}, interval={cfg.sensor.interval_seconds}s, "
        f"flush={cfg.sensor.flush_interval_seconds}s)"
    )
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        manager.stop()
        manager.flush_once()
        recorder.shutdown()
    print("\nSensor stopped.")


def print_reading(name: str, reading: Any) -> None:
    """Pretty-print a reading to the terminal using Rich."""
    from rich.console import Console
    from rich.table import Table

    table = Table(title=f"Sensor reading: {name}", show_lines=True)
    table.add_column("Field", style="cyan", width=18)
    table.add_column("Value", justify="right", width=24)

    for key, value in reading.to_dict().items():
        if key == "min_value" and reading.is_empty:
            value = "-"
        elif isinstance(value, float):
            value = f"{value:.3f}"
        table.add_row(key, str(value))

    Console().print(table)


def _cmd_sample(args: argparse.Namespace) -> None:
    """Gather a fixed number of samples and print the resulting window."""
    cfg = load_config(args.config)

    from .errors import SourceUnavailable

    recorder = _build_recorder(cfg)
    sensor = _build_cpu_sensor(cfg, recorder)
    try:
        for i in range(args.count):
            if i:
                time.sleep(args.interval)
            try:
                sensor.gather()
            except SourceUnavailable as exc:
                logger.warning("Sample %d skipped: %s", i + 1, exc)
        print_reading(sensor.name, sensor.snapshot())
    finally:
        recorder.shutdown()


def _cmd_views(args: argparse.Namespace) -> None:
    """List the views the sensors record into."""
    from rich.console import Console
    from rich.table import Table

    from .recorder.memory import InMemoryRecorder
    from .sensor.cpu import register_cpu_views

    recorder = InMemoryRecorder()
    register_cpu_views(recorder)

    table = Table(title="Registered views", show_lines=True)
    table.add_column("View", style="green")
    table.add_column("Measure")
    table.add_column("Unit")
    table.add_column("Aggregation", style="magenta")
    table.add_column("Tag keys")
    for view in recorder.views:
        table.add_row(
            view.name,
            view.measure.name,
            view.measure.unit,
            view.aggregation.value,
            ", ".join(view.tag_keys),
        )
    Console().print(table)


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"platform_sensor {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the platform-sensor CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="platform-sensor",
        description="Sample process CPU usage into windowed aggregates and tagged views",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to platform_sensor.yaml")
    sub = parser.add_subparsers(dest="command")

    # run
    run_p = sub.add_parser("run", help="Run the sensors until interrupted")
    run_p.set_defaults(func=_cmd_run)

    # sample
    sample_p = sub.add_parser("sample", help="Gather a few samples and print the window")
    sample_p.add_argument("--count", "-n", type=int, default=5, help="Number of samples")
    sample_p.add_argument("--interval", type=float, default=0.2, help="Seconds between samples")
    sample_p.set_defaults(func=_cmd_sample)

    # views
    views_p = sub.add_parser("views", help="List the registered views")
    views_p.set_defaults(func=_cmd_views)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
