"""platform_sensor – periodic process CPU sensor with windowed aggregation."""

__version__ = "0.1.0"
