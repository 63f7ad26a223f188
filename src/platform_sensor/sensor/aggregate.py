"""Windowed running aggregate and the immutable reading built from it."""

from __future__ import annotations

import sys
from dataclasses import asdict, dataclass, replace
from typing import Any

# Minimum before any sample: the largest representable float.
MIN_UNSET = sys.float_info.max


@dataclass
class Aggregate:
    """Running statistics for one measurement window.

    Owned by a single sensor and only mutated under that sensor's lock.
    """

    count: int = 0
    total: float = 0.0
    min_value: float = MIN_UNSET
    max_value: float = 0.0
    last_cumulative: int = 0
    window_start: float = 0.0

    def fold(self, sample: float, cumulative: int) -> tuple[bool, bool]:
        """Fold one sample in.

        Returns ``(min_updated, max_updated)``; an extremum only moves when
        the sample is strictly below / above it.
        """
        self.count += 1
        self.total += sample
        self.last_cumulative = cumulative

        min_updated = sample < self.min_value
        if min_updated:
            self.min_value = sample
        max_updated = sample > self.max_value
        if max_updated:
            self.max_value = sample
        return min_updated, max_updated

    def clone(self) -> Aggregate:
        return replace(self)

    def reset(self, window_start: float) -> None:
        """Clear all statistics and start a new window at *window_start*."""
        self.count = 0
        self.total = 0.0
        self.last_cumulative = 0
        self.min_value = MIN_UNSET
        self.max_value = 0.0
        self.window_start = window_start


@dataclass(frozen=True)
class CpuReading:
    """Point-in-time copy of a CPU sensor's aggregate, safe to hand to transport."""

    count: int
    total: float
    min_value: float
    max_value: float
    cumulative: int
    window_start: float
    platform_ident: int = 0
    sensor_type_ident: int = 0

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["average"] = self.average
        return data
