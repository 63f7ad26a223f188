"""Measure and view definitions understood by recorders."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Aggregation(str, Enum):
    """How a view folds the points recorded against its measure."""

    SUM = "sum"
    LAST_VALUE = "last_value"


class MeasureType(str, Enum):
    DOUBLE = "double"
    LONG = "long"


@dataclass(frozen=True)
class Measure:
    """A named quantity sensors record values for."""

    name: str
    description: str
    unit: str
    measure_type: MeasureType = MeasureType.DOUBLE


@dataclass(frozen=True)
class View:
    """A named aggregation of one measure, grouped by a set of tag keys.

    Views are registered once during process start and never mutated.
    """

    name: str
    description: str
    measure: Measure
    aggregation: Aggregation
    tag_keys: tuple[str, ...] = ()
