"""Per-unit expression evaluators.

``build_evaluators`` wires one evaluator per calendar unit for a schedule:

    ┌─────────┬──────────────────┬─────────────────────────────────┐
    │ unit    │ evaluator        │ text forms                      │
    ├─────────┼──────────────────┼─────────────────────────────────┤
    │ year    │ YearEvaluator    │ (none, windowed wildcard)       │
    │ month   │ MonthEvaluator   │ jan .. dec                      │
    │ day     │ DayEvaluator     │ last, -N, 2nd Fri, sun .. sat   │
    │ hour    │ NumericEvaluator │                                 │
    │ minute  │ NumericEvaluator │                                 │
    │ second  │ NumericEvaluator │                                 │
    └─────────┴──────────────────┴─────────────────────────────────┘
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from caltimer.calendar.units import CalendarUnit
from caltimer.expressions.base import NextValue, NextValueKind, UnitEvaluator
from caltimer.expressions.day import DayEvaluator
from caltimer.expressions.grammar import EmptyValue, ExpressionParser
from caltimer.expressions.numeric import (
    DEFAULT_YEAR_WINDOW,
    MonthEvaluator,
    NumericEvaluator,
    YearEvaluator,
)

if TYPE_CHECKING:
    from caltimer.spec import ScheduleSpec


def build_evaluators(
    spec: ScheduleSpec,
    base_year: int,
    year_window: int = DEFAULT_YEAR_WINDOW,
) -> dict[CalendarUnit, UnitEvaluator]:
    """Create one evaluator per unit for ``spec``."""
    return {
        CalendarUnit.YEAR: YearEvaluator(spec.year, base_year, year_window),
        CalendarUnit.MONTH: MonthEvaluator(spec.month),
        CalendarUnit.DAY: DayEvaluator(spec.day_of_month, spec.day_of_week),
        CalendarUnit.HOUR: NumericEvaluator(CalendarUnit.HOUR, spec.hour),
        CalendarUnit.MINUTE: NumericEvaluator(CalendarUnit.MINUTE, spec.minute),
        CalendarUnit.SECOND: NumericEvaluator(CalendarUnit.SECOND, spec.second),
    }


__all__ = [
    "DEFAULT_YEAR_WINDOW",
    "DayEvaluator",
    "EmptyValue",
    "ExpressionParser",
    "MonthEvaluator",
    "NextValue",
    "NextValueKind",
    "NumericEvaluator",
    "UnitEvaluator",
    "YearEvaluator",
    "build_evaluators",
]
