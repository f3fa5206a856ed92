"""Evaluators for second, minute, hour, month and year expressions.

Second, minute and hour use the pure integer grammar over fixed ranges.
Month adds English month names. Year is unbounded above: wildcard, wrapping
ranges and increments resolve inside a window of ``base ± year_window``
years around the evaluation moment, and an explicit year in the past makes
the schedule exhausted rather than overflowing.
"""

from __future__ import annotations

from datetime import MAXYEAR, MINYEAR

from caltimer.calendar.context import CalendarContext
from caltimer.calendar.units import CalendarUnit
from caltimer.expressions.base import NextValue, UnitEvaluator
from caltimer.expressions.grammar import ExpressionParser

DEFAULT_YEAR_WINDOW = 10

_NUMERIC_RANGES = {
    CalendarUnit.SECOND: (0, 59),
    CalendarUnit.MINUTE: (0, 59),
    CalendarUnit.HOUR: (0, 23),
}

MONTH_NAMES = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
    "january": 1, "february": 2, "march": 3, "april": 4, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10,
    "november": 11, "december": 12,
}


class NumericEvaluator(UnitEvaluator):
    """Second, minute or hour."""

    def __init__(self, unit: CalendarUnit, expression: str) -> None:
        super().__init__()
        if unit not in _NUMERIC_RANGES:
            raise ValueError(f"Not a numeric unit: {unit}")
        self.unit = unit
        self.expression = expression
        self._range = _NUMERIC_RANGES[unit]
        self._parser = ExpressionParser(unit.value, self._range)

    def _compute(self, context: CalendarContext) -> set[int]:
        return self._parser.parse(self.expression, *self._range)


class MonthEvaluator(UnitEvaluator):
    unit = CalendarUnit.MONTH

    def __init__(self, expression: str) -> None:
        super().__init__()
        self.expression = expression
        self._parser = ExpressionParser("month", (1, 12), lambda text: MONTH_NAMES.get(text.lower()))

    def _compute(self, context: CalendarContext) -> set[int]:
        return self._parser.parse(self.expression, 1, 12)


class YearEvaluator(UnitEvaluator):
    """Year values, windowed around ``base_year`` for open-ended forms.

    The window is anchored on the evaluation moment rather than on the
    moving working calendar, so a schedule that can never be satisfied
    (``dayOfMonth=30, month=Feb``) runs out of years and is reported as
    exhausted.
    """

    unit = CalendarUnit.YEAR

    def __init__(self, expression: str, base_year: int, year_window: int = DEFAULT_YEAR_WINDOW) -> None:
        super().__init__()
        self.expression = expression
        self.window = (max(MINYEAR, base_year - year_window), min(MAXYEAR, base_year + year_window))
        self._parser = ExpressionParser("year", (MINYEAR, MAXYEAR))

    def _compute(self, context: CalendarContext) -> set[int]:
        return self._parser.parse(self.expression, *self.window)

    def next_value(self, current: int) -> NextValue:
        result = super().next_value(current)
        if result.is_overflow:
            return NextValue.exhausted()
        return result
