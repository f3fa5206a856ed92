"""Day evaluator: day-of-month combined with day-of-week.

Both expressions are evaluated against the context's current year and month
and mapped to days of that month:

- ``dayOfMonth`` takes the integer grammar plus ``last``, ``-N`` (N days
  before the last day, ``-0`` being the last day itself) and ordinal week
  days such as ``2nd Fri`` or ``last Mon``.
- ``dayOfWeek`` takes 0-7 (0 and 7 are Sunday) or week day names; each week
  day expands to every matching day of the month.

Combination rule:
    ::

        dayOfMonth  dayOfWeek   legal days
        ──────────  ─────────   ─────────────────────────────
        *           *           every day of the month
        *           concrete    week days only
        concrete    *           month days only
        concrete    concrete    month days ∪ week days

Day-of-month literals are validated against 1-31 whatever the month, so an
expression that fails validation fails the same way in every month. Values
beyond the current month's length simply contribute nothing.
"""

from __future__ import annotations

import re

from caltimer.calendar.context import CalendarContext
from caltimer.calendar.units import CalendarUnit
from caltimer.core.errors import ExpressionError
from caltimer.expressions.base import UnitEvaluator
from caltimer.expressions.grammar import EmptyValue, ExpressionParser

WEEK_DAYS = {
    "sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6,
    "sunday": 0, "monday": 1, "tuesday": 2, "wednesday": 3,
    "thursday": 4, "friday": 5, "saturday": 6,
}

ORDINALS = {"1st": 1, "2nd": 2, "3rd": 3, "4th": 4, "5th": 5, "last": -1}

MAX_LAST_DAY_OFFSET = 30

_ORDINAL_WEEKDAY = re.compile(r"^(1st|2nd|3rd|4th|5th|last)\s+([a-z]+)$", re.IGNORECASE)
_LAST_DAY_OFFSET = re.compile(r"^-\s*(\d+)$")


def _parse_week_day(text: str) -> int | None:
    return WEEK_DAYS.get(text.lower())


class DayEvaluator(UnitEvaluator):
    unit = CalendarUnit.DAY

    def __init__(self, day_of_month: str, day_of_week: str) -> None:
        super().__init__()
        self.day_of_month = day_of_month
        self.day_of_week = day_of_week
        self._week_parser = ExpressionParser("dayOfWeek", (0, 7), _parse_week_day)

    def _compute(self, context: CalendarContext) -> set[int]:
        month_wildcard = _is_wildcard(self.day_of_month)
        week_wildcard = _is_wildcard(self.day_of_week)

        if month_wildcard and week_wildcard:
            return set(range(1, context.days_in_month + 1))
        if month_wildcard:
            return self._week_days(context)

        days = self._month_days(context)
        if not week_wildcard:
            days |= self._week_days(context)
        return days

    def _month_days(self, context: CalendarContext) -> set[int]:
        last_day = context.days_in_month

        def parse_text(text: str) -> int | None:
            if text.lower() == "last":
                return last_day

            offset = _LAST_DAY_OFFSET.match(text)
            if offset:
                distance = int(offset.group(1))
                if distance > MAX_LAST_DAY_OFFSET:
                    raise ExpressionError(
                        f"Invalid dayOfMonth expression {self.day_of_month!r}: "
                        f"Offset from last day out of range: -{distance}",
                        unit="dayOfMonth",
                        expression=self.day_of_month,
                    )
                if last_day - distance < 1:
                    raise EmptyValue(text)
                return last_day - distance

            ordinal = _ORDINAL_WEEKDAY.match(text)
            if ordinal is None:
                return None
            week_day = _parse_week_day(ordinal.group(2))
            if week_day is None:
                raise ExpressionError(
                    f"Invalid dayOfMonth expression {self.day_of_month!r}: "
                    f"Unknown week day: {ordinal.group(2)}",
                    unit="dayOfMonth",
                    expression=self.day_of_month,
                )
            day = context.nth_weekday_to_month_day(ORDINALS[ordinal.group(1).lower()], week_day)
            if day is None:
                raise EmptyValue(text)
            return day

        parser = ExpressionParser("dayOfMonth", (1, 31), parse_text)
        values = parser.parse(self.day_of_month, 1, last_day)
        return {day for day in values if 1 <= day <= last_day}

    def _week_days(self, context: CalendarContext) -> set[int]:
        days: set[int] = set()
        for week_day in self._week_parser.parse(self.day_of_week, 0, 7):
            days.update(context.weekday_to_month_days(week_day))
        return days


def _is_wildcard(expression: str) -> bool:
    return isinstance(expression, str) and expression.strip() == "*"
