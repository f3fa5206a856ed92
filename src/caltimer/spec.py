"""Declarative schedule definition.

A ``ScheduleSpec`` is seven expression strings, one per field, each
defaulting to ``"*"``. It is immutable and validation is deterministic: the
eager ``validate()`` raises exactly the ``ExpressionError`` a lazy resolution
would raise for the same field.

Examples:
    >>> ScheduleSpec(second="0", minute="30", hour="4").describe()
    'second=0 minute=30 hour=4 dayOfMonth=* dayOfWeek=* month=* year=*'

    Host frameworks exposing an annotation-style dialect can use the mapping
    adapter, which also accepts camelCase keys and integer values:

    >>> ScheduleSpec.from_mapping({"dayOfMonth": "last", "hour": 23}).day_of_month
    'last'
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

from caltimer.calendar.context import CalendarContext
from caltimer.calendar.units import CalendarUnit
from caltimer.core.errors import ValidationError
from caltimer.expressions import build_evaluators

# Field name aliases used by annotation-style schedule dialects.
_ALIASES = {
    "dayOfMonth": "day_of_month",
    "dayOfWeek": "day_of_week",
}

_DISPLAY_NAMES = {
    "day_of_month": "dayOfMonth",
    "day_of_week": "dayOfWeek",
}

# Reference moment for eager validation. None of the validation rules depend
# on the calendar context, so any valid moment gives the same verdict.
_REFERENCE_MOMENT = (2000, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class ScheduleSpec:
    """Seven per-field schedule expressions."""

    second: str = "*"
    minute: str = "*"
    hour: str = "*"
    day_of_month: str = "*"
    day_of_week: str = "*"
    month: str = "*"
    year: str = "*"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ScheduleSpec:
        """Build a spec from a mapping of field names to expressions.

        Raises:
            ValidationError: on an unknown field name
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, str] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown schedule field: {key}").with_context(field=key)
            values[name] = str(value)
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def describe(self) -> str:
        return " ".join(
            f"{_DISPLAY_NAMES.get(name, name)}={value}" for name, value in self.to_dict().items()
        )

    def validate(self) -> ScheduleSpec:
        """Evaluate every field once and return self.

        Raises:
            ExpressionError: for the first malformed field, coarsest unit first
        """
        context = CalendarContext(*_REFERENCE_MOMENT)
        evaluators = build_evaluators(self, context.year)
        for unit in CalendarUnit.ordered():
            evaluators[unit].evaluate(context)
        return self

    def __str__(self) -> str:
        return self.describe()
