"""Evaluator base class and the tri-state next-value result."""

from __future__ import annotations

from abc import ABC, abstractmethod
from bisect import bisect_left
from dataclasses import dataclass
from enum import Enum

from caltimer.calendar.context import CalendarContext
from caltimer.calendar.units import CalendarUnit


class NextValueKind(str, Enum):
    FOUND = "found"
    OVERFLOW = "overflow"      # wrap this unit and carry into the parent
    EXHAUSTED = "exhausted"    # no future value at all (year only)


@dataclass(frozen=True)
class NextValue:
    """Result of "smallest legal value >= current" for one unit."""

    kind: NextValueKind
    value: int | None = None

    @classmethod
    def found(cls, value: int) -> NextValue:
        return cls(NextValueKind.FOUND, value)

    @classmethod
    def overflow(cls) -> NextValue:
        return cls(NextValueKind.OVERFLOW)

    @classmethod
    def exhausted(cls) -> NextValue:
        return cls(NextValueKind.EXHAUSTED)

    @property
    def is_found(self) -> bool:
        return self.kind is NextValueKind.FOUND

    @property
    def is_overflow(self) -> bool:
        return self.kind is NextValueKind.OVERFLOW

    @property
    def is_exhausted(self) -> bool:
        return self.kind is NextValueKind.EXHAUSTED


class UnitEvaluator(ABC):
    """Turns one unit's expression into its sorted legal values.

    ``evaluate`` must be called, with the context the values depend on, before
    ``values``, ``minimum_value`` or ``next_value`` are used. Day values depend
    on the context month, so the resolver re-evaluates on every visit.
    """

    unit: CalendarUnit

    def __init__(self) -> None:
        self._values: list[int] | None = None

    @abstractmethod
    def _compute(self, context: CalendarContext) -> set[int]:
        """Return the legal values for ``context``."""

    def evaluate(self, context: CalendarContext) -> list[int]:
        self._values = sorted(self._compute(context))
        return self._values

    @property
    def values(self) -> list[int]:
        if self._values is None:
            raise RuntimeError(f"{type(self).__name__} used before evaluate()")
        return self._values

    @property
    def minimum_value(self) -> int | None:
        """Smallest legal value, or None when the current context has none."""
        values = self.values
        return values[0] if values else None

    def next_value(self, current: int) -> NextValue:
        values = self.values
        position = bisect_left(values, current)
        if position == len(values):
            return NextValue.overflow()
        return NextValue.found(values[position])
