"""Calendar units, ordered from the coarsest (year) to the finest (second)."""

from __future__ import annotations

from enum import Enum


class CalendarUnit(str, Enum):
    """One field of a calendar moment.

    Iteration order is significant: the resolver sweeps units top-down because
    the legal days of a month are only known once year and month are fixed.
    """

    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"

    @property
    def index(self) -> int:
        return _ORDER.index(self)

    @property
    def parent(self) -> CalendarUnit | None:
        """The next coarser unit, or None for YEAR."""
        if self is CalendarUnit.YEAR:
            return None
        return _ORDER[self.index - 1]

    def finer(self) -> tuple[CalendarUnit, ...]:
        """All units strictly finer than this one, coarsest first."""
        return _ORDER[self.index + 1:]

    @classmethod
    def ordered(cls) -> tuple[CalendarUnit, ...]:
        return _ORDER


_ORDER: tuple[CalendarUnit, ...] = tuple(CalendarUnit)
