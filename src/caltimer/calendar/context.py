"""Mutable calendar moment used during one next-fire-time resolution.

A ``CalendarContext`` holds the six local fields of a moment plus a per-unit
"pinned" flag recording which units were explicitly assigned during the
current resolution. Instances are created per resolution and never shared
between threads.

The day field is always a real date of the current month: whenever year or
month change, the day is clamped to the new month length before anything
else reads it, so a context can never describe Feb 30.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import MAXYEAR, MINYEAR, datetime, timedelta, tzinfo

from caltimer.calendar.units import CalendarUnit

# Week days are numbered from Sunday, as in cron.
SUNDAY = 0
SATURDAY = 6

_FIXED_RANGES = {
    CalendarUnit.MONTH: (1, 12),
    CalendarUnit.HOUR: (0, 23),
    CalendarUnit.MINUTE: (0, 59),
    CalendarUnit.SECOND: (0, 59),
}

_DELTAS = {
    CalendarUnit.DAY: timedelta(days=1),
    CalendarUnit.HOUR: timedelta(hours=1),
    CalendarUnit.MINUTE: timedelta(minutes=1),
    CalendarUnit.SECOND: timedelta(seconds=1),
}


class CalendarContext:
    """One calendar moment with per-unit get/set, bounds and increment.

    Example:
        >>> ctx = CalendarContext(2020, 1, 31, 23, 30, 0)
        >>> ctx.increment(CalendarUnit.HOUR)
        >>> ctx
        CalendarContext(2020-02-01 00:30:00)
    """

    def __init__(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        tz: tzinfo | None = None,
    ) -> None:
        # datetime performs the range checks, including the day of month.
        datetime(year, month, day, hour, minute, second)
        self._values = {
            CalendarUnit.YEAR: year,
            CalendarUnit.MONTH: month,
            CalendarUnit.DAY: day,
            CalendarUnit.HOUR: hour,
            CalendarUnit.MINUTE: minute,
            CalendarUnit.SECOND: second,
        }
        self._pinned = {unit: False for unit in CalendarUnit}
        self.tz = tz

    @classmethod
    def from_datetime(cls, moment: datetime) -> CalendarContext:
        """Build a context from ``moment``, dropping sub-second precision."""
        return cls(
            moment.year,
            moment.month,
            moment.day,
            moment.hour,
            moment.minute,
            moment.second,
            tz=moment.tzinfo,
        )

    def to_datetime(self) -> datetime:
        return datetime(*self.as_tuple(), tzinfo=self.tz)

    def as_tuple(self) -> tuple[int, int, int, int, int, int]:
        """Field values ordered from year to second."""
        v = self._values
        return (
            v[CalendarUnit.YEAR],
            v[CalendarUnit.MONTH],
            v[CalendarUnit.DAY],
            v[CalendarUnit.HOUR],
            v[CalendarUnit.MINUTE],
            v[CalendarUnit.SECOND],
        )

    def copy(self) -> CalendarContext:
        """Copy the moment. Pinned flags are not copied."""
        return CalendarContext(*self.as_tuple(), tz=self.tz)

    # ── Field access ─────────────────────────────────────────────

    @property
    def year(self) -> int:
        return self._values[CalendarUnit.YEAR]

    @property
    def month(self) -> int:
        return self._values[CalendarUnit.MONTH]

    @property
    def day(self) -> int:
        return self._values[CalendarUnit.DAY]

    def get(self, unit: CalendarUnit) -> int:
        return self._values[unit]

    def set(self, unit: CalendarUnit, value: int) -> None:
        """Assign ``value`` to ``unit`` and pin it for this resolution.

        Raises:
            ValueError: if ``value`` is outside the unit's actual range
        """
        low, high = self.actual_minimum(unit), self.actual_maximum(unit)
        if not low <= value <= high:
            raise ValueError(f"{unit.value} {value} out of range [{low}, {high}]")
        self._values[unit] = value
        self._pinned[unit] = True
        if unit in (CalendarUnit.YEAR, CalendarUnit.MONTH):
            self._reconcile_day()

    def increment(self, unit: CalendarUnit) -> None:
        """Add one ``unit``, carrying into coarser units as needed.

        Month and year increments keep the day of month where possible and
        clamp it to the new month's length otherwise.

        Raises:
            OverflowError: if the result would be past year 9999
        """
        if unit is CalendarUnit.YEAR:
            if self.year >= MAXYEAR:
                raise OverflowError("year is out of range")
            self._values[CalendarUnit.YEAR] += 1
            self._reconcile_day()
            return

        if unit is CalendarUnit.MONTH:
            if self.month == 12:
                self.increment(CalendarUnit.YEAR)
                self._values[CalendarUnit.MONTH] = 1
            else:
                self._values[CalendarUnit.MONTH] += 1
            self._reconcile_day()
            return

        moment = datetime(*self.as_tuple()) + _DELTAS[unit]
        for field_unit, value in zip(CalendarUnit.ordered(), _fields(moment)):
            self._values[field_unit] = value

    # ── Pinned flags ─────────────────────────────────────────────

    def is_pinned(self, unit: CalendarUnit) -> bool:
        return self._pinned[unit]

    def unpin(self, *units: CalendarUnit) -> None:
        for unit in units:
            self._pinned[unit] = False

    def reset_pins(self) -> None:
        self.unpin(*CalendarUnit)

    # ── Bounds ───────────────────────────────────────────────────

    @property
    def days_in_month(self) -> int:
        return monthrange(self.year, self.month)[1]

    def actual_minimum(self, unit: CalendarUnit) -> int:
        """Smallest value ``unit`` can take given the current year and month."""
        if unit is CalendarUnit.YEAR:
            return MINYEAR
        if unit is CalendarUnit.DAY:
            return 1
        return _FIXED_RANGES[unit][0]

    def actual_maximum(self, unit: CalendarUnit) -> int:
        """Largest value ``unit`` can take given the current year and month."""
        if unit is CalendarUnit.YEAR:
            return MAXYEAR
        if unit is CalendarUnit.DAY:
            return self.days_in_month
        return _FIXED_RANGES[unit][1]

    # ── Week days ────────────────────────────────────────────────

    def first_weekday(self) -> int:
        """Week day of the 1st of the current month, Sunday = 0."""
        monday_based = monthrange(self.year, self.month)[0]
        return (monday_based + 1) % 7

    def weekday_to_month_days(self, weekday: int) -> list[int]:
        """All days of the current month falling on ``weekday`` (Sunday = 0, 7 also Sunday)."""
        first = 1 + (weekday % 7 - self.first_weekday()) % 7
        return list(range(first, self.days_in_month + 1, 7))

    def nth_weekday_to_month_day(self, ordinal: int, weekday: int) -> int | None:
        """The ``ordinal``-th ``weekday`` of the current month.

        ``ordinal`` is 1-based; -1 selects the last occurrence. Returns None
        when the month has no such occurrence (e.g. a 5th Friday).
        """
        days = self.weekday_to_month_days(weekday)
        if ordinal == -1:
            return days[-1]
        if 1 <= ordinal <= len(days):
            return days[ordinal - 1]
        return None

    # ── Comparison ───────────────────────────────────────────────

    def after(self, other: CalendarContext) -> bool:
        return self.as_tuple() > other.as_tuple()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CalendarContext):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __hash__(self) -> int:
        return hash(self.as_tuple())

    def __repr__(self) -> str:
        return "CalendarContext(%04d-%02d-%02d %02d:%02d:%02d)" % self.as_tuple()

    def _reconcile_day(self) -> None:
        last = self.days_in_month
        if self._values[CalendarUnit.DAY] > last:
            self._values[CalendarUnit.DAY] = last


def _fields(moment: datetime) -> tuple[int, ...]:
    return (moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second)
