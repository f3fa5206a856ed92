"""Next-fire-time resolution.

Given a ``ScheduleSpec`` and a moment ``now``, find the earliest moment
strictly after ``now`` (at one-second resolution) that satisfies all seven
fields, or ``None`` when the schedule will never fire again.

Resolution Flow:
    ::

        evaluation = truncate(now) + 1s        working = copy(evaluation)
                               │
                               ▼
        ┌──── for unit in year → month → day → hour → minute → second ────┐
        │                                                                  │
        │   evaluate(unit, working)                                        │
        │        │                                                         │
        │        ├── working > evaluation and unit not pinned              │
        │        │       └── set(unit, minimum legal value)                │
        │        │                                                         │
        │        └── otherwise: next legal value >= current               │
        │                ├── found      → set (pin), unpin finer if moved  │
        │                ├── overflow   → increment parent, reset unit,    │
        │                │                restart sweep from year          │
        │                └── exhausted  → return None                      │
        └──────────────────────────────────────────────────────────────────┘
                               │
                               ▼
                     working.to_datetime()

Every restart strictly advances a coarser unit and the year window is
finite, so the sweep terminates. ``max_sweeps`` is only a safety net and
hitting it raises ``ResolutionError``.

Examples:
    >>> from datetime import datetime
    >>> compute_next_fire_time(ScheduleSpec(hour="0"), datetime(2020, 1, 31, 23, 30))
    datetime.datetime(2020, 2, 1, 0, 0)
    >>> compute_next_fire_time(ScheduleSpec(year="2019"), datetime(2020, 1, 1)) is None
    True

Guardrails:
    ❌ DON'T: Share a CalendarContext between resolutions
    ✅ DO: Create a fresh context per call (the resolver is reentrant)
"""

from __future__ import annotations

from datetime import datetime

from caltimer.calendar.context import CalendarContext
from caltimer.calendar.units import CalendarUnit
from caltimer.core.errors import ResolutionError
from caltimer.core.logging import get_logger
from caltimer.expressions import DEFAULT_YEAR_WINDOW, NextValue, build_evaluators
from caltimer.spec import ScheduleSpec

logger = get_logger(__name__)

DEFAULT_MAX_SWEEPS = 10_000


class NextFireTimeResolver:
    """Pure, reentrant next-fire-time computation.

    Args:
        year_window: Years either side of the evaluation moment that open-ended
            year expressions resolve against.
        max_sweeps: Restarts allowed before giving up with ``ResolutionError``.
    """

    def __init__(self, year_window: int = DEFAULT_YEAR_WINDOW, max_sweeps: int = DEFAULT_MAX_SWEEPS):
        self.year_window = year_window
        self.max_sweeps = max_sweeps

    def resolve(self, spec: ScheduleSpec, now: datetime) -> datetime | None:
        """Return the next fire time after ``now``, or None if exhausted.

        Raises:
            ExpressionError: if a field expression is malformed
            ResolutionError: if the sweep cap is exceeded
        """
        evaluation = CalendarContext.from_datetime(now)
        try:
            evaluation.increment(CalendarUnit.SECOND)
        except OverflowError:
            return None

        working = evaluation.copy()
        evaluators = build_evaluators(spec, evaluation.year, self.year_window)
        units = CalendarUnit.ordered()

        sweeps = 0
        position = 0
        while position < len(units):
            unit = units[position]
            evaluator = evaluators[unit]
            evaluator.evaluate(working)

            if working.after(evaluation) and not working.is_pinned(unit):
                minimum = evaluator.minimum_value
                if minimum is not None:
                    working.set(unit, minimum)
                    position += 1
                    continue
                result = NextValue.overflow()
            else:
                result = evaluator.next_value(working.get(unit))

            if result.is_exhausted:
                logger.debug("schedule_exhausted", spec=spec.describe(), now=now.isoformat())
                return None

            if result.is_overflow:
                parent = unit.parent
                if parent is None:
                    return None
                try:
                    working.increment(parent)
                except OverflowError:
                    return None
                working.set(unit, working.actual_minimum(unit))
                working.unpin(*unit.finer())

                sweeps += 1
                if sweeps > self.max_sweeps:
                    raise ResolutionError(
                        f"No fire time found after {self.max_sweeps} sweeps"
                    ).with_context(expression=spec.describe(), now=now.isoformat())
                position = 0
                continue

            current = working.get(unit)
            working.set(unit, result.value)
            if result.value > current:
                working.unpin(*unit.finer())
            position += 1

        fire_time = working.to_datetime()
        logger.debug(
            "next_fire_time_resolved",
            spec=spec.describe(),
            now=now.isoformat(),
            next_fire_time=fire_time.isoformat(),
            sweeps=sweeps,
        )
        return fire_time


_default_resolver = NextFireTimeResolver()


def compute_next_fire_time(
    spec: ScheduleSpec,
    now: datetime,
    *,
    year_window: int | None = None,
    max_sweeps: int | None = None,
) -> datetime | None:
    """Earliest moment strictly after ``now`` matching ``spec``, or None."""
    if year_window is None and max_sweeps is None:
        return _default_resolver.resolve(spec, now)
    resolver = NextFireTimeResolver(
        year_window if year_window is not None else DEFAULT_YEAR_WINDOW,
        max_sweeps if max_sweeps is not None else DEFAULT_MAX_SWEEPS,
    )
    return resolver.resolve(spec, now)


__all__ = ["DEFAULT_MAX_SWEEPS", "NextFireTimeResolver", "compute_next_fire_time"]
