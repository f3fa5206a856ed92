"""``@scheduled`` marker for methods discovered by ``CalendarTimerService.bind``.

The decorator only records the schedule on the function; nothing is armed
until an instance is bound to a service. A method may carry several
schedules by stacking the decorator.

Example:
    >>> class Reports:
    ...     @scheduled(minute="0", hour="6", day_of_week="mon-fri")
    ...     def morning(self):
    ...         ...
    ...
    ...     @scheduled(dayOfMonth="last", hour="23", minute="30")
    ...     @scheduled(day_of_month="15", hour="23", minute="30")
    ...     def billing(self):
    ...         ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from caltimer.core.errors import ConfigError
from caltimer.spec import ScheduleSpec

SCHEDULE_ATTRIBUTE = "__caltimer_schedules__"

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class ScheduleMarker:
    spec: ScheduleSpec
    name: str | None = None


def scheduled(spec: ScheduleSpec | None = None, *, name: str | None = None, **fields: Any) -> Callable[[F], F]:
    """Mark a no-argument method to run on a calendar schedule.

    Pass either a ``ScheduleSpec`` or field expressions as keywords
    (snake_case or the camelCase ``dayOfMonth`` / ``dayOfWeek``).

    Raises:
        ConfigError: if both a spec and field keywords are given
        ValidationError: on an unknown field keyword
    """
    if spec is not None and fields:
        raise ConfigError("Pass a ScheduleSpec or field expressions, not both")
    schedule = spec if spec is not None else ScheduleSpec.from_mapping(fields)

    def decorator(func: F) -> F:
        markers = list(getattr(func, SCHEDULE_ATTRIBUTE, ()))
        # stacked decorators apply bottom-up; keep source order
        markers.insert(0, ScheduleMarker(schedule, name))
        setattr(func, SCHEDULE_ATTRIBUTE, tuple(markers))
        return func

    return decorator


def schedule_markers(member: Any) -> tuple[ScheduleMarker, ...]:
    """Markers attached to ``member``, empty if it is not scheduled."""
    func = getattr(member, "__func__", member)
    return tuple(getattr(func, SCHEDULE_ATTRIBUTE, ()))
