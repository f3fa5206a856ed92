"""
calendar-timer: calendar-expression scheduling with self-rescheduling tasks.

Quick start:
    >>> from datetime import datetime
    >>> from caltimer import ScheduleSpec, compute_next_fire_time
    >>> spec = ScheduleSpec(second="0", minute="0", hour="0")
    >>> compute_next_fire_time(spec, datetime(2020, 1, 1))
    datetime.datetime(2020, 1, 2, 0, 0)
"""

__version__ = "0.1.0"

from caltimer.calendar import CalendarContext, CalendarUnit
from caltimer.core.errors import (
    ActionFailure,
    ConfigError,
    DuplicateTaskError,
    ExpressionError,
    ResolutionError,
    ScheduleError,
    SchedulerShutdownError,
    TimerError,
    ValidationError,
)
from caltimer.core.settings import TimerSettings
from caltimer.resolver import NextFireTimeResolver, compute_next_fire_time
from caltimer.scheduling import (
    CalendarTimerService,
    ScheduledTask,
    TaskState,
    ThreadDelayScheduler,
    Timer,
    scheduled,
)
from caltimer.spec import ScheduleSpec

__all__ = [
    "__version__",
    "ActionFailure",
    "CalendarContext",
    "CalendarTimerService",
    "CalendarUnit",
    "ConfigError",
    "DuplicateTaskError",
    "ExpressionError",
    "NextFireTimeResolver",
    "ResolutionError",
    "ScheduleError",
    "ScheduleSpec",
    "ScheduledTask",
    "SchedulerShutdownError",
    "TaskState",
    "ThreadDelayScheduler",
    "Timer",
    "TimerError",
    "TimerSettings",
    "ValidationError",
    "compute_next_fire_time",
    "scheduled",
]
