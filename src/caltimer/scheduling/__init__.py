"""Scheduling runtime: delay scheduler, self-rescheduling tasks and the service facade."""

from caltimer.scheduling.decorators import ScheduleMarker, schedule_markers, scheduled
from caltimer.scheduling.protocol import DelayScheduler, TimerHandle
from caltimer.scheduling.service import CalendarTimerService, ServiceHealth
from caltimer.scheduling.task import ScheduledTask, TaskState, delay_millis
from caltimer.scheduling.thread_backend import DelayedCall, ThreadDelayScheduler
from caltimer.scheduling.timer import Timer

__all__ = [
    "CalendarTimerService",
    "DelayScheduler",
    "DelayedCall",
    "ScheduleMarker",
    "ScheduledTask",
    "ServiceHealth",
    "TaskState",
    "ThreadDelayScheduler",
    "Timer",
    "TimerHandle",
    "delay_millis",
    "schedule_markers",
    "scheduled",
]
