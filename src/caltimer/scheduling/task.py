"""Self-rescheduling calendar task.

A ``ScheduledTask`` pairs a ``ScheduleSpec`` with a no-argument action and
keeps exactly one delayed call armed on a ``DelayScheduler``:

    ┌──────┐ start() ┌───────┐ delay elapses ┌────────┐
    │ IDLE │ ──────► │ ARMED │ ────────────► │ FIRING │
    └──────┘         └───────┘ ◄──────────── └────────┘
        │                │      next fire time     │
        │ exhausted      │ stop()                  │ exhausted / stop()
        ▼                ▼                         ▼
    ┌────────────────────────────────────────────────────┐
    │                    TERMINATED                       │
    └────────────────────────────────────────────────────┘

An exception raised by the action is wrapped in ``ActionFailure``, logged
and passed to the optional ``on_error`` listener. It never stops the task
from re-arming and never reaches the scheduler thread.

``stop()`` may be called from any thread in any state. Once it returns, no
new delayed call is armed, even if a firing is in progress.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any

from caltimer.core.errors import (
    ActionFailure,
    ScheduleError,
    SchedulerShutdownError,
    TimerError,
    categorize_error,
)
from caltimer.core.logging import LogContext, get_logger
from caltimer.resolver import NextFireTimeResolver
from caltimer.scheduling.protocol import DelayScheduler, TimerHandle
from caltimer.spec import ScheduleSpec

logger = get_logger(__name__)

Clock = Callable[[], datetime]
ErrorListener = Callable[[ActionFailure], Any]


class TaskState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRING = "firing"
    TERMINATED = "terminated"


def delay_millis(now: datetime, fire_time: datetime) -> int:
    """Milliseconds from ``now`` until ``fire_time``, rounded up."""
    return max(0, math.ceil((fire_time - now).total_seconds() * 1000))


def callable_name(action: Callable[..., Any]) -> str:
    return getattr(action, "__qualname__", None) or getattr(action, "__name__", None) or repr(action)


class ScheduledTask:
    """Fires ``action`` at every moment matching ``spec``.

    Args:
        spec: Schedule to follow
        action: No-argument callable run on every firing
        scheduler: Delay primitive used to wait for the next fire time
        name: Task name used in logs; defaults to the action's qualified name
        clock: Returns the current local time; ``datetime.now`` by default
        on_error: Called with the ``ActionFailure`` when the action raises
        resolver: Next-fire-time resolver, shared or configured by the caller

    Example:
        >>> task = ScheduledTask(ScheduleSpec(second="0"), report, scheduler)
        >>> task.start()
        True
        >>> task.stop()
    """

    def __init__(
        self,
        spec: ScheduleSpec,
        action: Callable[[], Any],
        scheduler: DelayScheduler,
        *,
        name: str | None = None,
        clock: Clock | None = None,
        on_error: ErrorListener | None = None,
        resolver: NextFireTimeResolver | None = None,
    ) -> None:
        self.spec = spec
        self.action = action
        self.scheduler = scheduler
        self.name = name or callable_name(action)
        self._clock = clock or datetime.now
        self._on_error = on_error
        self._resolver = resolver or NextFireTimeResolver()

        self._lock = threading.Lock()
        self._state = TaskState.IDLE
        self._stopped = False
        self._handle: TimerHandle | None = None

        self.next_fire_time: datetime | None = None
        self.fire_count = 0
        self.failure_count = 0
        self.last_error: ActionFailure | None = None

    # ── Lifecycle ────────────────────────────────────────────────

    def start(self) -> bool:
        """Validate the schedule and arm the first firing.

        Returns:
            True if armed, False if the schedule is already exhausted.

        Raises:
            ValidationError: if the schedule is malformed (nothing is armed)
            ScheduleError: if the task was already started
            SchedulerShutdownError: if the scheduler no longer accepts work
        """
        with self._lock:
            if self._state is not TaskState.IDLE or self._stopped:
                raise ScheduleError(f"Task already started: {self.name}").with_context(task=self.name)
            self.spec.validate()
            return self._arm(self._clock())

    def stop(self) -> None:
        """Cancel the pending firing and prevent any further re-arming."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            handle, self._handle = self._handle, None
            if self._state is not TaskState.FIRING:
                self._state = TaskState.TERMINATED
        if handle is not None:
            handle.cancel()
        logger.info("task_stopped", task=self.name)

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def is_active(self) -> bool:
        return not self._stopped and self._state is not TaskState.TERMINATED

    # ── Firing ───────────────────────────────────────────────────

    def _fire(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._state = TaskState.FIRING
            self._handle = None
            scheduled_for = self.next_fire_time

        with LogContext(task=self.name):
            self._run_action()

            with self._lock:
                if self._stopped:
                    self._state = TaskState.TERMINATED
                    return
                now = self._clock()
                # a wakeup slightly ahead of the wall clock must not fire twice
                if scheduled_for is not None and now < scheduled_for:
                    now = scheduled_for
                try:
                    self._arm(now)
                except SchedulerShutdownError:
                    logger.info("task_terminated", reason="scheduler_shutdown")
                    self._state = TaskState.TERMINATED
                except TimerError as exc:
                    logger.error("task_rearm_failed", error=exc.to_dict())
                    self._state = TaskState.TERMINATED

    def _run_action(self) -> None:
        self.fire_count += 1
        try:
            self.action()
        except Exception as exc:
            failure = ActionFailure(f"Action failed: {exc}", cause=exc).with_context(task=self.name)
            self.failure_count += 1
            self.last_error = failure
            logger.error(
                "task_action_failed",
                error=failure.to_dict(),
                cause_category=categorize_error(exc).value,
                exc_info=exc,
            )
            self._notify_error(failure)
        else:
            logger.debug("task_fired", fire_count=self.fire_count)

    def _notify_error(self, failure: ActionFailure) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(failure)
        except Exception:
            logger.exception("task_error_listener_failed")

    def _arm(self, now: datetime) -> bool:
        """Resolve the next fire time after ``now`` and submit it. Caller holds the lock."""
        fire_time = self._resolver.resolve(self.spec, now)
        if fire_time is None:
            self.next_fire_time = None
            self._state = TaskState.TERMINATED
            logger.info("task_exhausted", task=self.name, spec=self.spec.describe())
            return False

        delay = delay_millis(now, fire_time)
        self._handle = self.scheduler.schedule(self._fire, delay)
        self.next_fire_time = fire_time
        self._state = TaskState.ARMED
        logger.info(
            "task_armed",
            task=self.name,
            next_fire_time=fire_time.isoformat(),
            delay_ms=delay,
        )
        return True

    def __repr__(self) -> str:
        return f"ScheduledTask(name={self.name!r}, state={self._state.value}, spec='{self.spec}')"
