"""Periodic and timeout tasks on top of a delay scheduler.

``Timer`` complements calendar schedules with the two plain interval forms:

- ``period(task, period_ms)`` runs ``task`` now and then again ``period_ms``
  after each run completes (fixed delay).
- ``timeout(task, timeout_ms)`` runs ``task`` once after ``timeout_ms``.
  Calling it again for the same task before it fires restarts the countdown.

Tasks are keyed by the callable itself, so ``purge(task)`` needs no handle.
Exceptions raised by a task are logged and forwarded to the optional
exception listener; a failing periodic task keeps its period.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from caltimer.core.errors import ActionFailure, SchedulerShutdownError, categorize_error
from caltimer.core.logging import get_logger
from caltimer.scheduling.protocol import DelayScheduler, TimerHandle
from caltimer.scheduling.task import callable_name
from caltimer.scheduling.thread_backend import ThreadDelayScheduler

logger = get_logger(__name__)

Task = Callable[[], Any]
ExceptionListener = Callable[[ActionFailure], Any]


class _Entry:
    __slots__ = ("task", "period_ms", "handle")

    def __init__(self, task: Task, period_ms: int | None) -> None:
        self.task = task
        self.period_ms = period_ms
        self.handle: TimerHandle | None = None


class Timer:
    """Periodic and timeout task runner.

    Example:
        >>> timer = Timer()
        >>> timer.period(heartbeat, 30_000)
        >>> timer.timeout(session_expired, 900_000)
        >>> timer.timeout(session_expired, 900_000)  # activity: restart countdown
        >>> timer.purge(heartbeat)
        >>> timer.shutdown()
    """

    def __init__(
        self,
        scheduler: DelayScheduler | None = None,
        exception_listener: ExceptionListener | None = None,
    ) -> None:
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or ThreadDelayScheduler(pool_size=1, thread_name_prefix="caltimer-timer")
        self.exception_listener = exception_listener
        self._entries: dict[Task, _Entry] = {}
        self._lock = threading.Lock()

    def period(self, task: Task, period_ms: int) -> None:
        """Run ``task`` immediately and then every ``period_ms`` after it completes."""
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {period_ms}")
        with self._lock:
            self._cancel_locked(task)
            entry = _Entry(task, period_ms)
            self._entries[task] = entry
            entry.handle = self.scheduler.schedule(lambda: self._run(entry), 0)
        logger.debug("periodic_task_scheduled", task=callable_name(task), period_ms=period_ms)

    def timeout(self, task: Task, timeout_ms: int) -> None:
        """Run ``task`` once after ``timeout_ms``, replacing a pending timeout for it."""
        with self._lock:
            self._cancel_locked(task)
            entry = _Entry(task, None)
            self._entries[task] = entry
            entry.handle = self.scheduler.schedule(lambda: self._run(entry), timeout_ms)
        logger.debug("timeout_task_scheduled", task=callable_name(task), timeout_ms=timeout_ms)

    def purge(self, task: Task) -> bool:
        """Cancel ``task``. Returns False if it was not scheduled."""
        with self._lock:
            return self._cancel_locked(task)

    def shutdown(self) -> None:
        with self._lock:
            for task in list(self._entries):
                self._cancel_locked(task)
        if self._owns_scheduler:
            self.scheduler.shutdown(timeout=0)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, task: object) -> bool:
        return task in self._entries

    def _cancel_locked(self, task: Task) -> bool:
        entry = self._entries.pop(task, None)
        if entry is None:
            return False
        if entry.handle is not None:
            entry.handle.cancel()
        return True

    def _run(self, entry: _Entry) -> None:
        with self._lock:
            if self._entries.get(entry.task) is not entry:
                return
            if entry.period_ms is None:
                del self._entries[entry.task]

        try:
            entry.task()
        except Exception as exc:
            failure = ActionFailure(f"Timer task failed: {exc}", cause=exc).with_context(
                task=callable_name(entry.task)
            )
            logger.error(
                "timer_task_failed",
                error=failure.to_dict(),
                cause_category=categorize_error(exc).value,
                exc_info=exc,
            )
            if self.exception_listener is not None:
                try:
                    self.exception_listener(failure)
                except Exception:
                    logger.exception("timer_exception_listener_failed")

        if entry.period_ms is None:
            return
        with self._lock:
            if self._entries.get(entry.task) is not entry:
                return
            try:
                entry.handle = self.scheduler.schedule(lambda: self._run(entry), entry.period_ms)
            except SchedulerShutdownError:
                self._entries.pop(entry.task, None)
