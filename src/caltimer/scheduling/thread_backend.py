"""Threading-based delay scheduler.

This is the DEFAULT delay primitive for calendar-timer. It uses the stdlib
threading module and a small worker pool, so firings never run on the
dispatcher thread and a slow action cannot delay other tasks' wakeups.

┌──────────────────────────────────────────────────────────────────────────────┐
│  THREAD DELAY SCHEDULER                                                       │
│                                                                               │
│   schedule(task, delay_ms)                                                    │
│      │  push DelayedCall(due, seq, task) on the heap, notify                 │
│      ▼                                                                        │
│   ┌─────────────────────────────────────────────────────────┐                │
│   │              Dispatcher thread (daemon)                 │                │
│   │                                                         │                │
│   │   while not shut down:                                  │                │
│   │       drop cancelled heads                              │                │
│   │       wait(condition, until earliest due)               │                │
│   │       pop due call, claim it ──► worker pool            │                │
│   └─────────────────────────────────────────────────────────┘                │
│                                         │                                     │
│                                         ▼                                     │
│   ┌─────────────────────────────────────────────────────────┐                │
│   │   ThreadPoolExecutor(pool_size)   call.task()           │                │
│   └─────────────────────────────────────────────────────────┘                │
│                                                                               │
│   shutdown(timeout)                                                           │
│      reject new work, cancel pending calls, wait for in-flight firings       │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Any

from caltimer.core.errors import SchedulerShutdownError
from caltimer.core.logging import get_logger

logger = get_logger(__name__)

_PENDING = "pending"
_CANCELLED = "cancelled"
_CLAIMED = "claimed"


class DelayedCall:
    """One pending call. Doubles as its own ``TimerHandle``."""

    def __init__(self, due: float, sequence: int, task: Callable[[], Any]) -> None:
        self.due = due
        self.sequence = sequence
        self.task = task
        self._state = _PENDING
        self._lock = threading.Lock()

    def __lt__(self, other: DelayedCall) -> bool:
        return (self.due, self.sequence) < (other.due, other.sequence)

    def cancel(self) -> bool:
        with self._lock:
            if self._state != _PENDING:
                return False
            self._state = _CANCELLED
            return True

    def claim(self) -> bool:
        """Move from pending to running. False if it was cancelled first."""
        with self._lock:
            if self._state != _PENDING:
                return False
            self._state = _CLAIMED
            return True

    @property
    def cancelled(self) -> bool:
        return self._state == _CANCELLED

    @property
    def delay_remaining(self) -> float:
        return max(0.0, self.due - time.monotonic())


class ThreadDelayScheduler:
    """Heap-ordered single-fire scheduler backed by a worker pool.

    Example:
        >>> scheduler = ThreadDelayScheduler(pool_size=2)
        >>> handle = scheduler.schedule(lambda: print("fired"), 1500)
        >>> handle.cancel()
        True
        >>> scheduler.shutdown(timeout=1.0)
    """

    name = "thread"

    def __init__(self, pool_size: int = 2, thread_name_prefix: str = "caltimer") -> None:
        if pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {pool_size}")
        self.pool_size = pool_size
        self._prefix = thread_name_prefix
        self._heap: list[DelayedCall] = []
        self._condition = threading.Condition()
        self._sequence = itertools.count()
        self._executor = ThreadPoolExecutor(
            max_workers=pool_size, thread_name_prefix=f"{thread_name_prefix}-worker"
        )
        self._in_flight: set[Future] = set()
        self._thread: threading.Thread | None = None
        self._shutdown = False
        self._dispatched = 0
        self._failed = 0

    def schedule(self, task: Callable[[], Any], delay_ms: int) -> DelayedCall:
        """Run ``task`` once after ``delay_ms`` milliseconds.

        Negative delays run as soon as possible.

        Raises:
            SchedulerShutdownError: after ``shutdown()``
        """
        with self._condition:
            if self._shutdown:
                raise SchedulerShutdownError("Scheduler is shut down").with_context(backend=self.name)
            call = DelayedCall(time.monotonic() + max(delay_ms, 0) / 1000.0, next(self._sequence), task)
            heapq.heappush(self._heap, call)
            self._ensure_started()
            self._condition.notify()
        return call

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop accepting work, cancel pending calls and wait for in-flight ones.

        Args:
            timeout: Seconds to wait for in-flight firings (None waits forever).
        """
        with self._condition:
            if self._shutdown:
                return
            self._shutdown = True
            pending = list(self._heap)
            self._heap.clear()
            in_flight = list(self._in_flight)
            self._condition.notify_all()

        for call in pending:
            call.cancel()

        if in_flight:
            _, not_done = wait_futures(in_flight, timeout=timeout)
            if not_done:
                logger.warning("scheduler_shutdown_timeout", still_running=len(not_done), timeout=timeout)

        self._executor.shutdown(wait=False, cancel_futures=True)
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
            if self._thread.is_alive():
                logger.warning("dispatcher_thread_did_not_stop")

        logger.info("scheduler_shutdown_complete", cancelled=len(pending), dispatched=self._dispatched)

    @property
    def is_running(self) -> bool:
        return not self._shutdown

    def health(self) -> dict[str, Any]:
        """Return backend health status."""
        with self._condition:
            pending = sum(1 for call in self._heap if not call.cancelled)
            in_flight = len(self._in_flight)
        thread_ok = self._thread is None or self._thread.is_alive()
        return {
            "healthy": not self._shutdown and thread_ok,
            "backend": self.name,
            "pending": pending,
            "in_flight": in_flight,
            "dispatched": self._dispatched,
            "failed": self._failed,
            "pool_size": self.pool_size,
        }

    def _ensure_started(self) -> None:
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._loop, daemon=True, name=f"{self._prefix}-dispatcher"
            )
            self._thread.start()
            logger.debug("dispatcher_started", pool_size=self.pool_size)

    def _loop(self) -> None:
        while True:
            with self._condition:
                call = self._next_due()
                if call is None:
                    return
            self._dispatch(call)

    def _next_due(self) -> DelayedCall | None:
        """Block until a call is due. None once shut down. Caller holds the condition."""
        while not self._shutdown:
            while self._heap and self._heap[0].cancelled:
                heapq.heappop(self._heap)
            if not self._heap:
                self._condition.wait()
                continue
            remaining = self._heap[0].delay_remaining
            if remaining <= 0:
                return heapq.heappop(self._heap)
            self._condition.wait(remaining)
        return None

    def _dispatch(self, call: DelayedCall) -> None:
        if not call.claim():
            return
        try:
            future = self._executor.submit(self._run, call)
        except RuntimeError:
            # executor closed by a concurrent shutdown
            logger.debug("dispatch_after_shutdown_dropped")
            return
        with self._condition:
            self._in_flight.add(future)
            self._dispatched += 1
        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._condition:
            self._in_flight.discard(future)

    def _run(self, call: DelayedCall) -> None:
        try:
            call.task()
        except Exception:
            with self._condition:
                self._failed += 1
            logger.exception("delayed_call_failed", task=getattr(call.task, "__name__", repr(call.task)))
