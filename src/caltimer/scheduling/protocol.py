"""Delay scheduler protocol.

┌──────────────────────────────────────────────────────────────────────────────┐
│  DELAY SCHEDULER PROTOCOL                                                     │
│                                                                               │
│  The engine never sleeps. Waiting is delegated to a single-fire delayed      │
│  execution primitive; each ScheduledTask re-arms itself after every firing:  │
│                                                                               │
│   ScheduledTask.start()                                                       │
│        │  compute delay                                                       │
│        ▼                                                                      │
│   scheduler.schedule(fire, delay_ms) ──► TimerHandle                         │
│        │                                     │ cancel() -> bool               │
│        ▼  (delay elapses)                    │                                │
│   fire() ── action ── compute delay ── schedule(fire, delay_ms) ── ...       │
│                                                                               │
│  Responsibility Split:                                                        │
│  - Scheduler: WHEN a callable runs (threads, heap, wakeups)                   │
│  - ScheduledTask: WHAT runs and whether to re-arm                             │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    """Handle to one pending delayed call."""

    def cancel(self) -> bool:
        """Prevent the call from running.

        Returns:
            True if the call was still pending and will not run.
        """
        ...


@runtime_checkable
class DelayScheduler(Protocol):
    """Protocol for single-fire delayed execution backends.

    ``schedule()`` must return before ``task`` runs and must never call
    ``task`` on the calling thread: ScheduledTask submits its next firing
    while holding its own lock, which the firing acquires again.

    Implementations:
        - ThreadDelayScheduler: heap dispatcher plus worker pool (default)

    Example (custom backend):
        >>> import threading
        >>> class TimerThreadScheduler:
        ...     name = "timer-thread"
        ...
        ...     def schedule(self, task, delay_ms):
        ...         timer = threading.Timer(max(delay_ms, 0) / 1000, task)
        ...         timer.daemon = True
        ...         timer.start()
        ...         return TimerThreadHandle(timer)
        ...
        ...     def shutdown(self, timeout=None):
        ...         pass
        ...
        ...     def health(self) -> dict:
        ...         return {"healthy": True, "backend": self.name, "pending": 0}
    """

    name: str

    def schedule(self, task: Callable[[], Any], delay_ms: int) -> TimerHandle:
        """Run ``task`` once, no earlier than ``delay_ms`` milliseconds from now.

        Raises:
            SchedulerShutdownError: if the scheduler no longer accepts work
        """
        ...

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop accepting work and wait up to ``timeout`` for in-flight calls."""
        ...

    def health(self) -> dict[str, Any]:
        """Return backend health status.

        Returns:
            dict with at least:
                - healthy (bool): whether the backend accepts work
                - backend (str): backend name
                - pending (int): calls waiting for their delay
        """
        ...
