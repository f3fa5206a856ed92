"""
Shared pytest fixtures for calendar-timer tests.

This module provides:
- A manual ``FakeScheduler`` that records delayed calls instead of waiting
- A settable ``FakeClock``
- Log context cleanup between tests

Usage:
    def test_something(fake_scheduler, fake_clock):
        task = ScheduledTask(spec, action, fake_scheduler, clock=fake_clock)
        task.start()
        fake_scheduler.run_next()
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

import pytest

from caltimer.core.errors import SchedulerShutdownError
from caltimer.core.logging import clear_context


class FakeHandle:
    def __init__(self, task: Callable[[], Any], delay_ms: int) -> None:
        self.task = task
        self.delay_ms = delay_ms
        self.cancelled = False
        self.ran = False

    def cancel(self) -> bool:
        if self.cancelled or self.ran:
            return False
        self.cancelled = True
        return True


class FakeScheduler:
    """DelayScheduler that only runs calls when the test asks it to."""

    name = "fake"

    def __init__(self) -> None:
        self.calls: list[FakeHandle] = []
        self.closed = False

    def schedule(self, task: Callable[[], Any], delay_ms: int) -> FakeHandle:
        if self.closed:
            raise SchedulerShutdownError("fake scheduler closed")
        handle = FakeHandle(task, delay_ms)
        self.calls.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [call for call in self.calls if not call.cancelled and not call.ran]

    def run_next(self) -> FakeHandle:
        handle = self.pending[0]
        handle.ran = True
        handle.task()
        return handle

    def shutdown(self, timeout: float | None = None) -> None:
        self.closed = True

    def health(self) -> dict[str, Any]:
        return {"healthy": not self.closed, "backend": self.name, "pending": len(self.pending)}


class FakeClock:
    """Callable clock returning a settable moment."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(datetime(2020, 1, 1, 0, 0, 0))


@pytest.fixture(autouse=True)
def _clean_log_context():
    yield
    clear_context()
