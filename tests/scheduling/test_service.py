"""Tests for CalendarTimerService."""

import threading
from datetime import datetime

import pytest

from caltimer.core.errors import (
    ConfigError,
    DuplicateTaskError,
    SchedulerShutdownError,
    ValidationError,
)
from caltimer.core.settings import TimerSettings
from caltimer.scheduling import CalendarTimerService, TaskState, ThreadDelayScheduler, scheduled
from caltimer.spec import ScheduleSpec


@pytest.fixture
def service(fake_scheduler, fake_clock):
    timers = CalendarTimerService(
        scheduler=fake_scheduler,
        settings=TimerSettings(_env_file=None),
        clock=fake_clock,
    )
    yield timers
    timers.shutdown()


class Reports:
    def __init__(self):
        self.runs = []

    @scheduled(second="0", minute="0", hour="6")
    def morning(self):
        self.runs.append("morning")

    @scheduled(second="0", minute="0", hour="0", day_of_month="1")
    @scheduled(second="0", minute="0", hour="0", day_of_month="15", name="mid-month")
    def billing(self):
        self.runs.append("billing")

    def helper(self):
        pass


class TestRegister:
    """Test explicit registration."""

    def test_register_arms_task(self, service, fake_scheduler):
        task = service.register(ScheduleSpec(second="0"), lambda: None, name="tick")
        assert task.state is TaskState.ARMED
        assert service.get("tick") is task
        assert len(fake_scheduler.pending) == 1

    def test_register_mapping(self, service):
        task = service.register({"dayOfMonth": "last", "hour": 23}, lambda: None, name="eom")
        assert task.spec.day_of_month == "last"
        assert task.spec.hour == "23"

    def test_invalid_spec_registers_nothing(self, service, fake_scheduler):
        with pytest.raises(ValidationError):
            service.register(ScheduleSpec(day_of_month="---"), lambda: None, name="bad")
        assert service.get("bad") is None
        assert fake_scheduler.calls == []

    def test_duplicate_name(self, service):
        service.register(ScheduleSpec(), lambda: None, name="tick")
        with pytest.raises(DuplicateTaskError):
            service.register(ScheduleSpec(), lambda: None, name="tick")

    def test_default_error_listener(self, fake_scheduler, fake_clock):
        failures = []
        timers = CalendarTimerService(
            scheduler=fake_scheduler,
            settings=TimerSettings(_env_file=None),
            clock=fake_clock,
            on_error=failures.append,
        )

        def broken():
            raise RuntimeError("boom")

        timers.register(ScheduleSpec(), broken, name="broken")
        fake_scheduler.run_next()
        assert len(failures) == 1
        assert failures[0].context.task == "broken"

    def test_cancel(self, service, fake_scheduler):
        task = service.register(ScheduleSpec(), lambda: None, name="tick")
        assert service.cancel("tick") is True
        assert task.state is TaskState.TERMINATED
        assert fake_scheduler.calls[0].cancelled
        assert service.cancel("tick") is False


class TestBind:
    """Test @scheduled discovery."""

    def test_bind_registers_every_schedule(self, service):
        tasks = service.bind(Reports())
        assert sorted(task.name for task in tasks) == [
            "Reports.billing",
            "Reports.morning",
            "mid-month",
        ]

    def test_bound_method_runs_on_instance(self, service, fake_scheduler, fake_clock):
        reports = Reports()
        service.bind(reports)
        morning = service.get("Reports.morning")
        assert morning.next_fire_time == datetime(2020, 1, 1, 6, 0, 0)

        fake_clock.set(morning.next_fire_time)
        handle = next(call for call in fake_scheduler.pending if call.task.__self__ is morning)
        handle.ran = True
        handle.task()
        assert reports.runs == ["morning"]

    def test_method_with_arguments_rejected(self, service, fake_scheduler):
        class Broken:
            @scheduled(second="0")
            def needs_arg(self, value):
                pass

        with pytest.raises(ConfigError):
            service.bind(Broken())
        assert fake_scheduler.calls == []

    def test_invalid_schedule_arms_nothing(self, service, fake_scheduler):
        class Mixed:
            @scheduled(second="0")
            def good(self):
                pass

            @scheduled(hour="25")
            def bad(self):
                pass

        with pytest.raises(ValidationError):
            service.bind(Mixed())
        assert fake_scheduler.calls == []
        assert service.tasks == []


class TestLifecycle:
    """Test shutdown, health and context manager."""

    def test_shutdown_stops_tasks(self, fake_scheduler, fake_clock):
        timers = CalendarTimerService(scheduler=fake_scheduler, settings=TimerSettings(_env_file=None), clock=fake_clock)
        task = timers.register(ScheduleSpec(), lambda: None, name="tick")
        timers.shutdown()

        assert task.state is TaskState.TERMINATED
        # the scheduler belongs to the caller
        assert fake_scheduler.closed is False
        with pytest.raises(SchedulerShutdownError):
            timers.register(ScheduleSpec(), lambda: None, name="late")

    def test_health(self, service):
        service.register(ScheduleSpec(), lambda: None, name="tick")
        health = service.health()
        assert health.healthy is True
        assert health.tasks == 1
        assert health.active == 1
        assert health.to_dict()["backend"]["backend"] == "fake"

    def test_owned_scheduler_uses_settings(self):
        settings = TimerSettings(_env_file=None, pool_size=3, shutdown_timeout_seconds=0.5)
        with CalendarTimerService(settings=settings) as timers:
            assert isinstance(timers.scheduler, ThreadDelayScheduler)
            assert timers.scheduler.pool_size == 3
        assert timers.scheduler.is_running is False

    def test_real_scheduler_fires(self):
        fired = threading.Event()
        with CalendarTimerService(settings=TimerSettings(_env_file=None)) as timers:
            timers.register(ScheduleSpec(), fired.set, name="every-second")
            assert fired.wait(timeout=3.0)
