"""Calendar timer service - registration facade.

The service owns a delay scheduler and a set of named ``ScheduledTask``s.
Registration validates the schedule eagerly: a ``ValidationError`` leaves
nothing armed and nothing registered.

┌──────────────────────────────────────────────────────────────────────────────┐
│  CALENDAR TIMER SERVICE                                                       │
│                                                                               │
│   register(spec, action, name)          bind(instance)                        │
│        │                                     │ @scheduled methods             │
│        │                                     │ (no-argument only)             │
│        ▼                                     ▼                                │
│   ┌────────────────────────────────────────────────────────────────┐         │
│   │  spec.validate() ─► ScheduledTask(spec, action, scheduler)     │         │
│   │                      .start()  ─► scheduler.schedule(...)      │         │
│   └────────────────────────────────────────────────────────────────┘         │
│                                                                               │
│   Public API:                                                                 │
│   ├── register / bind        Create and arm tasks                             │
│   ├── cancel(name)           Stop one task                                    │
│   ├── get(name) / tasks      Inspect                                          │
│   ├── shutdown(timeout)      Stop all tasks, close the owned scheduler        │
│   └── health()               Service + backend health                         │
└──────────────────────────────────────────────────────────────────────────────┘

Example:
    >>> with CalendarTimerService() as timers:
    ...     timers.register(ScheduleSpec(second="0", minute="*/5"), flush_metrics)
"""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from caltimer.core.errors import ConfigError, DuplicateTaskError, SchedulerShutdownError
from caltimer.core.logging import get_logger
from caltimer.core.settings import TimerSettings
from caltimer.resolver import NextFireTimeResolver
from caltimer.scheduling.decorators import schedule_markers
from caltimer.scheduling.protocol import DelayScheduler
from caltimer.scheduling.task import Clock, ErrorListener, ScheduledTask, TaskState, callable_name
from caltimer.scheduling.thread_backend import ThreadDelayScheduler
from caltimer.spec import ScheduleSpec

logger = get_logger(__name__)


@dataclass
class ServiceHealth:
    """Structured service health response."""

    healthy: bool
    tasks: int
    active: int
    failures: int
    backend: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "tasks": self.tasks,
            "active": self.active,
            "failures": self.failures,
            "backend": self.backend,
        }


class CalendarTimerService:
    """Registers calendar-scheduled actions on a delay scheduler.

    Args:
        scheduler: Delay primitive; a ``ThreadDelayScheduler`` sized from
            settings is created (and owned) when omitted
        settings: Runtime settings; read from the environment when omitted
        clock: Current-time source passed to every task
        on_error: Default ``ActionFailure`` listener for registered tasks
    """

    def __init__(
        self,
        scheduler: DelayScheduler | None = None,
        settings: TimerSettings | None = None,
        clock: Clock | None = None,
        on_error: ErrorListener | None = None,
    ) -> None:
        self.settings = settings or TimerSettings()
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or ThreadDelayScheduler(pool_size=self.settings.pool_size)
        self.resolver = NextFireTimeResolver(
            year_window=self.settings.year_window,
            max_sweeps=self.settings.max_resolution_sweeps,
        )
        self._clock = clock
        self._on_error = on_error
        self._tasks: dict[str, ScheduledTask] = {}
        self._lock = threading.Lock()
        self._closed = False

    # === Registration ===

    def register(
        self,
        spec: ScheduleSpec | Mapping[str, Any],
        action: Callable[[], Any],
        name: str | None = None,
        *,
        on_error: ErrorListener | None = None,
    ) -> ScheduledTask:
        """Validate ``spec`` and arm ``action`` on it.

        Raises:
            ValidationError: if the schedule is malformed (nothing registered)
            DuplicateTaskError: if ``name`` is already registered
            SchedulerShutdownError: after ``shutdown()``
        """
        if isinstance(spec, Mapping):
            spec = ScheduleSpec.from_mapping(spec)
        spec.validate()
        name = name or callable_name(action)

        task = ScheduledTask(
            spec,
            action,
            self.scheduler,
            name=name,
            clock=self._clock,
            on_error=on_error or self._on_error,
            resolver=self.resolver,
        )
        with self._lock:
            if self._closed:
                raise SchedulerShutdownError("Timer service is shut down").with_context(task=name)
            if name in self._tasks:
                raise DuplicateTaskError(name)
            self._tasks[name] = task

        try:
            armed = task.start()
        except Exception:
            with self._lock:
                self._tasks.pop(name, None)
            raise

        logger.info("task_registered", task=name, spec=spec.describe(), armed=armed)
        return task

    def bind(self, instance: object) -> list[ScheduledTask]:
        """Register every ``@scheduled`` method of ``instance``.

        All schedules are validated before any task is armed. Task names are
        ``<Class>.<method>``, suffixed ``#<n>`` for stacked schedules, unless
        the decorator names them.

        Raises:
            ConfigError: if a scheduled method takes arguments
            ValidationError: if any schedule is malformed
        """
        owner = type(instance)
        pending: list[tuple[str, ScheduleSpec, Callable[[], Any]]] = []
        for attr_name in dir(owner):
            markers = schedule_markers(inspect.getattr_static(owner, attr_name, None))
            if not markers:
                continue
            method = getattr(instance, attr_name)
            _require_no_arguments(method, f"{owner.__name__}.{attr_name}")
            for index, marker in enumerate(markers):
                marker.spec.validate()
                default_name = f"{owner.__name__}.{attr_name}"
                if index:
                    default_name = f"{default_name}#{index + 1}"
                pending.append((marker.name or default_name, marker.spec, method))

        tasks: list[ScheduledTask] = []
        try:
            for name, spec, method in pending:
                tasks.append(self.register(spec, method, name))
        except Exception:
            for task in tasks:
                self.cancel(task.name)
            raise

        logger.info("instance_bound", owner=owner.__name__, tasks=len(tasks))
        return tasks

    # === Inspection / control ===

    def cancel(self, name: str) -> bool:
        """Stop and forget a task. Returns False if ``name`` is unknown."""
        with self._lock:
            task = self._tasks.pop(name, None)
        if task is None:
            return False
        task.stop()
        return True

    def get(self, name: str) -> ScheduledTask | None:
        with self._lock:
            return self._tasks.get(name)

    @property
    def tasks(self) -> list[ScheduledTask]:
        with self._lock:
            return list(self._tasks.values())

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop every task and, if owned, the scheduler."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            tasks = list(self._tasks.values())

        for task in tasks:
            task.stop()
        if self._owns_scheduler:
            self.scheduler.shutdown(
                timeout if timeout is not None else self.settings.shutdown_timeout_seconds
            )
        logger.info("timer_service_shutdown", tasks=len(tasks))

    def health(self) -> ServiceHealth:
        tasks = self.tasks
        backend = self.scheduler.health()
        active = sum(1 for task in tasks if task.state is TaskState.ARMED or task.state is TaskState.FIRING)
        return ServiceHealth(
            healthy=not self._closed and bool(backend.get("healthy", True)),
            tasks=len(tasks),
            active=active,
            failures=sum(task.failure_count for task in tasks),
            backend=backend,
        )

    def __enter__(self) -> CalendarTimerService:
        return self

    def __exit__(self, *args: Any) -> None:
        self.shutdown()


def _require_no_arguments(method: Callable[..., Any], qualified_name: str) -> None:
    required = [
        parameter.name
        for parameter in inspect.signature(method).parameters.values()
        if parameter.default is inspect.Parameter.empty
        and parameter.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if required:
        raise ConfigError(
            f"Scheduled method {qualified_name} must take no arguments, got {', '.join(required)}"
        ).with_context(task=qualified_name)
