"""
Structured error types for calendar-timer.

Every failure the engine can report is a ``TimerError`` carrying a category,
structured context and an optional chained cause. Callers can tell the three
outcomes of scheduling apart without string matching:

- **ValidationError / ExpressionError:** a schedule expression is malformed or
  out of range. Raised synchronously from resolution and registration.
- **Exhaustion:** not an error at all. ``compute_next_fire_time`` returns
  ``None`` when a schedule will never fire again.
- **ActionFailure:** the user action raised while firing. Built and logged at
  the ``ScheduledTask`` boundary, never propagated to the timer facility.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        TimerError                            │
        │            (category, context, cause, to_dict())            │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError     ConfigError       ScheduleError         │
        │  (VALIDATION)        (CONFIG)          (ORCHESTRATION)       │
        │       │                                     │                │
        │  ExpressionError                   SchedulerShutdownError    │
        │                                    DuplicateTaskError        │
        │                                                              │
        │  ResolutionError     ActionFailure                           │
        │  (INTERNAL)          (ACTION)                                │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ExpressionError("Too large value: 61", unit="second", expression="61")
    >>> error.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> error.to_dict()["context"]
    {'unit': 'second', 'expression': '61'}

Guardrails:
    ❌ DON'T: Raise ValidationError for a schedule that simply has no future
    ✅ DO: Return None from resolution (exhaustion is a normal outcome)

    ❌ DON'T: Let an ActionFailure escape into the timer thread
    ✅ DO: Log it and keep re-arming
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    VALIDATION = "VALIDATION"        # Malformed or out-of-range expressions
    CONFIG = "CONFIG"                # Invalid settings or registrations
    ORCHESTRATION = "ORCHESTRATION"  # Scheduler lifecycle errors
    ACTION = "ACTION"                # User action raised while firing
    INTERNAL = "INTERNAL"            # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        task: Name of the scheduled task involved
        unit: Calendar unit whose expression failed (``"second"`` .. ``"year"``)
        expression: The offending expression text
        metadata: Additional key-value pairs
    """

    task: str | None = None
    unit: str | None = None
    expression: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["task", "unit", "expression"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TimerError(Exception):
    """
    Base exception for all calendar-timer errors.

    Subclasses set ``default_category``; instances carry an ``ErrorContext``
    and may chain the underlying exception through ``cause``.

    Examples:
        >>> error = TimerError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(task="nightly").context.task
        'nightly'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TimerError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ScheduleError("Cannot arm").with_context(task="nightly")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(TimerError):
    """
    Schedule validation error.

    Deterministic: the same malformed input always fails the same way,
    whether validated eagerly at registration or lazily during resolution.
    """

    default_category = ErrorCategory.VALIDATION


class ExpressionError(ValidationError):
    """A single unit expression is malformed or out of range."""

    def __init__(
        self,
        message: str,
        *,
        unit: str | None = None,
        expression: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.unit = unit
        self.expression = expression
        if unit is not None:
            self.context.unit = unit
        if expression is not None:
            self.context.expression = expression


class ConfigError(TimerError):
    """Invalid configuration or registration (e.g. a callback with parameters)."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class ScheduleError(TimerError):
    """Scheduler lifecycle error."""

    default_category = ErrorCategory.ORCHESTRATION


class SchedulerShutdownError(ScheduleError):
    """The delay scheduler no longer accepts submissions."""

    pass


class DuplicateTaskError(ScheduleError):
    """A task with the same name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Task already registered: {name}", context=ErrorContext(task=name))


# =============================================================================
# RUNTIME ERRORS
# =============================================================================


class ResolutionError(TimerError):
    """The resolver hit its sweep cap. Indicates an evaluator bug."""

    default_category = ErrorCategory.INTERNAL


class ActionFailure(TimerError):
    """A scheduled action raised while firing. Carries the raised exception as ``cause``."""

    default_category = ErrorCategory.ACTION


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, TimerError):
        return error.category
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    if isinstance(error, (KeyError, AttributeError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TimerError",
    "ValidationError",
    "ExpressionError",
    "ConfigError",
    "ScheduleError",
    "SchedulerShutdownError",
    "DuplicateTaskError",
    "ResolutionError",
    "ActionFailure",
    "categorize_error",
]
