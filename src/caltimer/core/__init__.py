"""Ambient primitives: errors, logging and settings."""

from caltimer.core.errors import (
    ActionFailure,
    ConfigError,
    DuplicateTaskError,
    ErrorCategory,
    ErrorContext,
    ExpressionError,
    ResolutionError,
    ScheduleError,
    SchedulerShutdownError,
    TimerError,
    ValidationError,
    categorize_error,
)
from caltimer.core.logging import LogContext, configure_logging, get_logger
from caltimer.core.settings import TimerSettings

__all__ = [
    "ActionFailure",
    "ConfigError",
    "DuplicateTaskError",
    "ErrorCategory",
    "ErrorContext",
    "ExpressionError",
    "ResolutionError",
    "ScheduleError",
    "SchedulerShutdownError",
    "TimerError",
    "ValidationError",
    "categorize_error",
    "LogContext",
    "configure_logging",
    "get_logger",
    "TimerSettings",
]
