"""Runtime settings for calendar-timer.

Settings are environment-driven and validated at startup. Every field can be
overridden with a ``CALTIMER_`` prefixed environment variable or a ``.env``
file entry.

Fields
──────
log_level               : structlog log level
json_logs               : force JSON (True) / console (False); None auto-detects
pool_size               : worker threads used by the default delay scheduler
shutdown_timeout_seconds: grace period for in-flight firings on shutdown
year_window             : half-width of the year window used for ``*`` years
max_resolution_sweeps   : restart cap for one next-fire-time resolution

Examples:
    >>> from caltimer.core.settings import TimerSettings
    >>> TimerSettings(pool_size=4).pool_size
    4
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TimerSettings(BaseSettings):
    """Settings shared by the timer service, scheduler backend and resolver."""

    model_config = SettingsConfigDict(
        env_prefix="CALTIMER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Timer backend ────────────────────────────────────────────
    pool_size: int = Field(default=2, ge=1, description="Worker threads for firings")
    shutdown_timeout_seconds: float = Field(
        default=4.0,
        ge=0.0,
        description="Seconds to wait for in-flight firings before forcing shutdown",
    )

    # ── Resolver ─────────────────────────────────────────────────
    year_window: int = Field(default=10, ge=1, le=100)
    max_resolution_sweeps: int = Field(default=10_000, ge=1)
