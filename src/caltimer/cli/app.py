"""
Root Typer application for the ``caltimer`` CLI.

Previews calendar schedules without arming anything:

    caltimer next --minute 0 --hour 9 --day-of-week mon-fri --count 5
    caltimer validate --day-of-month "2nd Fri"
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

import typer
from typer import Typer

from caltimer.cli.utils import build_spec, fail, output_fire_times, output_valid, parse_moment
from caltimer.core.errors import TimerError
from caltimer.core.logging import configure_logging
from caltimer.core.settings import TimerSettings
from caltimer.resolver import compute_next_fire_time

app = Typer(
    name="caltimer",
    help="calendar-timer: preview and validate calendar schedules.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Shared options ───────────────────────────────────────────────────────

SECOND = typer.Option("*", "--second", "-s", help="Second expression (0-59).")
MINUTE = typer.Option("*", "--minute", "-m", help="Minute expression (0-59).")
HOUR = typer.Option("*", "--hour", "-H", help="Hour expression (0-23).")
DAY_OF_MONTH = typer.Option("*", "--day-of-month", "-d", help="Day of month: 1-31, last, -N, '2nd Fri'.")
DAY_OF_WEEK = typer.Option("*", "--day-of-week", "-w", help="Day of week: 0-7 or sun-sat.")
MONTH = typer.Option("*", "--month", "-M", help="Month expression: 1-12 or jan-dec.")
YEAR = typer.Option("*", "--year", "-y", help="Year expression.")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("calendar-timer")
        except PackageNotFoundError:
            from caltimer import __version__ as v
        typer.echo(f"caltimer {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level; defaults to CALTIMER_LOG_LEVEL.",
    ),
) -> None:
    """caltimer CLI: preview next fire times and validate schedules."""
    settings = TimerSettings()
    try:
        configure_logging(level=log_level or settings.log_level, json_format=settings.json_logs)
    except TimerError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("next")
def next_fire_times(
    second: str = SECOND,
    minute: str = MINUTE,
    hour: str = HOUR,
    day_of_month: str = DAY_OF_MONTH,
    day_of_week: str = DAY_OF_WEEK,
    month: str = MONTH,
    year: str = YEAR,
    start: str | None = typer.Option(None, "--from", help="Start moment (ISO-8601); defaults to now."),
    count: int = typer.Option(5, "--count", "-n", min=1, max=1000, help="Number of fire times."),
    json_out: bool = typer.Option(False, "--json", help="Output JSON."),
) -> None:
    """Show the next fire times of a schedule."""
    spec = build_spec(second, minute, hour, day_of_month, day_of_week, month, year)
    moment = parse_moment(start)

    fire_times = []
    exhausted = False
    cursor = moment
    try:
        for _ in range(count):
            fire_time = compute_next_fire_time(spec, cursor)
            if fire_time is None:
                exhausted = True
                break
            fire_times.append(fire_time)
            cursor = fire_time
    except TimerError as exc:
        fail(exc, as_json=json_out)

    output_fire_times(spec, moment, fire_times, exhausted=exhausted, as_json=json_out)


@app.command("validate")
def validate(
    second: str = SECOND,
    minute: str = MINUTE,
    hour: str = HOUR,
    day_of_month: str = DAY_OF_MONTH,
    day_of_week: str = DAY_OF_WEEK,
    month: str = MONTH,
    year: str = YEAR,
    json_out: bool = typer.Option(False, "--json", help="Output JSON."),
) -> None:
    """Check a schedule's expressions; exit 1 if any is invalid."""
    spec = build_spec(second, minute, hour, day_of_month, day_of_week, month, year)
    try:
        spec.validate()
    except TimerError as exc:
        fail(exc, as_json=json_out)

    output_valid(spec, as_json=json_out)


if __name__ == "__main__":
    app()
