"""
CLI utility helpers: schedule options and output formatting.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from caltimer.core.errors import TimerError
from caltimer.spec import ScheduleSpec

console = Console()
err_console = Console(stderr=True)


# ── Input helpers ────────────────────────────────────────────────────────


def build_spec(
    second: str,
    minute: str,
    hour: str,
    day_of_month: str,
    day_of_week: str,
    month: str,
    year: str,
) -> ScheduleSpec:
    return ScheduleSpec(
        second=second,
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        day_of_week=day_of_week,
        month=month,
        year=year,
    )


def parse_moment(value: str | None) -> datetime:
    """Parse an ISO-8601 ``--from`` value; current local time when omitted."""
    if value is None:
        return datetime.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Not an ISO-8601 date/time: {value}", param_hint="--from") from exc


# ── Output helpers ───────────────────────────────────────────────────────


def fail(error: TimerError, *, as_json: bool = False) -> None:
    """Print ``error`` and exit with status 1."""
    if as_json:
        typer.echo(json.dumps({"valid": False, "error": error.to_dict()}, indent=2))
    else:
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    raise typer.Exit(code=1)


def output_fire_times(
    spec: ScheduleSpec,
    start: datetime,
    fire_times: list[datetime],
    *,
    exhausted: bool,
    as_json: bool = False,
) -> None:
    """Render upcoming fire times as a rich table or JSON."""
    if as_json:
        payload: dict[str, Any] = {
            "schedule": spec.to_dict(),
            "from": start.isoformat(),
            "fire_times": [moment.isoformat() for moment in fire_times],
            "exhausted": exhausted,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(title=f"Next fire times: {spec.describe()}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Fire time", style="cyan")
    table.add_column("Weekday")
    for index, moment in enumerate(fire_times, start=1):
        table.add_row(str(index), moment.isoformat(sep=" "), moment.strftime("%A"))
    console.print(table)

    if exhausted:
        console.print("[yellow]Schedule exhausted: no further fire times.[/yellow]")


def output_valid(spec: ScheduleSpec, *, as_json: bool = False) -> None:
    if as_json:
        typer.echo(json.dumps({"valid": True, "schedule": spec.to_dict()}, indent=2))
    else:
        console.print(f"[green]Valid schedule:[/green] {spec.describe()}", highlight=False)
