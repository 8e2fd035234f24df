"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional, Sequence

import pendulum
import typer
from pendulum import Date, DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.config_source import ShopConfigSource
from ..adapters.json_appointments import JsonAppointmentSource
from ..config import ShopConfig, get_default_config_path
from ..domain.exceptions import BookingSlotsError
from ..domain.models import DayStatus, resolve_week
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="bookingslots",
    help="Show bookable appointment slots for the shop",
    add_completion=False
)

console = Console()
error_console = Console(stderr=True)

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

STATUS_LABELS = {
    DayStatus.OPEN: "[green]open[/green]",
    DayStatus.FULL: "[yellow]fully booked[/yellow]",
    DayStatus.BLOCKED: "[red]blocked[/red]",
    DayStatus.CLOSED: "[dim]closed[/dim]",
    DayStatus.MISCONFIGURED: "[red]misconfigured[/red]",
    DayStatus.OUT_OF_RANGE: "[dim]not yet bookable[/dim]",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
NowOption = Annotated[
    Optional[str],
    typer.Option("--now", help="Evaluate as of this timestamp (ISO 8601) instead of the clock")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every rejected candidate.")] = False,
):
    """
    Appointment availability for a single-chair shop.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> ShopConfig:
    config_path = config_file or get_default_config_path()
    try:
        return ShopConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _parse_date(value: str, tz: str) -> Date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] invalid date {value!r}: {e}")
        raise typer.Exit(1)


def _resolve_now(value: Optional[str], tz: str) -> DateTime:
    if value is None:
        return pendulum.now(tz)
    try:
        return pendulum.parse(value, tz=tz)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] invalid --now {value!r}: {e}")
        raise typer.Exit(1)


def _build_service(config: ShopConfig, appointments_file: Optional[Path]) -> AvailabilityService:
    return AvailabilityService(
        config_source=ShopConfigSource(config),
        appointment_source=JsonAppointmentSource(appointments_file, timezone=config.timezone),
        engine=config.build_engine(),
    )


def _slot_table(title: str, starts: Sequence[DateTime], duration: int, tz: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold")
    table.add_column("End", style="dim")

    for start in starts:
        local = start.in_timezone(tz)
        table.add_row(
            local.format("h:mm A"),
            local.add(minutes=duration).format("h:mm A"),
        )

    return table


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Date to check (YYYY-MM-DD)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    config_file: ConfigOption = None,
    appointments_file: Annotated[Optional[Path], typer.Option("--appointments", "-a", help="JSON file with existing appointments")] = None,
    now: NowOption = None,
):
    """
    List the bookable start times of a day.

    Examples:

        bookingslots slots 2024-11-25

        bookingslots slots 2024-11-25 --duration 45 --appointments appointments.json
    """
    config = _load_config(config_file)
    tz = config.timezone
    target_date = _parse_date(day, tz)
    current = _resolve_now(now, tz)
    service_duration = duration if duration is not None else config.booking.default_duration_minutes

    try:
        service = _build_service(config, appointments_file)
        availability = asyncio.run(
            service.get_day_availability(
                target_date=target_date,
                service_duration_minutes=service_duration,
                now=current,
            )
        )
    except (BookingSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    weekday = WEEKDAY_NAMES[target_date.isoweekday() % 7]
    console.print(
        f"\n[bold cyan]{weekday}, {target_date.format('DD.MM.YYYY')}[/bold cyan] "
        f"({service_duration} min)\n"
    )

    if availability.status == DayStatus.OPEN:
        for title, starts in (("Morning", availability.slots.morning), ("Afternoon", availability.slots.afternoon)):
            if starts:
                console.print(_slot_table(title, starts, service_duration, tz))
        console.print()
        return

    if availability.status in (DayStatus.BLOCKED, DayStatus.CLOSED):
        console.print("[yellow]Closed on this day.[/yellow]")
    elif availability.status == DayStatus.FULL:
        console.print("[yellow]Fully booked on this day.[/yellow] Try another date.")
    else:
        console.print("[red]Unavailable: business hours are misconfigured.[/red]")

    if availability.reason:
        console.print(f"[dim]{availability.reason}[/dim]")
    console.print()


@app.command()
def week(
    start: Annotated[Optional[str], typer.Option("--start", help="Selected date (YYYY-MM-DD). Defaults to today")] = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    Show the day picker: which days can be booked.
    """
    config = _load_config(config_file)
    tz = config.timezone
    current = _resolve_now(now, tz)
    selected = _parse_date(start, tz) if start else current.date()

    try:
        service = _build_service(config, None)
        overview = asyncio.run(service.get_day_strip(selected_date=selected, now=current))
    except (BookingSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=config.name or None, show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold")
    table.add_column("Day")
    table.add_column("Status")
    table.add_column("Note", style="dim")

    for entry in overview:
        table.add_row(
            entry.date.isoformat(),
            WEEKDAY_NAMES[entry.date.isoweekday() % 7],
            STATUS_LABELS[entry.status],
            entry.reason or "",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def hours(config_file: ConfigOption = None):
    """
    List the configured business hours for every weekday.
    """
    config = _load_config(config_file)

    try:
        resolved = resolve_week(config.get_weekly_rules())
    except BookingSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(
        title="Business hours",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Hours")
    table.add_column("Break", style="dim")

    for weekday, rule in resolved.items():
        if not rule.is_active:
            table.add_row(WEEKDAY_NAMES[weekday], "[dim]closed[/dim]", "")
            continue
        pause = f"{rule.break_start or '?'}-{rule.break_end or '?'}" if rule.has_break else ""
        table.add_row(WEEKDAY_NAMES[weekday], f"{rule.start_time}-{rule.end_time}", pause)

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
