"""
Main CLI application using Typer.
"""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.busy_calendar import JsonBusyCalendar
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AvailabilityError
from ..domain.models import DateOverrideRule, WorkingHoursRule
from ..domain.range_builder import group_by_date
from ..services.availability import AvailabilityService, NoBusyCalendar

app = typer.Typer(
    name="availabilityfinder",
    help="Find bookable time from working hours, date overrides and busy calendars",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

WEEKDAY_ABBREVIATIONS = ["So", "Mo", "Di", "Mi", "Do", "Fr", "Sa"]


def _configure_logging(level: str, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _determine_time_range(
    *,
    tz: str,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
):
    """
    Resolve the desired time window based on shortcut flags or explicit dates.
    Returns (start_date, end_date).
    """
    if this_week and next_week:
        raise typer.BadParameter("--this-week und --next-week können nicht gleichzeitig verwendet werden.")

    now = pendulum.now(tz)

    if this_week:
        return now, now.end_of("week")

    if next_week:
        next_monday = now.next(pendulum.MONDAY).start_of("day")
        return next_monday, next_monday.add(days=6).end_of("day")

    try:
        start_date = (
            pendulum.from_format(start_option, "YYYY-MM-DD", tz=tz).start_of("day")
            if start_option else now.start_of("day")
        )
        end_date = (
            pendulum.from_format(end_option, "YYYY-MM-DD", tz=tz).end_of("day")
            if end_option else start_date.add(days=7).end_of("day")
        )
    except ValueError as e:
        raise typer.BadParameter(f"Datum muss im Format YYYY-MM-DD angegeben werden: {e}") from e

    return start_date, end_date


def _describe_rule(rule) -> str:
    if isinstance(rule, WorkingHoursRule):
        days = ", ".join(WEEKDAY_ABBREVIATIONS[day] for day in sorted(rule.days))
        return f"{days}: {rule.start_time} – {rule.end_time}"
    if isinstance(rule, DateOverrideRule):
        if rule.start_time == rule.end_time:
            return f"{rule.date.isoformat()}: nicht verfügbar"
        end = "24:00" if rule.end_time.is_end_of_day else str(rule.end_time)
        return f"{rule.date.isoformat()}: {rule.start_time} – {end}"
    return str(rule)


@app.command()
def find(
    participants: Annotated[List[str], typer.Argument(help="Teilnehmernamen oder E-Mail-Adressen (z. B. 'alice bob').")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Minimum duration in minutes")] = None,
    busy_file: Annotated[Optional[Path], typer.Option("--busy-file", help="JSON file with busy events. Overrides the config.")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Suche von jetzt bis Ende der aktuellen Woche.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Suche in der kommenden Woche (Montag–Sonntag).")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Ausgaben anzeigen.")] = False,
):
    """
    Find bookable time shared by all participants.

    Examples:

        availabilityfinder find alice bob --duration 60

        availabilityfinder find alice --next-week

        availabilityfinder find alice bob --start 2024-11-25 --end 2024-11-29 --busy-file busy.json
    """
    try:
        config = _load_config(config_file)
        _configure_logging(config.log_level, verbose)
        tz = config.timezone

        time_start, time_end = _determine_time_range(
            tz=tz,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end
        )

        selected = config.resolve_participants(participants)
        availability = config.availability_for(selected)
        min_duration = duration if duration is not None else config.defaults.duration_minutes

        calendar_path = busy_file or config.busy_calendar_file
        if calendar_path is not None:
            calendar_client = JsonBusyCalendar(data_file=calendar_path, config=config)
        else:
            logger.info("No busy calendar configured, using working hours only")
            calendar_client = NoBusyCalendar()

        console.print("[bold cyan]📊 Zusammenfassung:[/bold cyan]")
        console.print(f"   Teilnehmer: {', '.join(p.email for p in availability)}")
        console.print(f"   Zeitraum: {time_start.format('DD.MM.YYYY HH:mm')} - {time_end.format('DD.MM.YYYY HH:mm')} ({tz})")
        console.print(f"   Mindestdauer: {min_duration} Minuten")
        console.print()

        service = AvailabilityService(calendar_client=calendar_client)
        ranges = asyncio.run(
            service.find_bookable_ranges(
                participants=availability,
                date_from=time_start,
                date_to=time_end,
                timezone=tz,
                min_duration_minutes=min_duration,
            )
        )

        if not ranges:
            console.print(
                "[yellow]⚠ Keine verfügbaren Zeiträume gefunden.[/yellow]\n"
                "Versuchen Sie einen längeren Zeitraum oder eine kürzere Mindestdauer."
            )
            return

        local_ranges = [
            replace(r, start=r.start.in_timezone(tz), end=r.end.in_timezone(tz))
            for r in ranges
        ]

        table = Table(
            title=f"✓ {len(ranges)} verfügbare(r) Zeitraum/Zeiträume",
            show_header=True,
            header_style="bold green"
        )
        table.add_column("Datum", style="bold")
        table.add_column("Zeitraum")

        for date_key, day_ranges in group_by_date(local_ranges, tz).items():
            for index, date_range in enumerate(day_ranges):
                table.add_row(date_key if index == 0 else "", date_range.format_display())

        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_participants(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    List all configured participants and their rules.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.participants:
        console.print("[yellow]Keine Teilnehmer in der Config-Datei definiert.[/yellow]")
        return

    table = Table(
        title="Konfigurierte Teilnehmer",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (Alias)", style="bold yellow")
    table.add_column("E-Mail", style="dim")
    table.add_column("Zeitzone")
    table.add_column("Regeln")

    for participant, availability in zip(config.participants, config.availability_for(config.participants)):
        table.add_row(
            participant.name,
            participant.email,
            availability.timezone,
            "\n".join(_describe_rule(rule) for rule in availability.rules)
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]availabilityfinder[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
