"""
Main CLI application using Typer.
"""

import logging
from datetime import date, time
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig, BookingContext, get_default_config_path, seed_id
from ..domain.exceptions import BookingError, SlotUnavailable, StaffBookingError

app = typer.Typer(
    name="staffbooking",
    help="Book staff appointments against declared availability",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show booking log output.")] = False,
):
    """
    Staff appointment booking on top of a YAML-seeded in-memory store.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_context(config_file: Optional[Path]) -> BookingContext:
    config_path = config_file or get_default_config_path()
    try:
        config = AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    return config.build_context()


def _parse_date(value: Optional[str], tz: str) -> date:
    if not value:
        return pendulum.today(tz).date()
    try:
        parsed = pendulum.parse(value, exact=True)
    except ValueError as e:
        console.print(f"[red]Could not parse date {value!r}: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(parsed, date):
        console.print(f"[red]Expected a date (YYYY-MM-DD), got {value!r}[/red]")
        raise typer.Exit(1)
    return date(parsed.year, parsed.month, parsed.day)


def _parse_time(value: str) -> time:
    try:
        parsed = pendulum.parse(value, exact=True)
    except ValueError as e:
        console.print(f"[red]Could not parse time {value!r}: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(parsed, time):
        console.print(f"[red]Expected a time (HH:MM), got {value!r}[/red]")
        raise typer.Exit(1)
    return time(parsed.hour, parsed.minute, parsed.second)


def _resolve_staff_and_service(context: BookingContext, staff_name: str, service_name: str):
    staff = context.config.find_staff_by_name(staff_name)
    if staff is None:
        console.print(f"[bold red]Error:[/bold red] Unknown staff member '{staff_name}'")
        raise typer.Exit(1)

    service = context.config.find_service_by_name(service_name)
    if service is None:
        console.print(f"[bold red]Error:[/bold red] Unknown service '{service_name}'")
        raise typer.Exit(1)

    return staff, service


@app.command()
def book(
    staff_name: Annotated[str, typer.Argument(help="Staff member name as configured")],
    service_name: Annotated[str, typer.Argument(help="Service name as configured")],
    at: Annotated[List[str], typer.Option("--at", help="Start time (HH:MM). Repeat to book several in order.")],
    on: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    client: Annotated[str, typer.Option("--client", help="Client name")] = "walk-in",
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes stored with the appointment")] = None,
    config_file: ConfigOption = None,
):
    """
    Book one or more appointments in sequence.

    Examples:

        staffbooking book anna haircut --date 2024-11-25 --at 10:00

        # The second request conflicts with the first
        staffbooking book anna haircut --date 2024-11-25 --at 10:00 --at 10:15
    """
    context = _load_context(config_file)
    config = context.config
    staff, service = _resolve_staff_and_service(context, staff_name, service_name)
    booking_date = _parse_date(on, config.timezone)

    failures = 0
    for start_option in at:
        start_time = _parse_time(start_option)
        try:
            appointment = context.booking.book_appointment(
                business_id=config.business_id,
                client_id=seed_id("client", client),
                staff_id=staff.resolved_id,
                service_id=service.resolved_id,
                date=booking_date,
                start_time=start_time,
                notes=notes,
                client_timezone=config.timezone,
            )
        except SlotUnavailable as e:
            failures += 1
            console.print(f"[yellow]✗ {start_time:%H:%M}: {e}[/yellow]")
            _print_alternatives(context, service.resolved_id, booking_date, start_time, staff.resolved_id)
            continue
        except BookingError as e:
            failures += 1
            console.print(f"[red]✗ {start_time:%H:%M}: {e}[/red]")
            continue
        except StaffBookingError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(1)

        console.print(
            f"[green]✓ Booked {service.name} with {staff.name} on "
            f"{appointment.date} {appointment.start_time:%H:%M}-{appointment.end_time:%H:%M}"
            f" ({appointment.status.value})[/green]"
        )

    if failures:
        raise typer.Exit(1)


def _print_alternatives(context: BookingContext, service_id, on_date: date, preferred: time, staff_id) -> None:
    defaults = context.config.booking
    alternatives = context.projection.find_alternatives(
        business_id=context.config.business_id,
        service_id=service_id,
        preferred_date=on_date,
        preferred_time=preferred,
        staff_id=staff_id,
        max_results=defaults.max_alternatives,
        days_to_search=defaults.days_to_search,
    )
    if not alternatives:
        console.print("  No alternative slots found.")
        return

    console.print("  Alternatives:")
    for slot in alternatives:
        console.print(f"    {slot.format_display()}")


@app.command()
def slots(
    service_name: Annotated[str, typer.Argument(help="Service name as configured")],
    on: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    staff_name: Annotated[Optional[str], typer.Option("--staff", help="Only show this staff member")] = None,
    config_file: ConfigOption = None,
):
    """
    List bookable slots for a service on one day.
    """
    context = _load_context(config_file)
    config = context.config

    service = config.find_service_by_name(service_name)
    if service is None:
        console.print(f"[bold red]Error:[/bold red] Unknown service '{service_name}'")
        raise typer.Exit(1)

    staff_id = None
    if staff_name:
        staff = config.find_staff_by_name(staff_name)
        if staff is None:
            console.print(f"[bold red]Error:[/bold red] Unknown staff member '{staff_name}'")
            raise typer.Exit(1)
        staff_id = staff.resolved_id

    day = _parse_date(on, config.timezone)
    found = context.projection.slots_for(config.business_id, service.resolved_id, day, staff_id=staff_id)

    if not found:
        console.print(f"[yellow]⚠ No bookable slots for {service.name} on {day}.[/yellow]")
        return

    names = {member.resolved_id: member.name for member in config.staff}
    table = Table(title=f"{service.name} on {day}", show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold yellow")
    table.add_column("End")
    table.add_column("Staff", style="dim")

    for slot in found:
        table.add_row(f"{slot.start:%H:%M}", f"{slot.end:%H:%M}", names.get(slot.staff_id, str(slot.staff_id)))

    console.print()
    console.print(table)
    console.print()


@app.command()
def list_staff(config_file: ConfigOption = None):
    """
    List all configured staff members and their services.
    """
    context = _load_context(config_file)
    config = context.config

    if not config.staff:
        console.print("[yellow]No staff members defined in the config file.[/yellow]")
        return

    table = Table(title="Configured staff", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold yellow")
    table.add_column("Services")
    table.add_column("Available days", style="dim")

    for member in config.staff:
        days = ", ".join(str(day) for day in sorted(member.availability))
        table.add_row(member.name, ", ".join(member.services), days or "-")

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]staffbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
