"""
Main CLI application using Typer.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.appointment_repository import SqlAppointmentRepository
from ..adapters.database import Database
from ..adapters.hospital_repository import HospitalQuery, HospitalSort, SqlHospitalRepository
from ..adapters.mock_schedule_repository import MockScheduleRepository
from ..adapters.schedule_repository import SqlScheduleRepository
from ..adapters.seed import seed_database
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import DoctorLinkError
from ..domain.geo import GeoPoint
from ..domain.models import TimeOfDay
from ..domain.slot_generator import SlotGenerator
from ..services.availability import AvailabilityService
from ..services.booking import BookingService

app = typer.Typer(
    name="doctorlink",
    help="Find free appointment slots, search hospitals and book appointments",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(ctx: typer.Context, config_file: Optional[Path]) -> AppConfig:
    """
    Load the configuration and set up logging.

    An explicitly given file must exist; without one, a missing default
    config.yaml falls back to built-in defaults.
    """
    if config_file is not None:
        config = AppConfig.load_from_yaml(config_file)
    else:
        default_path = get_default_config_path()
        config = AppConfig.load_from_yaml(default_path) if default_path.exists() else AppConfig()

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    _configure_logging("DEBUG" if verbose else config.log_level)
    return config


def _parse_date(value: Optional[str], tz: str) -> date:
    if not value:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def _fail(exc: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """
    DoctorLink scheduling tools.
    """
    ctx.obj = {"verbose": verbose}


@app.command()
def slots(
    ctx: typer.Context,
    doctor_id: Annotated[int, typer.Argument(help="Doctor ID")],
    hospital_id: Annotated[int, typer.Argument(help="Hospital ID")],
    day: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Slot length in minutes")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use the bundled sample data instead of the database")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print slots as JSON")] = False,
    config_file: ConfigOption = None,
):
    """
    List free appointment slots of a doctor on a date.

    Examples:

        doctorlink slots 1 1 --date 2026-11-02
        doctorlink slots 1 1 --duration 45 --mock --json
    """
    try:
        config = _load_config(ctx, config_file)
        target_day = _parse_date(day, config.timezone)
        generator = SlotGenerator(config.defaults.slot_duration_minutes)

        if mock:
            repository = MockScheduleRepository(non_blocking_statuses=config.non_blocking_statuses)
            found = AvailabilityService(repository, generator).find_available_slots(
                doctor_id, hospital_id, target_day, duration
            )
        else:
            with Database(config.database_url) as database:
                repository = SqlScheduleRepository(database, config.non_blocking_statuses)
                found = AvailabilityService(repository, generator).find_available_slots(
                    doctor_id, hospital_id, target_day, duration
                )

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps([slot.to_dict() for slot in found]))
        return

    console.print()
    if not found:
        console.print(
            f"[yellow]⚠ No free slots for doctor {doctor_id} at hospital {hospital_id} "
            f"on {target_day.isoformat()}.[/yellow]"
        )
    else:
        console.print(f"[bold green]✓ {len(found)} free slot(s) on {target_day.isoformat()}:[/bold green]\n")
        for slot in found:
            console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def hospitals(
    ctx: typer.Context,
    query: Annotated[Optional[str], typer.Option("--query", "-q", help="Search name, address or description")] = None,
    city: Annotated[Optional[str], typer.Option("--city", help="Filter by city")] = None,
    hospital_type: Annotated[Optional[str], typer.Option("--type", help="Filter by hospital type")] = None,
    department: Annotated[Optional[str], typer.Option("--department", help="Filter by department")] = None,
    latitude: Annotated[Optional[float], typer.Option("--lat", help="Latitude for nearby search")] = None,
    longitude: Annotated[Optional[float], typer.Option("--lon", help="Longitude for nearby search")] = None,
    radius: Annotated[Optional[float], typer.Option("--radius", help="Search radius in km")] = None,
    sort: Annotated[HospitalSort, typer.Option("--sort", help="Sort order")] = HospitalSort.RATING,
    page: Annotated[int, typer.Option("--page", help="Page number")] = 1,
    limit: Annotated[Optional[int], typer.Option("--limit", help="Page size")] = None,
    config_file: ConfigOption = None,
):
    """
    Search hospitals.
    """
    try:
        config = _load_config(ctx, config_file)

        if (latitude is None) != (longitude is None):
            raise ValueError("--lat and --lon must be given together")
        near = GeoPoint(latitude, longitude) if latitude is not None and longitude is not None else None

        hospital_query = HospitalQuery(
            search_term=query,
            city=city,
            hospital_type=hospital_type,
            department=department,
            near=near,
            radius_km=radius if radius is not None else config.defaults.search_radius_km,
            sort=sort,
        )

        with Database(config.database_url) as database:
            result = SqlHospitalRepository(database).search(
                hospital_query, page=page, limit=limit or config.defaults.page_size
            )

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not result.items:
        console.print("[yellow]No hospitals found.[/yellow]")
        return

    table = Table(
        title=f"Hospitals (page {result.page}/{result.total_pages}, {result.total} total)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="bold yellow")
    table.add_column("Name", style="bold")
    table.add_column("City")
    table.add_column("Type", style="dim")
    table.add_column("Rating")
    if near is not None:
        table.add_column("Distance")

    for hospital in result.items:
        row = [
            str(hospital.id),
            hospital.name,
            hospital.city,
            hospital.hospital_type or "-",
            f"{hospital.rating:.1f} ({hospital.review_count})",
        ]
        if near is not None:
            row.append(f"{hospital.distance_km:.2f} km")
        table.add_row(*row)

    console.print()
    console.print(table)
    console.print()


@app.command()
def doctors(
    ctx: typer.Context,
    hospital_id: Annotated[int, typer.Argument(help="Hospital ID")],
    specialization: Annotated[Optional[str], typer.Option("--specialization", "-s", help="Filter by specialization")] = None,
    config_file: ConfigOption = None,
):
    """
    List the doctors of a hospital.
    """
    try:
        config = _load_config(ctx, config_file)
        with Database(config.database_url) as database:
            repository = SqlHospitalRepository(database)
            hospital = repository.get(hospital_id)
            found = repository.list_doctors(hospital_id, specialization)

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not found:
        console.print(f"[yellow]No doctors found at {hospital.name}.[/yellow]")
        return

    table = Table(title=f"Doctors at {hospital.name}", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Name", style="bold")
    table.add_column("Specialization")
    table.add_column("Experience", style="dim")

    for doctor in found:
        experience = f"{doctor.experience_years} years" if doctor.experience_years is not None else "-"
        table.add_row(str(doctor.id), doctor.name, doctor.specialization, experience)

    console.print()
    console.print(table)
    console.print()


@app.command()
def departments(
    ctx: typer.Context,
    config_file: ConfigOption = None,
):
    """
    Show how many active hospitals offer each department.
    """
    try:
        config = _load_config(ctx, config_file)
        with Database(config.database_url) as database:
            counts = SqlHospitalRepository(database).department_counts()

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not counts:
        console.print("[yellow]No departments found.[/yellow]")
        return

    table = Table(title="Departments", show_header=True, header_style="bold cyan")
    table.add_column("Department", style="bold")
    table.add_column("Hospitals", justify="right")

    for department, count in counts:
        table.add_row(department, str(count))

    console.print()
    console.print(table)
    console.print()


@app.command()
def book(
    ctx: typer.Context,
    patient_id: Annotated[int, typer.Argument(help="Patient ID")],
    doctor_id: Annotated[int, typer.Argument(help="Doctor ID")],
    hospital_id: Annotated[int, typer.Argument(help="Hospital ID")],
    day: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Option("--time", "-t", help="Start time (HH:MM)")],
    duration: Annotated[Optional[int], typer.Option("--duration", help="Slot length in minutes")] = None,
    reason: Annotated[Optional[str], typer.Option("--reason", help="Reason for the visit")] = None,
    config_file: ConfigOption = None,
):
    """
    Book an appointment in a free slot.
    """
    try:
        config = _load_config(ctx, config_file)
        target_day = _parse_date(day, config.timezone)
        start_time = TimeOfDay.parse(start)

        with Database(config.database_url) as database:
            service = BookingService(
                database,
                SqlScheduleRepository(database, config.non_blocking_statuses),
                SqlAppointmentRepository(database),
                SlotGenerator(config.defaults.slot_duration_minutes),
                timezone=config.timezone,
            )
            appointment = service.book(
                patient_id=patient_id,
                doctor_id=doctor_id,
                hospital_id=hospital_id,
                day=target_day,
                start_time=start_time,
                duration_minutes=duration,
                reason=reason,
            )

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(Panel.fit(
        f"[bold green]✓ Appointment booked![/bold green]\n\n"
        f"[bold]ID:[/bold] {appointment.id}\n"
        f"[bold]Date:[/bold] {appointment.appointment_date.isoformat()}\n"
        f"[bold]Time:[/bold] {appointment.time_range}\n"
        f"[bold]Status:[/bold] {appointment.status.value}",
        title="Booking"
    ))


@app.command()
def appointments(
    ctx: typer.Context,
    patient_id: Annotated[int, typer.Argument(help="Patient ID")],
    include_past: Annotated[bool, typer.Option("--include-past", help="Also list past appointments")] = False,
    config_file: ConfigOption = None,
):
    """
    List a patient's appointments.
    """
    try:
        config = _load_config(ctx, config_file)
        today = pendulum.now(config.timezone).date()
        with Database(config.database_url) as database:
            found = SqlAppointmentRepository(database).list_for_patient(
                patient_id, include_past=include_past, today=today
            )

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not found:
        console.print("[yellow]No appointments found.[/yellow]")
        return

    table = Table(title=f"Appointments of patient {patient_id}", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Doctor")
    table.add_column("Hospital")
    table.add_column("Status", style="dim")

    for appointment in found:
        table.add_row(
            str(appointment.id),
            appointment.appointment_date.isoformat(),
            str(appointment.time_range),
            str(appointment.doctor_id),
            str(appointment.hospital_id),
            appointment.status.value,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def cancel(
    ctx: typer.Context,
    appointment_id: Annotated[int, typer.Argument(help="Appointment ID")],
    notes: Annotated[Optional[str], typer.Option("--notes", help="Cancellation note")] = None,
    config_file: ConfigOption = None,
):
    """
    Cancel an appointment.
    """
    try:
        config = _load_config(ctx, config_file)
        with Database(config.database_url) as database:
            service = BookingService(
                database,
                SqlScheduleRepository(database, config.non_blocking_statuses),
                SqlAppointmentRepository(database),
                timezone=config.timezone,
            )
            appointment = service.cancel(appointment_id, notes=notes)

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"\n[green]✓ Appointment {appointment.id} cancelled.[/green]\n")


@app.command()
def init_db(
    ctx: typer.Context,
    seed: Annotated[bool, typer.Option("--seed/--no-seed", help="Load the bundled sample data")] = True,
    config_file: ConfigOption = None,
):
    """
    Create the database schema.
    """
    try:
        config = _load_config(ctx, config_file)
        with Database(config.database_url) as database:
            database.create_schema()
            counts = seed_database(database) if seed else None

    except (DoctorLinkError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"\n[green]✓ Database ready:[/green] {config.database_url}")
    if counts:
        summary = ", ".join(f"{count} {name}" for name, count in counts.items())
        console.print(f"  Seeded {summary}")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]doctorlink[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
