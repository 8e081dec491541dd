"""Command-line interface for the stay alert dashboard."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from .config import AppSettings
from .paths import get_db_path
from .server_runner import run_dashboard

app = typer.Typer(help="Prolonged inactivity alert dashboard.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def devices(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the dashboard SQLite database.",
    ),
) -> None:
    """Print every device with its current activity status."""
    from .reporting import StatusPrinter

    StatusPrinter(db_path=db_path or get_db_path()).print_device_report()


@app.command()
def overdue(
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the dashboard SQLite database."
    ),
) -> None:
    """List monitored devices past their inactivity threshold.

    Exits with status 1 when any device is overdue.
    """
    from .reporting import StatusPrinter

    count = StatusPrinter(db_path=db_path or get_db_path()).print_overdue()
    if count:
        raise typer.Exit(code=1)


@app.command("add-device")
def add_device(
    location: str = typer.Option(..., "--location", help="Where the phone line is installed."),
    phone_number: str = typer.Option(..., "--phone", help="Monitored phone number."),
    threshold_hours: int = typer.Option(
        24,
        "--threshold",
        min=1,
        max=168,
        help="Hours without activity before the device counts as inactive.",
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the dashboard SQLite database."
    ),
) -> None:
    """Register a device to monitor."""
    from .db import database_connection, insert_device
    from .intervals import hours_to_duration
    from .models import Device
    from .validation import ValidationError, validate_device

    try:
        location, phone_number, threshold_hours = validate_device(
            location, phone_number, threshold_hours
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with database_connection(db_path or get_db_path()) as conn:
        device_id = insert_device(
            conn,
            Device(
                location=location,
                phone_number=phone_number,
                no_contact_period=hours_to_duration(threshold_hours),
            ),
        )
    typer.echo(f"Added device {device_id}: {location} ({phone_number})")


@app.command("record-activity")
def record_activity_command(
    device_id: int = typer.Argument(..., help="Device that reported activity."),
    at: Optional[str] = typer.Option(
        None,
        "--at",
        help="ISO-8601 timestamp of the activity. Defaults to now.",
    ),
    message: Optional[str] = typer.Option(None, "--message", help="Optional note."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the dashboard SQLite database."
    ),
) -> None:
    """Record activity for a device."""
    from .db import database_connection, record_activity
    from .status import parse_timestamp

    received_at: Optional[datetime] = None
    if at:
        try:
            received_at = parse_timestamp(at)
        except (ValueError, OverflowError) as exc:
            raise typer.BadParameter(f"Invalid timestamp: {at}") from exc

    with database_connection(db_path or get_db_path()) as conn:
        try:
            report = record_activity(conn, device_id, received_at=received_at, message=message)
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=2) from exc
    typer.echo(f"Recorded activity for device {device_id} at {report.received_at}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the dashboard SQLite database."
    ),
    default_threshold: int = typer.Option(
        24,
        "--default-threshold",
        min=1,
        help="Threshold in hours applied when a new device omits one.",
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically launch the dashboard in your default browser.",
    ),
) -> None:
    """Start the local dashboard."""
    try:
        settings = AppSettings.from_hours(default_threshold)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    run_dashboard(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=settings,
        open_browser=open_browser,
    )
