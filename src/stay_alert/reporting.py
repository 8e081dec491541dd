"""Device status reporting for CLI output."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .db import database_connection, fetch_devices
from .intervals import format_threshold
from .models import Device
from .status import STATUS_INACTIVE, ActivityStatus, evaluate_device


class StatusPrinter:
    """Render human-readable device status tables in the console."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def print_device_report(self, now: Optional[datetime] = None) -> None:
        with database_connection(self.db_path) as conn:
            devices = fetch_devices(conn)
        if not devices:
            print("No devices yet. Add your first device to start monitoring.")
            return

        statuses = [(device, evaluate_device(device, now=now)) for device in devices]
        print(f"{'Location':<24} {'Phone':<16} {'Threshold':<10} {'Status':<9} Detail")
        print("-" * 78)
        for device, status in statuses:
            print(format_device_line(device, status))

        counts = count_by_status(status for _, status in statuses)
        print()
        print(
            "Active: {active}  Inactive: {inactive}  Unknown: {unknown}".format(**counts)
        )

    def print_overdue(self, now: Optional[datetime] = None) -> int:
        with database_connection(self.db_path) as conn:
            overdue = find_overdue_devices(fetch_devices(conn), now=now)
        if not overdue:
            print("All monitored devices reported activity within their threshold.")
            return 0
        for device, status in overdue:
            print(f"{device.location} ({device.phone_number}): {status.message}")
        return len(overdue)


def find_overdue_devices(
    devices: Iterable[Device], *, now: Optional[datetime] = None
) -> list[tuple[Device, ActivityStatus]]:
    """Monitored devices whose last activity is at or past their threshold."""
    overdue: list[tuple[Device, ActivityStatus]] = []
    for device in devices:
        if not device.active:
            continue
        status = evaluate_device(device, now=now)
        if status.status == STATUS_INACTIVE:
            overdue.append((device, status))
    overdue.sort(key=lambda item: item[1].hours_since or 0, reverse=True)
    return overdue


def count_by_status(statuses: Iterable[ActivityStatus]) -> dict[str, int]:
    counts = {"active": 0, "inactive": 0, "unknown": 0}
    for status in statuses:
        counts[status.status] = counts.get(status.status, 0) + 1
    return counts


def format_device_line(device: Device, status: ActivityStatus) -> str:
    location = device.location if device.active else f"{device.location} (paused)"
    return (
        f"{location[:24]:<24} {device.phone_number[:16]:<16} "
        f"{format_threshold(device.no_contact_period):<10} {status.status:<9} "
        f"{status.message}"
    )
