from __future__ import annotations

from datetime import datetime, timedelta

from stay_alert.db import insert_device
from stay_alert.models import Device
from stay_alert.reporting import StatusPrinter, count_by_status, find_overdue_devices
from stay_alert.status import evaluate_device


def _device(location: str, *, active: bool = True) -> Device:
    return Device(
        location=location,
        phone_number="+1234567890",
        no_contact_period="24:00:00",
        active=active,
        last_activity_at=None,
    )


def _with_activity(device: Device, now: datetime, hours_ago: float) -> Device:
    device.last_activity_at = (now - timedelta(hours=hours_ago)).isoformat()
    return device


def test_find_overdue_skips_paused_and_recent(now: datetime) -> None:
    devices = [
        _with_activity(_device("Kitchen"), now, 2),
        _with_activity(_device("Bedroom"), now, 30),
        _with_activity(_device("Garage"), now, 50),
        _with_activity(_device("Paused", active=False), now, 90),
        _device("New"),
    ]

    overdue = find_overdue_devices(devices, now=now)
    assert [device.location for device, _ in overdue] == ["Garage", "Bedroom"]
    assert overdue[0][1].message == "Inactive for 50h"


def test_count_by_status(now: datetime) -> None:
    devices = [
        _with_activity(_device("Kitchen"), now, 2),
        _with_activity(_device("Bedroom"), now, 30),
        _device("New"),
    ]
    counts = count_by_status(evaluate_device(device, now=now) for device in devices)
    assert counts == {"active": 1, "inactive": 1, "unknown": 1}


def test_device_report_output(conn, db_path, now: datetime, capsys) -> None:
    insert_device(conn, _with_activity(_device("Kitchen"), now, 30))

    StatusPrinter(db_path).print_device_report(now=now)

    out = capsys.readouterr().out
    assert "Kitchen" in out
    assert "24 hours" in out
    assert "Inactive for 30h" in out
    assert "Inactive: 1" in out


def test_empty_report(db_path, capsys) -> None:
    StatusPrinter(db_path).print_device_report()
    assert "No devices yet" in capsys.readouterr().out
