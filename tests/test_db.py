from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from stay_alert.db import (
    delete_device,
    fetch_activity_reports,
    fetch_alert_history,
    fetch_contacts,
    fetch_device,
    fetch_devices,
    fetch_profile,
    insert_alert,
    insert_contact,
    insert_device,
    record_activity,
    replace_contact,
    save_profile,
    update_device,
)
from stay_alert.models import AlertRecord, Contact, Device, Profile


def _device(location: str = "Kitchen", created_at: str | None = None) -> Device:
    return Device(
        location=location,
        phone_number="+1234567890",
        no_contact_period="24:00:00",
        created_at=created_at,
    )


def test_devices_are_listed_newest_first(conn) -> None:
    insert_device(conn, _device("Hall", created_at="2026-01-01T00:00:00+00:00"))
    insert_device(conn, _device("Kitchen", created_at="2026-02-01T00:00:00+00:00"))

    assert [device.location for device in fetch_devices(conn)] == ["Kitchen", "Hall"]


def test_update_device_changes_selected_fields(conn) -> None:
    device_id = insert_device(conn, _device())
    update_device(conn, device_id, no_contact_period="48:00:00", active=False)

    stored = fetch_device(conn, device_id)
    assert stored is not None
    assert stored.no_contact_period == "48:00:00"
    assert stored.active is False
    assert stored.location == "Kitchen"


def test_update_unknown_device_raises(conn) -> None:
    with pytest.raises(ValueError, match="No device found"):
        update_device(conn, 999, location="Attic")
    with pytest.raises(ValueError, match="No device found"):
        update_device(conn, 999)


def test_record_activity_advances_last_activity(conn) -> None:
    device_id = insert_device(conn, _device())
    later = datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
    earlier = later - timedelta(hours=2)

    record_activity(conn, device_id, received_at=later, message="ring")
    record_activity(conn, device_id, received_at=earlier)

    stored = fetch_device(conn, device_id)
    assert stored is not None
    assert stored.last_activity_at == later.isoformat()

    reports = fetch_activity_reports(conn, device_id)
    assert [report.received_at for report in reports] == [later.isoformat(), earlier.isoformat()]
    assert reports[0].message == "ring"
    assert reports[0].phone_number == "+1234567890"


def test_record_activity_for_unknown_device_raises(conn) -> None:
    with pytest.raises(ValueError):
        record_activity(conn, 42)


def test_deleting_device_removes_reports(conn) -> None:
    device_id = insert_device(conn, _device())
    record_activity(conn, device_id)
    delete_device(conn, device_id)

    assert fetch_device(conn, device_id) is None
    assert fetch_activity_reports(conn, device_id) == []
    with pytest.raises(ValueError):
        delete_device(conn, device_id)


def test_contacts_store_notification_methods(conn) -> None:
    contact_id = insert_contact(
        conn,
        Contact(contact_name="Ana", email="ana@example.com", notification_methods=["email", "sms"]),
    )
    replace_contact(
        conn,
        contact_id,
        Contact(contact_name="Ana B", phone_number="+1555", notification_methods=["voice"]),
    )

    (stored,) = fetch_contacts(conn)
    assert stored.contact_name == "Ana B"
    assert stored.email is None
    assert stored.notification_methods == ["voice"]


def test_alert_history_filters_by_device(conn) -> None:
    device_id = insert_device(conn, _device())
    insert_alert(
        conn,
        AlertRecord(
            alert_type="inactivity",
            notification_method="email",
            message="No activity for 24h",
            status="sent",
            device_id=device_id,
            created_at="2026-03-01T00:00:00+00:00",
        ),
    )
    insert_alert(
        conn,
        AlertRecord(
            alert_type="inactivity",
            notification_method="sms",
            message="No activity for 30h",
            created_at="2026-03-02T00:00:00+00:00",
        ),
    )

    assert [alert.notification_method for alert in fetch_alert_history(conn)] == ["sms", "email"]
    (only,) = fetch_alert_history(conn, device_id=device_id)
    assert only.status == "sent"


def test_insert_device_normalizes_last_activity(conn) -> None:
    device = _device()
    device.last_activity_at = "2026-03-01T12:00:00Z"
    zulu_id = insert_device(conn, device)

    naive = _device("Hall")
    naive.last_activity_at = "2026-03-01T09:30:00"
    naive_id = insert_device(conn, naive)

    assert fetch_device(conn, zulu_id).last_activity_at == "2026-03-01T12:00:00+00:00"
    assert fetch_device(conn, naive_id).last_activity_at == "2026-03-01T09:30:00+00:00"


def test_older_report_does_not_rewind_suffixed_timestamp(conn) -> None:
    device = _device()
    device.last_activity_at = "2026-03-01T12:00:00Z"
    device_id = insert_device(conn, device)

    record_activity(conn, device_id, received_at=datetime(2026, 3, 1, 11, tzinfo=timezone.utc))

    assert fetch_device(conn, device_id).last_activity_at == "2026-03-01T12:00:00+00:00"


def test_update_device_normalizes_last_activity(conn) -> None:
    device_id = insert_device(conn, _device())
    update_device(conn, device_id, last_activity_at="2026-03-01T14:00:00+02:00")

    assert fetch_device(conn, device_id).last_activity_at == "2026-03-01T12:00:00+00:00"
    with pytest.raises(ValueError):
        update_device(conn, device_id, last_activity_at="0001-01-01T00:00:00+05:00")


def test_alert_response_log_is_kept(conn) -> None:
    insert_alert(
        conn,
        AlertRecord(
            alert_type="inactivity",
            notification_method="voice",
            message="Hall inactive",
            status="failed",
            response_log="line busy",
        ),
    )

    (alert,) = fetch_alert_history(conn)
    assert alert.response_log == "line busy"


def test_profile_is_empty_until_saved(conn) -> None:
    assert fetch_profile(conn) == Profile()

    save_profile(conn, Profile(full_name="Sam", email="sam@example.com", notification_methods=["sms"]))
    save_profile(conn, Profile(full_name="Sam Lee", notification_methods=["email", "voice"]))

    profile = fetch_profile(conn)
    assert profile.full_name == "Sam Lee"
    assert profile.email is None
    assert profile.notification_methods == ["email", "voice"]
    assert profile.updated_at is not None
    assert conn.execute("SELECT COUNT(*) FROM profile").fetchone()[0] == 1
