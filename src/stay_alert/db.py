"""SQLite database layer for devices, contacts and alert history."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from .models import ActivityReport, AlertRecord, Contact, Device, Profile
from .status import parse_timestamp


_UNSET = object()


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    enable_foreign_keys(conn)
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def enable_foreign_keys(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA foreign_keys = ON;")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS devices (
            id INTEGER PRIMARY KEY,
            location TEXT NOT NULL,
            phone_number TEXT NOT NULL,
            no_contact_period TEXT,
            active INTEGER NOT NULL DEFAULT 1,
            last_activity_at TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS contacts (
            id INTEGER PRIMARY KEY,
            contact_name TEXT NOT NULL,
            relationship TEXT,
            email TEXT,
            phone_number TEXT,
            notification_methods TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS activity_reports (
            id INTEGER PRIMARY KEY,
            device_id INTEGER NOT NULL REFERENCES devices(id) ON DELETE CASCADE,
            phone_number TEXT NOT NULL,
            message TEXT,
            received_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS alert_history (
            id INTEGER PRIMARY KEY,
            device_id INTEGER REFERENCES devices(id) ON DELETE SET NULL,
            alert_type TEXT NOT NULL,
            notification_method TEXT NOT NULL,
            status TEXT,
            message TEXT NOT NULL,
            contact_email TEXT,
            contact_phone TEXT,
            device_phone_number TEXT,
            response_log TEXT,
            sent_at TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS profile (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            full_name TEXT,
            email TEXT,
            phone_number TEXT,
            notification_methods TEXT NOT NULL DEFAULT '[]',
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_reports_device
            ON activity_reports(device_id, received_at);
        CREATE INDEX IF NOT EXISTS idx_alerts_created_at
            ON alert_history(created_at);
        """
    )


def utc_timestamp(value: Optional[datetime] = None) -> str:
    moment = value or datetime.now(tz=timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def normalize_timestamp(value: object) -> Optional[str]:
    """Store timestamps in the canonical UTC form so they sort as text."""
    try:
        parsed = parse_timestamp(value)  # type: ignore[arg-type]
    except OverflowError as exc:
        raise ValueError(f"Timestamp out of range: {value!r}") from exc
    return utc_timestamp(parsed) if parsed is not None else None


# Devices


def insert_device(conn: sqlite3.Connection, device: Device) -> int:
    cur = conn.execute(
        """
        INSERT INTO devices (
            location,
            phone_number,
            no_contact_period,
            active,
            last_activity_at,
            created_at
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            device.location,
            device.phone_number,
            device.no_contact_period,
            1 if device.active else 0,
            normalize_timestamp(device.last_activity_at),
            normalize_timestamp(device.created_at) or utc_timestamp(),
        ),
    )
    return int(cur.lastrowid)


def fetch_devices(conn: sqlite3.Connection) -> list[Device]:
    """Return all devices, newest first."""
    rows = conn.execute(
        """
        SELECT id, location, phone_number, no_contact_period, active,
               last_activity_at, created_at
        FROM devices
        ORDER BY created_at DESC, id DESC;
        """
    )
    return [_row_to_device(row) for row in rows]


def fetch_device(conn: sqlite3.Connection, device_id: int) -> Optional[Device]:
    row = conn.execute(
        """
        SELECT id, location, phone_number, no_contact_period, active,
               last_activity_at, created_at
        FROM devices
        WHERE id = ?
        """,
        (device_id,),
    ).fetchone()
    return _row_to_device(row) if row is not None else None


def update_device(
    conn: sqlite3.Connection,
    device_id: int,
    *,
    location: Optional[str] = None,
    phone_number: Optional[str] = None,
    no_contact_period: Optional[str] = None,
    active: Optional[bool] = None,
    last_activity_at: object = _UNSET,
) -> None:
    """Update a single device record."""
    fields: list[str] = []
    params: list[object] = []

    if location is not None:
        fields.append("location = ?")
        params.append(location)
    if phone_number is not None:
        fields.append("phone_number = ?")
        params.append(phone_number)
    if no_contact_period is not None:
        fields.append("no_contact_period = ?")
        params.append(no_contact_period)
    if active is not None:
        fields.append("active = ?")
        params.append(1 if active else 0)
    if last_activity_at is not _UNSET:
        fields.append("last_activity_at = ?")
        params.append(normalize_timestamp(last_activity_at))

    if not fields:
        if fetch_device(conn, device_id) is None:
            raise ValueError(f"No device found for id={device_id}")
        return

    params.append(device_id)
    cur = conn.execute(
        f"UPDATE devices SET {', '.join(fields)} WHERE id = ?",
        params,
    )
    if cur.rowcount == 0:
        raise ValueError(f"No device found for id={device_id}")


def delete_device(conn: sqlite3.Connection, device_id: int) -> None:
    cur = conn.execute("DELETE FROM devices WHERE id = ?", (device_id,))
    if cur.rowcount == 0:
        raise ValueError(f"No device found for id={device_id}")


def record_activity(
    conn: sqlite3.Connection,
    device_id: int,
    *,
    received_at: Optional[datetime] = None,
    message: Optional[str] = None,
) -> ActivityReport:
    """Store an activity report and advance the device's last activity."""
    device = fetch_device(conn, device_id)
    if device is None:
        raise ValueError(f"No device found for id={device_id}")

    stamp = utc_timestamp(received_at)
    cur = conn.execute(
        """
        INSERT INTO activity_reports (device_id, phone_number, message, received_at)
        VALUES (?, ?, ?, ?)
        """,
        (device_id, device.phone_number, message, stamp),
    )
    # Out-of-order reports never move last activity backwards.
    conn.execute(
        """
        UPDATE devices SET last_activity_at = ?
        WHERE id = ? AND (last_activity_at IS NULL OR last_activity_at < ?)
        """,
        (stamp, device_id, stamp),
    )
    return ActivityReport(
        id=int(cur.lastrowid),
        device_id=device_id,
        phone_number=device.phone_number,
        message=message,
        received_at=stamp,
    )


def fetch_activity_reports(
    conn: sqlite3.Connection, device_id: int, *, limit: int = 50
) -> list[ActivityReport]:
    rows = conn.execute(
        """
        SELECT id, device_id, phone_number, message, received_at
        FROM activity_reports
        WHERE device_id = ?
        ORDER BY received_at DESC, id DESC
        LIMIT ?
        """,
        (device_id, limit),
    )
    return [
        ActivityReport(
            id=row["id"],
            device_id=row["device_id"],
            phone_number=row["phone_number"],
            message=row["message"],
            received_at=row["received_at"],
        )
        for row in rows
    ]


# Contacts


def insert_contact(conn: sqlite3.Connection, contact: Contact) -> int:
    cur = conn.execute(
        """
        INSERT INTO contacts (
            contact_name,
            relationship,
            email,
            phone_number,
            notification_methods,
            created_at
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            contact.contact_name,
            contact.relationship,
            contact.email,
            contact.phone_number,
            json.dumps(contact.notification_methods),
            contact.created_at or utc_timestamp(),
        ),
    )
    return int(cur.lastrowid)


def fetch_contacts(conn: sqlite3.Connection) -> list[Contact]:
    rows = conn.execute(
        """
        SELECT id, contact_name, relationship, email, phone_number,
               notification_methods, created_at
        FROM contacts
        ORDER BY contact_name COLLATE NOCASE, id;
        """
    )
    return [_row_to_contact(row) for row in rows]


def fetch_contact(conn: sqlite3.Connection, contact_id: int) -> Optional[Contact]:
    row = conn.execute(
        """
        SELECT id, contact_name, relationship, email, phone_number,
               notification_methods, created_at
        FROM contacts
        WHERE id = ?
        """,
        (contact_id,),
    ).fetchone()
    return _row_to_contact(row) if row is not None else None


def replace_contact(conn: sqlite3.Connection, contact_id: int, contact: Contact) -> None:
    """Overwrite every editable field of a contact."""
    cur = conn.execute(
        """
        UPDATE contacts
        SET contact_name = ?, relationship = ?, email = ?, phone_number = ?,
            notification_methods = ?
        WHERE id = ?
        """,
        (
            contact.contact_name,
            contact.relationship,
            contact.email,
            contact.phone_number,
            json.dumps(contact.notification_methods),
            contact_id,
        ),
    )
    if cur.rowcount == 0:
        raise ValueError(f"No contact found for id={contact_id}")


def delete_contact(conn: sqlite3.Connection, contact_id: int) -> None:
    cur = conn.execute("DELETE FROM contacts WHERE id = ?", (contact_id,))
    if cur.rowcount == 0:
        raise ValueError(f"No contact found for id={contact_id}")


# Alert history


def insert_alert(conn: sqlite3.Connection, alert: AlertRecord) -> int:
    cur = conn.execute(
        """
        INSERT INTO alert_history (
            device_id,
            alert_type,
            notification_method,
            status,
            message,
            contact_email,
            contact_phone,
            device_phone_number,
            response_log,
            sent_at,
            created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            alert.device_id,
            alert.alert_type,
            alert.notification_method,
            alert.status,
            alert.message,
            alert.contact_email,
            alert.contact_phone,
            alert.device_phone_number,
            alert.response_log,
            alert.sent_at,
            alert.created_at or utc_timestamp(),
        ),
    )
    return int(cur.lastrowid)


def fetch_alert_history(
    conn: sqlite3.Connection, *, device_id: Optional[int] = None
) -> list[AlertRecord]:
    """Return alerts newest first, optionally for a single device."""
    query = """
        SELECT id, device_id, alert_type, notification_method, status, message,
               contact_email, contact_phone, device_phone_number, response_log,
               sent_at, created_at
        FROM alert_history
    """
    params: tuple[object, ...] = ()
    if device_id is not None:
        query += " WHERE device_id = ?"
        params = (device_id,)
    query += " ORDER BY created_at DESC, id DESC"
    return [
        AlertRecord(
            id=row["id"],
            device_id=row["device_id"],
            alert_type=row["alert_type"],
            notification_method=row["notification_method"],
            status=row["status"],
            message=row["message"],
            contact_email=row["contact_email"],
            contact_phone=row["contact_phone"],
            device_phone_number=row["device_phone_number"],
            response_log=row["response_log"],
            sent_at=row["sent_at"],
            created_at=row["created_at"],
        )
        for row in conn.execute(query, params)
    ]


# Profile


def fetch_profile(conn: sqlite3.Connection) -> Profile:
    """Return the caregiver profile, empty until first saved."""
    row = conn.execute(
        """
        SELECT full_name, email, phone_number, notification_methods, updated_at
        FROM profile
        WHERE id = 1
        """
    ).fetchone()
    if row is None:
        return Profile()
    return Profile(
        full_name=row["full_name"],
        email=row["email"],
        phone_number=row["phone_number"],
        notification_methods=list(json.loads(row["notification_methods"] or "[]")),
        updated_at=row["updated_at"],
    )


def save_profile(conn: sqlite3.Connection, profile: Profile) -> None:
    conn.execute(
        """
        INSERT INTO profile (id, full_name, email, phone_number, notification_methods, updated_at)
        VALUES (1, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            full_name = excluded.full_name,
            email = excluded.email,
            phone_number = excluded.phone_number,
            notification_methods = excluded.notification_methods,
            updated_at = excluded.updated_at
        """,
        (
            profile.full_name,
            profile.email,
            profile.phone_number,
            json.dumps(profile.notification_methods),
            utc_timestamp(),
        ),
    )


def _row_to_device(row: sqlite3.Row) -> Device:
    return Device(
        id=row["id"],
        location=row["location"],
        phone_number=row["phone_number"],
        no_contact_period=row["no_contact_period"],
        active=bool(row["active"]),
        last_activity_at=row["last_activity_at"],
        created_at=row["created_at"],
    )


def _row_to_contact(row: sqlite3.Row) -> Contact:
    return Contact(
        id=row["id"],
        contact_name=row["contact_name"],
        relationship=row["relationship"],
        email=row["email"],
        phone_number=row["phone_number"],
        notification_methods=list(json.loads(row["notification_methods"] or "[]")),
        created_at=row["created_at"],
    )
