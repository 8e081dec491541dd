from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from stay_alert.models import Device
from stay_alert.status import (
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    STATUS_UNKNOWN,
    evaluate_activity,
    evaluate_device,
    parse_timestamp,
)


@pytest.mark.parametrize("threshold", [1, 24, "N/A"])
def test_missing_activity_is_unknown(threshold: object, now: datetime) -> None:
    result = evaluate_activity(None, threshold, now=now)
    assert result.status == STATUS_UNKNOWN
    assert result.message == "No activity recorded"
    assert result.hours_since is None


def test_recent_activity_is_active(now: datetime) -> None:
    result = evaluate_activity(now - timedelta(hours=10), 24, now=now)
    assert result.status == STATUS_ACTIVE
    assert result.color == "green"
    assert result.message == "Active recently"
    assert result.hours_since == 10


def test_reaching_threshold_exactly_is_inactive(now: datetime) -> None:
    result = evaluate_activity(now - timedelta(hours=24), 24, now=now)
    assert result.status == STATUS_INACTIVE
    assert result.message == "Inactive for 24h"


def test_inactive_message_floors_elapsed_hours(now: datetime) -> None:
    result = evaluate_activity(now - timedelta(hours=30, minutes=59), 24, now=now)
    assert result.status == STATUS_INACTIVE
    assert result.color == "red"
    assert result.message == "Inactive for 30h"
    assert result.hours_since == 30


def test_just_under_threshold_is_active(now: datetime) -> None:
    result = evaluate_activity(now - timedelta(hours=23, minutes=59, seconds=59), 24, now=now)
    assert result.status == STATUS_ACTIVE


def test_iso_strings_are_accepted(now: datetime) -> None:
    result = evaluate_activity("2026-03-01T06:00:00Z", 4, now=now)
    assert result.message == "Inactive for 6h"

    naive = evaluate_activity("2026-03-01T10:00:00", 4, now=now)
    assert naive.status == STATUS_ACTIVE


def test_offset_timestamps_are_normalized(now: datetime) -> None:
    # 13:00 at +02:00 is 11:00 UTC, one hour before now.
    result = evaluate_activity("2026-03-01T13:00:00+02:00", 2, now=now)
    assert result.status == STATUS_ACTIVE
    assert result.hours_since == 1


def test_unavailable_threshold_degrades_to_unknown(now: datetime) -> None:
    result = evaluate_activity(now - timedelta(hours=5), "N/A", now=now)
    assert result.status == STATUS_UNKNOWN
    assert result.message == "No inactivity threshold set"
    assert result.hours_since == 5


def test_unreadable_timestamp_degrades_to_unknown(now: datetime) -> None:
    result = evaluate_activity("yesterday-ish", 24, now=now)
    assert result.status == STATUS_UNKNOWN
    assert result.message == "Unreadable activity timestamp"


def test_evaluation_is_deterministic_for_fixed_now(now: datetime) -> None:
    last = now - timedelta(hours=3)
    assert evaluate_activity(last, 2, now=now) == evaluate_activity(last, 2, now=now)


def test_now_defaults_to_current_time() -> None:
    recent = datetime.now(tz=timezone.utc) - timedelta(minutes=5)
    assert evaluate_activity(recent, 1).status == STATUS_ACTIVE


def test_evaluate_device_reads_stored_interval(now: datetime) -> None:
    device = Device(
        location="Kitchen",
        phone_number="+1234567890",
        no_contact_period="12:00:00",
        last_activity_at=(now - timedelta(hours=13)).isoformat(),
    )
    result = evaluate_device(device, now=now)
    assert result.status == STATUS_INACTIVE
    assert result.message == "Inactive for 13h"


def test_evaluate_device_without_period(now: datetime) -> None:
    device = Device(
        location="Hall",
        phone_number="+1234567890",
        no_contact_period=None,
        last_activity_at=now.isoformat(),
    )
    assert evaluate_device(device, now=now).status == STATUS_UNKNOWN


def test_parse_timestamp_handles_absent_values() -> None:
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    parsed = parse_timestamp("2026-03-01T12:00:00Z")
    assert parsed == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)


def test_timestamp_outside_utc_range_degrades_to_unknown(now: datetime) -> None:
    result = evaluate_activity("0001-01-01T00:00:00+05:00", 24, now=now)
    assert result.status == STATUS_UNKNOWN
    assert result.message == "Unreadable activity timestamp"


def test_unreadable_now_falls_back_to_current_time() -> None:
    recent = datetime.now(tz=timezone.utc) - timedelta(minutes=5)
    result = evaluate_activity(recent, 1, now="not-a-time")  # type: ignore[arg-type]
    assert result.status == STATUS_ACTIVE

    overflowing = datetime(1, 1, 1, tzinfo=timezone(timedelta(hours=5)))
    assert evaluate_activity(recent, 1, now=overflowing).status == STATUS_ACTIVE
