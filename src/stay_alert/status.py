"""Derive a device's liveness status from its last recorded activity."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from .intervals import duration_to_hours
from .models import Device

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600

STATUS_UNKNOWN = "unknown"
STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"

Timestamp = Union[datetime, str, None]


@dataclass(frozen=True, slots=True)
class ActivityStatus:
    """Display-ready classification of a device."""

    status: str
    color: str
    message: str
    hours_since: Optional[int] = None

    def as_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "color": self.color,
            "message": self.message,
            "hours_since": self.hours_since,
        }


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """Parse an ISO-8601 value into an aware UTC datetime.

    Returns None for absent input. Naive values are assumed to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def evaluate_activity(
    last_activity_at: Timestamp,
    threshold_hours: object,
    *,
    now: Optional[datetime] = None,
) -> ActivityStatus:
    """Classify activity as unknown, active or inactive.

    A device is active while fewer than ``threshold_hours`` have elapsed since
    ``last_activity_at``; reaching the threshold exactly counts as inactive.
    ``now`` defaults to the current UTC time, read on every call.
    """
    if last_activity_at is None or last_activity_at == "":
        return ActivityStatus(STATUS_UNKNOWN, "gray", "No activity recorded")

    try:
        last_activity = parse_timestamp(last_activity_at)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Unreadable activity timestamp %r", last_activity_at)
        return ActivityStatus(STATUS_UNKNOWN, "gray", "Unreadable activity timestamp")

    try:
        current = parse_timestamp(now) or utc_now()
    except (TypeError, ValueError, OverflowError):
        logger.warning("Unreadable evaluation time %r; using the current time", now)
        current = utc_now()

    hours_since = (current - last_activity).total_seconds() / SECONDS_PER_HOUR
    elapsed = math.floor(hours_since)

    if isinstance(threshold_hours, bool) or not isinstance(threshold_hours, (int, float)):
        return ActivityStatus(
            STATUS_UNKNOWN, "gray", "No inactivity threshold set", hours_since=elapsed
        )

    if hours_since < threshold_hours:
        return ActivityStatus(
            STATUS_ACTIVE, "green", "Active recently", hours_since=elapsed
        )
    return ActivityStatus(
        STATUS_INACTIVE, "red", f"Inactive for {elapsed}h", hours_since=elapsed
    )


def evaluate_device(device: Device, *, now: Optional[datetime] = None) -> ActivityStatus:
    threshold = duration_to_hours(device.no_contact_period)
    return evaluate_activity(device.last_activity_at, threshold, now=now)
