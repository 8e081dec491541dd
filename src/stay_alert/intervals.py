"""Conversion between whole-hour thresholds and interval strings."""

from __future__ import annotations

import logging
import re
from typing import Literal, Optional, Union

logger = logging.getLogger(__name__)

NOT_AVAILABLE: Literal["N/A"] = "N/A"

_LEADING_HOURS_PATTERN = re.compile(r"^\s*(\d+)")


def hours_to_duration(hours: int) -> str:
    """Render an hour count as the ``H:00:00`` interval stored for a device."""
    if isinstance(hours, bool) or not isinstance(hours, int):
        raise ValueError(f"hours must be an integer, got {hours!r}")
    if hours < 0:
        raise ValueError(f"hours must be non-negative, got {hours}")
    return f"{hours}:00:00"


def duration_to_hours(duration: Optional[str]) -> Union[int, Literal["N/A"]]:
    """Return the hour component of an interval string.

    Absent input and input without a leading integer both yield ``"N/A"``.
    """
    if not duration:
        return NOT_AVAILABLE
    head = str(duration).split(":")[0]
    match = _LEADING_HOURS_PATTERN.match(head)
    if match is None:
        logger.warning("Unparseable no-contact period %r", duration)
        return NOT_AVAILABLE
    return int(match.group(1), 10)


def format_threshold(duration: Optional[str]) -> str:
    hours = duration_to_hours(duration)
    if hours == NOT_AVAILABLE:
        return NOT_AVAILABLE
    return f"{hours} hours"
