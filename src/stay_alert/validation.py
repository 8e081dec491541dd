"""Input validation for device and contact forms."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

NOTIFICATION_METHODS: tuple[str, ...] = ("email", "sms", "voice")


class ValidationError(ValueError):
    """Raised when submitted form data is incomplete or out of range."""


@dataclass(slots=True)
class ContactFields:
    contact_name: str
    relationship: Optional[str]
    email: Optional[str]
    phone_number: Optional[str]
    notification_methods: list[str]


def validate_device(
    location: str,
    phone_number: str,
    threshold_hours: int,
    *,
    min_hours: int = 1,
    max_hours: int = 168,
) -> tuple[str, str, int]:
    """Return stripped device fields or raise ``ValidationError``."""
    location = (location or "").strip()
    phone_number = (phone_number or "").strip()
    if not location:
        raise ValidationError("Location is required")
    if not phone_number:
        raise ValidationError("Phone number is required")
    validate_threshold(threshold_hours, min_hours=min_hours, max_hours=max_hours)
    return location, phone_number, threshold_hours


def validate_threshold(threshold_hours: int, *, min_hours: int = 1, max_hours: int = 168) -> int:
    if isinstance(threshold_hours, bool) or not isinstance(threshold_hours, int):
        raise ValidationError("Inactivity threshold must be a whole number of hours")
    if not min_hours <= threshold_hours <= max_hours:
        raise ValidationError(
            f"Inactivity threshold must be between {min_hours} and {max_hours} hours"
        )
    return threshold_hours


def validate_contact(
    contact_name: Optional[str],
    email: Optional[str],
    phone_number: Optional[str],
    methods: Iterable[str],
    relationship: Optional[str] = None,
) -> ContactFields:
    """Normalize contact fields, enforcing name, reachability and alert method."""
    name = (contact_name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    email_value = _blank_to_none(email)
    phone_value = _blank_to_none(phone_number)
    if not email_value and not phone_value:
        raise ValidationError("Please provide at least email or phone number")

    selected = normalize_methods(methods)
    if not selected:
        raise ValidationError("Please select at least one alert method")

    return ContactFields(
        contact_name=name,
        relationship=_blank_to_none(relationship),
        email=email_value,
        phone_number=phone_value,
        notification_methods=selected,
    )


@dataclass(slots=True)
class ProfileFields:
    full_name: Optional[str]
    email: Optional[str]
    phone_number: Optional[str]
    notification_methods: list[str]


def validate_profile(
    full_name: Optional[str],
    email: Optional[str],
    phone_number: Optional[str],
    methods: Iterable[str],
) -> ProfileFields:
    """Normalize caregiver profile fields. An empty method list is allowed."""
    return ProfileFields(
        full_name=_blank_to_none(full_name),
        email=_blank_to_none(email),
        phone_number=_blank_to_none(phone_number),
        notification_methods=normalize_methods(methods),
    )


def normalize_methods(methods: Iterable[str]) -> list[str]:
    """Lower-case and de-duplicate alert methods, rejecting unknown ones."""
    selected: list[str] = []
    for method in methods:
        normalized = method.strip().lower()
        if normalized not in NOTIFICATION_METHODS:
            raise ValidationError(f"Unsupported alert method: {method}")
        if normalized not in selected:
            selected.append(normalized)
    return selected


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
