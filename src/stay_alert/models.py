"""Domain models for monitored devices, contacts and alerts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True)
class Device:
    """A monitored phone line at a physical location."""

    location: str
    phone_number: str
    no_contact_period: Optional[str]
    active: bool = True
    last_activity_at: Optional[str] = None
    created_at: Optional[str] = None
    id: Optional[int] = None


@dataclass(slots=True)
class Contact:
    """Someone to notify when a device goes quiet."""

    contact_name: str
    relationship: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    notification_methods: list[str] = field(default_factory=lambda: ["email"])
    created_at: Optional[str] = None
    id: Optional[int] = None


@dataclass(slots=True)
class ActivityReport:
    device_id: int
    phone_number: str
    received_at: str
    message: Optional[str] = None
    id: Optional[int] = None


@dataclass(slots=True)
class AlertRecord:
    """A notification attempt recorded by the external dispatcher."""

    alert_type: str
    notification_method: str
    message: str
    status: Optional[str] = "pending"
    device_id: Optional[int] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    device_phone_number: Optional[str] = None
    response_log: Optional[str] = None
    sent_at: Optional[str] = None
    created_at: Optional[str] = None
    id: Optional[int] = None


@dataclass(slots=True)
class Profile:
    """The caregiver running this dashboard and their alert preferences."""

    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    notification_methods: list[str] = field(default_factory=list)
    updated_at: Optional[str] = None
