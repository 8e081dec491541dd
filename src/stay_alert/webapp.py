"""FastAPI application that exposes the alert dashboard UI and API."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from .config import AppSettings
from .db import (
    database_connection,
    delete_contact,
    delete_device,
    fetch_activity_reports,
    fetch_alert_history,
    fetch_contact,
    fetch_contacts,
    fetch_device,
    fetch_devices,
    fetch_profile,
    insert_contact,
    insert_device,
    record_activity,
    replace_contact,
    save_profile,
    update_device,
)
from .intervals import duration_to_hours, hours_to_duration
from .models import Contact, Device, Profile
from .paths import get_db_path
from .reporting import find_overdue_devices
from .status import evaluate_device
from .validation import (
    ValidationError,
    validate_contact,
    validate_device,
    validate_profile,
    validate_threshold,
)

logger = logging.getLogger(__name__)


class DevicePayload(BaseModel):
    location: str
    phone_number: str
    threshold_hours: Optional[int] = None
    active: bool = True

    model_config = ConfigDict(extra="forbid")


class DeviceUpdate(BaseModel):
    location: Optional[str] = None
    phone_number: Optional[str] = None
    threshold_hours: Optional[int] = None
    active: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class ActivityPayload(BaseModel):
    received_at: Optional[datetime] = None
    message: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ContactPayload(BaseModel):
    contact_name: str
    relationship: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    notification_methods: list[str] = Field(default_factory=lambda: ["email"])

    model_config = ConfigDict(extra="forbid")


class ProfilePayload(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    notification_methods: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[AppSettings] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or AppSettings()

    app = FastAPI(title="Stay Alert", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.settings = resolved_settings

    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        # Creates the schema before the first request arrives.
        with database_connection(resolved_db_path):
            pass
        logger.info("Serving dashboard for %s", resolved_db_path)

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "database_path": str(request.app.state.db_path),
            "default_threshold_hours": resolved_settings.default_threshold_hours,
            "min_threshold_hours": resolved_settings.min_threshold_hours,
            "max_threshold_hours": resolved_settings.max_threshold_hours,
        }

    @app.get("/api/devices")
    def list_devices(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            devices = fetch_devices(conn)
        return {"devices": [_device_payload(device) for device in devices]}

    @app.post("/api/devices", status_code=201)
    def create_device(payload: DevicePayload, request: Request) -> Dict[str, Any]:
        threshold = (
            payload.threshold_hours
            if payload.threshold_hours is not None
            else resolved_settings.default_threshold_hours
        )
        try:
            location, phone_number, threshold = validate_device(
                payload.location,
                payload.phone_number,
                threshold,
                min_hours=resolved_settings.min_threshold_hours,
                max_hours=resolved_settings.max_threshold_hours,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        device = Device(
            location=location,
            phone_number=phone_number,
            no_contact_period=hours_to_duration(threshold),
            active=payload.active,
        )
        with database_connection(request.app.state.db_path) as conn:
            device_id = insert_device(conn, device)
            stored = fetch_device(conn, device_id)
        if stored is None:
            raise HTTPException(status_code=500, detail="Failed to persist device.")
        logger.info("Added device %s at %s", device_id, location)
        return _device_payload(stored)

    @app.get("/api/devices/{device_id}")
    def get_device(device_id: int, request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            device = fetch_device(conn, device_id)
        if device is None:
            raise HTTPException(status_code=404, detail="Device not found")
        return _device_payload(device)

    @app.patch("/api/devices/{device_id}")
    def update_device_endpoint(
        device_id: int,
        payload: DeviceUpdate,
        request: Request,
    ) -> Dict[str, Any]:
        updates = payload.model_dump(exclude_unset=True)
        try:
            for key in ("location", "phone_number"):
                if key in updates:
                    value = (updates[key] or "").strip()
                    if not value:
                        raise ValidationError(f"{key.replace('_', ' ').capitalize()} is required")
                    updates[key] = value
            if "threshold_hours" in updates:
                hours = validate_threshold(
                    updates.pop("threshold_hours"),
                    min_hours=resolved_settings.min_threshold_hours,
                    max_hours=resolved_settings.max_threshold_hours,
                )
                updates["no_contact_period"] = hours_to_duration(hours)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        with database_connection(request.app.state.db_path) as conn:
            try:
                update_device(conn, device_id, **updates)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Device not found") from exc
            device = fetch_device(conn, device_id)
        if device is None:
            raise HTTPException(status_code=404, detail="Device not found")
        return _device_payload(device)

    @app.delete("/api/devices/{device_id}", status_code=204)
    def delete_device_endpoint(device_id: int, request: Request) -> None:
        with database_connection(request.app.state.db_path) as conn:
            try:
                delete_device(conn, device_id)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Device not found") from exc
        logger.info("Deleted device %s", device_id)

    @app.post("/api/devices/{device_id}/activity", status_code=201)
    def report_activity(
        device_id: int,
        payload: ActivityPayload,
        request: Request,
    ) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            try:
                report = record_activity(
                    conn,
                    device_id,
                    received_at=payload.received_at,
                    message=payload.message,
                )
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Device not found") from exc
            except OverflowError as exc:
                raise HTTPException(
                    status_code=400, detail="received_at is out of range"
                ) from exc
            device = fetch_device(conn, device_id)
        logger.debug("Activity reported for device %s at %s", device_id, report.received_at)
        return {
            "report": asdict(report),
            "device": _device_payload(device) if device else None,
        }

    @app.get("/api/devices/{device_id}/activity")
    def list_activity(
        device_id: int,
        request: Request,
        limit: int = Query(default=50, ge=1, le=500),
    ) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            if fetch_device(conn, device_id) is None:
                raise HTTPException(status_code=404, detail="Device not found")
            reports = fetch_activity_reports(conn, device_id, limit=limit)
        return {"reports": [asdict(report) for report in reports]}

    @app.get("/api/overdue")
    def overdue(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            devices = fetch_devices(conn)
        return {
            "devices": [
                _device_payload(device) for device, _ in find_overdue_devices(devices)
            ]
        }

    @app.get("/api/contacts")
    def list_contacts(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            contacts = fetch_contacts(conn)
        return {"contacts": [asdict(contact) for contact in contacts]}

    @app.post("/api/contacts", status_code=201)
    def create_contact(payload: ContactPayload, request: Request) -> Dict[str, Any]:
        contact = _validated_contact(payload)
        with database_connection(request.app.state.db_path) as conn:
            contact_id = insert_contact(conn, contact)
            stored = fetch_contact(conn, contact_id)
        if stored is None:
            raise HTTPException(status_code=500, detail="Failed to persist contact.")
        return asdict(stored)

    @app.patch("/api/contacts/{contact_id}")
    def update_contact(
        contact_id: int, payload: ContactPayload, request: Request
    ) -> Dict[str, Any]:
        contact = _validated_contact(payload)
        with database_connection(request.app.state.db_path) as conn:
            try:
                replace_contact(conn, contact_id, contact)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Contact not found") from exc
            stored = fetch_contact(conn, contact_id)
        if stored is None:
            raise HTTPException(status_code=404, detail="Contact not found")
        return asdict(stored)

    @app.delete("/api/contacts/{contact_id}", status_code=204)
    def delete_contact_endpoint(contact_id: int, request: Request) -> None:
        with database_connection(request.app.state.db_path) as conn:
            try:
                delete_contact(conn, contact_id)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Contact not found") from exc

    @app.get("/api/profile")
    def get_profile(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            profile = fetch_profile(conn)
        return asdict(profile)

    @app.put("/api/profile")
    def update_profile(payload: ProfilePayload, request: Request) -> Dict[str, Any]:
        try:
            fields = validate_profile(
                payload.full_name,
                payload.email,
                payload.phone_number,
                payload.notification_methods,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        with database_connection(request.app.state.db_path) as conn:
            save_profile(
                conn,
                Profile(
                    full_name=fields.full_name,
                    email=fields.email,
                    phone_number=fields.phone_number,
                    notification_methods=fields.notification_methods,
                ),
            )
            profile = fetch_profile(conn)
        logger.info("Updated caregiver profile")
        return asdict(profile)

    @app.get("/api/alerts")
    def alerts(
        request: Request,
        device_id: Optional[int] = Query(
            default=None,
            description="Only return alerts raised for this device.",
        ),
    ) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            records = fetch_alert_history(conn, device_id=device_id)
        return {"alerts": [asdict(record) for record in records]}

    @app.get("/")
    def index(request: Request):
        index_path = (Path(__file__).parent / "static" / "index.html").resolve()
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="UI not found")
        return FileResponse(index_path)

    return app


def _validated_contact(payload: ContactPayload) -> Contact:
    try:
        fields = validate_contact(
            payload.contact_name,
            payload.email,
            payload.phone_number,
            payload.notification_methods,
            relationship=payload.relationship,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return Contact(
        contact_name=fields.contact_name,
        relationship=fields.relationship,
        email=fields.email,
        phone_number=fields.phone_number,
        notification_methods=fields.notification_methods,
    )


def _device_payload(device: Device) -> Dict[str, Any]:
    return {
        "id": device.id,
        "location": device.location,
        "phone_number": device.phone_number,
        "no_contact_period": device.no_contact_period,
        "threshold_hours": duration_to_hours(device.no_contact_period),
        "active": device.active,
        "last_activity_at": device.last_activity_at,
        "created_at": device.created_at,
        "activity": evaluate_device(device).as_dict(),
    }
