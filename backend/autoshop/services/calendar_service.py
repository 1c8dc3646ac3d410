# Overview: iCalendar (RFC 5545) export of appointments for Outlook/Google import.

"""
Events are written in UTC with CRLF line endings. Text values escape
commas, semicolons and newlines. UIDs are stable per appointment so a
re-import updates instead of duplicating.
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Appointment
from .appointment_service import get_appointment
from .policy_service import Caller, ForbiddenError, has_capability, scope_appointments
from autoshop.time_utils import as_utc_naive, months_before, utcnow

PRODID = "-//AutoService//Appointments//EN"
UID_DOMAIN = "autoservice.local"
EXPORT_MONTHS_BACK = 6


def escape_text(text) -> str:
    value = str(text or "")
    value = value.replace("\\", "\\\\")
    for ch in (",", ";"):
        value = value.replace(ch, "\\" + ch)
    return value.replace("\r\n", "\\n").replace("\n", "\\n")


def format_utc(dt: datetime) -> str:
    """YYYYMMDDTHHMMSSZ. Naive datetimes are UTC."""
    return as_utc_naive(dt).strftime("%Y%m%dT%H%M%SZ")


def appointment_uid(appointment: Appointment) -> str:
    return f"apt-{appointment.id}@{UID_DOMAIN}"


def vevent(appointment: Appointment, *, stamp: datetime | None = None) -> str:
    vehicle = appointment.vehicle
    customer = appointment.customer
    plate = vehicle.license_plate if vehicle else None

    summary = appointment.title or " ".join(
        p for p in (plate, vehicle.make if vehicle else None, vehicle.model if vehicle else None) if p
    )
    description = appointment.description or ""
    if customer and customer.name:
        description = f"{customer.name}: {description}".strip()

    lines = [
        "BEGIN:VEVENT",
        f"UID:{escape_text(appointment_uid(appointment))}",
        f"DTSTAMP:{format_utc(stamp or utcnow())}",
        f"DTSTART:{format_utc(appointment.appointment_date)}",
        f"DTEND:{format_utc(appointment.ends_at)}",
        f"SUMMARY:{escape_text(summary)}",
    ]
    if description:
        lines.append(f"DESCRIPTION:{escape_text(description)}")
    if plate:
        lines.append(f"LOCATION:{escape_text('Vehicle ' + plate)}")
    lines.append(f"STATUS:{'CANCELLED' if appointment.status == 'cancelled' else 'CONFIRMED'}")
    lines.append("END:VEVENT")
    return "\r\n".join(lines)


def wrap_calendar(events: list[str]) -> str:
    return "\r\n".join([
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        *events,
        "END:VCALENDAR",
    ]) + "\r\n"


def appointment_ics(caller: Caller, appointment_id: str) -> str:
    appointment = get_appointment(caller, appointment_id)
    return wrap_calendar([vevent(appointment)])


def appointments_ics(caller: Caller, now: datetime | None = None) -> str:
    """Every visible appointment from EXPORT_MONTHS_BACK months ago onward."""
    if not (has_capability(caller, "VIEW_ALL_APPOINTMENTS") or has_capability(caller, "WORK_ASSIGNED_APPOINTMENTS")):
        raise ForbiddenError("Requires VIEW_ALL_APPOINTMENTS")

    since = months_before(now or utcnow(), EXPORT_MONTHS_BACK)
    appointments = (
        scope_appointments(db.session.query(Appointment), caller)
        .filter(Appointment.appointment_date >= since)
        .order_by(Appointment.appointment_date.asc())
        .all()
    )
    stamp = utcnow()
    return wrap_calendar([vevent(a, stamp=stamp) for a in appointments])
