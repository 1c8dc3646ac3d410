# Overview: Service-layer operations for appointments; scheduling CRUD with the same role scoping as work orders.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app

from ..extensions import db
from ..models import (
    ROLE_MECHANIC,
    Appointment,
    AppointmentStatus,
    Customer,
    DEFAULT_DURATION_MINUTES,
    User,
)
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    issue,
    require_fields_present,
    validate_payload,
)
from .customer_service import find_vehicle
from .policy_service import (
    Caller,
    ForbiddenError,
    has_capability,
    require_capability,
    require_visible_appointment,
    scope_appointments,
)


VALID_STATUSES = {s.value for s in AppointmentStatus}
MAX_DURATION_MINUTES = 24 * 60

APPOINTMENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "vehicle_id", "assigned_mechanic", "title",
        "appointment_date", "duration_minutes", "description", "status",
    },
    required_on_create={"customer_id", "vehicle_id", "appointment_date"},
)

MECHANIC_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"status", "description"},
    drop_unknown=True,
)


@dataclass(frozen=True)
class MechanicAppointmentUpdate:
    status: Optional[str] = None
    description: Optional[str] = None
    provided: frozenset = frozenset()

    @classmethod
    def from_payload(cls, payload: dict) -> "MechanicAppointmentUpdate":
        patch = validate_payload(model=Appointment, payload=payload, policy=MECHANIC_UPDATE_POLICY, partial=True)
        _check_status(patch)
        return cls(**patch, provided=frozenset(patch))


def _check_status(patch: dict) -> None:
    status = patch.get("status")
    if status is not None and status not in VALID_STATUSES:
        raise ValidationError(
            "Validation failed",
            [issue("status", f"status must be one of: {', '.join(sorted(VALID_STATUSES))}")],
        )


def _check_duration(patch: dict) -> None:
    duration = patch.get("duration_minutes")
    if duration is not None and not (1 <= duration <= MAX_DURATION_MINUTES):
        raise ValidationError(
            "Validation failed",
            [issue("duration_minutes", f"duration_minutes must be between 1 and {MAX_DURATION_MINUTES}")],
        )


def _check_mechanic(user_id: Optional[str]) -> None:
    if user_id is None:
        return
    user = db.session.get(User, user_id)
    if user is None or user.role != ROLE_MECHANIC or not user.is_active:
        raise ValidationError(
            "Validation failed",
            [issue("assigned_mechanic", "assigned_mechanic must reference an active mechanic")],
        )


def _resolve_references(patch: dict, appointment: Appointment | None = None) -> None:
    """Resolve vehicle (UUID or legacy id) and check it belongs to the customer."""
    customer_id = patch.get("customer_id", appointment.customer_id if appointment else None)

    if "customer_id" in patch and db.session.get(Customer, patch["customer_id"]) is None:
        raise ValidationError("Validation failed", [issue("customer_id", "Customer not found")])

    if "vehicle_id" in patch:
        vehicle = find_vehicle(patch["vehicle_id"])
        if vehicle is None:
            raise ValidationError("Validation failed", [issue("vehicle_id", "Vehicle not found")])
        patch["vehicle_id"] = vehicle.id
    else:
        vehicle = appointment.vehicle if appointment else None

    if vehicle is not None and customer_id is not None and vehicle.customer_id != customer_id:
        raise ValidationError(
            "Validation failed", [issue("vehicle_id", "Vehicle does not belong to this customer")]
        )


def derive_title(customer: Customer | None, vehicle) -> str:
    """Build "<customer>: <plate make model year>", falling back to a generic label."""
    parts = []
    if vehicle is not None:
        parts = [str(p) for p in (vehicle.license_plate, vehicle.make, vehicle.model, vehicle.year) if p]
    title = " ".join(parts).strip() or "Service appointment"
    if customer is not None and customer.name:
        title = f"{customer.name}: {title}"
    return title[:200]


def list_appointments(caller: Caller, status: Optional[str] = None) -> list[Appointment]:
    if not (has_capability(caller, "VIEW_ALL_APPOINTMENTS") or has_capability(caller, "WORK_ASSIGNED_APPOINTMENTS")):
        raise ForbiddenError("Requires VIEW_ALL_APPOINTMENTS")

    query = scope_appointments(db.session.query(Appointment), caller)
    if status:
        _check_status({"status": status})
        query = query.filter(Appointment.status == status)
    return query.order_by(Appointment.appointment_date.asc()).all()


def get_appointment(caller: Caller, appointment_id: str) -> Appointment:
    return require_visible_appointment(caller, db.session.get(Appointment, appointment_id), appointment_id)


def create_appointment(caller: Caller, payload: dict) -> Appointment:
    require_capability(caller, "MANAGE_APPOINTMENTS")

    patch = validate_payload(model=Appointment, payload=payload, policy=APPOINTMENT_POLICY, partial=False)
    _check_status(patch)
    _check_duration(patch)
    _check_mechanic(patch.get("assigned_mechanic"))
    _resolve_references(patch)

    appointment = Appointment(**patch)
    if appointment.duration_minutes is None:
        appointment.duration_minutes = DEFAULT_DURATION_MINUTES
    if appointment.status is None:
        appointment.status = AppointmentStatus.SCHEDULED.value
    if not appointment.title:
        appointment.title = derive_title(
            db.session.get(Customer, appointment.customer_id),
            find_vehicle(appointment.vehicle_id),
        )

    db.session.add(appointment)
    db.session.commit()

    current_app.logger.info("Scheduled appointment %s at %s", appointment.id, appointment.appointment_date)
    return appointment


def update_appointment(caller: Caller, appointment_id: str, payload: dict) -> Appointment:
    """Admins edit any field; assigned mechanics only {status, description}."""
    appointment = get_appointment(caller, appointment_id)

    try:
        if has_capability(caller, "MANAGE_APPOINTMENTS"):
            patch = validate_payload(model=Appointment, payload=payload, policy=APPOINTMENT_POLICY, partial=True)
            require_fields_present(patch, "No valid fields to update")
            _check_status(patch)
            _check_duration(patch)
            if "assigned_mechanic" in patch:
                _check_mechanic(patch["assigned_mechanic"])
            _resolve_references(patch, appointment)
        elif has_capability(caller, "WORK_ASSIGNED_APPOINTMENTS"):
            update = MechanicAppointmentUpdate.from_payload(payload)
            if not update.provided:
                return appointment
            patch = {key: getattr(update, key) for key in update.provided}
        else:
            raise ForbiddenError("Requires MANAGE_APPOINTMENTS")

        for key, value in patch.items():
            setattr(appointment, key, value)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return appointment


def set_status(caller: Caller, appointment_id: str, status) -> Appointment:
    if not isinstance(status, str) or status not in VALID_STATUSES:
        raise ValidationError(
            "Validation failed",
            [issue("status", f"status must be one of: {', '.join(sorted(VALID_STATUSES))}")],
        )
    appointment = update_appointment(caller, appointment_id, {"status": status})
    current_app.logger.info("Appointment %s status set to %s", appointment.id, status)
    return appointment


def delete_appointment(caller: Caller, appointment_id: str) -> None:
    require_capability(caller, "MANAGE_APPOINTMENTS")
    appointment = get_appointment(caller, appointment_id)

    db.session.delete(appointment)
    db.session.commit()
    current_app.logger.info("Deleted appointment %s", appointment_id)
