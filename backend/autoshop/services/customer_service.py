# Overview: Service-layer operations for customers and vehicles; thin CRUD plus vehicle id resolution.

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..ids import is_uuid, parse_legacy_id
from ..models import Customer, Vehicle
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    issue,
    require_fields_present,
    validate_payload,
)
from .policy_service import Caller, require_capability


CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email", "address"},
    required_on_create={"name"},
)

VEHICLE_POLICY = ModelValidationPolicy(
    writable_fields={"legacy_id", "customer_id", "make", "model", "year", "license_plate", "vin"},
    required_on_create={"customer_id", "make", "model"},
    non_negative={"legacy_id"},
)


def _check_email(patch: dict) -> None:
    email = patch.get("email")
    if email and "@" not in email:
        raise ValidationError("Validation failed", [issue("email", "email must be a valid address")])


def _check_year(patch: dict) -> None:
    year = patch.get("year")
    if year is None:
        return
    latest = date.today().year + 1
    if year < 1900 or year > latest:
        raise ValidationError("Validation failed", [issue("year", f"year must be between 1900 and {latest}")])


# =============================================================================
# Customers
# =============================================================================

def list_customers(caller: Caller, search: str | None = None) -> list[Customer]:
    require_capability(caller, "VIEW_CUSTOMERS")
    query = db.session.query(Customer)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(Customer.name.ilike(like), Customer.email.ilike(like), Customer.phone.ilike(like))
        )
    return query.order_by(Customer.name.asc()).all()


def get_customer(caller: Caller, customer_id: str) -> Customer:
    require_capability(caller, "VIEW_CUSTOMERS")
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def create_customer(caller: Caller, payload: dict) -> Customer:
    require_capability(caller, "MANAGE_CUSTOMERS")
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    _check_email(patch)

    customer = Customer(**patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(caller: Caller, customer_id: str, payload: dict) -> Customer:
    require_capability(caller, "MANAGE_CUSTOMERS")
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")

    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    require_fields_present(patch)
    _check_email(patch)

    for key, value in patch.items():
        setattr(customer, key, value)
    db.session.commit()
    return customer


def delete_customer(caller: Caller, customer_id: str) -> None:
    """Removes the customer with its vehicles, work orders and appointments."""
    require_capability(caller, "MANAGE_CUSTOMERS")
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")

    db.session.delete(customer)
    db.session.commit()
    current_app.logger.info("Deleted customer %s", customer_id)


# =============================================================================
# Vehicles
# =============================================================================

def find_vehicle(identifier) -> Vehicle | None:
    """Look up a vehicle by canonical UUID or by legacy integer id."""
    if identifier is None:
        return None
    if is_uuid(identifier):
        return db.session.get(Vehicle, str(identifier).strip().lower())
    legacy_id = parse_legacy_id(identifier)
    if legacy_id is not None:
        return db.session.query(Vehicle).filter(Vehicle.legacy_id == legacy_id).first()
    return None


def resolve_vehicle(identifier) -> Vehicle:
    vehicle = find_vehicle(identifier)
    if vehicle is None:
        raise NotFoundError("Vehicle not found")
    return vehicle


def _resolve_customer_id(identifier) -> str:
    customer = db.session.get(Customer, identifier) if identifier else None
    if customer is None:
        raise ValidationError("Validation failed", [issue("customer_id", "Customer not found")])
    return customer.id


def _commit_vehicle() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A vehicle with this legacy_id already exists")


def list_vehicles(caller: Caller, customer_id: str | None = None) -> list[Vehicle]:
    require_capability(caller, "VIEW_VEHICLES")
    query = db.session.query(Vehicle)
    if customer_id:
        query = query.filter(Vehicle.customer_id == customer_id)
    return query.order_by(Vehicle.created_at.desc()).all()


def get_vehicle(caller: Caller, identifier) -> Vehicle:
    require_capability(caller, "VIEW_VEHICLES")
    return resolve_vehicle(identifier)


def create_vehicle(caller: Caller, payload: dict) -> Vehicle:
    require_capability(caller, "MANAGE_VEHICLES")
    patch = validate_payload(model=Vehicle, payload=payload, policy=VEHICLE_POLICY, partial=False)
    _check_year(patch)
    patch["customer_id"] = _resolve_customer_id(patch["customer_id"])

    vehicle = Vehicle(**patch)
    db.session.add(vehicle)
    _commit_vehicle()
    return vehicle


def update_vehicle(caller: Caller, identifier, payload: dict) -> Vehicle:
    require_capability(caller, "MANAGE_VEHICLES")
    vehicle = resolve_vehicle(identifier)

    patch = validate_payload(model=Vehicle, payload=payload, policy=VEHICLE_POLICY, partial=True)
    require_fields_present(patch)
    _check_year(patch)
    if "customer_id" in patch:
        patch["customer_id"] = _resolve_customer_id(patch["customer_id"])

    for key, value in patch.items():
        setattr(vehicle, key, value)
    _commit_vehicle()
    return vehicle


def delete_vehicle(caller: Caller, identifier) -> None:
    require_capability(caller, "MANAGE_VEHICLES")
    vehicle = resolve_vehicle(identifier)
    vehicle_id = vehicle.id

    db.session.delete(vehicle)
    db.session.commit()
    current_app.logger.info("Deleted vehicle %s", vehicle_id)
