# Overview: Service-layer operations for work orders; lifecycle transitions, role-scoped updates and totals.

"""
Work Order Lifecycle Engine

================================================================================
STATE MACHINE:
    pending <-> in_progress <-> completed   (every pair currently allowed)

    All status changes go through transition_status(). Tightening the
    workflow only means editing ALLOWED_TRANSITIONS.

    completed is terminal for parts editing (see part_service).

ROLES:
    admin:    create, delete, update any field (unknown fields rejected)
    mechanic: read and update {status, description} on assigned orders only;
              other keys are dropped, invisible orders are NotFound

TOTALS:
    total_amount = labor_hours * labor_rate + SUM(quantity_used * unit_price)
    recomputed whenever labor fields or parts change
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from flask import current_app

from ..extensions import db
from ..models import ROLE_MECHANIC, User, WorkOrder, WorkOrderStatus
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    check_numeric_range,
    issue,
    validate_payload,
)
from .billing_service import labor_total, parts_total
from .customer_service import resolve_vehicle
from .policy_service import (
    Caller,
    ForbiddenError,
    has_capability,
    require_capability,
    require_visible_work_order,
    scope_work_orders,
)


VALID_STATUSES = {s.value for s in WorkOrderStatus}

ALLOWED_TRANSITIONS = {
    (from_status, to_status)
    for from_status in VALID_STATUSES
    for to_status in VALID_STATUSES
    if from_status != to_status
}


class LifecycleError(ValidationError):
    """Invalid status value or disallowed transition. Reported as 400."""
    pass


def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise LifecycleError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def can_transition(from_status: str, to_status: str) -> bool:
    validate_status(from_status)
    validate_status(to_status)

    if from_status == to_status:
        return True

    return (from_status, to_status) in ALLOWED_TRANSITIONS


def transition_status(order: WorkOrder, to_status: str) -> WorkOrder:
    """Single entry point for status changes. Does not commit."""
    from_status = order.status
    if not can_transition(from_status, to_status):
        raise LifecycleError(f"Cannot move work order from '{from_status}' to '{to_status}'")
    if from_status == to_status:
        return order

    order.status = to_status
    current_app.logger.info("Work order %s status %s -> %s", order.id, from_status, to_status)
    return order


def recompute_total(order: WorkOrder) -> Decimal:
    """Re-derive total_amount from labor fields and the current parts collection."""
    total = labor_total(order.labor_hours, order.labor_rate) + parts_total(order.parts)
    check_numeric_range("total_amount", WorkOrder.__table__.c.total_amount.type, total)
    order.total_amount = total
    return order.total_amount


# =============================================================================
# Typed partial updates
# =============================================================================

CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"vehicle_id", "title", "description", "assigned_mechanic", "labor_hours", "labor_rate"},
    required_on_create={"vehicle_id", "title"},
    non_negative={"labor_hours", "labor_rate"},
)

ADMIN_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"vehicle_id", "title", "description", "assigned_mechanic", "status", "labor_hours", "labor_rate"},
    non_negative={"labor_hours", "labor_rate"},
)

MECHANIC_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"status", "description"},
    drop_unknown=True,
)


@dataclass(frozen=True)
class AdminWorkOrderUpdate:
    """Full-field update. `provided` distinguishes "set to null" from "absent"."""
    vehicle_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    assigned_mechanic: Optional[str] = None
    status: Optional[str] = None
    labor_hours: Optional[Decimal] = None
    labor_rate: Optional[Decimal] = None
    provided: frozenset = frozenset()

    @classmethod
    def from_payload(cls, payload: dict) -> "AdminWorkOrderUpdate":
        patch = validate_payload(model=WorkOrder, payload=payload, policy=ADMIN_UPDATE_POLICY, partial=True)
        if "status" in patch:
            validate_status(patch["status"])
        return cls(**patch, provided=frozenset(patch))


@dataclass(frozen=True)
class MechanicWorkOrderUpdate:
    """Allow-listed update for assigned mechanics; every other key is dropped."""
    status: Optional[str] = None
    description: Optional[str] = None
    provided: frozenset = frozenset()

    @classmethod
    def from_payload(cls, payload: dict) -> "MechanicWorkOrderUpdate":
        patch = validate_payload(model=WorkOrder, payload=payload, policy=MECHANIC_UPDATE_POLICY, partial=True)
        if "status" in patch:
            validate_status(patch["status"])
        return cls(**patch, provided=frozenset(patch))


# =============================================================================
# Helpers
# =============================================================================

def _validate_mechanic(user_id: Optional[str]) -> Optional[str]:
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if user is None or user.role != ROLE_MECHANIC or not user.is_active:
        raise ValidationError(
            "Validation failed",
            [issue("assigned_mechanic", "assigned_mechanic must reference an active mechanic")],
        )
    return user.id


# =============================================================================
# Operations
# =============================================================================

def create_work_order(caller: Caller, payload: dict) -> WorkOrder:
    require_capability(caller, "MANAGE_WORK_ORDERS")

    patch = validate_payload(model=WorkOrder, payload=payload, policy=CREATE_POLICY, partial=False)
    vehicle = resolve_vehicle(patch["vehicle_id"])
    mechanic_id = _validate_mechanic(patch.get("assigned_mechanic"))

    labor_hours = patch.get("labor_hours")
    labor_rate = patch.get("labor_rate")

    order = WorkOrder(
        vehicle_id=vehicle.id,
        customer_id=vehicle.customer_id,
        assigned_mechanic=mechanic_id,
        title=patch["title"],
        description=patch.get("description"),
        status=WorkOrderStatus.PENDING.value,
        labor_hours=labor_hours if labor_hours is not None else Decimal("0.00"),
        labor_rate=labor_rate if labor_rate is not None else current_app.config["DEFAULT_LABOR_RATE"],
    )
    recompute_total(order)

    db.session.add(order)
    db.session.commit()

    current_app.logger.info("Created work order %s for vehicle %s", order.id, vehicle.id)
    return order


def get_work_order(caller: Caller, work_order_id: str) -> WorkOrder:
    return require_visible_work_order(caller, db.session.get(WorkOrder, work_order_id), work_order_id)


def list_work_orders(caller: Caller, status: Optional[str] = None) -> list[WorkOrder]:
    if not (has_capability(caller, "VIEW_ALL_WORK_ORDERS") or has_capability(caller, "WORK_ASSIGNED_ORDERS")):
        raise ForbiddenError("Requires VIEW_ALL_WORK_ORDERS")

    query = scope_work_orders(db.session.query(WorkOrder), caller)
    if status:
        validate_status(status)
        query = query.filter(WorkOrder.status == status)
    return query.order_by(WorkOrder.created_at.desc()).all()


def _apply_admin_update(order: WorkOrder, update: AdminWorkOrderUpdate) -> None:
    # Resolve every reference before touching the row.
    vehicle = resolve_vehicle(update.vehicle_id) if "vehicle_id" in update.provided else None
    mechanic_id = (
        _validate_mechanic(update.assigned_mechanic) if "assigned_mechanic" in update.provided else None
    )

    if vehicle is not None:
        order.vehicle_id = vehicle.id
        order.customer_id = vehicle.customer_id
    if "title" in update.provided:
        order.title = update.title
    if "description" in update.provided:
        order.description = update.description
    if "assigned_mechanic" in update.provided:
        order.assigned_mechanic = mechanic_id
    if "status" in update.provided:
        transition_status(order, update.status)

    labor_changed = False
    if "labor_hours" in update.provided:
        order.labor_hours = update.labor_hours
        labor_changed = True
    if "labor_rate" in update.provided:
        order.labor_rate = update.labor_rate
        labor_changed = True
    if labor_changed:
        recompute_total(order)


def _apply_mechanic_update(order: WorkOrder, update: MechanicWorkOrderUpdate) -> None:
    if "description" in update.provided:
        order.description = update.description
    if "status" in update.provided:
        transition_status(order, update.status)


def update_work_order(caller: Caller, work_order_id: str, payload: dict) -> WorkOrder:
    """
    Role-scoped update.

    An update with no applicable fields is a no-op returning the current order.
    """
    order = get_work_order(caller, work_order_id)

    try:
        if has_capability(caller, "MANAGE_WORK_ORDERS"):
            update = AdminWorkOrderUpdate.from_payload(payload)
            if not update.provided:
                return order
            _apply_admin_update(order, update)
        elif has_capability(caller, "WORK_ASSIGNED_ORDERS"):
            update = MechanicWorkOrderUpdate.from_payload(payload)
            if not update.provided:
                return order
            _apply_mechanic_update(order, update)
        else:
            raise ForbiddenError("Requires MANAGE_WORK_ORDERS")

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def delete_work_order(caller: Caller, work_order_id: str) -> None:
    """Removes the order and its parts. Inventory stock is not restored."""
    require_capability(caller, "MANAGE_WORK_ORDERS")
    order = get_work_order(caller, work_order_id)

    db.session.delete(order)
    db.session.commit()
    current_app.logger.info("Deleted work order %s", work_order_id)
