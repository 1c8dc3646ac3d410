# Overview: Stateless authorization policy; decides from (caller.role, caller.id, resource.assigned_mechanic).

"""
Authorization Policy

Two roles with static capability sets (see autoshop/permissions.py):
- admin:    full read/write on every resource
- mechanic: read-only lookups of customers/vehicles/inventory; read/write
            limited to work orders and appointments assigned to them

STATUS-CODE DISCIPLINE:
- A record that exists but is not visible to the caller is reported exactly
  like a missing one (NotFoundError -> 404), on every path.
- ForbiddenError (403) is reserved for capabilities the caller's role lacks
  and for state locks (e.g. editing parts of a completed order).

Every function takes the caller explicitly; nothing here reads request state.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import false

from ..models import ROLE_ADMIN, ROLE_MECHANIC, VALID_ROLES, User, WorkOrder, Appointment
from ..permissions import get_role_capabilities
from ..validation import NotFoundError


class ForbiddenError(Exception):
    """Raised when the caller's role lacks the capability for an operation."""
    pass


@dataclass(frozen=True)
class Caller:
    """Authenticated principal threaded through every service operation."""
    id: str
    role: str

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(f"Unknown role '{self.role}'")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_mechanic(self) -> bool:
        return self.role == ROLE_MECHANIC

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(id=user.id, role=user.role)


def has_capability(caller: Caller, code: str) -> bool:
    return code in get_role_capabilities(caller.role)


def require_capability(caller: Caller, code: str) -> None:
    if not has_capability(caller, code):
        current_app.logger.warning(
            "Capability %s denied for user %s (role=%s)", code, caller.id, caller.role
        )
        raise ForbiddenError(f"Requires {code}")


# =============================================================================
# Work orders
# =============================================================================

def can_view_work_order(caller: Caller, order: WorkOrder) -> bool:
    if has_capability(caller, "VIEW_ALL_WORK_ORDERS"):
        return True
    return (
        has_capability(caller, "WORK_ASSIGNED_ORDERS")
        and order.assigned_mechanic is not None
        and order.assigned_mechanic == caller.id
    )


def scope_work_orders(query, caller: Caller):
    """Apply the visibility rule as a collection filter."""
    if has_capability(caller, "VIEW_ALL_WORK_ORDERS"):
        return query
    if has_capability(caller, "WORK_ASSIGNED_ORDERS"):
        return query.filter(WorkOrder.assigned_mechanic == caller.id)
    return query.filter(false())


def require_visible_work_order(caller: Caller, order: WorkOrder | None, work_order_id: str) -> WorkOrder:
    if order is None or not can_view_work_order(caller, order):
        raise NotFoundError(f"Work order {work_order_id} not found")
    return order


def can_edit_work_order_parts(caller: Caller, order: WorkOrder) -> bool:
    """Admin, or the assigned mechanic. State locks are checked by the engine."""
    if has_capability(caller, "MANAGE_WORK_ORDERS"):
        return True
    return can_view_work_order(caller, order)


# =============================================================================
# Appointments
# =============================================================================

def can_view_appointment(caller: Caller, appointment: Appointment) -> bool:
    if has_capability(caller, "VIEW_ALL_APPOINTMENTS"):
        return True
    return (
        has_capability(caller, "WORK_ASSIGNED_APPOINTMENTS")
        and appointment.assigned_mechanic is not None
        and appointment.assigned_mechanic == caller.id
    )


def scope_appointments(query, caller: Caller):
    if has_capability(caller, "VIEW_ALL_APPOINTMENTS"):
        return query
    if has_capability(caller, "WORK_ASSIGNED_APPOINTMENTS"):
        return query.filter(Appointment.assigned_mechanic == caller.id)
    return query.filter(false())


def require_visible_appointment(
    caller: Caller, appointment: Appointment | None, appointment_id: str
) -> Appointment:
    if appointment is None or not can_view_appointment(caller, appointment):
        raise NotFoundError(f"Appointment {appointment_id} not found")
    return appointment
