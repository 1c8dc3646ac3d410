# Overview: Service-layer operations for the dashboard; summary counts and short lists.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Appointment, Customer, InventoryItem, Vehicle, WorkOrder, WorkOrderStatus
from .inventory_service import low_stock_query
from .policy_service import Caller, scope_appointments, scope_work_orders
from autoshop.time_utils import day_bounds, utcnow

RECENT_ORDERS_LIMIT = 5
LOW_STOCK_LIMIT = 10


def get_stats(caller: Caller, now: datetime | None = None) -> dict:
    """
    Counts for the landing page.

    Work order and appointment counts respect the caller's visibility, so a
    mechanic sees numbers for their own assignments only.
    """
    start, end = day_bounds(now or utcnow())

    orders_by_status = {s.value: 0 for s in WorkOrderStatus}
    status_rows = (
        scope_work_orders(db.session.query(WorkOrder.status, func.count(WorkOrder.id)), caller)
        .group_by(WorkOrder.status)
        .all()
    )
    for status, count in status_rows:
        orders_by_status[status] = count

    appointments = scope_appointments(db.session.query(Appointment), caller)

    return {
        "total_customers": db.session.query(func.count(Customer.id)).scalar(),
        "total_vehicles": db.session.query(func.count(Vehicle.id)).scalar(),
        "pending_orders": orders_by_status[WorkOrderStatus.PENDING.value],
        "in_progress_orders": orders_by_status[WorkOrderStatus.IN_PROGRESS.value],
        "completed_orders": orders_by_status[WorkOrderStatus.COMPLETED.value],
        "total_inventory_items": db.session.query(func.count(InventoryItem.id)).scalar(),
        "low_stock_items": low_stock_query().count(),
        "today_appointments": appointments.filter(
            Appointment.appointment_date >= start, Appointment.appointment_date < end
        ).count(),
        "total_appointments": appointments.count(),
    }


def recent_orders(caller: Caller, limit: int = RECENT_ORDERS_LIMIT) -> list[WorkOrder]:
    return (
        scope_work_orders(db.session.query(WorkOrder), caller)
        .order_by(WorkOrder.created_at.desc())
        .limit(limit)
        .all()
    )


def today_appointments(caller: Caller, now: datetime | None = None) -> list[Appointment]:
    start, end = day_bounds(now or utcnow())
    return (
        scope_appointments(db.session.query(Appointment), caller)
        .filter(Appointment.appointment_date >= start, Appointment.appointment_date < end)
        .order_by(Appointment.appointment_date.asc())
        .all()
    )


def low_stock(limit: int = LOW_STOCK_LIMIT) -> list[InventoryItem]:
    return low_stock_query().limit(limit).all()
