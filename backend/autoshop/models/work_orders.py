from __future__ import annotations

import enum

from ..extensions import db
from ..ids import new_id
from ..money_utils import money_str, quantize_money
from autoshop.time_utils import to_utc_z, utcnow


class WorkOrderStatus(str, enum.Enum):
    """Closed set of work order states. Stored as the plain string value."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class WorkOrder(db.Model):
    """
    Billable job on one vehicle.

    INVARIANTS:
    - customer_id is copied from the vehicle's owner when the order is created
      (and re-derived if the vehicle changes)
    - total_amount == labor_hours * labor_rate + SUM(part.quantity_used * part.unit_price),
      rounded to cents; maintained by work_order_service.recompute_total()
    - parts are frozen once status == completed
    """
    __tablename__ = "work_orders"
    __table_args__ = (
        db.Index("ix_work_orders_status", "status"),
        db.Index("ix_work_orders_assigned_created", "assigned_mechanic", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    vehicle_id = db.Column(db.String(36), db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = db.Column(db.String(36), db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_mechanic = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=WorkOrderStatus.PENDING.value)

    labor_hours = db.Column(db.Numeric(8, 2), nullable=False, default=0)
    labor_rate = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    vehicle = db.relationship("Vehicle", backref=db.backref("work_orders", lazy=True, passive_deletes=True))
    customer = db.relationship("Customer", backref=db.backref("work_orders", lazy=True, passive_deletes=True))
    mechanic = db.relationship("User", foreign_keys=[assigned_mechanic])
    parts = db.relationship(
        "WorkOrderPart",
        back_populates="work_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="WorkOrderPart.created_at",
    )

    @property
    def is_completed(self) -> bool:
        return self.status == WorkOrderStatus.COMPLETED.value

    def __repr__(self) -> str:
        return f"<WorkOrder id={self.id} status={self.status} total={self.total_amount}>"

    def to_dict(self) -> dict:
        vehicle = self.vehicle
        customer = self.customer
        mechanic = self.mechanic
        parts_cost_total = sum(
            (p.quantity_used * (p.cost_price or 0) for p in self.parts), start=0
        )
        return {
            "id": self.id,
            "vehicle_id": self.vehicle_id,
            "customer_id": self.customer_id,
            "assigned_mechanic": self.assigned_mechanic,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "labor_hours": money_str(self.labor_hours),
            "labor_rate": money_str(self.labor_rate),
            "total_amount": money_str(self.total_amount),
            "parts_cost_total": money_str(quantize_money(parts_cost_total)),
            "customer_name": customer.name if customer else None,
            "customer_phone": customer.phone if customer else None,
            "customer_email": customer.email if customer else None,
            "make": vehicle.make if vehicle else None,
            "model": vehicle.model if vehicle else None,
            "year": vehicle.year if vehicle else None,
            "license_plate": vehicle.license_plate if vehicle else None,
            "mechanic_name": mechanic.full_name if mechanic else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class WorkOrderPart(db.Model):
    """
    Line item of parts consumed on a work order.

    Either references an inventory item (inventory_item_id set) or is a
    one-off custom entry (custom_name set), never both.
    cost_price is internal and never printed on invoices.
    """
    __tablename__ = "work_order_parts"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    work_order_id = db.Column(
        db.String(36), db.ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id = db.Column(
        db.String(36), db.ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    custom_name = db.Column(db.String(255), nullable=True)
    custom_sku = db.Column(db.String(64), nullable=True)

    quantity_used = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    cost_price = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    work_order = db.relationship("WorkOrder", back_populates="parts")
    inventory_item = db.relationship("InventoryItem")

    @property
    def is_custom(self) -> bool:
        return self.inventory_item_id is None

    @property
    def name(self) -> str | None:
        if self.custom_name:
            return self.custom_name
        return self.inventory_item.name if self.inventory_item else None

    @property
    def sku(self) -> str | None:
        if self.custom_sku:
            return self.custom_sku
        return self.inventory_item.sku if self.inventory_item else None

    @property
    def line_total(self):
        return quantize_money(self.quantity_used * self.unit_price)

    def __repr__(self) -> str:
        return f"<WorkOrderPart id={self.id} order={self.work_order_id} qty={self.quantity_used}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "work_order_id": self.work_order_id,
            "inventory_item_id": self.inventory_item_id,
            "is_custom": self.is_custom,
            "custom_name": self.custom_name,
            "custom_sku": self.custom_sku,
            "name": self.name,
            "sku": self.sku,
            "quantity_used": self.quantity_used,
            "unit_price": money_str(self.unit_price),
            "cost_price": money_str(self.cost_price),
            "line_total": money_str(self.line_total),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
