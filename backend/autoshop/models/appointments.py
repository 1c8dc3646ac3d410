from __future__ import annotations

import enum
from datetime import timedelta

from ..extensions import db
from ..ids import new_id
from autoshop.time_utils import to_utc_z, utcnow

DEFAULT_DURATION_MINUTES = 120


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Appointment(db.Model):
    """Scheduled shop visit for a customer's vehicle."""
    __tablename__ = "appointments"
    __table_args__ = (
        db.Index("ix_appointments_date", "appointment_date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    vehicle_id = db.Column(db.String(36), db.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_mechanic = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    title = db.Column(db.String(200), nullable=True)
    appointment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False, default=DEFAULT_DURATION_MINUTES)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=AppointmentStatus.SCHEDULED.value)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer", backref=db.backref("appointments", lazy=True, passive_deletes=True))
    vehicle = db.relationship("Vehicle", backref=db.backref("appointments", lazy=True, passive_deletes=True))
    mechanic = db.relationship("User", foreign_keys=[assigned_mechanic])

    @property
    def ends_at(self):
        return self.appointment_date + timedelta(minutes=self.duration_minutes or DEFAULT_DURATION_MINUTES)

    def to_dict(self) -> dict:
        vehicle = self.vehicle
        customer = self.customer
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "vehicle_id": self.vehicle_id,
            "assigned_mechanic": self.assigned_mechanic,
            "title": self.title,
            "appointment_date": to_utc_z(self.appointment_date),
            "duration_minutes": self.duration_minutes,
            "description": self.description,
            "status": self.status,
            "customer_name": customer.name if customer else None,
            "customer_phone": customer.phone if customer else None,
            "customer_email": customer.email if customer else None,
            "make": vehicle.make if vehicle else None,
            "model": vehicle.model if vehicle else None,
            "year": vehicle.year if vehicle else None,
            "license_plate": vehicle.license_plate if vehicle else None,
            "mechanic_name": self.mechanic.full_name if self.mechanic else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
