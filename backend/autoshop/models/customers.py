from __future__ import annotations

from ..extensions import db
from ..ids import new_id
from autoshop.time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """Customer master data. A customer owns zero or more vehicles."""
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    vehicles = db.relationship(
        "Vehicle",
        back_populates="customer",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Vehicle(db.Model):
    """
    Customer vehicle.

    IDENTIFIERS:
    - id: canonical UUID, used by every foreign key
    - legacy_id: optional integer kept from the previous system; lookups
      accept either form and resolve to id before use
    """
    __tablename__ = "vehicles"
    __table_args__ = (
        db.Index("ix_vehicles_license_plate", "license_plate"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    legacy_id = db.Column(db.Integer, nullable=True, unique=True)

    customer_id = db.Column(
        db.String(36), db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    make = db.Column(db.String(64), nullable=False)
    model = db.Column(db.String(64), nullable=False)
    year = db.Column(db.Integer, nullable=True)
    license_plate = db.Column(db.String(32), nullable=True)
    vin = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer", back_populates="vehicles")

    def __repr__(self) -> str:
        return f"<Vehicle id={self.id} plate={self.license_plate!r}>"

    @property
    def display_name(self) -> str:
        parts = [str(p) for p in (self.year, self.make, self.model) if p]
        return " ".join(parts)

    def to_dict(self) -> dict:
        customer = self.customer
        return {
            "id": self.id,
            "legacy_id": self.legacy_id,
            "customer_id": self.customer_id,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "license_plate": self.license_plate,
            "vin": self.vin,
            "customer_name": customer.name if customer else None,
            "customer_phone": customer.phone if customer else None,
            "customer_email": customer.email if customer else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
