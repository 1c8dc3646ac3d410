# Overview: Service-layer operations for billing; invoice totals, invoice documents and HTML rendering.

"""
Billing / Invoice Computation

TOTALS (all Decimal, each published figure rounded half-up to cents):
    parts_total = SUM(quantity_used * unit_price)
    labor_total = labor_hours * labor_rate
    subtotal    = parts_total + labor_total
    tax         = subtotal * TAX_RATE
    total       = subtotal + tax

compute_invoice_totals() is pure: no database access, no mutation of its
inputs, identical output for identical input. WorkOrder.total_amount is the
same subtotal (see work_order_service.recompute_total).

The JSON preview, the inline HTML preview and the downloadable HTML
document are all rendered from one Invoice value, so they cannot disagree.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable

from flask import current_app, render_template

from ..extensions import db
from ..models import WorkOrder, WorkOrderStatus
from ..money_utils import format_currency, money_str, quantize_money, to_decimal
from ..validation import ValidationError
from .policy_service import Caller, require_capability, require_visible_work_order
from autoshop.time_utils import to_utc_z, utcnow

ZERO = Decimal("0")


@dataclass(frozen=True)
class InvoiceTotals:
    parts_total: Decimal
    labor_total: Decimal
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal

    @property
    def tax_percent(self) -> str:
        """Tax rate as a display percentage, e.g. Decimal('0.22') -> '22'."""
        pct = (self.tax_rate * 100).normalize()
        return f"{pct:f}"

    def to_dict(self) -> dict:
        return {
            "parts_total": money_str(self.parts_total),
            "labor_total": money_str(self.labor_total),
            "subtotal": money_str(self.subtotal),
            "tax_rate": str(self.tax_rate),
            "tax": money_str(self.tax),
            "total": money_str(self.total),
        }


@dataclass(frozen=True)
class InvoiceLine:
    kind: str  # "labor" | "part"
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    sku: str | None = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "description": self.description,
            "sku": self.sku,
            "quantity": str(self.quantity),
            "unit_price": money_str(self.unit_price),
            "amount": money_str(self.amount),
        }


@dataclass(frozen=True)
class Invoice:
    number: str
    work_order_id: str
    title: str
    issued_at: datetime
    due_at: datetime
    company: dict
    customer: dict
    vehicle: dict
    lines: tuple[InvoiceLine, ...]
    totals: InvoiceTotals
    currency_symbol: str = "€"
    due_days: int = 30
    notes: str | None = None

    @property
    def filename(self) -> str:
        return f"invoice-{self.number[len('INV-'):]}.html"

    def money(self, value: Decimal) -> str:
        return format_currency(value, self.currency_symbol)

    def to_dict(self) -> dict:
        return {
            "invoice_number": self.number,
            "work_order_id": self.work_order_id,
            "title": self.title,
            "issued_at": to_utc_z(self.issued_at),
            "due_at": to_utc_z(self.due_at),
            "company": dict(self.company),
            "customer": dict(self.customer),
            "vehicle": dict(self.vehicle),
            "lines": [line.to_dict() for line in self.lines],
            "totals": self.totals.to_dict(),
            "currency_symbol": self.currency_symbol,
            "notes": self.notes,
        }


def _part_value(part: Any, key: str):
    if isinstance(part, Mapping):
        return part.get(key)
    return getattr(part, key)


def line_amount(quantity, unit_price) -> Decimal:
    return quantize_money(to_decimal(quantity) * to_decimal(unit_price))


def labor_total(labor_hours, labor_rate) -> Decimal:
    return quantize_money(to_decimal(labor_hours or 0) * to_decimal(labor_rate or 0))


def parts_total(parts: Iterable[Any]) -> Decimal:
    total = ZERO
    for part in parts:
        total += to_decimal(_part_value(part, "quantity_used")) * to_decimal(_part_value(part, "unit_price"))
    return quantize_money(total)


def compute_invoice_totals(labor_hours, labor_rate, parts: Iterable[Any], tax_rate) -> InvoiceTotals:
    """
    Pure invoice arithmetic.

    `parts` may be WorkOrderPart rows or mappings carrying quantity_used
    and unit_price.
    """
    rate = to_decimal(tax_rate)
    p_total = parts_total(parts)
    l_total = labor_total(labor_hours, labor_rate)
    subtotal = quantize_money(p_total + l_total)
    tax = quantize_money(subtotal * rate)
    return InvoiceTotals(
        parts_total=p_total,
        labor_total=l_total,
        subtotal=subtotal,
        tax_rate=rate,
        tax=tax,
        total=quantize_money(subtotal + tax),
    )


def invoice_number(work_order_id: str) -> str:
    return f"INV-{str(work_order_id)[:8].upper()}"


def company_from_config(config: Mapping) -> dict:
    return {
        "name": config.get("COMPANY_NAME"),
        "tagline": config.get("COMPANY_TAGLINE"),
        "address": config.get("COMPANY_ADDRESS"),
        "phone": config.get("COMPANY_PHONE"),
    }


def build_invoice(
    order: WorkOrder,
    *,
    tax_rate,
    issued_at: datetime | None = None,
    due_days: int = 30,
    company: dict | None = None,
    currency_symbol: str = "€",
) -> Invoice:
    """
    Snapshot a completed work order into an Invoice.

    Raises ValidationError if the order is not completed.
    """
    if order.status != WorkOrderStatus.COMPLETED.value:
        raise ValidationError("Invoices can only be generated for completed work orders")

    issued_at = issued_at or utcnow()
    parts = list(order.parts)
    totals = compute_invoice_totals(order.labor_hours, order.labor_rate, parts, tax_rate)

    lines: list[InvoiceLine] = []
    hours = to_decimal(order.labor_hours or 0)
    if hours > 0:
        lines.append(InvoiceLine(
            kind="labor",
            description=f"{order.title} - Labor",
            quantity=hours,
            unit_price=quantize_money(order.labor_rate or 0),
            amount=totals.labor_total,
        ))
    for part in parts:
        lines.append(InvoiceLine(
            kind="part",
            description=part.name or "Part",
            sku=part.sku,
            quantity=Decimal(part.quantity_used),
            unit_price=quantize_money(part.unit_price),
            amount=line_amount(part.quantity_used, part.unit_price),
        ))

    customer = order.customer
    vehicle = order.vehicle

    return Invoice(
        number=invoice_number(order.id),
        work_order_id=order.id,
        title=order.title,
        issued_at=issued_at,
        due_at=issued_at + timedelta(days=due_days),
        company=company or {},
        customer={
            "name": customer.name if customer else None,
            "email": customer.email if customer else None,
            "phone": customer.phone if customer else None,
            "address": customer.address if customer else None,
        },
        vehicle={
            "year": vehicle.year if vehicle else None,
            "make": vehicle.make if vehicle else None,
            "model": vehicle.model if vehicle else None,
            "license_plate": vehicle.license_plate if vehicle else None,
            "vin": vehicle.vin if vehicle else None,
        },
        lines=tuple(lines),
        totals=totals,
        currency_symbol=currency_symbol,
        due_days=due_days,
        notes=order.description,
    )


def generate_invoice(caller: Caller, work_order_id: str) -> Invoice:
    """Load a visible work order and build its invoice with the configured rate and letterhead."""
    require_capability(caller, "VIEW_BILLING")
    order = require_visible_work_order(caller, db.session.get(WorkOrder, work_order_id), work_order_id)

    config = current_app.config
    return build_invoice(
        order,
        tax_rate=config["TAX_RATE"],
        due_days=int(config.get("INVOICE_DUE_DAYS", 30)),
        company=company_from_config(config),
        currency_symbol=config.get("CURRENCY_SYMBOL", "€"),
    )


def render_invoice_html(invoice: Invoice) -> str:
    return render_template("invoice.html", invoice=invoice)
