# Overview: Service-layer operations for inventory; item CRUD, direct stock edits and low-stock queries.

"""
Inventory Service

stock_quantity written through this service must be >= 0. Part usage on
work orders (part_service) is the only path that may drive it negative.
SKU uniqueness is enforced by uq_inventory_items_sku and reported as a
ConflictError.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import InventoryItem
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    issue,
    require_fields_present,
    validate_payload,
)
from .concurrency import lock_for_update
from .policy_service import Caller, require_capability


INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "stock_quantity", "min_stock_level", "price"},
    required_on_create={"name", "sku"},
    non_negative={"stock_quantity", "min_stock_level", "price"},
)


def _commit_item() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("SKU already exists")


def _get_item(item_id: str) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError("Inventory item not found")
    return item


def list_items(caller: Caller, search: str | None = None) -> list[InventoryItem]:
    require_capability(caller, "VIEW_INVENTORY")
    query = db.session.query(InventoryItem)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(InventoryItem.name.ilike(like), InventoryItem.sku.ilike(like)))
    return query.order_by(InventoryItem.name.asc()).all()


def low_stock_query():
    return (
        db.session.query(InventoryItem)
        .filter(InventoryItem.stock_quantity <= InventoryItem.min_stock_level)
        .order_by(InventoryItem.stock_quantity.asc(), InventoryItem.name.asc())
    )


def list_low_stock(caller: Caller) -> list[InventoryItem]:
    require_capability(caller, "VIEW_INVENTORY")
    return low_stock_query().all()


def get_item(caller: Caller, item_id: str) -> InventoryItem:
    require_capability(caller, "VIEW_INVENTORY")
    return _get_item(item_id)


def create_item(caller: Caller, payload: dict) -> InventoryItem:
    require_capability(caller, "MANAGE_INVENTORY")
    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_POLICY, partial=False)

    item = InventoryItem(**patch)
    db.session.add(item)
    _commit_item()

    current_app.logger.info("Created inventory item %s (%s)", item.id, item.sku)
    return item


def update_item(caller: Caller, item_id: str, payload: dict) -> InventoryItem:
    require_capability(caller, "MANAGE_INVENTORY")
    item = _get_item(item_id)

    patch = validate_payload(model=InventoryItem, payload=payload, policy=INVENTORY_POLICY, partial=True)
    require_fields_present(patch)

    for key, value in patch.items():
        setattr(item, key, value)
    _commit_item()
    return item


def set_stock(caller: Caller, item_id: str, stock_quantity) -> InventoryItem:
    """Overwrite the on-hand count (stocktake / restock)."""
    require_capability(caller, "MANAGE_INVENTORY")
    if stock_quantity is None:
        raise ValidationError("Validation failed", [issue("stock_quantity", "stock_quantity is required")])

    patch = validate_payload(
        model=InventoryItem,
        payload={"stock_quantity": stock_quantity},
        policy=INVENTORY_POLICY,
        partial=True,
    )

    try:
        item = lock_for_update(
            db.session.query(InventoryItem).filter(InventoryItem.id == item_id)
        ).first()
        if item is None:
            raise NotFoundError("Inventory item not found")

        previous = item.stock_quantity
        item.stock_quantity = patch["stock_quantity"]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Stock for %s set from %d to %d by user %s", item.sku, previous, item.stock_quantity, caller.id
    )
    return item


def delete_item(caller: Caller, item_id: str) -> None:
    """Parts that referenced the item keep their line but lose the link."""
    require_capability(caller, "MANAGE_INVENTORY")
    item = _get_item(item_id)

    db.session.delete(item)
    db.session.commit()
    current_app.logger.info("Deleted inventory item %s", item_id)
