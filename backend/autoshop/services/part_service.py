# Overview: Service-layer operations for work order parts; stock movement and total upkeep in one transaction.

"""
Work Order Parts

Each mutation (add / update / delete) runs as ONE transaction:
    1. lock the WorkOrder row (SELECT ... FOR UPDATE)
    2. check visibility (NotFound), then the completed-order lock (Forbidden)
    3. validate the payload
    4. lock the InventoryItem row when stock moves
    5. write the part, move stock, recompute total_amount
    6. commit; any exception rolls the whole thing back

Stock rules:
- adding an inventory part decrements stock_quantity by quantity_used (no floor)
- changing quantity_used moves the difference in or out of stock
- deleting a part does NOT restore stock
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import InventoryItem, WorkOrder, WorkOrderPart
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    check_integer_range,
    issue,
    require_fields_present,
    validate_payload,
)
from .concurrency import lock_for_update
from .policy_service import (
    Caller,
    ForbiddenError,
    can_edit_work_order_parts,
    require_visible_work_order,
)
from .work_order_service import get_work_order, recompute_total


ADD_PART_POLICY = ModelValidationPolicy(
    writable_fields={"inventory_item_id", "custom_name", "custom_sku", "quantity_used", "unit_price", "cost_price"},
    required_on_create={"quantity_used"},
    non_negative={"unit_price", "cost_price"},
)

UPDATE_PART_POLICY = ModelValidationPolicy(
    writable_fields={"quantity_used", "unit_price", "cost_price"},
    non_negative={"unit_price", "cost_price"},
    drop_unknown=True,
)


def _lock_editable_order(caller: Caller, work_order_id: str) -> WorkOrder:
    order = lock_for_update(
        db.session.query(WorkOrder).filter(WorkOrder.id == work_order_id)
    ).first()
    require_visible_work_order(caller, order, work_order_id)

    if not can_edit_work_order_parts(caller, order):
        raise ForbiddenError("Not allowed to modify parts of this work order")
    if order.is_completed:
        current_app.logger.warning(
            "Parts change on completed work order %s refused for user %s", order.id, caller.id
        )
        raise ForbiddenError("Cannot modify parts of a completed work order")
    return order


def _lock_inventory_item(item_id: str) -> InventoryItem:
    item = lock_for_update(
        db.session.query(InventoryItem).filter(InventoryItem.id == item_id)
    ).first()
    if item is None:
        raise NotFoundError("Inventory item not found")
    return item


def _get_order_part(order: WorkOrder, part_id: str) -> WorkOrderPart:
    part = db.session.get(WorkOrderPart, part_id)
    if part is None or part.work_order_id != order.id:
        raise NotFoundError("Part not found")
    return part


def _move_stock(item: InventoryItem, delta: int) -> None:
    """Apply a signed change to stock_quantity; negative stock is allowed."""
    new_quantity = item.stock_quantity + delta
    try:
        check_integer_range("quantity_used", new_quantity)
    except ValidationError as e:
        raise ValidationError("Validation failed", [issue("quantity_used", str(e))])
    item.stock_quantity = new_quantity


def _check_quantity(quantity) -> None:
    if quantity is not None and quantity <= 0:
        raise ValidationError("Validation failed", [issue("quantity_used", "quantity_used must be > 0")])


def _resolve_part_kind(is_custom, patch: dict) -> bool:
    """
    Exactly one of (inventory item reference, custom name) must be present.
    is_custom is inferred from the payload when omitted.
    """
    if is_custom is not None and not isinstance(is_custom, bool):
        raise ValidationError("Validation failed", [issue("is_custom", "is_custom must be a boolean")])

    has_item = bool(patch.get("inventory_item_id"))
    has_custom = bool(patch.get("custom_name"))

    if has_item and has_custom:
        raise ValidationError("Provide either inventory_item_id or custom_name, not both")

    if is_custom is None:
        if not has_item and not has_custom:
            raise ValidationError("Either inventory_item_id or custom_name is required")
        return has_custom

    if is_custom and not has_custom:
        raise ValidationError("Validation failed", [issue("custom_name", "custom_name is required for custom parts")])
    if not is_custom and not has_item:
        raise ValidationError(
            "Validation failed", [issue("inventory_item_id", "inventory_item_id is required for inventory parts")]
        )
    return is_custom


def list_parts(caller: Caller, work_order_id: str) -> list[WorkOrderPart]:
    order = get_work_order(caller, work_order_id)
    return list(order.parts)


def add_part(caller: Caller, work_order_id: str, payload: dict) -> WorkOrderPart:
    try:
        order = _lock_editable_order(caller, work_order_id)

        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")
        payload = dict(payload)
        is_custom = payload.pop("is_custom", None)

        patch = validate_payload(model=WorkOrderPart, payload=payload, policy=ADD_PART_POLICY, partial=False)
        _check_quantity(patch["quantity_used"])
        custom = _resolve_part_kind(is_custom, patch)

        item = None
        if custom:
            if patch.get("unit_price") is None:
                raise ValidationError("Validation failed", [issue("unit_price", "unit_price is required for custom parts")])
        else:
            item = _lock_inventory_item(patch["inventory_item_id"])

        part = WorkOrderPart(
            inventory_item_id=item.id if item else None,
            custom_name=patch.get("custom_name") if custom else None,
            custom_sku=patch.get("custom_sku") if custom else None,
            quantity_used=patch["quantity_used"],
            unit_price=patch["unit_price"] if patch.get("unit_price") is not None else item.price,
            cost_price=patch.get("cost_price"),
        )
        order.parts.append(part)

        if item is not None:
            _move_stock(item, -part.quantity_used)
            current_app.logger.info(
                "Stock for %s decreased by %d to %d (work order %s)",
                item.sku, part.quantity_used, item.stock_quantity, order.id,
            )

        recompute_total(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return part


def update_part(caller: Caller, work_order_id: str, part_id: str, payload: dict) -> WorkOrderPart:
    try:
        order = _lock_editable_order(caller, work_order_id)
        part = _get_order_part(order, part_id)

        patch = validate_payload(model=WorkOrderPart, payload=payload, policy=UPDATE_PART_POLICY, partial=True)
        require_fields_present(patch, "No valid fields to update")
        _check_quantity(patch.get("quantity_used"))

        new_quantity = patch.get("quantity_used", part.quantity_used)
        delta = new_quantity - part.quantity_used
        if delta and part.inventory_item_id:
            item = _lock_inventory_item(part.inventory_item_id)
            _move_stock(item, -delta)
            current_app.logger.info(
                "Stock for %s adjusted by %d to %d (work order %s, part %s)",
                item.sku, -delta, item.stock_quantity, order.id, part.id,
            )

        for key, value in patch.items():
            setattr(part, key, value)

        recompute_total(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return part


def delete_part(caller: Caller, work_order_id: str, part_id: str) -> None:
    """Removes the line and recomputes the total. Stock is left as-is."""
    try:
        order = _lock_editable_order(caller, work_order_id)
        part = _get_order_part(order, part_id)

        order.parts.remove(part)
        recompute_total(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Removed part %s from work order %s", part_id, work_order_id)
