# Overview: Flask API routes for work orders, their parts and invoices; parses input and returns JSON responses.

# backend/autoshop/routes/work_orders.py
"""
Work order API routes

Visibility and mutation rights are decided by the services from g.caller:
admins see and edit everything, mechanics only their assigned orders.
Orders a mechanic cannot see answer 404 on every path.
"""

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import require_auth
from ..http_errors import DOMAIN_ERRORS, domain_error_response
from ..services import billing_service, part_service, work_order_service


work_orders_bp = Blueprint("work_orders", __name__, url_prefix="/api/work-orders")


@work_orders_bp.post("")
@require_auth
def create_work_order_route():
    """
    Create work order (admin).

    Body: {vehicle_id, title, description?, assigned_mechanic?, labor_hours?, labor_rate?}
    vehicle_id may be the vehicle UUID or its legacy integer id.
    """
    try:
        order = work_order_service.create_work_order(g.caller, request.get_json(silent=True))
        return jsonify(order.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create work order")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.get("")
@require_auth
def list_work_orders_route():
    try:
        orders = work_order_service.list_work_orders(g.caller, status=request.args.get("status"))
        return jsonify([o.to_dict() for o in orders]), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list work orders")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.get("/<work_order_id>")
@require_auth
def get_work_order_route(work_order_id: str):
    try:
        order = work_order_service.get_work_order(g.caller, work_order_id)
        return jsonify(order.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get work order")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.put("/<work_order_id>")
@require_auth
def update_work_order_route(work_order_id: str):
    """
    Update work order.

    Admin: any of vehicle_id, title, description, assigned_mechanic, status,
    labor_hours, labor_rate (unknown fields -> 400).
    Mechanic (assigned only): status, description; other keys are ignored.
    """
    try:
        order = work_order_service.update_work_order(g.caller, work_order_id, request.get_json(silent=True))
        return jsonify(order.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update work order")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.delete("/<work_order_id>")
@require_auth
def delete_work_order_route(work_order_id: str):
    try:
        work_order_service.delete_work_order(g.caller, work_order_id)
        return jsonify({"message": "Work order deleted successfully"}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete work order")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# Parts
# =============================================================================

@work_orders_bp.get("/<work_order_id>/parts")
@require_auth
def list_parts_route(work_order_id: str):
    try:
        parts = part_service.list_parts(g.caller, work_order_id)
        return jsonify([p.to_dict() for p in parts]), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list work order parts")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.post("/<work_order_id>/parts")
@require_auth
def add_part_route(work_order_id: str):
    """
    Record part usage.

    Body (inventory): {inventory_item_id, quantity_used, unit_price?, cost_price?}
    Body (custom):    {is_custom: true, custom_name, custom_sku?, quantity_used, unit_price, cost_price?}
    """
    try:
        part = part_service.add_part(g.caller, work_order_id, request.get_json(silent=True))
        return jsonify(part.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add work order part")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.patch("/<work_order_id>/parts/<part_id>")
@require_auth
def update_part_route(work_order_id: str, part_id: str):
    try:
        part = part_service.update_part(g.caller, work_order_id, part_id, request.get_json(silent=True))
        return jsonify(part.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update work order part")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.delete("/<work_order_id>/parts/<part_id>")
@require_auth
def delete_part_route(work_order_id: str, part_id: str):
    try:
        part_service.delete_part(g.caller, work_order_id, part_id)
        return jsonify({"success": True}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete work order part")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# Invoice
# =============================================================================

@work_orders_bp.get("/<work_order_id>/invoice")
@require_auth
def invoice_route(work_order_id: str):
    try:
        invoice = billing_service.generate_invoice(g.caller, work_order_id)
        return jsonify(invoice.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build invoice")
        return jsonify({"error": "Internal server error"}), 500


@work_orders_bp.get("/<work_order_id>/invoice.html")
@require_auth
def invoice_html_route(work_order_id: str):
    """Inline HTML preview; ?download=1 serves it as an attachment."""
    try:
        invoice = billing_service.generate_invoice(g.caller, work_order_id)
        html = billing_service.render_invoice_html(invoice)

        response = Response(html, mimetype="text/html")
        if request.args.get("download") in ("1", "true", "yes"):
            response.headers["Content-Disposition"] = f"attachment; filename={invoice.filename}"
        return response
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to render invoice")
        return jsonify({"error": "Internal server error"}), 500
