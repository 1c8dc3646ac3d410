# Overview: Flask API routes for inventory; item CRUD, stock overwrite and the low-stock list.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..http_errors import DOMAIN_ERRORS, domain_error_response
from ..services import inventory_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def list_items_route():
    try:
        items = inventory_service.list_items(g.caller, search=request.args.get("q"))
        return jsonify([i.to_dict() for i in items]), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/low-stock")
@require_auth
def low_stock_route():
    try:
        items = inventory_service.list_low_stock(g.caller)
        return jsonify([i.to_dict() for i in items]), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list low-stock items")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<item_id>")
@require_auth
def get_item_route(item_id: str):
    try:
        item = inventory_service.get_item(g.caller, item_id)
        return jsonify(item.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("")
@require_auth
def create_item_route():
    try:
        item = inventory_service.create_item(g.caller, request.get_json(silent=True))
        return jsonify(item.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.put("/<item_id>")
@require_auth
def update_item_route(item_id: str):
    try:
        item = inventory_service.update_item(g.caller, item_id, request.get_json(silent=True))
        return jsonify(item.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.patch("/<item_id>/stock")
@require_auth
def set_stock_route(item_id: str):
    """Body: {stock_quantity: int >= 0}"""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        item = inventory_service.set_stock(g.caller, item_id, data.get("stock_quantity"))
        return jsonify(item.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update stock quantity")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/<item_id>")
@require_auth
def delete_item_route(item_id: str):
    try:
        inventory_service.delete_item(g.caller, item_id)
        return jsonify({"message": "Inventory item deleted successfully"}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return jsonify({"error": "Internal server error"}), 500
