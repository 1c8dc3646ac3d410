# Overview: Flask API routes for the dashboard; read-only summaries scoped to the caller.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import require_auth, require_capability
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    try:
        return jsonify(dashboard_service.get_stats(g.caller)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch dashboard stats")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/recent-orders")
@require_auth
def recent_orders_route():
    try:
        orders = dashboard_service.recent_orders(g.caller)
        return jsonify([o.to_dict() for o in orders]), 200
    except Exception:
        current_app.logger.exception("Failed to fetch recent orders")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/today-appointments")
@require_auth
def today_appointments_route():
    try:
        appointments = dashboard_service.today_appointments(g.caller)
        return jsonify([a.to_dict() for a in appointments]), 200
    except Exception:
        current_app.logger.exception("Failed to fetch today's appointments")
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/low-stock")
@require_auth
@require_capability("VIEW_INVENTORY")
def low_stock_route():
    try:
        items = dashboard_service.low_stock()
        return jsonify([i.to_dict() for i in items]), 200
    except Exception:
        current_app.logger.exception("Failed to fetch low stock items")
        return jsonify({"error": "Internal server error"}), 500
