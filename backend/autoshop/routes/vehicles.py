# Overview: Flask API routes for vehicles; `vehicle_id` may be a UUID or a legacy integer id.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..http_errors import DOMAIN_ERRORS, domain_error_response
from ..services import customer_service


vehicles_bp = Blueprint("vehicles", __name__, url_prefix="/api/vehicles")


@vehicles_bp.get("")
@require_auth
def list_vehicles_route():
    try:
        vehicles = customer_service.list_vehicles(g.caller, customer_id=request.args.get("customer_id"))
        return jsonify([v.to_dict() for v in vehicles]), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list vehicles")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.get("/<vehicle_id>")
@require_auth
def get_vehicle_route(vehicle_id: str):
    try:
        vehicle = customer_service.get_vehicle(g.caller, vehicle_id)
        return jsonify(vehicle.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get vehicle")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.post("")
@require_auth
def create_vehicle_route():
    try:
        vehicle = customer_service.create_vehicle(g.caller, request.get_json(silent=True))
        return jsonify(vehicle.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create vehicle")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.put("/<vehicle_id>")
@require_auth
def update_vehicle_route(vehicle_id: str):
    try:
        vehicle = customer_service.update_vehicle(g.caller, vehicle_id, request.get_json(silent=True))
        return jsonify(vehicle.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update vehicle")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.delete("/<vehicle_id>")
@require_auth
def delete_vehicle_route(vehicle_id: str):
    try:
        customer_service.delete_vehicle(g.caller, vehicle_id)
        return jsonify({"message": "Vehicle deleted successfully"}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete vehicle")
        return jsonify({"error": "Internal server error"}), 500
