# Overview: Flask API routes for staff accounts; admin user management and the mechanic picker.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_capability
from ..http_errors import DOMAIN_ERRORS, domain_error_response
from ..models import ROLE_MECHANIC
from ..services import auth_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_capability("MANAGE_USERS")
def list_users_route():
    role = request.args.get("role")
    users = auth_service.list_users(role=role)
    return jsonify([u.to_dict() for u in users]), 200


@users_bp.post("")
@require_auth
@require_capability("MANAGE_USERS")
def create_user_route():
    """
    Create a staff account.

    Body: {email, password, full_name, role?, phone?}; role defaults to mechanic.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.create_user(
            email=data.get("email") or "",
            password=data.get("password") or "",
            full_name=data.get("full_name") or "",
            role=data.get("role") or ROLE_MECHANIC,
            phone=data.get("phone"),
        )
        return jsonify(user.to_dict()), 201

    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/mechanics")
@require_auth
@require_capability("MANAGE_WORK_ORDERS")
def list_mechanics_route():
    """Active mechanics, for the assignment dropdowns."""
    mechanics = auth_service.list_active_mechanics()
    return jsonify([
        {"id": m.id, "full_name": m.full_name, "email": m.email} for m in mechanics
    ]), 200
