# Overview: Request and capability decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .services import session_service
from .services.policy_service import Caller, has_capability


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'caller')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.caller: Caller(id, role) passed explicitly into every service call
    - g.session_context: The full SessionContext object

    Returns 401 if the header is missing, or the token is invalid, expired,
    revoked, or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.caller = Caller.from_user(context.user)
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability_code: str):
    """Require a role capability. Must be stacked under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not has_capability(g.caller, capability_code):
                current_app.logger.warning(
                    "Capability %s denied for user %s on %s %s",
                    capability_code, g.caller.id, request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_capability": capability_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
