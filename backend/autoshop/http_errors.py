# Overview: Maps domain exceptions raised by services to JSON error responses.

from flask import jsonify

from .extensions import db
from .services.auth_service import PasswordValidationError
from .services.policy_service import ForbiddenError
from .validation import ConflictError, NotFoundError, ValidationError

# Routes catch these before their generic `except Exception` fallback.
DOMAIN_ERRORS = (ValidationError, ConflictError, NotFoundError, ForbiddenError, PasswordValidationError)


def domain_error_response(exc: Exception):
    db.session.rollback()

    if isinstance(exc, ValidationError):
        return jsonify(exc.to_dict()), 400
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ForbiddenError):
        return jsonify({"error": str(exc) or "Permission denied"}), 403
    # ConflictError, PasswordValidationError
    return jsonify({"error": str(exc)}), 400
