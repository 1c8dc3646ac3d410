# Overview: Flask API routes for appointments, including iCalendar export.

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import require_auth
from ..http_errors import DOMAIN_ERRORS, domain_error_response
from ..services import appointment_service, calendar_service


appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


def _ics_response(body: str, filename: str) -> Response:
    response = Response(body, mimetype="text/calendar")
    response.headers["Content-Type"] = "text/calendar; charset=utf-8"
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response


@appointments_bp.get("")
@require_auth
def list_appointments_route():
    try:
        appointments = appointment_service.list_appointments(g.caller, status=request.args.get("status"))
        return jsonify([a.to_dict() for a in appointments]), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list appointments")
        return jsonify({"error": "Internal server error"}), 500


@appointments_bp.get("/ics")
@require_auth
def appointments_ics_route():
    """All visible appointments from six months back onward."""
    try:
        body = calendar_service.appointments_ics(g.caller)
        return _ics_response(body, "appointments.ics")
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to export appointments calendar")
        return jsonify({"error": "Internal server error"}), 500


@appointments_bp.get("/<appointment_id>")
@require_auth
def get_appointment_route(appointment_id: str):
    try:
        appointment = appointment_service.get_appointment(g.caller, appointment_id)
        return jsonify(appointment.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to get appointment")
        return jsonify({"error": "Internal server error"}), 500


@appointments_bp.get("/<appointment_id>/ics")
@require_auth
def appointment_ics_route(appointment_id: str):
    try:
        body = calendar_service.appointment_ics(g.caller, appointment_id)
        return _ics_response(body, f"appointment-{appointment_id}.ics")
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to export appointment")
        return jsonify({"error": "Internal server error"}), 500


@appointments_bp.post("")
@require_auth
def create_appointment_route():
    """
    Schedule an appointment (admin).

    Body: {customer_id, vehicle_id, appointment_date, duration_minutes?,
           title?, description?, status?, assigned_mechanic?}
    A missing title is derived from the customer and vehicle.
    """
    try:
        appointment = appointment_service.create_appointment(g.caller, request.get_json(silent=True))
        return jsonify(appointment.to_dict()), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create appointment")
        return jsonify({"error": "Internal server error"}), 500


@appointments_bp.put("/<appointment_id>")
@require_auth
def update_appointment_route(appointment_id: str):
    try:
        appointment = appointment_service.update_appointment(
            g.caller, appointment_id, request.get_json(silent=True)
        )
        return jsonify(appointment.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update appointment")
        return jsonify({"error": "Internal server error"}), 500


@appointments_bp.patch("/<appointment_id>/status")
@require_auth
def set_status_route(appointment_id: str):
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        appointment = appointment_service.set_status(g.caller, appointment_id, data.get("status"))
        return jsonify(appointment.to_dict()), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update appointment status")
        return jsonify({"error": "Internal server error"}), 500


@appointments_bp.delete("/<appointment_id>")
@require_auth
def delete_appointment_route(appointment_id: str):
    try:
        appointment_service.delete_appointment(g.caller, appointment_id)
        return jsonify({"message": "Appointment deleted successfully"}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete appointment")
        return jsonify({"error": "Internal server error"}), 500
