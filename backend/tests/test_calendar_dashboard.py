"""
Calendar export and dashboard tests.
"""

from datetime import datetime, timedelta, timezone

from autoshop.models import Appointment
from autoshop.services.calendar_service import (
    appointment_uid,
    appointments_ics,
    escape_text,
    format_utc,
    vevent,
    wrap_calendar,
)
from autoshop.services.dashboard_service import get_stats, recent_orders, today_appointments
from autoshop.time_utils import day_bounds, months_before, parse_iso_datetime, to_utc_z, utcnow


def _appointment(db_session, customer, vehicle, when, **kwargs):
    appointment = Appointment(
        customer_id=customer.id,
        vehicle_id=vehicle.id,
        appointment_date=when,
        duration_minutes=kwargs.pop("duration_minutes", 90),
        title=kwargs.pop("title", "Oil change, filter; check"),
        status=kwargs.pop("status", "scheduled"),
        **kwargs,
    )
    db_session.add(appointment)
    db_session.commit()
    return appointment


# =============================================================================
# TIME HELPERS
# =============================================================================


class TestTimeHelpers:

    def test_months_before(self):
        assert months_before(datetime(2026, 10, 18), 6) == datetime(2026, 4, 18)
        assert months_before(datetime(2026, 8, 31), 6) == datetime(2026, 2, 28)
        assert months_before(datetime(2026, 3, 15), 6) == datetime(2025, 9, 15)

    def test_parse_iso_datetime_normalizes_to_utc(self):
        assert parse_iso_datetime("2026-11-02T09:00") == datetime(2026, 11, 2, 9, 0)
        assert parse_iso_datetime("2026-11-02T09:00Z") == datetime(2026, 11, 2, 9, 0)
        assert parse_iso_datetime("2026-11-02T11:00+02:00") == datetime(2026, 11, 2, 9, 0)
        assert parse_iso_datetime("  ") is None

    def test_to_utc_z(self):
        assert to_utc_z(datetime(2026, 11, 2, 9, 0, 30, 500)) == "2026-11-02T09:00:30Z"
        aware = datetime(2026, 11, 2, 11, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_utc_z(aware) == "2026-11-02T09:00:00Z"
        assert to_utc_z(None) is None

    def test_day_bounds(self):
        start, end = day_bounds(datetime(2026, 10, 18, 15, 42))
        assert start == datetime(2026, 10, 18)
        assert end == datetime(2026, 10, 19)


# =============================================================================
# ICS FORMATTING
# =============================================================================


class TestIcsFormatting:

    def test_escape_text(self):
        assert escape_text("a,b;c\nd\\e") == "a\\,b\\;c\\nd\\\\e"
        assert escape_text(None) == ""

    def test_format_utc(self):
        assert format_utc(datetime(2026, 11, 2, 9, 0)) == "20261102T090000Z"
        aware = datetime(2026, 11, 2, 11, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_utc(aware) == "20261102T090000Z"

    def test_wrap_calendar_uses_crlf(self):
        body = wrap_calendar([])
        assert body.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n")
        assert body.endswith("END:VCALENDAR\r\n")

    def test_vevent(self, db_session, customer, vehicle):
        appointment = _appointment(db_session, customer, vehicle, datetime(2026, 11, 2, 9, 0),
                                   description="Bring keys")
        event = vevent(appointment, stamp=datetime(2026, 10, 18, 12, 0))
        lines = event.split("\r\n")

        assert lines[0] == "BEGIN:VEVENT"
        assert f"UID:{appointment_uid(appointment)}" in lines
        assert appointment_uid(appointment) == f"apt-{appointment.id}@autoservice.local"
        assert "DTSTAMP:20261018T120000Z" in lines
        assert "DTSTART:20261102T090000Z" in lines
        assert "DTEND:20261102T103000Z" in lines
        assert "SUMMARY:Oil change\\, filter\\; check" in lines
        assert "DESCRIPTION:Jane Doe: Bring keys" in lines
        assert "LOCATION:Vehicle AB-123" in lines
        assert "STATUS:CONFIRMED" in lines
        assert lines[-1] == "END:VEVENT"

    def test_cancelled_status(self, db_session, customer, vehicle):
        appointment = _appointment(db_session, customer, vehicle, datetime(2026, 11, 2, 9, 0), status="cancelled")
        assert "STATUS:CANCELLED" in vevent(appointment).split("\r\n")


# =============================================================================
# ICS EXPORT
# =============================================================================


class TestIcsExport:

    def test_export_window(self, db_session, admin_caller, customer, vehicle):
        old = _appointment(db_session, customer, vehicle, datetime(2026, 1, 5, 9, 0))
        upcoming = _appointment(db_session, customer, vehicle, datetime(2026, 11, 2, 9, 0))

        body = appointments_ics(admin_caller, now=datetime(2026, 10, 18))
        assert f"UID:apt-{upcoming.id}@autoservice.local" in body
        assert f"UID:apt-{old.id}@autoservice.local" not in body
        assert body.count("BEGIN:VEVENT") == 1

    def test_export_route(self, client, admin_headers, db_session, customer, vehicle):
        _appointment(db_session, customer, vehicle, utcnow() + timedelta(days=1))

        resp = client.get("/api/appointments/ics", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["Content-Type"] == "text/calendar; charset=utf-8"
        assert resp.headers["Content-Disposition"] == "attachment; filename=appointments.ics"
        assert resp.get_data(as_text=True).count("BEGIN:VEVENT") == 1

    def test_single_appointment_route(self, client, admin_headers, db_session, customer, vehicle):
        appointment = _appointment(db_session, customer, vehicle, datetime(2026, 11, 2, 9, 0))

        resp = client.get(f"/api/appointments/{appointment.id}/ics", headers=admin_headers)
        assert resp.status_code == 200
        assert f"appointment-{appointment.id}.ics" in resp.headers["Content-Disposition"]
        assert "DTSTART:20261102T090000Z" in resp.get_data(as_text=True)

    def test_mechanic_export_is_scoped(self, client, mechanic_headers, db_session, customer, vehicle,
                                       mechanic_user, other_mechanic):
        soon = utcnow() + timedelta(days=1)
        mine = _appointment(db_session, customer, vehicle, soon, assigned_mechanic=mechanic_user.id)
        theirs = _appointment(db_session, customer, vehicle, soon, assigned_mechanic=other_mechanic.id)

        body = client.get("/api/appointments/ics", headers=mechanic_headers).get_data(as_text=True)
        assert mine.id in body
        assert theirs.id not in body

        resp = client.get(f"/api/appointments/{theirs.id}/ics", headers=mechanic_headers)
        assert resp.status_code == 404


# =============================================================================
# DASHBOARD
# =============================================================================


class TestDashboard:

    def test_admin_stats(self, db_session, admin_caller, customer, vehicle, work_order, inventory_item):
        inventory_item.stock_quantity = 2
        db_session.commit()
        _appointment(db_session, customer, vehicle, datetime(2026, 11, 2, 9, 0))
        _appointment(db_session, customer, vehicle, datetime(2026, 11, 3, 9, 0))

        stats = get_stats(admin_caller, now=datetime(2026, 11, 2, 12, 0))
        assert stats == {
            "total_customers": 1,
            "total_vehicles": 1,
            "pending_orders": 1,
            "in_progress_orders": 0,
            "completed_orders": 0,
            "total_inventory_items": 1,
            "low_stock_items": 1,
            "today_appointments": 1,
            "total_appointments": 2,
        }

    def test_mechanic_stats_are_scoped(self, db_session, other_caller, mechanic_caller, work_order):
        assert get_stats(other_caller)["pending_orders"] == 0
        assert get_stats(mechanic_caller)["pending_orders"] == 1

    def test_recent_and_today(self, db_session, admin_caller, customer, vehicle, work_order):
        today = _appointment(db_session, customer, vehicle, datetime(2026, 11, 2, 15, 0))
        _appointment(db_session, customer, vehicle, datetime(2026, 11, 4, 9, 0))

        assert [o.id for o in recent_orders(admin_caller)] == [work_order.id]
        assert [a.id for a in today_appointments(admin_caller, now=datetime(2026, 11, 2, 8, 0))] == [today.id]

    def test_routes(self, client, admin_headers, mechanic_headers, work_order, inventory_item):
        resp = client.get("/api/dashboard/stats", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["pending_orders"] == 1

        resp = client.get("/api/dashboard/recent-orders", headers=mechanic_headers)
        assert [o["id"] for o in resp.json] == [work_order.id]

        assert client.get("/api/dashboard/today-appointments", headers=admin_headers).status_code == 200
        assert client.get("/api/dashboard/low-stock", headers=mechanic_headers).json == []
