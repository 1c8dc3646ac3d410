"""
Authorization policy tests.

Verifies:
- Role -> capability mapping
- Mechanic containment: other mechanics' records are indistinguishable from missing ones
- Capability failures are 403, visibility failures are 404
"""

import pytest

from autoshop.permissions import ROLE_CAPABILITIES, get_all_capability_codes, validate_capability_code
from autoshop.services.policy_service import Caller, can_view_work_order, has_capability
from autoshop.services.work_order_service import get_work_order, list_work_orders
from autoshop.validation import NotFoundError


class TestCapabilities:

    def test_admin_has_everything(self):
        assert ROLE_CAPABILITIES["admin"] == frozenset(get_all_capability_codes())

    def test_mechanic_is_read_mostly(self):
        mechanic = Caller(id="m1", role="mechanic")
        assert has_capability(mechanic, "VIEW_CUSTOMERS")
        assert has_capability(mechanic, "WORK_ASSIGNED_ORDERS")
        assert not has_capability(mechanic, "MANAGE_WORK_ORDERS")
        assert not has_capability(mechanic, "VIEW_BILLING")
        assert not has_capability(mechanic, "MANAGE_INVENTORY")

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            Caller(id="x", role="owner")

    def test_capability_codes_valid(self):
        assert validate_capability_code("VIEW_BILLING")
        assert not validate_capability_code("DELETE_EVERYTHING")


class TestWorkOrderVisibility:

    def test_assigned_mechanic_sees_order(self, mechanic_caller, work_order):
        assert can_view_work_order(mechanic_caller, work_order)
        assert get_work_order(mechanic_caller, work_order.id).id == work_order.id

    def test_other_mechanic_gets_not_found(self, other_caller, work_order):
        assert not can_view_work_order(other_caller, work_order)
        with pytest.raises(NotFoundError):
            get_work_order(other_caller, work_order.id)

    def test_unassigned_order_hidden_from_mechanics(self, db_session, mechanic_caller, work_order):
        work_order.assigned_mechanic = None
        db_session.commit()
        assert not can_view_work_order(mechanic_caller, work_order)

    def test_list_is_scoped(self, admin_caller, mechanic_caller, other_caller, work_order):
        assert [o.id for o in list_work_orders(mechanic_caller)] == [work_order.id]
        assert list_work_orders(other_caller) == []
        assert [o.id for o in list_work_orders(admin_caller)] == [work_order.id]


class TestHttpContainment:
    """Another mechanic's order answers 404 on every path, same as a missing id."""

    @pytest.mark.parametrize(
        "method,suffix",
        [
            ("GET", ""),
            ("PUT", ""),
            ("GET", "/parts"),
            ("POST", "/parts"),
        ],
    )
    def test_other_mechanic_not_found(self, client, other_headers, work_order, method, suffix):
        path = f"/api/work-orders/{work_order.id}{suffix}"
        resp = getattr(client, method.lower())(path, json={}, headers=other_headers)
        assert resp.status_code == 404, f"{method} {path} returned {resp.status_code}"

    def test_missing_and_hidden_look_the_same(self, client, other_headers, work_order):
        hidden = client.get(f"/api/work-orders/{work_order.id}", headers=other_headers)
        missing = client.get("/api/work-orders/00000000-0000-0000-0000-000000000000", headers=other_headers)
        assert hidden.status_code == missing.status_code == 404

    def test_mechanic_list_excludes_others(self, client, mechanic_headers, other_headers, work_order):
        assert [o["id"] for o in client.get("/api/work-orders", headers=mechanic_headers).json] == [work_order.id]
        assert client.get("/api/work-orders", headers=other_headers).json == []

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/customers"),
            ("POST", "/api/vehicles"),
            ("POST", "/api/inventory"),
            ("POST", "/api/work-orders"),
            ("POST", "/api/appointments"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
        ],
    )
    def test_mechanic_forbidden(self, client, mechanic_headers, method, path):
        resp = getattr(client, method.lower())(path, json={}, headers=mechanic_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
