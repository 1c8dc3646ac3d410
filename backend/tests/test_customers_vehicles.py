"""
Customer and vehicle CRUD tests.

Verifies:
- Admin CRUD, mechanic read-only
- Field validation (email, year, required fields)
- Vehicles resolvable by UUID or legacy integer id
- Deleting a customer removes dependent vehicles and work orders
"""

from autoshop.extensions import db
from autoshop.models import Vehicle, WorkOrder
from autoshop.services.customer_service import find_vehicle


# =============================================================================
# CUSTOMERS
# =============================================================================


class TestCustomers:

    def test_create_and_get(self, client, admin_headers):
        resp = client.post("/api/customers", json={
            "name": "  Bob Builder ", "email": "bob@example.com", "phone": "555-0199",
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["name"] == "Bob Builder"

        resp = client.get(f"/api/customers/{resp.json['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["email"] == "bob@example.com"

    def test_name_required(self, client, admin_headers):
        resp = client.post("/api/customers", json={"email": "x@example.com"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["errors"] == [{"field": "name", "message": "name is required"}]

    def test_invalid_email(self, client, admin_headers):
        resp = client.post("/api/customers", json={"name": "Bob", "email": "nope"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "email"

    def test_search(self, client, admin_headers, customer):
        client.post("/api/customers", json={"name": "Zed Zero"}, headers=admin_headers)

        resp = client.get("/api/customers?q=jane", headers=admin_headers)
        assert [c["name"] for c in resp.json] == ["Jane Doe"]

        resp = client.get("/api/customers", headers=admin_headers)
        assert [c["name"] for c in resp.json] == ["Jane Doe", "Zed Zero"]

    def test_update(self, client, admin_headers, customer):
        resp = client.put(f"/api/customers/{customer.id}", json={"phone": "555-0111"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["phone"] == "555-0111"
        assert resp.json["name"] == "Jane Doe"

    def test_empty_update_rejected(self, client, admin_headers, customer):
        resp = client.put(f"/api/customers/{customer.id}", json={}, headers=admin_headers)
        assert resp.status_code == 400

    def test_missing_customer(self, client, admin_headers, db_session):
        resp = client.get("/api/customers/nope", headers=admin_headers)
        assert resp.status_code == 404

    def test_mechanic_reads_but_cannot_write(self, client, mechanic_headers, customer):
        assert client.get("/api/customers", headers=mechanic_headers).status_code == 200
        resp = client.put(f"/api/customers/{customer.id}", json={"name": "X"}, headers=mechanic_headers)
        assert resp.status_code == 403
        assert client.delete(f"/api/customers/{customer.id}", headers=mechanic_headers).status_code == 403

    def test_delete_cascades(self, client, admin_headers, customer, vehicle, work_order):
        customer_id, vehicle_id, order_id = customer.id, vehicle.id, work_order.id

        resp = client.delete(f"/api/customers/{customer_id}", headers=admin_headers)
        assert resp.status_code == 200

        assert client.get(f"/api/vehicles/{vehicle_id}", headers=admin_headers).status_code == 404
        assert client.get(f"/api/work-orders/{order_id}", headers=admin_headers).status_code == 404

        db.session.expire_all()
        assert db.session.query(Vehicle).count() == 0
        assert db.session.query(WorkOrder).count() == 0


# =============================================================================
# VEHICLES
# =============================================================================


class TestVehicles:

    def test_create(self, client, admin_headers, customer):
        resp = client.post("/api/vehicles", json={
            "customer_id": customer.id, "make": "Honda", "model": "Civic", "year": 2020, "legacy_id": 7,
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["legacy_id"] == 7
        assert resp.json["customer_name"] == "Jane Doe"

    def test_unknown_customer(self, client, admin_headers, db_session):
        resp = client.post("/api/vehicles", json={
            "customer_id": "missing", "make": "Honda", "model": "Civic",
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "customer_id"

    def test_year_range(self, client, admin_headers, customer):
        resp = client.post("/api/vehicles", json={
            "customer_id": customer.id, "make": "Ford", "model": "T", "year": 1850,
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "year"

    def test_duplicate_legacy_id(self, client, admin_headers, customer, vehicle):
        resp = client.post("/api/vehicles", json={
            "customer_id": customer.id, "make": "Honda", "model": "Civic", "legacy_id": 42,
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert "legacy_id" in resp.json["error"]

    def test_get_by_legacy_id(self, client, admin_headers, vehicle):
        resp = client.get("/api/vehicles/42", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["id"] == vehicle.id

    def test_get_by_uuid_any_case(self, vehicle):
        assert find_vehicle(vehicle.id.upper()).id == vehicle.id
        assert find_vehicle("0") is None
        assert find_vehicle("not-an-id") is None

    def test_filter_by_customer(self, client, admin_headers, db_session, customer, vehicle):
        resp = client.get(f"/api/vehicles?customer_id={customer.id}", headers=admin_headers)
        assert [v["id"] for v in resp.json] == [vehicle.id]

        resp = client.get("/api/vehicles?customer_id=someone-else", headers=admin_headers)
        assert resp.json == []

    def test_update_and_delete_by_legacy_id(self, client, admin_headers, vehicle):
        resp = client.put("/api/vehicles/42", json={"license_plate": "ZZ-999"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["license_plate"] == "ZZ-999"

        resp = client.delete("/api/vehicles/42", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/vehicles/{vehicle.id}", headers=admin_headers).status_code == 404

    def test_mechanic_cannot_create(self, client, mechanic_headers, customer):
        resp = client.post("/api/vehicles", json={
            "customer_id": customer.id, "make": "Honda", "model": "Civic",
        }, headers=mechanic_headers)
        assert resp.status_code == 403
