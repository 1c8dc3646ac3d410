"""
Inventory tests.

Verifies:
- Item CRUD with unique SKU and non-negative quantities
- Direct stock overwrite
- Low-stock listing (stock_quantity <= min_stock_level)
"""

from autoshop.services.inventory_service import list_low_stock


class TestInventoryItems:

    def test_create(self, client, admin_headers):
        resp = client.post("/api/inventory", json={
            "name": "Oil Filter", "sku": "OF-100", "stock_quantity": 12, "price": "8.5",
        }, headers=admin_headers)
        assert resp.status_code == 201
        data = resp.json
        assert data["price"] == "8.50"
        assert data["min_stock_level"] == 5
        assert data["is_low_stock"] is False

    def test_duplicate_sku(self, client, admin_headers, inventory_item):
        resp = client.post("/api/inventory", json={"name": "Copy", "sku": "BP-001"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "SKU already exists"

    def test_negative_values_rejected(self, client, admin_headers):
        resp = client.post("/api/inventory", json={
            "name": "Bad", "sku": "BAD-1", "stock_quantity": -1, "price": "-2",
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert {e["field"] for e in resp.json["errors"]} == {"stock_quantity", "price"}

    def test_update(self, client, admin_headers, inventory_item):
        resp = client.put(f"/api/inventory/{inventory_item.id}", json={"price": "42.00", "min_stock_level": 2},
                          headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["price"] == "42.00"
        assert resp.json["min_stock_level"] == 2

    def test_search(self, client, admin_headers, inventory_item):
        assert len(client.get("/api/inventory?q=bp-0", headers=admin_headers).json) == 1
        assert client.get("/api/inventory?q=nothing", headers=admin_headers).json == []

    def test_delete_keeps_part_lines(self, client, admin_headers, work_order, inventory_item):
        client.post(f"/api/work-orders/{work_order.id}/parts",
                    json={"inventory_item_id": inventory_item.id, "quantity_used": 1}, headers=admin_headers)

        resp = client.delete(f"/api/inventory/{inventory_item.id}", headers=admin_headers)
        assert resp.status_code == 200

        parts = client.get(f"/api/work-orders/{work_order.id}/parts", headers=admin_headers).json
        assert len(parts) == 1
        assert parts[0]["inventory_item_id"] is None

    def test_mechanic_read_only(self, client, mechanic_headers, inventory_item):
        assert client.get("/api/inventory", headers=mechanic_headers).status_code == 200
        resp = client.put(f"/api/inventory/{inventory_item.id}", json={"price": "1"}, headers=mechanic_headers)
        assert resp.status_code == 403


class TestStock:

    def test_set_stock(self, client, admin_headers, inventory_item):
        resp = client.patch(f"/api/inventory/{inventory_item.id}/stock", json={"stock_quantity": 25},
                            headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["stock_quantity"] == 25

    def test_set_stock_validation(self, client, admin_headers, inventory_item):
        url = f"/api/inventory/{inventory_item.id}/stock"
        assert client.patch(url, json={"stock_quantity": -3}, headers=admin_headers).status_code == 400
        assert client.patch(url, json={}, headers=admin_headers).status_code == 400
        assert client.patch(url, json=[1], headers=admin_headers).status_code == 400
        assert client.patch(url, json={"stock_quantity": 2 ** 31}, headers=admin_headers).status_code == 400

    def test_set_stock_missing_item(self, client, admin_headers, db_session):
        resp = client.patch("/api/inventory/missing/stock", json={"stock_quantity": 1}, headers=admin_headers)
        assert resp.status_code == 404

    def test_low_stock(self, client, admin_headers, admin_caller, inventory_item):
        assert list_low_stock(admin_caller) == []

        client.patch(f"/api/inventory/{inventory_item.id}/stock", json={"stock_quantity": 5}, headers=admin_headers)

        resp = client.get("/api/inventory/low-stock", headers=admin_headers)
        assert resp.status_code == 200
        assert [i["sku"] for i in resp.json] == ["BP-001"]
        assert resp.json[0]["is_low_stock"] is True
