"""
CLI command tests (flask system / users / inventory groups).
"""

from autoshop.models import InventoryItem, User

from conftest import PASSWORD


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert "PASS Created user: admin@autoshop.local with role 'admin'" in result.output
    assert "PASS Created user: mechanic@autoshop.local with role 'mechanic'" in result.output

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert "already exists" in result.output
    assert db_session.query(User).count() == 2


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create",
        "--email", "Tina@Example.com",
        "--full-name", "Tina Tech",
        "--password", PASSWORD,
        "--role", "mechanic",
    ])
    assert result.exit_code == 0, result.output
    assert "PASS Created user: tina@example.com" in result.output

    result = runner.invoke(args=["users", "list", "--role", "mechanic"])
    assert result.exit_code == 0
    assert "tina@example.com" in result.output
    assert "Tina Tech" in result.output


def test_users_create_rejects_weak_password(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create",
        "--email", "weak@example.com",
        "--full-name", "Weak",
        "--password", "weak",
        "--role", "mechanic",
    ])
    assert result.exit_code == 1
    assert "Password must be at least 8 characters long" in result.output
    assert db_session.query(User).count() == 0


def test_inventory_low_stock(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["inventory", "low-stock"])
    assert "PASS No low-stock items." in result.output

    db_session.add(InventoryItem(name="Spark Plug", sku="SP-1", stock_quantity=1, min_stock_level=4, price="3.00"))
    db_session.add(InventoryItem(name="Coolant", sku="CL-1", stock_quantity=20, min_stock_level=4, price="9.00"))
    db_session.commit()

    result = runner.invoke(args=["inventory", "low-stock"])
    assert result.exit_code == 0
    assert "SP-1" in result.output
    assert "CL-1" not in result.output
    assert "1 item(s) need restocking" in result.output
