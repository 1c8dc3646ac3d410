"""
Authentication tests.

Verifies:
- Login / logout / me with bearer session tokens
- Unauthenticated requests return 401
- Password strength rules
- Admin-only staff account management
"""

import pytest

from autoshop.models import SessionToken
from autoshop.services.auth_service import PasswordValidationError, validate_password_strength
from autoshop.services.session_service import hash_token

from conftest import PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/users"),
            ("GET", "/api/customers"),
            ("GET", "/api/vehicles"),
            ("GET", "/api/inventory"),
            ("GET", "/api/work-orders"),
            ("POST", "/api/work-orders"),
            ("GET", "/api/appointments"),
            ("GET", "/api/appointments/ics"),
            ("GET", "/api/dashboard/stats"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_capabilities(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"email": "ADMIN@example.com ", "password": PASSWORD})
        assert resp.status_code == 200
        data = resp.json
        assert len(data["token"]) == 64
        assert data["user"]["role"] == "admin"
        assert "MANAGE_USERS" in data["capabilities"]
        assert "password_hash" not in data["user"]

    def test_only_token_hash_stored(self, client, db_session, admin_user):
        token = get_auth_token(client, admin_user.email)
        session = db_session.query(SessionToken).one()
        assert session.token_hash == hash_token(token)
        assert session.token_hash != token

    def test_wrong_password(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"email": admin_user.email, "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "a@b.c"})
        assert resp.status_code == 400

    def test_inactive_user_cannot_login(self, client, db_session, mechanic_user):
        mechanic_user.is_active = False
        db_session.commit()
        assert get_auth_token(client, mechanic_user.email) is None

    def test_me(self, client, mechanic_headers):
        resp = client.get("/api/auth/me", headers=mechanic_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["email"] == "mike@example.com"
        assert "VIEW_BILLING" not in resp.json["capabilities"]

    def test_logout_revokes_token(self, client, admin_headers):
        resp = client.post("/api/auth/logout", headers=admin_headers)
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=admin_headers).status_code == 401
        assert client.post("/api/auth/logout", headers=admin_headers).status_code == 401


class TestPasswordStrength:

    @pytest.mark.parametrize("password", ["Short1!", "alllower123!", "ALLUPPER123!", "NoDigits!!", "NoSpecial123"])
    def test_weak_passwords(self, password):
        with pytest.raises(PasswordValidationError):
            validate_password_strength(password)

    def test_strong_password(self):
        validate_password_strength(PASSWORD)


# =============================================================================
# STAFF ACCOUNTS
# =============================================================================


class TestUserManagement:

    def test_admin_creates_mechanic(self, client, admin_headers):
        resp = client.post("/api/users", json={
            "email": "new@example.com", "password": PASSWORD, "full_name": "New Hire",
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["role"] == "mechanic"
        assert get_auth_token(client, "new@example.com") is not None

    def test_duplicate_email(self, client, admin_headers, mechanic_user):
        resp = client.post("/api/users", json={
            "email": mechanic_user.email, "password": PASSWORD, "full_name": "Dup",
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert "already exists" in resp.json["error"]

    def test_weak_password(self, client, admin_headers):
        resp = client.post("/api/users", json={
            "email": "weak@example.com", "password": "weak", "full_name": "Weak",
        }, headers=admin_headers)
        assert resp.status_code == 400

    def test_invalid_role(self, client, admin_headers):
        resp = client.post("/api/users", json={
            "email": "boss@example.com", "password": PASSWORD, "full_name": "Boss", "role": "owner",
        }, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["errors"][0]["field"] == "role"

    def test_mechanic_denied(self, client, mechanic_headers):
        resp = client.get("/api/users", headers=mechanic_headers)
        assert resp.status_code == 403
        assert resp.json["required_capability"] == "MANAGE_USERS"

    def test_list_and_mechanics(self, client, admin_headers, mechanic_user, other_mechanic):
        resp = client.get("/api/users?role=mechanic", headers=admin_headers)
        assert {u["email"] for u in resp.json} == {"mike@example.com", "olga@example.com"}

        resp = client.get("/api/users/mechanics", headers=admin_headers)
        assert [m["full_name"] for m in resp.json] == ["Mike Mechanic", "Olga Other"]


def test_health(client, db_session):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "ok"
    assert resp.json["checks"]["database"]["status"] == "healthy"


def test_cors_header_for_allowed_origin(client, db_session):
    resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers
