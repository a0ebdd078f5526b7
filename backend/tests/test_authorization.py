"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Staff role is denied writes (403) and the denial is recorded
- Manager role cannot lock payroll or create periods
- Admin role can perform privileged operations
"""

import pytest

from quark.decorators import require_permission
from quark.models import SecurityEvent
from quark.permissions import DEFAULT_ROLE_PERMISSIONS, get_all_permission_codes


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/orders/1"),
            ("GET", "/api/orders/1/status-log"),
            ("PUT", "/api/orders/1/production-status"),
            ("GET", "/api/stock"),
            ("POST", "/api/stock"),
            ("PUT", "/api/stock/1/take-out"),
            ("GET", "/api/invoices"),
            ("GET", "/api/invoices/next-number"),
            ("POST", "/api/invoices"),
            ("POST", "/api/payroll/period"),
            ("GET", "/api/payroll/periods"),
            ("PUT", "/api/payroll/lock/1"),
            ("PUT", "/api/payroll/unlock/1"),
            ("POST", "/api/payroll/save"),
            ("DELETE", "/api/payroll/items/1"),
            ("POST", "/api/payroll/preview"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["kind"] == "unauthenticated"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/orders", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# STAFF DENIED WRITES (403)
# =============================================================================


class TestStaffDenied:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/orders"),
            ("PUT", "/api/orders/1/production-status"),
            ("POST", "/api/stock"),
            ("GET", "/api/invoices"),
            ("POST", "/api/invoices"),
            ("GET", "/api/payroll/periods"),
            ("POST", "/api/payroll/save"),
            ("PUT", "/api/payroll/lock/1"),
        ],
    )
    def test_denied(self, client, staff_headers, method, path):
        resp = getattr(client, method.lower())(path, json={}, headers=staff_headers)
        assert resp.status_code == 403
        assert resp.get_json()["kind"] == "permission_denied"

    def test_denial_is_logged(self, client, staff_headers, staff_user, db_session):
        client.put("/api/payroll/lock/1", headers=staff_headers)

        event = db_session.query(SecurityEvent).filter_by(
            user_id=staff_user.id,
            event_type="PERMISSION_DENIED",
        ).first()
        assert event is not None
        assert event.action == "LOCK_PAYROLL"
        assert event.resource == "/api/payroll/lock/1"
        assert event.success is False

    def test_can_view_orders(self, client, staff_headers):
        assert client.get("/api/orders", headers=staff_headers).status_code == 200


# =============================================================================
# MANAGER LIMITS
# =============================================================================


class TestManagerLimits:
    def test_cannot_lock(self, client, manager_headers):
        assert client.put("/api/payroll/lock/1", headers=manager_headers).status_code == 403

    def test_cannot_unlock(self, client, manager_headers):
        assert client.put("/api/payroll/unlock/1", headers=manager_headers).status_code == 403

    def test_can_view_payroll(self, client, manager_headers):
        assert client.get("/api/payroll/periods", headers=manager_headers).status_code == 200


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:
    def test_login_returns_permissions(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "Password123!"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["token"]
        assert "LOCK_PAYROLL" in data["permissions"]
        assert data["roles"] == ["admin"]

    def test_bad_password(self, client, admin_user, db_session):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})
        assert resp.status_code == 401
        assert db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_missing_credentials(self, client, db_session):
        resp = client.post("/api/auth/login", json={})
        assert resp.status_code == 400

    def test_non_object_body_rejected(self, client, db_session):
        resp = client.post("/api/auth/login", json=["admin", "Password123!"])
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "validation_error"

    def test_me_and_logout(self, client, manager_headers):
        resp = client.get("/api/auth/me", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["username"] == "manager"

        assert client.post("/api/auth/logout", headers=manager_headers).status_code == 200
        assert client.get("/api/auth/me", headers=manager_headers).status_code == 401


# =============================================================================
# PUBLIC ENDPOINTS: NO AUTH REQUIRED
# =============================================================================


class TestPublicEndpoints:
    def test_health(self, client, setup_roles):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"


# =============================================================================
# PERMISSION CATALOGUE
# =============================================================================


class TestPermissionCatalogue:
    def test_role_grants_use_known_codes(self):
        known = set(get_all_permission_codes())
        for role, codes in DEFAULT_ROLE_PERMISSIONS.items():
            assert set(codes) <= known, role

    def test_only_admin_can_lock_payroll(self):
        holders = {role for role, codes in DEFAULT_ROLE_PERMISSIONS.items() if "LOCK_PAYROLL" in codes}
        assert holders == {"admin"}

    def test_unknown_code_rejected_at_decoration(self):
        with pytest.raises(ValueError):
            require_permission("LAUNCH_ROCKETS")
