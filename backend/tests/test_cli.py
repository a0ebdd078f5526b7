"""
CLI bootstrap tests.

Runs the flask command groups through Flask's CLI runner against the test
database.
"""

from quark.models import User
from quark.services import permission_service


def _invoke(app, *args):
    return app.test_cli_runner().invoke(args=list(args))


class TestSystemInit:
    def test_creates_roles_permissions_and_users(self, app, db_session):
        result = _invoke(app, "system", "init")

        assert result.exit_code == 0, result.output
        usernames = {u.username for u in db_session.query(User).all()}
        assert usernames == {"admin", "manager", "staff"}

        admin = db_session.query(User).filter_by(username="admin").one()
        assert permission_service.get_user_role_names(admin.id) == ["admin"]
        assert permission_service.user_has_permission(admin.id, "LOCK_PAYROLL")

        staff = db_session.query(User).filter_by(username="staff").one()
        assert not permission_service.user_has_permission(staff.id, "CREATE_ORDER")

    def test_is_idempotent(self, app, db_session):
        _invoke(app, "system", "init")
        result = _invoke(app, "system", "init")

        assert result.exit_code == 0, result.output
        assert "already exists" in result.output
        assert db_session.query(User).count() == 3


class TestUsersCommands:
    def test_create_and_list(self, app, db_session, setup_roles):
        result = _invoke(
            app, "users", "create",
            "--username", "somchai",
            "--display-name", "Somchai",
            "--password", "Password123!",
            "--role", "staff",
        )
        assert result.exit_code == 0, result.output
        assert "PASS Created user: somchai" in result.output

        result = _invoke(app, "users", "list")
        assert "somchai" in result.output
        assert "staff" in result.output

    def test_weak_password_is_reported(self, app, db_session, setup_roles):
        result = _invoke(
            app, "users", "create",
            "--username", "weak",
            "--password", "short",
            "--role", "staff",
        )
        assert "FAIL Password validation failed" in result.output
        assert db_session.query(User).filter_by(username="weak").first() is None

    def test_unknown_role_is_rejected(self, app, db_session):
        result = _invoke(
            app, "users", "create",
            "--username", "x",
            "--password", "Password123!",
            "--role", "owner",
        )
        assert result.exit_code != 0
