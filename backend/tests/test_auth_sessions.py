"""
Employee, password and session tests.

Verifies:
- Passwords are bcrypt-hashed and must be at least 8 characters
- SALES employees need a home store
- Sessions expire on idle and absolute timeouts and die with deactivation
- Position permissions and home-store confinement
"""

from datetime import timedelta

import pytest

from stockflow.extensions import db
from stockflow.models import SessionToken
from stockflow.permissions import ROLE_ADMIN, ROLE_SALES
from stockflow.services import auth_service, permission_service, session_service
from stockflow.services.auth_service import PasswordValidationError
from stockflow.services.permission_service import PermissionDeniedError
from stockflow.time_utils import utcnow
from stockflow.validation import DuplicateError, NotFoundError, ValidationError

PASSWORD = "Password123!"


def _payload(**overrides):
    payload = {
        "first_name": "Luz",
        "last_name": "Mamani",
        "position": ROLE_SALES,
        "username": "luz",
        "password": PASSWORD,
    }
    payload.update(overrides)
    return payload


class TestEmployees:

    def test_password_is_hashed(self, store_a):
        employee = auth_service.create_employee(_payload(store_id=store_a.id))

        assert employee.password_hash != PASSWORD
        assert employee.password_hash.startswith("$2")
        assert auth_service.verify_password(PASSWORD, employee.password_hash)
        assert not auth_service.verify_password("wrong-password", employee.password_hash)

    def test_short_password_rejected(self, store_a):
        with pytest.raises(PasswordValidationError):
            auth_service.create_employee(_payload(store_id=store_a.id, password="short"))

    def test_missing_password_rejected(self, store_a):
        payload = _payload(store_id=store_a.id)
        del payload["password"]
        with pytest.raises(PasswordValidationError):
            auth_service.create_employee(payload)

    def test_sales_needs_home_store(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.create_employee(_payload())

    def test_admin_without_store_allowed(self, db_session):
        employee = auth_service.create_employee(_payload(position="admin"))
        assert employee.position == ROLE_ADMIN
        assert employee.store_id is None

    def test_duplicate_username(self, seller, store_a):
        with pytest.raises(DuplicateError):
            auth_service.create_employee(_payload(username="seller", store_id=store_a.id))

    def test_unknown_store(self, db_session):
        with pytest.raises(NotFoundError):
            auth_service.create_employee(_payload(store_id=9999))

    def test_unknown_position(self, store_a):
        with pytest.raises(ValidationError):
            auth_service.create_employee(_payload(position="MANAGER", store_id=store_a.id))

    def test_update_cannot_strip_sales_home_store(self, seller):
        with pytest.raises(ValidationError):
            auth_service.update_employee(seller.id, {"store_id": None})
        db.session.rollback()

    def test_update_password(self, seller):
        auth_service.update_employee(seller.id, {"password": "NewPassword456"})

        assert auth_service.authenticate("seller", PASSWORD) is None
        assert auth_service.authenticate("seller", "NewPassword456").id == seller.id


class TestAuthenticate:

    def test_valid_credentials(self, seller):
        employee = auth_service.authenticate(" seller ", PASSWORD)

        assert employee.id == seller.id
        assert employee.last_login_at is not None

    @pytest.mark.parametrize("username,password", [
        ("seller", "wrong-password"),
        ("nobody", PASSWORD),
        ("", PASSWORD),
        ("seller", ""),
    ])
    def test_invalid_credentials(self, seller, username, password):
        assert auth_service.authenticate(username, password) is None

    def test_inactive_employee_cannot_log_in(self, seller):
        auth_service.deactivate_employee(seller.id)
        assert auth_service.authenticate("seller", PASSWORD) is None


class TestSessions:

    def test_session_carries_home_store(self, seller, store_a):
        session, token = session_service.create_session(seller.id, user_agent="pytest")

        assert len(token) == 64
        assert session.token_hash == session_service.hash_token(token)
        assert session.token_hash != token

        ctx = session_service.validate_session(token)
        assert ctx.employee_id == seller.id
        assert ctx.store_id == store_a.id
        assert ctx.role == ROLE_SALES
        assert "CREATE_SALE" in ctx.permissions

    def test_unknown_token(self, db_session):
        assert session_service.validate_session("not-a-token") is None
        assert session_service.validate_session("") is None

    def test_revoked_session(self, seller):
        _, token = session_service.create_session(seller.id)

        assert session_service.revoke_session(token) is True
        assert session_service.validate_session(token) is None
        assert session_service.revoke_session(token) is False

    def test_absolute_expiry(self, seller, db_session):
        session, token = session_service.create_session(seller.id)
        session.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        assert session_service.validate_session(token) is None

    def test_idle_timeout_revokes(self, seller, db_session):
        session, token = session_service.create_session(seller.id)
        session.last_used_at = utcnow() - timedelta(minutes=121)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.expire_all()
        assert db_session.get(SessionToken, session.id).revoked_reason == "Idle timeout"

    def test_deactivation_revokes_sessions(self, seller):
        _, first = session_service.create_session(seller.id)
        _, second = session_service.create_session(seller.id)

        auth_service.deactivate_employee(seller.id)

        assert session_service.validate_session(first) is None
        assert session_service.validate_session(second) is None
        with pytest.raises(ValidationError):
            session_service.create_session(seller.id)

    def test_cleanup_removes_old_dead_sessions(self, seller, db_session):
        old, old_token = session_service.create_session(seller.id)
        _, live_token = session_service.create_session(seller.id)
        session_service.revoke_session(old_token)
        old.created_at = utcnow() - timedelta(days=40)
        db_session.commit()

        assert session_service.cleanup_expired_sessions(older_than_days=30) == 1
        assert session_service.validate_session(live_token) is not None


class TestPermissions:

    def test_admin_holds_everything(self, admin):
        assert permission_service.has_permission(admin, "MANAGE_EMPLOYEES")
        assert permission_service.has_permission(admin, "TRANSFER_ANY_STORE")
        assert permission_service.is_elevated(admin)

    def test_sales_position(self, seller):
        granted = permission_service.get_employee_permissions(seller)

        assert {"VIEW_INVENTORY", "CREATE_SALE", "CREATE_TRANSFER"} <= granted
        assert "MANAGE_UNITS" not in granted
        assert "CORRECT_SALES" not in granted
        assert not permission_service.is_elevated(seller)

    def test_require_permission_denies(self, seller):
        with pytest.raises(PermissionDeniedError):
            permission_service.require_permission(seller, "MANAGE_PRODUCTS")

    def test_unknown_code_is_an_error(self, admin):
        with pytest.raises(ValueError):
            permission_service.has_permission(admin, "LAUNCH_ROCKETS")

    def test_inactive_employee_holds_nothing(self, admin):
        auth_service.deactivate_employee(admin.id)
        assert permission_service.get_employee_permissions(admin) == frozenset()

    def test_store_scope(self, admin, seller, store_a, store_b):
        assert permission_service.resolve_store_scope(admin, None) is None
        assert permission_service.resolve_store_scope(admin, store_b.id) == store_b.id
        assert permission_service.resolve_store_scope(seller, None) == store_a.id
        assert permission_service.resolve_store_scope(seller, store_a.id) == store_a.id
        with pytest.raises(PermissionDeniedError):
            permission_service.resolve_store_scope(seller, store_b.id)

    def test_store_access(self, admin, seller, store_a, store_b):
        permission_service.require_store_access(admin, store_b.id)
        permission_service.require_store_access(seller, store_a.id)
        with pytest.raises(PermissionDeniedError):
            permission_service.require_store_access(seller, store_b.id)
