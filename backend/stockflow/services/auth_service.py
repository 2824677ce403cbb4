# Overview: Service-layer operations for employees and password authentication.

"""
Employee accounts and authentication.

Every ledger write is attributed to an employee. Employees log in with a
username and password; passwords are hashed with bcrypt and never stored
in plaintext.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Deactivating an employee revokes every open session
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Employee, Store
from ..permissions import ROLE_SALES
from ..validation import (
    DuplicateError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_employee,
    validate_payload,
)
from stockflow.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


MIN_PASSWORD_LENGTH = 8

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={
        "first_name",
        "last_name",
        "position",
        "phone",
        "ci",
        "username",
        "store_id",
    },
    required_on_create={"first_name", "last_name", "position", "username"},
)


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet requirements."""
    pass


def validate_password_strength(password) -> None:
    if not isinstance(password, str) or not password:
        raise PasswordValidationError("password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """Validate then hash with bcrypt. Returned as str for storage."""
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe check via bcrypt.checkpw. Malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _check_store(store_id: int | None) -> None:
    if store_id is not None and not db.session.query(Store).filter_by(id=store_id).first():
        raise NotFoundError(f"Store {store_id} not found")


def _check_username_free(username: str, exclude_id: int | None = None) -> None:
    q = db.session.query(Employee).filter(Employee.username == username)
    if exclude_id is not None:
        q = q.filter(Employee.id != exclude_id)
    if q.first():
        raise DuplicateError(f"Username '{username}' is already taken", details={"username": username})


def get_employee(employee_id: int) -> Employee:
    employee = db.session.query(Employee).filter_by(id=employee_id).first()
    if not employee:
        raise NotFoundError(f"Employee {employee_id} not found")
    return employee


def list_employees(include_inactive: bool = True) -> list[Employee]:
    q = db.session.query(Employee)
    if not include_inactive:
        q = q.filter(Employee.is_active == True)
    return q.order_by(Employee.first_name.asc(), Employee.last_name.asc(), Employee.id.asc()).all()


def create_employee(payload: dict) -> Employee:
    """
    Create an employee from an API-style payload.

    payload carries the writable employee fields plus "password".
    SALES employees must have a home store.

    Raises:
        ValidationError / PasswordValidationError: bad fields or weak password
        DuplicateError: username taken
        NotFoundError: store_id does not exist
    """
    payload = dict(payload or {})
    password = payload.pop("password", None)
    patch = validate_payload(model=Employee, payload=payload, policy=EMPLOYEE_POLICY, partial=False)
    enforce_rules_employee(patch)
    if patch["position"] == ROLE_SALES and patch.get("store_id") is None:
        raise ValidationError("SALES employees must be assigned a home store")
    password_hash = hash_password(password)

    def _op():
        _check_username_free(patch["username"])
        _check_store(patch.get("store_id"))
        employee = Employee(password_hash=password_hash, is_active=True, **patch)
        db.session.add(employee)
        db.session.commit()
        return employee

    return run_with_retry(_op)


def update_employee(employee_id: int, payload: dict) -> Employee:
    """Partial update. A "password" key re-hashes the password."""
    payload = dict(payload or {})
    password = payload.pop("password", None)
    patch = validate_payload(model=Employee, payload=payload, policy=EMPLOYEE_POLICY, partial=True)
    enforce_rules_employee(patch)
    password_hash = hash_password(password) if password is not None else None

    def _op():
        employee = lock_for_update(db.session.query(Employee).filter_by(id=employee_id)).first()
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        if "username" in patch:
            _check_username_free(patch["username"], exclude_id=employee_id)
        if "store_id" in patch:
            _check_store(patch["store_id"])

        position = patch.get("position", employee.position)
        store_id = patch["store_id"] if "store_id" in patch else employee.store_id
        if position == ROLE_SALES and store_id is None:
            raise ValidationError("SALES employees must be assigned a home store")

        for key, value in patch.items():
            setattr(employee, key, value)
        if password_hash is not None:
            employee.password_hash = password_hash

        db.session.commit()
        return employee

    return run_with_retry(_op)


def set_employee_active(employee_id: int, active: bool) -> Employee:
    """Deactivate (revoking every session) or reactivate an employee."""
    from .session_service import revoke_all_employee_sessions

    employee = get_employee(employee_id)
    employee.is_active = bool(active)
    db.session.commit()
    if not active:
        revoke_all_employee_sessions(employee_id, reason="Employee deactivated")
    return employee


def deactivate_employee(employee_id: int) -> Employee:
    return set_employee_active(employee_id, False)


def authenticate(username: str, password: str) -> Employee | None:
    """
    Check credentials of an active employee.

    Returns the Employee and stamps last_login_at on success, None otherwise.
    """
    if not username or not password:
        return None

    employee = db.session.query(Employee).filter(
        Employee.username == username.strip(),
        Employee.is_active.is_(True),
    ).first()

    if not employee:
        return None

    if verify_password(password, employee.password_hash):
        employee.last_login_at = utcnow()
        db.session.commit()
        return employee

    return None
