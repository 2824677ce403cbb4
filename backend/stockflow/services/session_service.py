# Overview: Service-layer operations for bearer sessions.

"""
Session Token Management Service

Tokens are cryptographically secure, hashed in database, and time-limited.
A session captures the employee's home store at login; the resulting
SessionContext is what routes pass into services to scope and attribute
every operation.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout (SESSION_ABSOLUTE_HOURS) and idle timeout
  (SESSION_IDLE_MINUTES)
- Revocable on logout or employee deactivation
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Employee, SessionToken
from ..permissions import get_role_permissions
from ..validation import NotFoundError, ValidationError
from stockflow.time_utils import utcnow


@dataclass
class SessionContext:
    """
    Identity of the caller for one request.

    employee_id, role and store_id are explicit inputs to services; nothing
    downstream reads ambient state to find out who is acting.
    """
    employee: Employee
    session: SessionToken
    store_id: int | None

    @property
    def employee_id(self) -> int:
        return self.employee.id

    @property
    def role(self) -> str:
        return self.employee.position

    @property
    def permissions(self) -> frozenset[str]:
        return get_role_permissions(self.employee.position)


def _absolute_timeout() -> timedelta:
    return timedelta(hours=int(current_app.config.get("SESSION_ABSOLUTE_HOURS", 24)))


def _idle_timeout() -> timedelta:
    return timedelta(minutes=int(current_app.config.get("SESSION_IDLE_MINUTES", 120)))


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    employee_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a new session for an active employee.

    Returns (session_record, plaintext_token).
    """
    employee = db.session.query(Employee).filter_by(id=employee_id).first()
    if not employee:
        raise NotFoundError(f"Employee {employee_id} not found")
    if not employee.is_active:
        raise ValidationError("Employee is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        employee_id=employee_id,
        store_id=employee.store_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Return the SessionContext for a live token, or None.

    None when the token is unknown, revoked, past its absolute expiry, idle
    too long, or belongs to a deactivated employee. Idle and deactivated
    sessions are revoked on the spot. Updates last_used_at otherwise.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        db.session.commit()
        return None

    employee = session.employee
    if not employee or not employee.is_active:
        _revoke(session, "Employee deactivated")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(employee=employee, session=session, store_id=session.store_id)


def revoke_session(token: str, reason: str = "Logout") -> bool:
    """Returns True if a live session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_employee_sessions(employee_id: int, reason: str = "Revoke all sessions") -> int:
    sessions = db.session.query(SessionToken).filter_by(
        employee_id=employee_id,
        is_revoked=False,
    ).all()

    for session in sessions:
        _revoke(session, reason)

    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions(older_than_days: int = 30) -> int:
    """Delete expired or revoked sessions created more than older_than_days ago."""
    cutoff = utcnow() - timedelta(days=older_than_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked == True,
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
