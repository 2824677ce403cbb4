from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum money amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem. The operation was not attempted."""


class NotFoundError(LookupError):
    """404-level: a referenced record (store, product, sale...) does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (unit sold, relocated, or changed since selection)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class DuplicateError(ConflictError):
    """409-level uniqueness violation (e.g., scan code already in the ledger)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15") and decimals (e.g., "12.5")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list, bool)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    # Writable fields are integers and text only; anything else is a policy bug
    raise ValidationError(f"{col.key} cannot be set through the API")


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def require_int_id(name: str, value) -> int:
    """Reference ids arrive as JSON numbers; "1" or True are rejected."""
    if value is None:
        raise ValidationError(f"{name} is required")
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    return value


def check_amount_cents(name: str, value: int | None, *, allow_zero: bool = True) -> None:
    if value is None:
        return
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(f"{name} must be {'>=' if allow_zero else '>'} 0")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{name} cannot exceed {MAX_AMOUNT_CENTS} ({MAX_AMOUNT_CENTS / 100:,.2f})")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    check_amount_cents("cost_price_cents", patch.get("cost_price_cents"))
    check_amount_cents("profit_bob_cents", patch.get("profit_bob_cents"))
    for key in ("ram_gb", "rom_gb"):
        if patch.get(key) is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


def enforce_rules_employee(patch: dict) -> None:
    from stockflow.permissions import ROLES

    position = patch.get("position")
    if position is not None:
        patch["position"] = position.upper()
        if patch["position"] not in ROLES:
            raise ValidationError(f"position must be one of: {', '.join(ROLES)}")
    if patch.get("ci") is not None and patch["ci"] <= 0:
        raise ValidationError("ci must be a positive number")
