# Overview: Service-layer operations for exchange rates and derived product prices.

"""
Pricing Service

Products are bought in a foreign currency and sold in BOB:

    final_price_cents = round(cost_price_cents * rate) + profit_bob_cents

Rounding is ROUND_HALF_UP to the cent. The rate is always the newest
ExchangeRate row; prices are never stored on the product.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..extensions import db
from ..models import ExchangeRate, Product
from ..validation import ValidationError
from .concurrency import run_with_retry


MAX_RATE = Decimal("100000")


def _parse_rate(rate) -> Decimal:
    if isinstance(rate, bool):
        raise ValidationError("rate must be a number")
    try:
        value = Decimal(str(rate).strip())
    except InvalidOperation:
        raise ValidationError("rate must be a number")
    if not value.is_finite() or value <= 0:
        raise ValidationError("rate must be > 0")
    if value >= MAX_RATE:
        raise ValidationError(f"rate must be < {MAX_RATE}")
    return value.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def record_rate(rate, employee_id: int | None = None) -> ExchangeRate:
    """Append a new exchange rate. Older rates stay for audit."""
    value = _parse_rate(rate)

    def _op():
        row = ExchangeRate(rate=value, employee_id=employee_id)
        db.session.add(row)
        db.session.commit()
        return row

    return run_with_retry(_op)


def current_rate_row() -> ExchangeRate | None:
    return (
        db.session.query(ExchangeRate)
        .order_by(ExchangeRate.created_at.desc(), ExchangeRate.id.desc())
        .first()
    )


def current_rate() -> Decimal | None:
    row = current_rate_row()
    if row is None:
        return None
    return Decimal(str(row.rate))


def list_rates(limit: int = 50, offset: int = 0) -> list[ExchangeRate]:
    return (
        db.session.query(ExchangeRate)
        .order_by(ExchangeRate.created_at.desc(), ExchangeRate.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def final_price_cents(product: Product, rate: Decimal | None) -> int | None:
    """Derived selling price in BOB cents, or None when no rate is known."""
    if rate is None:
        return None
    converted = (Decimal(product.cost_price_cents or 0) * Decimal(rate)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(converted) + int(product.profit_bob_cents or 0)


