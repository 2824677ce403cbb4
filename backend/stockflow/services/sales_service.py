"""
Sales Service - batch sale of scan-coded Units

A sale is recorded in one step: the caller submits every Unit being sold
(by id or scan code) with the device codes read at the counter, and the
service either commits the Sale, all of its lines and the sold flag of every
Unit together, or writes nothing.

TOTALS:
The computed total is the sum of each Unit's derived price at the current
exchange rate. An operator-entered total overrides it without re-validation;
both are stored on the header.

CORRECTIONS:
remove_sale_line returns one Unit to available stock; update_sale edits the
header. Both are elevated-only at the route layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flask import current_app

from ..extensions import db
from ..models import Employee, Sale, SaleLine, Store, Unit
from stockflow.time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError, check_amount_cents, require_int_id
from . import pricing_service
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .settings_service import get_settings
from .unit_ledger_service import UnitRef, lock_batch_units


logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("CASH", "CARD", "QR", "BANK_TRANSFER")
MAX_DEVICE_CODE_LENGTH = 64


@dataclass(frozen=True)
class SaleItem:
    unit: UnitRef
    device_codes: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw) -> "SaleItem":
        if isinstance(raw, dict) and "unit" in raw:
            unit_raw = raw["unit"]
        else:
            unit_raw = raw
        codes = raw.get("device_codes") if isinstance(raw, dict) else None
        if codes is None:
            codes = []
        if not isinstance(codes, list):
            raise ValidationError("device_codes must be a list of strings")
        return cls(unit=UnitRef.from_payload(unit_raw), device_codes=codes)


def normalize_payment_method(value) -> str:
    if value is None or not str(value).strip():
        raise ValidationError("payment_method is required")
    method = str(value).strip().upper()
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    return method


def normalize_device_codes(codes, *, required: bool, position: int) -> list[str]:
    """Trim, reject blanks and drop repeats (first occurrence kept)."""
    cleaned: list[str] = []
    for raw in codes:
        if not isinstance(raw, str):
            raise ValidationError(f"Item {position}: device codes must be strings")
        code = raw.strip()
        if not code:
            raise ValidationError(f"Item {position}: device codes cannot be blank")
        if len(code) > MAX_DEVICE_CODE_LENGTH:
            raise ValidationError(f"Item {position}: device code exceeds max length {MAX_DEVICE_CODE_LENGTH}")
        if code not in cleaned:
            cleaned.append(code)
    if required and not cleaned:
        raise ValidationError(f"Item {position}: at least one device code is required")
    return cleaned


def _clean_optional_text(name: str, value, max_length: int) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{name} exceeds max length {max_length}")
    return text


def record_sale(
    store_id: int,
    items: list[SaleItem],
    employee_id: int,
    payment_method: str,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    total_cents: int | None = None,
) -> Sale:
    """
    Sell a batch of Units at store_id.

    Raises:
        ValidationError: empty batch, bad payment method, bad device codes,
            negative total, or no exchange rate when the total must be computed
        NotFoundError: store or employee does not exist
        ConflictError: a Unit is missing, sold, at another store or stale
    """
    store_id = require_int_id("store_id", store_id)
    if not items:
        raise ValidationError("At least one unit is required")
    method = normalize_payment_method(payment_method)
    if total_cents is not None:
        check_amount_cents("total_cents", total_cents)
    customer_name = _clean_optional_text("customer_name", customer_name, 255)
    customer_phone = _clean_optional_text("customer_phone", customer_phone, 64)

    require_codes = bool(current_app.config.get("SALE_REQUIRES_DEVICE_CODE", False))
    codes_per_item = [
        normalize_device_codes(item.device_codes, required=require_codes, position=i + 1)
        for i, item in enumerate(items)
    ]

    def _op():
        begin_write_transaction()
        try:
            if not db.session.query(Store).filter_by(id=store_id).first():
                raise NotFoundError(f"Store {store_id} not found")
            if not db.session.query(Employee).filter_by(id=employee_id).first():
                raise NotFoundError(f"Employee {employee_id} not found")

            units = lock_batch_units([item.unit for item in items], store_id)

            rate = pricing_service.current_rate()
            if rate is None and total_cents is None:
                raise ValidationError("No exchange rate recorded; set one or enter the total manually")

            prices = [pricing_service.final_price_cents(unit.product, rate) for unit in units]
            computed = sum(prices) if rate is not None else None

            now = utcnow()
            sale = Sale(
                store_id=store_id,
                employee_id=employee_id,
                occurred_at=now,
                total_cents=total_cents if total_cents is not None else computed,
                computed_total_cents=computed,
                exchange_rate=rate,
                item_count=len(units),
                payment_method=method,
                customer_name=customer_name,
                customer_phone=customer_phone,
            )
            db.session.add(sale)
            db.session.flush()  # Get ID

            for unit, price, codes in zip(units, prices, codes_per_item):
                db.session.add(SaleLine(
                    sale_id=sale.id,
                    unit_id=unit.id,
                    product_id=unit.product_id,
                    scan_code=unit.scan_code,
                    unit_price_cents=price,
                    device_codes=codes,
                ))
                unit.sold = True
                unit.sold_at = now

            db.session.commit()
        except (ValidationError, NotFoundError, ConflictError):
            db.session.rollback()
            raise

        if total_cents is not None and computed is not None and total_cents != computed:
            logger.info("Sale %s total overridden: computed=%s charged=%s", sale.id, computed, total_cents)
        logger.info("Sale %s committed: %d unit(s) at store %s", sale.id, sale.item_count, store_id)
        return sale

    return run_with_retry(_op)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id).first()
    if not sale:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale


def list_sales(store_id: int | None = None, limit: int = 50, offset: int = 0) -> list[Sale]:
    q = db.session.query(Sale)
    if store_id is not None:
        q = q.filter(Sale.store_id == store_id)
    return (
        q.order_by(Sale.occurred_at.desc(), Sale.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def remove_sale_line(sale_id: int, line_id: int, employee_id: int) -> Sale:
    """
    Correction: take one Unit off a recorded sale and return it to stock.

    The line is deleted, the Unit becomes unsold again at the store where it
    was sold, and item_count is decremented. The recorded total is left as
    charged; adjust it with update_sale if needed.
    """
    def _op():
        begin_write_transaction()
        try:
            sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
            if not sale:
                raise NotFoundError(f"Sale {sale_id} not found")
            line = db.session.query(SaleLine).filter_by(id=line_id, sale_id=sale_id).first()
            if not line:
                raise NotFoundError(f"Line {line_id} not found on sale {sale_id}")

            unit_id = line.unit_id
            unit = lock_for_update(db.session.query(Unit).filter_by(id=unit_id)).first()
            if unit is not None:
                unit.sold = False
                unit.sold_at = None

            db.session.delete(line)
            sale.item_count = max(0, (sale.item_count or 0) - 1)
            db.session.commit()
        except NotFoundError:
            db.session.rollback()
            raise

        logger.info(
            "Sale %s line %s removed by employee %s; unit %s returned to stock",
            sale_id, line_id, employee_id, unit_id,
        )
        return sale

    return run_with_retry(_op)


def update_sale(
    sale_id: int,
    *,
    payment_method: str | None = None,
    total_cents: int | None = None,
    customer_name: str | None = None,
    customer_phone: str | None = None,
) -> Sale:
    """Correction: edit the sale header. Lines and Units are not touched."""
    method = normalize_payment_method(payment_method) if payment_method is not None else None
    if total_cents is not None:
        check_amount_cents("total_cents", total_cents)
    customer_name = _clean_optional_text("customer_name", customer_name, 255)
    customer_phone = _clean_optional_text("customer_phone", customer_phone, 64)

    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise NotFoundError(f"Sale {sale_id} not found")

        if method is not None:
            sale.payment_method = method
        if total_cents is not None:
            sale.total_cents = total_cents
        if customer_name is not None:
            sale.customer_name = customer_name
        if customer_phone is not None:
            sale.customer_phone = customer_phone
        sale.updated_at = utcnow()

        db.session.commit()
        return sale

    return run_with_retry(_op)


def get_sale_document(sale_id: int) -> dict:
    """
    Denormalized receipt view of a sale.

    Everything an external renderer needs to print the receipt or warranty:
    header, store, seller, lines with product specs and device codes, and the
    store's receipt settings.
    """
    sale = get_sale(sale_id)
    store = sale.store
    employee = sale.employee

    lines = []
    for line in sale.lines:
        product = line.product
        lines.append({
            "line_id": line.id,
            "unit_id": line.unit_id,
            "scan_code": line.scan_code,
            "device_codes": list(line.device_codes or []),
            "unit_price_cents": line.unit_price_cents,
            "product_id": line.product_id,
            "product_name": product.name if product else None,
            "specs": product.specs() if product else {},
        })

    settings = get_settings(sale.store_id)
    return {
        "sale": sale.to_dict(),
        "store": {
            "id": store.id,
            "name": store.name,
            "address": store.address,
        } if store else None,
        "employee": {
            "id": employee.id,
            "name": employee.full_name,
        } if employee else None,
        "lines": lines,
        "settings": settings,
    }
