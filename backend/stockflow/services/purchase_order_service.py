# backend/stockflow/services/purchase_order_service.py
"""
Purchase orders placed with suppliers and paid in installments.

An order's total is the sum of its item totals. Payments are recorded one by
one; after every change the paid amount, balance due and status are
recomputed from the payment rows:

    PENDING         nothing paid
    PARTIALLY_PAID  something paid, balance left
    COMPLETED       paid within one cent of the total

A payment may not exceed the balance due (one cent of tolerance).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from stockflow.extensions import db
from stockflow.models import Product, PurchaseOrder, PurchaseOrderItem, PurchaseOrderPayment, Supplier
from stockflow.models.purchasing import PO_STATUS_COMPLETED, PO_STATUS_PARTIALLY_PAID, PO_STATUS_PENDING
from stockflow.services.concurrency import lock_for_update, run_with_retry
from stockflow.validation import NotFoundError, ValidationError, check_amount_cents


logger = logging.getLogger(__name__)

PAYMENT_TOLERANCE_CENTS = 1
PO_PAYMENT_METHODS = ("CASH", "CARD", "QR", "BANK_TRANSFER", "OTHER")


@dataclass(frozen=True)
class OrderItemInput:
    product_id: int
    quantity: int
    total_price_cents: int

    @classmethod
    def from_payload(cls, raw) -> "OrderItemInput":
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        values = {}
        for key in ("product_id", "quantity", "total_price_cents"):
            value = raw.get(key)
            if value is None:
                raise ValidationError(f"Item {key} is required")
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValidationError(f"Item {key} must be an integer")
            values[key] = value
        return cls(**values)


def _validate_items(items: list[OrderItemInput]) -> None:
    if not items:
        raise ValidationError("At least one item is required")
    for item in items:
        if item.quantity <= 0:
            raise ValidationError("Item quantity must be > 0")
        check_amount_cents("total_price_cents", item.total_price_cents)


def _write_items(order: PurchaseOrder, items: list[OrderItemInput]) -> None:
    product_ids = {item.product_id for item in items}
    found = {p.id for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()}
    missing = sorted(product_ids - found)
    if missing:
        raise NotFoundError(f"Products not found: {', '.join(str(m) for m in missing)}")

    order.items.clear()
    db.session.flush()
    for item in items:
        order.items.append(PurchaseOrderItem(
            product_id=item.product_id,
            quantity=item.quantity,
            total_price_cents=item.total_price_cents,
        ))
    order.total_amount_cents = sum(item.total_price_cents for item in items)


def recompute_payment_status(order: PurchaseOrder) -> None:
    """Derive paid amount, balance and status from the payment rows."""
    paid = (
        db.session.query(db.func.coalesce(db.func.sum(PurchaseOrderPayment.amount_cents), 0))
        .filter(PurchaseOrderPayment.order_id == order.id)
        .scalar()
    )
    paid = int(paid or 0)
    order.paid_amount_cents = paid
    order.balance_due_cents = order.total_amount_cents - paid

    if paid >= order.total_amount_cents - PAYMENT_TOLERANCE_CENTS and paid > 0:
        order.status = PO_STATUS_COMPLETED
    elif paid > 0:
        order.status = PO_STATUS_PARTIALLY_PAID
    else:
        order.status = PO_STATUS_PENDING


def get_order(order_id: int) -> PurchaseOrder:
    order = db.session.query(PurchaseOrder).filter_by(id=order_id).first()
    if not order:
        raise NotFoundError(f"Purchase order {order_id} not found")
    return order


def list_orders(supplier_id: int | None = None, status: str | None = None) -> list[PurchaseOrder]:
    q = db.session.query(PurchaseOrder)
    if supplier_id is not None:
        q = q.filter(PurchaseOrder.supplier_id == supplier_id)
    if status is not None:
        q = q.filter(PurchaseOrder.status == status.upper())
    return q.order_by(PurchaseOrder.ordered_at.desc(), PurchaseOrder.id.desc()).all()


def create_order(supplier_id: int, items: list[OrderItemInput], employee_id: int | None = None) -> PurchaseOrder:
    _validate_items(items)

    def _op():
        if not db.session.query(Supplier).filter_by(id=supplier_id).first():
            raise NotFoundError(f"Supplier {supplier_id} not found")

        order = PurchaseOrder(
            supplier_id=supplier_id,
            employee_id=employee_id,
            status=PO_STATUS_PENDING,
            paid_amount_cents=0,
        )
        db.session.add(order)
        db.session.flush()  # Get ID

        _write_items(order, items)
        recompute_payment_status(order)

        db.session.commit()
        return order

    return run_with_retry(_op)


def replace_items(
    order_id: int,
    items: list[OrderItemInput],
    supplier_id: int | None = None,
) -> PurchaseOrder:
    """Replace every item of an order (and optionally its supplier); totals and status follow."""
    _validate_items(items)

    def _op():
        order = lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError(f"Purchase order {order_id} not found")
        change_supplier = supplier_id is not None and supplier_id != order.supplier_id
        if change_supplier and not db.session.query(Supplier).filter_by(id=supplier_id).first():
            raise NotFoundError(f"Supplier {supplier_id} not found")

        recompute_payment_status(order)
        new_total = sum(item.total_price_cents for item in items)
        if new_total < order.paid_amount_cents - PAYMENT_TOLERANCE_CENTS:
            raise ValidationError("New total is below the amount already paid")

        if change_supplier:
            order.supplier_id = supplier_id
        _write_items(order, items)
        recompute_payment_status(order)

        db.session.commit()
        return order

    return run_with_retry(_op)


def record_payment(
    order_id: int,
    amount_cents: int,
    payment_method: str = "OTHER",
    employee_id: int | None = None,
) -> PurchaseOrder:
    """
    Add an installment payment.

    Raises:
        ValidationError: non-positive amount, unknown method, or amount above
            the balance due
        NotFoundError: order does not exist
    """
    if amount_cents is None:
        raise ValidationError("amount_cents is required")
    check_amount_cents("amount_cents", amount_cents, allow_zero=False)
    method = (payment_method or "OTHER").strip().upper()
    if method not in PO_PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PO_PAYMENT_METHODS)}")

    def _op():
        order = lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError(f"Purchase order {order_id} not found")

        recompute_payment_status(order)
        if amount_cents > order.balance_due_cents + PAYMENT_TOLERANCE_CENTS:
            raise ValidationError(
                f"Payment exceeds balance due ({order.balance_due_cents / 100:,.2f})"
            )

        db.session.add(PurchaseOrderPayment(
            order_id=order.id,
            amount_cents=amount_cents,
            payment_method=method,
            employee_id=employee_id,
        ))
        db.session.flush()
        recompute_payment_status(order)

        db.session.commit()
        logger.info("Purchase order %s payment of %s cents; status %s", order.id, amount_cents, order.status)
        return order

    return run_with_retry(_op)


def list_payments(order_id: int) -> list[PurchaseOrderPayment]:
    get_order(order_id)
    return (
        db.session.query(PurchaseOrderPayment)
        .filter_by(order_id=order_id)
        .order_by(PurchaseOrderPayment.paid_at.asc(), PurchaseOrderPayment.id.asc())
        .all()
    )


def delete_order(order_id: int) -> None:
    """Delete an order together with its items and payments."""
    def _op():
        order = lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError(f"Purchase order {order_id} not found")
        db.session.delete(order)
        db.session.commit()

    return run_with_retry(_op)
