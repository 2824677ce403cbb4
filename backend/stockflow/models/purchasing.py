from __future__ import annotations

from ..extensions import db
from stockflow.time_utils import to_utc_z, utcnow


PO_STATUS_PENDING = "PENDING"
PO_STATUS_PARTIALLY_PAID = "PARTIALLY_PAID"
PO_STATUS_COMPLETED = "COMPLETED"
PO_STATUSES = (PO_STATUS_PENDING, PO_STATUS_PARTIALLY_PAID, PO_STATUS_COMPLETED)


class PurchaseOrder(db.Model):
    """
    Order placed with a supplier, paid off in installments.

    paid_amount_cents, balance_due_cents and status are derived from the
    payment rows by purchase_order_service and stored for listing.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('PENDING', 'PARTIALLY_PAID', 'COMPLETED')",
            name="purchase_order_status_valid",
        ),
        db.Index("ix_purchase_orders_supplier_date", "supplier_id", "ordered_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)

    ordered_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    balance_due_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=PO_STATUS_PENDING)

    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    items = db.relationship(
        "PurchaseOrderItem",
        backref="order",
        lazy=True,
        order_by="PurchaseOrderItem.id",
        cascade="all, delete-orphan",
    )
    payments = db.relationship(
        "PurchaseOrderPayment",
        backref="order",
        lazy=True,
        order_by="PurchaseOrderPayment.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.full_name if self.supplier else None,
            "employee_id": self.employee_id,
            "ordered_at": to_utc_z(self.ordered_at),
            "total_amount_cents": self.total_amount_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "balance_due_cents": self.balance_due_cents,
            "status": self.status,
            "items": [i.to_dict() for i in self.items],
        }


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="purchase_order_item_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "total_price_cents": self.total_price_cents,
        }


class PurchaseOrderPayment(db.Model):
    __tablename__ = "purchase_order_payments"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="purchase_order_payment_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    employee = db.relationship("Employee")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "employee_id": self.employee_id,
            "employee_name": self.employee.full_name if self.employee else None,
            "paid_at": to_utc_z(self.paid_at),
        }
