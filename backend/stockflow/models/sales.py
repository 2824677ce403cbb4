from __future__ import annotations

from ..extensions import db
from stockflow.time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    Sale of a batch of Units at one store.

    Written in one transaction with its lines and with every sold Unit's
    sold flag, so a Sale row always has its full set of lines.

    TOTALS:
    computed_total_cents is the sum of the lines' derived prices at sale time
    (None when no exchange rate was recorded and the total was entered manually).
    total_cents is what the operator charged; it may differ (manual override)
    and is not re-validated against the catalog.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_store_occurred", "store_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    total_cents = db.Column(db.Integer, nullable=False)
    computed_total_cents = db.Column(db.Integer, nullable=True)
    exchange_rate = db.Column(db.Numeric(12, 4, asdecimal=True), nullable=True)
    item_count = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    store = db.relationship("Store", backref=db.backref("sales", lazy=True))
    employee = db.relationship("Employee")
    lines = db.relationship(
        "SaleLine",
        backref="sale",
        lazy=True,
        order_by="SaleLine.id",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "employee_id": self.employee_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "total_cents": self.total_cents,
            "computed_total_cents": self.computed_total_cents,
            "exchange_rate": str(self.exchange_rate) if self.exchange_rate is not None else None,
            "item_count": self.item_count,
            "payment_method": self.payment_method,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        }


class SaleLine(db.Model):
    """
    One sold Unit.

    unit_id is unique across all sale lines: a Unit can sit on at most one
    sale at a time. A correction that returns the Unit to stock deletes the
    line, after which the Unit may be sold again.

    device_codes holds zero or more free-form device identities (IMEI or
    equivalent) recorded at the counter, independent of the scan code.
    """
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.UniqueConstraint("unit_id", name="uq_sale_lines_unit"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    scan_code = db.Column(db.String(128), nullable=False)

    unit_price_cents = db.Column(db.Integer, nullable=True)
    device_codes = db.Column(db.JSON, nullable=False, default=list)

    unit = db.relationship("Unit")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "unit_id": self.unit_id,
            "product_id": self.product_id,
            "scan_code": self.scan_code,
            "unit_price_cents": self.unit_price_cents,
            "device_codes": list(self.device_codes or []),
        }
