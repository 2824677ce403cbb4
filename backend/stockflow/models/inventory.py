from __future__ import annotations

from ..extensions import db
from stockflow.time_utils import to_utc_z, utcnow


class Unit(db.Model):
    """
    One physical, individually scan-coded item of stock.

    LEDGER INVARIANTS:
    - scan_code is unique across the whole ledger (every store, every product,
      sold or not). Enforced by a unique constraint and checked up front by
      unit_ledger_service.assign_unit.
    - A Unit is located at exactly one store. Once sold it is frozen: its
      store_id stays at the store where it was sold and no transfer may move it.
    - version_id is bumped on every UPDATE (SQLAlchemy version_id_col), so a
      caller holding a stale version is rejected instead of overwriting a
      concurrent sale or transfer.

    VALUE NORMALIZATION:
    scan_code is whitespace-trimmed but case is kept; codes are alphanumeric
    and printed labels distinguish case on some devices.
    """
    __tablename__ = "units"
    __table_args__ = (
        db.UniqueConstraint("scan_code", name="uq_units_scan_code"),
        # Stock aggregation always filters by product + sold, optionally store
        db.Index("ix_units_product_store_sold", "product_id", "store_id", "sold"),
        db.Index("ix_units_store_sold", "store_id", "sold"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    scan_code = db.Column(db.String(128), nullable=False)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    sold = db.Column(db.Boolean, nullable=False, default=False)
    sold_at = db.Column(db.DateTime(timezone=True), nullable=True)

    assigned_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product", backref=db.backref("units", lazy=True))
    store = db.relationship("Store", backref=db.backref("units", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Unit id={self.id} scan_code={self.scan_code!r} store_id={self.store_id} sold={self.sold}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "scan_code": self.scan_code,
            "product_id": self.product_id,
            "store_id": self.store_id,
            "sold": self.sold,
            "sold_at": to_utc_z(self.sold_at) if self.sold_at else None,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }
