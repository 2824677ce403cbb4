from __future__ import annotations

from ..extensions import db
from stockflow.time_utils import to_utc_z, utcnow


class ReceiptSettings(db.Model):
    """
    Per-store header and warranty text printed on sale receipts.

    At most one row per store. When a store has no row, settings_service
    answers with defaults so receipt rendering never fails.
    """
    __tablename__ = "receipt_settings"
    __table_args__ = (
        db.UniqueConstraint("store_id", name="uq_receipt_settings_store"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)

    business_name = db.Column(db.String(255), nullable=False)
    tax_id = db.Column(db.String(64), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    footer_text = db.Column(db.Text, nullable=True)
    warranty_text = db.Column(db.Text, nullable=True)
    warranty_days = db.Column(db.Integer, nullable=False, default=0)

    updated_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "store_id": self.store_id,
            "business_name": self.business_name,
            "tax_id": self.tax_id,
            "address": self.address,
            "phone": self.phone,
            "footer_text": self.footer_text,
            "warranty_text": self.warranty_text,
            "warranty_days": self.warranty_days,
            "updated_by_employee_id": self.updated_by_employee_id,
            "updated_at": to_utc_z(self.updated_at),
        }
