from __future__ import annotations

from ..extensions import db
from stockflow.time_utils import to_utc_z, utcnow


class Transfer(db.Model):
    """
    Inter-store transfer of individual Units.

    A transfer is written in one transaction together with the relocation of
    every Unit it lists, so a Transfer row never exists without all of its
    lines and moves. There is no in-transit state: units leave the origin
    and arrive at the destination at transferred_at.
    """
    __tablename__ = "transfers"
    __table_args__ = (
        db.CheckConstraint("origin_store_id <> destination_store_id", name="origin_ne_destination"),
        db.Index("ix_transfers_origin_date", "origin_store_id", "transferred_at"),
        db.Index("ix_transfers_destination_date", "destination_store_id", "transferred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    origin_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    destination_store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    note = db.Column(db.String(255), nullable=True)
    transferred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    origin_store = db.relationship("Store", foreign_keys=[origin_store_id])
    destination_store = db.relationship("Store", foreign_keys=[destination_store_id])
    employee = db.relationship("Employee")
    lines = db.relationship(
        "TransferLine",
        backref="transfer",
        lazy=True,
        order_by="TransferLine.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "origin_store_id": self.origin_store_id,
            "destination_store_id": self.destination_store_id,
            "employee_id": self.employee_id,
            "note": self.note,
            "transferred_at": to_utc_z(self.transferred_at),
            "item_count": len(self.lines),
        }


class TransferLine(db.Model):
    """
    One Unit moved by a Transfer.

    scan_code and product_id are snapshots taken at transfer time so history
    reads do not depend on the Unit's later state.
    """
    __tablename__ = "transfer_lines"
    __table_args__ = (
        db.UniqueConstraint("transfer_id", "unit_id", name="uq_transfer_lines_transfer_unit"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey("transfers.id"), nullable=False, index=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    scan_code = db.Column(db.String(128), nullable=False)

    unit = db.relationship("Unit")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transfer_id": self.transfer_id,
            "unit_id": self.unit_id,
            "product_id": self.product_id,
            "scan_code": self.scan_code,
        }
