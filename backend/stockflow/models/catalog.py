from __future__ import annotations

from ..extensions import db
from stockflow.time_utils import to_utc_z, utcnow


class Store(db.Model):
    """
    Named selling location.

    A store owns the Units currently located at it. Store names are unique so
    scanners and receipts can refer to them unambiguously.
    """
    __tablename__ = "stores"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Catalog entry.

    PRICING:
    cost_price_cents is in the foreign purchase currency (USD cents);
    profit_bob_cents is the local-currency margin. The displayed price is
    derived at read time from the newest exchange rate:

        final_price = cost_price * current_rate + profit_bob

    SOFT DELETE:
    Deactivating (is_active=False) hides the product from catalogs but keeps
    its Units and every historical sale/transfer line intact.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(64), nullable=True)
    image_url = db.Column(db.String(512), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    profit_bob_cents = db.Column(db.Integer, nullable=False, default=0)

    # Device specs
    ram_gb = db.Column(db.Integer, nullable=True)
    rom_gb = db.Column(db.Integer, nullable=True)
    processor = db.Column(db.String(128), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} active={self.is_active}>"

    def specs(self) -> dict:
        return {
            "color": self.color,
            "ram_gb": self.ram_gb,
            "rom_gb": self.rom_gb,
            "processor": self.processor,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "image_url": self.image_url,
            "cost_price_cents": self.cost_price_cents,
            "profit_bob_cents": self.profit_bob_cents,
            "ram_gb": self.ram_gb,
            "rom_gb": self.rom_gb,
            "processor": self.processor,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    created_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ExchangeRate(db.Model):
    """
    Foreign-currency to BOB conversion rate.

    Append-only: only the newest row is used for pricing; older rows stay for
    audit.
    """
    __tablename__ = "exchange_rates"
    __table_args__ = (
        db.Index("ix_exchange_rates_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    rate = db.Column(db.Numeric(12, 4, asdecimal=True), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rate": str(self.rate) if self.rate is not None else None,
            "employee_id": self.employee_id,
            "created_at": to_utc_z(self.created_at),
        }
