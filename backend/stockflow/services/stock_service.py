# Overview: Service-layer read model for available stock; counts are derived from the unit ledger on every call.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Store, Unit
from . import pricing_service


def available_count(product_id: int, store_id: int | None = None) -> int:
    """Unsold Units of product_id, optionally at a single store."""
    q = db.session.query(func.count(Unit.id)).filter(
        Unit.product_id == product_id,
        Unit.sold == False,
    )
    if store_id is not None:
        q = q.filter(Unit.store_id == store_id)
    return int(q.scalar() or 0)


def _available_by_product(store_id: int | None) -> dict[int, int]:
    q = db.session.query(Unit.product_id, func.count(Unit.id)).filter(Unit.sold == False)
    if store_id is not None:
        q = q.filter(Unit.store_id == store_id)
    return {product_id: int(count) for product_id, count in q.group_by(Unit.product_id).all()}


def product_listing(store_id: int | None = None, include_inactive: bool = False) -> list[dict]:
    """
    Catalog rows with live availability and derived price.

    With store_id, availability is counted at that store only; without it,
    across all stores.
    """
    q = db.session.query(Product)
    if not include_inactive:
        q = q.filter(Product.is_active == True)
    products = q.order_by(Product.name.asc(), Product.id.asc()).all()

    counts = _available_by_product(store_id)
    rate = pricing_service.current_rate()

    rows = []
    for product in products:
        row = product.to_dict()
        row["available_count"] = counts.get(product.id, 0)
        row["final_price_cents"] = pricing_service.final_price_cents(product, rate)
        rows.append(row)
    return rows


def store_summaries() -> list[dict]:
    """Per store: distinct active products with stock, and total available units."""
    grouped = (
        db.session.query(
            Unit.store_id,
            func.count(func.distinct(Unit.product_id)),
            func.count(Unit.id),
        )
        .join(Product, Product.id == Unit.product_id)
        .filter(Unit.sold == False, Product.is_active == True)
        .group_by(Unit.store_id)
        .all()
    )
    stats = {store_id: (int(products), int(units)) for store_id, products, units in grouped}

    rows = []
    for store in db.session.query(Store).order_by(Store.name.asc()).all():
        product_count, unit_count = stats.get(store.id, (0, 0))
        row = store.to_dict()
        row["product_count"] = product_count
        row["available_units"] = unit_count
        rows.append(row)
    return rows
