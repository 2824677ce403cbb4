# Overview: Service-layer read model for the annual dashboard and headline counts.

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Employee, Product, Sale, Store, Supplier, Transfer
from stockflow.time_utils import parse_stored_datetime, to_utc_z, utcnow, year_bounds
from ..validation import ValidationError


logger = logging.getLogger(__name__)

TOP_PRODUCTS_LIMIT = 5
RECENT_LIMIT = 5


def annual_dashboard(year: int, store_id: int | None = None) -> dict:
    """
    Twelve monthly buckets of sales and income for one calendar year.

    Sales total is the charged total of each sale. Income is the sum of each
    sold line's product margin (profit_bob_cents as currently set on the
    product). Top products are ranked by units sold; ties keep the order in
    which the product was first seen, walking sales by (occurred_at, id) and
    lines by id.

    A sale with no usable timestamp is logged and skipped; the report never
    fails because of one bad record.
    """
    if not isinstance(year, int) or isinstance(year, bool) or not (1900 <= year <= 9998):
        raise ValidationError("year must be an integer between 1900 and 9998")

    start, end = year_bounds(year)

    # Timestamps are read as stored text so one unparseable value is skipped
    # instead of failing the whole query
    stamp_q = db.session.query(Sale.id, db.cast(Sale.occurred_at, db.String)).filter(
        Sale.occurred_at >= start, Sale.occurred_at < end,
    )
    if store_id is not None:
        stamp_q = stamp_q.filter(Sale.store_id == store_id)

    occurred: dict[int, datetime] = {}
    for sale_id, raw in stamp_q.all():
        try:
            occurred_at = parse_stored_datetime(raw)
        except ValueError:
            logger.warning("Skipping sale %s with unreadable timestamp %r", sale_id, raw)
            continue
        if not (start <= occurred_at < end):
            logger.warning("Skipping sale %s with timestamp %r outside %s", sale_id, raw, year)
            continue
        occurred[sale_id] = occurred_at

    sales = (
        db.session.query(Sale)
        .options(selectinload(Sale.lines))
        .filter(Sale.id.in_(list(occurred)))
        .all()
    ) if occurred else []
    sales.sort(key=lambda s: (occurred[s.id], s.id))

    product_ids = {line.product_id for sale in sales for line in sale.lines}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    } if product_ids else {}

    monthly_sales = [0] * 12
    monthly_income = [0] * 12
    total_units = 0
    units_by_product: dict[int, int] = {}

    for sale in sales:
        month = occurred[sale.id].month - 1
        monthly_sales[month] += int(sale.total_cents or 0)

        for line in sorted(sale.lines, key=lambda line: line.id):
            product = products.get(line.product_id)
            if product is None:
                logger.warning("Skipping line %s of sale %s: product %s missing", line.id, sale.id, line.product_id)
                continue
            monthly_income[month] += int(product.profit_bob_cents or 0)
            total_units += 1
            units_by_product[line.product_id] = units_by_product.get(line.product_id, 0) + 1

    ranked = sorted(units_by_product.items(), key=lambda item: item[1], reverse=True)
    top_products = [
        {
            "product_id": product_id,
            "name": products[product_id].name,
            "units_sold": units,
        }
        for product_id, units in ranked[:TOP_PRODUCTS_LIMIT]
    ]

    return {
        "year": year,
        "store_id": store_id,
        "monthly_sales_cents": monthly_sales,
        "monthly_income_cents": monthly_income,
        "total_sales_cents": sum(monthly_sales),
        "total_income_cents": sum(monthly_income),
        "total_units": total_units,
        "top_products": top_products,
    }


def counts(store_id: int | None = None) -> dict:
    """Headline counts plus the most recent sales and transfers."""
    recent_sales = db.session.query(Sale)
    recent_transfers = db.session.query(Transfer)
    if store_id is not None:
        recent_sales = recent_sales.filter(Sale.store_id == store_id)
        recent_transfers = recent_transfers.filter(db.or_(
            Transfer.origin_store_id == store_id,
            Transfer.destination_store_id == store_id,
        ))

    return {
        "active_products": db.session.query(Product).filter(Product.is_active == True).count(),
        "stores": db.session.query(Store).count(),
        "active_employees": db.session.query(Employee).filter(Employee.is_active == True).count(),
        "suppliers": db.session.query(Supplier).count(),
        "recent_sales": [
            s.to_dict()
            for s in recent_sales.order_by(Sale.occurred_at.desc(), Sale.id.desc()).limit(RECENT_LIMIT).all()
        ],
        "recent_transfers": [
            t.to_dict()
            for t in recent_transfers.order_by(Transfer.transferred_at.desc(), Transfer.id.desc()).limit(RECENT_LIMIT).all()
        ],
        "generated_at": to_utc_z(utcnow()),
    }
