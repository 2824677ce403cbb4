# Overview: Service-layer read model merging sale and transfer lines into one movement history.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Employee, Product, Sale, SaleLine, Store, Transfer, TransferLine
from stockflow.time_utils import day_bounds, to_utc_z
from ..validation import ValidationError


MOVEMENT_SALE = "SALE"
MOVEMENT_TRANSFER = "TRANSFER"
MOVEMENT_TYPES = (MOVEMENT_SALE, MOVEMENT_TRANSFER)


def list_movements(
    *,
    product_id: int | None = None,
    day: date | None = None,
    store_id: int | None = None,
    movement_type: str | None = None,
    limit: int = 200,
) -> list[dict]:
    """
    Newest-first history of unit movements.

    One row per sale line (type SALE) and per transfer line (type TRANSFER),
    with product, store and employee names resolved. store_id keeps sales at
    the store and transfers into or out of it.
    """
    if movement_type is not None and movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"movement_type must be one of: {', '.join(MOVEMENT_TYPES)}")

    bounds = day_bounds(day) if day else None
    stores = {s.id: s.name for s in db.session.query(Store).all()}
    rows: list[dict] = []

    if movement_type in (None, MOVEMENT_SALE):
        q = (
            db.session.query(SaleLine, Sale, Product, Employee)
            .join(Sale, Sale.id == SaleLine.sale_id)
            .join(Product, Product.id == SaleLine.product_id)
            .outerjoin(Employee, Employee.id == Sale.employee_id)
        )
        if product_id is not None:
            q = q.filter(SaleLine.product_id == product_id)
        if store_id is not None:
            q = q.filter(Sale.store_id == store_id)
        if bounds:
            q = q.filter(Sale.occurred_at >= bounds[0], Sale.occurred_at < bounds[1])
        for line, sale, product, employee in q.all():
            rows.append({
                "type": MOVEMENT_SALE,
                "occurred_at": sale.occurred_at,
                "document_id": sale.id,
                "line_id": line.id,
                "product_id": product.id,
                "product_name": product.name,
                "scan_code": line.scan_code,
                "store_id": sale.store_id,
                "store_name": stores.get(sale.store_id),
                "destination_store_id": None,
                "destination_store_name": None,
                "employee_name": employee.full_name if employee else None,
                "unit_price_cents": line.unit_price_cents,
            })

    if movement_type in (None, MOVEMENT_TRANSFER):
        q = (
            db.session.query(TransferLine, Transfer, Product, Employee)
            .join(Transfer, Transfer.id == TransferLine.transfer_id)
            .join(Product, Product.id == TransferLine.product_id)
            .outerjoin(Employee, Employee.id == Transfer.employee_id)
        )
        if product_id is not None:
            q = q.filter(TransferLine.product_id == product_id)
        if store_id is not None:
            q = q.filter(db.or_(
                Transfer.origin_store_id == store_id,
                Transfer.destination_store_id == store_id,
            ))
        if bounds:
            q = q.filter(Transfer.transferred_at >= bounds[0], Transfer.transferred_at < bounds[1])
        for line, transfer, product, employee in q.all():
            rows.append({
                "type": MOVEMENT_TRANSFER,
                "occurred_at": transfer.transferred_at,
                "document_id": transfer.id,
                "line_id": line.id,
                "product_id": product.id,
                "product_name": product.name,
                "scan_code": line.scan_code,
                "store_id": transfer.origin_store_id,
                "store_name": stores.get(transfer.origin_store_id),
                "destination_store_id": transfer.destination_store_id,
                "destination_store_name": stores.get(transfer.destination_store_id),
                "employee_name": employee.full_name if employee else None,
                "unit_price_cents": None,
            })

    rows.sort(key=lambda r: (r["occurred_at"], r["document_id"], r["line_id"]), reverse=True)
    rows = rows[:limit]
    for row in rows:
        row["occurred_at"] = to_utc_z(row["occurred_at"])
    return rows
