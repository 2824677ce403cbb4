# backend/stockflow/services/catalog_service.py
"""
Catalog Service: products, stores and suppliers.

PRODUCTS are soft-deleted: deactivation hides them from listings and from new
unit assignments, but their Units and every historical line stay intact.

STORES are hard-deleted only when nothing in the ledger history points at
them. A store with sales, transfers, units on any history line, or employees
homed there is rejected with ConflictError; otherwise its remaining Units and
receipt settings go with it.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    Employee,
    Product,
    PurchaseOrder,
    ReceiptSettings,
    Sale,
    Store,
    Supplier,
    Transfer,
    Unit,
)
from ..validation import (
    ConflictError,
    DuplicateError,
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_product,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry
from .unit_ledger_service import referenced_unit_ids


logger = logging.getLogger(__name__)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "color",
        "image_url",
        "cost_price_cents",
        "profit_bob_cents",
        "ram_gb",
        "rom_gb",
        "processor",
    },
    required_on_create={"name", "cost_price_cents", "profit_bob_cents"},
)

STORE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "address"},
    required_on_create={"name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"first_name", "last_name", "phone"},
    required_on_create={"first_name"},
)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def get_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def list_products(include_inactive: bool = False) -> list[Product]:
    q = db.session.query(Product)
    if not include_inactive:
        q = q.filter(Product.is_active == True)
    return q.order_by(Product.name.asc(), Product.id.asc()).all()


def count_inactive_products() -> int:
    return db.session.query(Product).filter(Product.is_active == False).count()


def create_product(payload: dict, employee_id: int | None = None) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    def _op():
        product = Product(is_active=True, created_by_employee_id=employee_id, **patch)
        db.session.add(product)
        db.session.commit()
        return product

    return run_with_retry(_op)


def update_product(product_id: int, payload: dict) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        for key, value in patch.items():
            setattr(product, key, value)
        db.session.commit()
        return product

    return run_with_retry(_op)


def set_product_active(product_id: int, active: bool) -> Product:
    """Soft delete (active=False) or restore a product."""
    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        product.is_active = bool(active)
        db.session.commit()
        logger.info("Product %s %s", product_id, "reactivated" if active else "deactivated")
        return product

    return run_with_retry(_op)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

def get_store(store_id: int) -> Store:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise NotFoundError(f"Store {store_id} not found")
    return store


def list_stores() -> list[Store]:
    return db.session.query(Store).order_by(Store.name.asc()).all()


def _ensure_store_name_free(name: str, exclude_id: int | None = None) -> None:
    q = db.session.query(Store).filter(Store.name == name)
    if exclude_id is not None:
        q = q.filter(Store.id != exclude_id)
    if q.first():
        raise DuplicateError(f"A store named '{name}' already exists", details={"name": name})


def create_store(payload: dict) -> Store:
    patch = validate_payload(model=Store, payload=payload, policy=STORE_POLICY, partial=False)

    def _op():
        _ensure_store_name_free(patch["name"])
        store = Store(**patch)
        db.session.add(store)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateError(f"A store named '{patch['name']}' already exists")
        return store

    return run_with_retry(_op)


def update_store(store_id: int, payload: dict) -> Store:
    patch = validate_payload(model=Store, payload=payload, policy=STORE_POLICY, partial=True)

    def _op():
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise NotFoundError(f"Store {store_id} not found")
        if "name" in patch:
            _ensure_store_name_free(patch["name"], exclude_id=store_id)
        for key, value in patch.items():
            setattr(store, key, value)
        db.session.commit()
        return store

    return run_with_retry(_op)


def delete_store(store_id: int) -> dict:
    """
    Delete a store that has no ledger history.

    Raises:
        NotFoundError: store does not exist
        ConflictError: the store has sales, transfers, referenced units or
            homed employees; details carries the blocking counts
    """
    def _op():
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise NotFoundError(f"Store {store_id} not found")

        units = db.session.query(Unit).filter_by(store_id=store_id).all()
        blocking = {
            "sales": db.session.query(Sale).filter_by(store_id=store_id).count(),
            "transfers": db.session.query(Transfer).filter(db.or_(
                Transfer.origin_store_id == store_id,
                Transfer.destination_store_id == store_id,
            )).count(),
            "referenced_units": len(referenced_unit_ids([u.id for u in units])),
            "employees": db.session.query(Employee).filter_by(store_id=store_id).count(),
        }
        if any(blocking.values()):
            raise ConflictError(
                f"Store {store_id} has history or staff and cannot be deleted",
                details=blocking,
            )

        for unit in units:
            db.session.delete(unit)
        db.session.query(ReceiptSettings).filter_by(store_id=store_id).delete()
        db.session.delete(store)
        db.session.commit()

        logger.info("Store %s deleted with %d unsold unit(s)", store_id, len(units))
        return {"deleted_store_id": store_id, "deleted_units": len(units)}

    return run_with_retry(_op)


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------

def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(id=supplier_id).first()
    if not supplier:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def list_suppliers() -> list[Supplier]:
    return (
        db.session.query(Supplier)
        .order_by(Supplier.first_name.asc(), Supplier.last_name.asc(), Supplier.id.asc())
        .all()
    )


def create_supplier(payload: dict, employee_id: int | None = None) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)

    def _op():
        supplier = Supplier(created_by_employee_id=employee_id, **patch)
        db.session.add(supplier)
        db.session.commit()
        return supplier

    return run_with_retry(_op)


def update_supplier(supplier_id: int, payload: dict) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)

    def _op():
        supplier = lock_for_update(db.session.query(Supplier).filter_by(id=supplier_id)).first()
        if not supplier:
            raise NotFoundError(f"Supplier {supplier_id} not found")
        for key, value in patch.items():
            setattr(supplier, key, value)
        db.session.commit()
        return supplier

    return run_with_retry(_op)


def delete_supplier(supplier_id: int) -> None:
    def _op():
        supplier = lock_for_update(db.session.query(Supplier).filter_by(id=supplier_id)).first()
        if not supplier:
            raise NotFoundError(f"Supplier {supplier_id} not found")
        orders = db.session.query(PurchaseOrder).filter_by(supplier_id=supplier_id).count()
        if orders:
            raise ConflictError(
                f"Supplier {supplier_id} has purchase orders and cannot be deleted",
                details={"purchase_orders": orders},
            )
        db.session.delete(supplier)
        db.session.commit()

    return run_with_retry(_op)
