"""
Catalog tests: products, stores and suppliers.
"""

import pytest

from stockflow.extensions import db
from stockflow.models import ReceiptSettings, Store, Supplier, Unit
from stockflow.services import catalog_service, purchase_order_service, sales_service, settings_service
from stockflow.services.purchase_order_service import OrderItemInput
from stockflow.services.sales_service import SaleItem
from stockflow.services.unit_ledger_service import UnitRef
from stockflow.validation import ConflictError, DuplicateError, NotFoundError, ValidationError


class TestProducts:

    def test_create_product(self, admin):
        product = catalog_service.create_product(
            {
                "name": "Tablet S",
                "color": "Silver",
                "cost_price_cents": 25000,
                "profit_bob_cents": 30000,
                "ram_gb": 4,
                "rom_gb": 64,
            },
            employee_id=admin.id,
        )

        assert product.is_active is True
        assert product.created_by_employee_id == admin.id
        assert product.specs()["ram_gb"] == 4

    @pytest.mark.parametrize("payload", [
        {"cost_price_cents": 1, "profit_bob_cents": 1},
        {"name": "X", "cost_price_cents": -1, "profit_bob_cents": 0},
        {"name": "X", "cost_price_cents": 1, "profit_bob_cents": 0, "ram_gb": -2},
        {"name": "X", "cost_price_cents": 1, "profit_bob_cents": 0, "is_active": False},
    ])
    def test_invalid_product(self, db_session, payload):
        with pytest.raises(ValidationError):
            catalog_service.create_product(payload)

    def test_update_product(self, product):
        updated = catalog_service.update_product(product.id, {"profit_bob_cents": 6000, "color": "Blue"})

        assert updated.profit_bob_cents == 6000
        assert updated.color == "Blue"
        assert updated.name == "Phone X"

    def test_update_missing_product(self, db_session):
        with pytest.raises(NotFoundError):
            catalog_service.update_product(404, {"name": "Nope"})

    def test_deactivate_keeps_units(self, product, store_a, make_units):
        make_units(product, store_a, "P-1")

        catalog_service.set_product_active(product.id, False)

        assert catalog_service.count_inactive_products() == 1
        assert catalog_service.list_products() == []
        assert [p.id for p in catalog_service.list_products(include_inactive=True)] == [product.id]
        assert db.session.query(Unit).count() == 1

        catalog_service.set_product_active(product.id, True)
        assert catalog_service.count_inactive_products() == 0


class TestStores:

    def test_create_and_rename(self, db_session):
        store = catalog_service.create_store({"name": "Sur", "address": "Av. 3"})
        renamed = catalog_service.update_store(store.id, {"name": "Sur II"})

        assert renamed.name == "Sur II"
        assert [s.name for s in catalog_service.list_stores()] == ["Sur II"]

    def test_duplicate_name(self, store_a, store_b):
        with pytest.raises(DuplicateError):
            catalog_service.create_store({"name": "Centro"})
        with pytest.raises(DuplicateError):
            catalog_service.update_store(store_b.id, {"name": "Centro"})
        db.session.rollback()

    def test_delete_empty_store_takes_units_and_settings(self, product, store_b, make_units):
        make_units(product, store_b, "N-1", "N-2")
        settings_service.update_settings(store_b.id, {"footer_text": "Hola"})

        result = catalog_service.delete_store(store_b.id)

        assert result == {"deleted_store_id": store_b.id, "deleted_units": 2}
        assert db.session.query(Unit).count() == 0
        assert db.session.query(ReceiptSettings).count() == 0
        assert db.session.query(Store).filter_by(name="Norte").first() is None

    def test_delete_store_with_staff_is_conflict(self, store_a, seller):
        with pytest.raises(ConflictError) as exc_info:
            catalog_service.delete_store(store_a.id)
        db.session.rollback()

        assert exc_info.value.details["employees"] == 1

    def test_delete_store_with_sales_is_conflict(self, product, store_b, admin, rate, make_units):
        unit = make_units(product, store_b, "N-1")[0]
        sales_service.record_sale(store_b.id, [SaleItem(UnitRef(unit_id=unit.id))], admin.id, "CASH")

        with pytest.raises(ConflictError) as exc_info:
            catalog_service.delete_store(store_b.id)
        db.session.rollback()

        assert exc_info.value.details["sales"] == 1
        assert exc_info.value.details["referenced_units"] == 1

    def test_delete_missing_store(self, db_session):
        with pytest.raises(NotFoundError):
            catalog_service.delete_store(404)


class TestSuppliers:

    def test_crud(self, admin):
        supplier = catalog_service.create_supplier({"first_name": "Importadora", "phone": "7777"}, admin.id)
        catalog_service.update_supplier(supplier.id, {"last_name": "Andes"})

        assert catalog_service.get_supplier(supplier.id).full_name == "Importadora Andes"

        catalog_service.delete_supplier(supplier.id)
        assert db.session.query(Supplier).count() == 0

    def test_supplier_with_orders_cannot_be_deleted(self, product):
        supplier = catalog_service.create_supplier({"first_name": "Importadora"})
        purchase_order_service.create_order(
            supplier.id, [OrderItemInput(product_id=product.id, quantity=1, total_price_cents=100)]
        )

        with pytest.raises(ConflictError) as exc_info:
            catalog_service.delete_supplier(supplier.id)
        db.session.rollback()

        assert exc_info.value.details == {"purchase_orders": 1}

    def test_first_name_required(self, db_session):
        with pytest.raises(ValidationError):
            catalog_service.create_supplier({"last_name": "Solo"})
