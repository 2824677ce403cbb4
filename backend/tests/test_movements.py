"""
Movement history tests: sale and transfer lines merged newest first.
"""

from datetime import date, datetime

import pytest

from stockflow.models import Product
from stockflow.services import movement_service, sales_service, transfer_service
from stockflow.services.sales_service import SaleItem
from stockflow.services.unit_ledger_service import UnitRef
from stockflow.validation import ValidationError


@pytest.fixture
def history(db_session, product, store_a, store_b, admin, rate, make_units):
    """One sale at A on 2026-02-10 and one transfer A->B on 2026-02-11."""
    sold, moved = make_units(product, store_a, "H-1", "H-2")
    sale = sales_service.record_sale(store_a.id, [SaleItem(UnitRef(unit_id=sold.id))], admin.id, "CASH")
    sale.occurred_at = datetime(2026, 2, 10, 12, 0)
    transfer = transfer_service.execute_transfer(store_a.id, store_b.id, [UnitRef(unit_id=moved.id)], admin.id)
    transfer.transferred_at = datetime(2026, 2, 11, 9, 0)
    db_session.commit()
    return sale, transfer


class TestMovements:

    def test_newest_first_with_names(self, history):
        rows = movement_service.list_movements()

        assert [r["type"] for r in rows] == ["TRANSFER", "SALE"]
        transfer_row, sale_row = rows
        assert transfer_row["store_name"] == "Centro"
        assert transfer_row["destination_store_name"] == "Norte"
        assert transfer_row["unit_price_cents"] is None
        assert sale_row["unit_price_cents"] == 75000
        assert sale_row["employee_name"] == "Ana Admin"
        assert sale_row["occurred_at"] == "2026-02-10T12:00:00Z"

    def test_filter_by_day(self, history):
        rows = movement_service.list_movements(day=date(2026, 2, 10))
        assert [r["scan_code"] for r in rows] == ["H-1"]

    def test_filter_by_store_includes_incoming_transfers(self, history, store_b):
        rows = movement_service.list_movements(store_id=store_b.id)
        assert [r["type"] for r in rows] == ["TRANSFER"]

    def test_filter_by_product(self, history, db_session):
        other = Product(name="Other", cost_price_cents=1, profit_bob_cents=1)
        db_session.add(other)
        db_session.commit()

        assert movement_service.list_movements(product_id=other.id) == []

    def test_limit(self, history):
        assert len(movement_service.list_movements(limit=1)) == 1

    def test_unknown_type(self, db_session):
        with pytest.raises(ValidationError):
            movement_service.list_movements(movement_type="RETURN")
