"""
Sale engine tests.

Verifies:
- A sale commits the header, its lines and the sold flag of each Unit together
- Totals are derived from the current rate unless the operator overrides them
- A sale with any unavailable Unit writes nothing
- Corrections return Units to stock and edit the header
"""

from decimal import Decimal

import pytest

from stockflow.extensions import db
from stockflow.models import Sale, SaleLine, Unit
from stockflow.services import pricing_service, sales_service, settings_service
from stockflow.services.sales_service import SaleItem
from stockflow.services.unit_ledger_service import UnitRef
from stockflow.validation import ConflictError, NotFoundError, ValidationError


def _items(*units, codes=None):
    return [SaleItem(UnitRef(unit_id=u.id), list(codes or [])) for u in units]


class TestRecordSale:

    def test_single_unit_sale_at_derived_price(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]

        sale = sales_service.record_sale(store_a.id, _items(unit), admin.id, "cash")

        assert sale.total_cents == 75000
        assert sale.computed_total_cents == 75000
        assert sale.exchange_rate == Decimal("7.0000")
        assert sale.item_count == 1
        assert sale.payment_method == "CASH"
        assert sale.lines[0].unit_price_cents == 75000
        assert sale.lines[0].scan_code == "SN-1"

        db.session.expire_all()
        sold = db.session.get(Unit, unit.id)
        assert sold.sold is True
        assert sold.sold_at is not None
        assert sold.store_id == store_a.id

    def test_batch_sums_prices(self, product, store_a, admin, rate, make_units):
        units = make_units(product, store_a, "SN-1", "SN-2", "SN-3")

        sale = sales_service.record_sale(store_a.id, _items(*units), admin.id, "QR")

        assert sale.item_count == 3
        assert sale.total_cents == 3 * 75000
        assert [line.unit_id for line in sale.lines] == [u.id for u in units]

    def test_operator_total_overrides_computed(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]

        sale = sales_service.record_sale(store_a.id, _items(unit), admin.id, "CARD", total_cents=70000)

        assert sale.total_cents == 70000
        assert sale.computed_total_cents == 75000

    def test_override_allowed_without_rate(self, product, store_a, admin, make_units):
        unit = make_units(product, store_a, "SN-1")[0]

        sale = sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH", total_cents=70000)

        assert sale.total_cents == 70000
        assert sale.computed_total_cents is None
        assert sale.exchange_rate is None
        assert sale.lines[0].unit_price_cents is None

    def test_no_rate_and_no_override_rejected(self, product, store_a, admin, make_units):
        unit = make_units(product, store_a, "SN-1")[0]

        with pytest.raises(ValidationError):
            sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH")

        db.session.expire_all()
        assert db.session.get(Unit, unit.id).sold is False
        assert db.session.query(Sale).count() == 0

    def test_sold_unit_cannot_be_sold_again(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]
        sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH")

        with pytest.raises(ConflictError) as exc_info:
            sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH")

        assert exc_info.value.details["units"][0]["reason"] == "SOLD"
        assert db.session.query(Sale).count() == 1

    def test_unit_at_other_store_fails_whole_batch(self, product, store_a, store_b, admin, rate, make_units):
        here = make_units(product, store_a, "A-1")[0]
        there = make_units(product, store_b, "B-1")[0]

        with pytest.raises(ConflictError):
            sales_service.record_sale(store_a.id, _items(here, there), admin.id, "CASH")

        db.session.expire_all()
        assert db.session.get(Unit, here.id).sold is False
        assert db.session.query(SaleLine).count() == 0

    def test_sale_by_scan_code(self, product, store_a, admin, rate, make_units):
        make_units(product, store_a, "SN-9")

        sale = sales_service.record_sale(
            store_a.id, [SaleItem(UnitRef(scan_code="SN-9"))], admin.id, "BANK_TRANSFER"
        )

        assert sale.lines[0].scan_code == "SN-9"

    def test_device_codes_are_cleaned(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]

        sale = sales_service.record_sale(
            store_a.id, _items(unit, codes=[" 3569 ", "3569", "3570"]), admin.id, "CASH"
        )

        assert sale.lines[0].device_codes == ["3569", "3570"]

    def test_device_codes_required_when_configured(self, app, product, store_a, admin, rate, make_units, monkeypatch):
        monkeypatch.setitem(app.config, "SALE_REQUIRES_DEVICE_CODE", True)
        unit = make_units(product, store_a, "SN-1")[0]

        with pytest.raises(ValidationError):
            sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH")

        sale = sales_service.record_sale(store_a.id, _items(unit, codes=["IMEI-1"]), admin.id, "CASH")
        assert sale.lines[0].device_codes == ["IMEI-1"]

    @pytest.mark.parametrize("codes", [[""], ["  "], [123], ["x" * 65]])
    def test_bad_device_codes_rejected(self, product, store_a, admin, rate, make_units, codes):
        unit = make_units(product, store_a, "SN-1")[0]

        with pytest.raises(ValidationError):
            sales_service.record_sale(store_a.id, _items(unit, codes=codes), admin.id, "CASH")

    @pytest.mark.parametrize("method", [None, "", "BARTER"])
    def test_bad_payment_method(self, product, store_a, admin, rate, make_units, method):
        unit = make_units(product, store_a, "SN-1")[0]

        with pytest.raises(ValidationError):
            sales_service.record_sale(store_a.id, _items(unit), admin.id, method)

    def test_negative_total_rejected(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]

        with pytest.raises(ValidationError):
            sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH", total_cents=-1)

    def test_empty_sale_rejected(self, store_a, admin, rate):
        with pytest.raises(ValidationError):
            sales_service.record_sale(store_a.id, [], admin.id, "CASH")

    def test_unknown_store(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]

        with pytest.raises(NotFoundError):
            sales_service.record_sale(9999, _items(unit), admin.id, "CASH")

    @pytest.mark.parametrize("as_sent", [str, float, lambda store_id: True])
    def test_store_id_must_be_an_integer(self, product, store_a, admin, rate, make_units, as_sent):
        unit = make_units(product, store_a, "SN-1")[0]

        with pytest.raises(ValidationError, match="store_id must be an integer"):
            sales_service.record_sale(as_sent(store_a.id), _items(unit), admin.id, "CASH")

        db.session.expire_all()
        assert db.session.get(Unit, unit.id).sold is False
        assert db.session.query(Sale).count() == 0

    def test_sale_keeps_price_after_rate_change(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]
        sale = sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH")

        pricing_service.record_rate("8")

        db.session.expire_all()
        assert db.session.get(Sale, sale.id).total_cents == 75000


class TestSalePayload:

    def test_plain_reference(self):
        item = SaleItem.from_payload({"unit_id": 4})
        assert item.unit == UnitRef(unit_id=4)
        assert item.device_codes == []

    def test_nested_reference_with_codes(self):
        item = SaleItem.from_payload({"unit": {"scan_code": "SN-1"}, "device_codes": ["A"]})
        assert item.unit.scan_code == "SN-1"
        assert item.device_codes == ["A"]

    def test_codes_must_be_list(self):
        with pytest.raises(ValidationError):
            SaleItem.from_payload({"unit_id": 4, "device_codes": "A"})


class TestCorrections:

    def test_remove_line_returns_unit_to_stock(self, product, store_a, admin, rate, make_units):
        u1, u2 = make_units(product, store_a, "SN-1", "SN-2")
        sale = sales_service.record_sale(store_a.id, _items(u1, u2), admin.id, "CASH")
        line_id = sale.lines[0].id

        sales_service.remove_sale_line(sale.id, line_id, admin.id)

        db.session.expire_all()
        sale = db.session.get(Sale, sale.id)
        assert sale.item_count == 1
        assert sale.total_cents == 150000
        assert [line.unit_id for line in sale.lines] == [u2.id]
        assert db.session.get(Unit, u1.id).sold is False

        again = sales_service.record_sale(store_a.id, _items(u1), admin.id, "CASH")
        assert again.lines[0].unit_id == u1.id

    def test_remove_line_from_other_sale(self, product, store_a, admin, rate, make_units):
        u1, u2 = make_units(product, store_a, "SN-1", "SN-2")
        first = sales_service.record_sale(store_a.id, _items(u1), admin.id, "CASH")
        second = sales_service.record_sale(store_a.id, _items(u2), admin.id, "CASH")

        with pytest.raises(NotFoundError):
            sales_service.remove_sale_line(first.id, second.lines[0].id, admin.id)

    def test_update_sale_header(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]
        sale = sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH")

        updated = sales_service.update_sale(
            sale.id, payment_method="card", total_cents=74000, customer_name=" Luis "
        )

        assert updated.payment_method == "CARD"
        assert updated.total_cents == 74000
        assert updated.computed_total_cents == 75000
        assert updated.customer_name == "Luis"
        assert updated.updated_at is not None
        assert len(updated.lines) == 1

    def test_update_missing_sale(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.update_sale(404, total_cents=1)


class TestSaleReads:

    def test_document_uses_default_settings(self, product, store_a, admin, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]
        sale = sales_service.record_sale(
            store_a.id, _items(unit, codes=["IMEI-1"]), admin.id, "CASH", customer_name="Luis"
        )

        doc = sales_service.get_sale_document(sale.id)

        assert doc["sale"]["total_cents"] == 75000
        assert doc["sale"]["customer_name"] == "Luis"
        assert doc["store"]["name"] == "Centro"
        assert doc["employee"]["name"] == "Ana Admin"
        assert doc["lines"][0]["device_codes"] == ["IMEI-1"]
        assert doc["lines"][0]["product_name"] == "Phone X"
        assert doc["settings"]["business_name"] == "Centro"
        assert doc["settings"]["warranty_days"] == 0

    def test_document_uses_stored_settings(self, product, store_a, admin, rate, make_units):
        settings_service.update_settings(store_a.id, {"warranty_days": 90, "footer_text": "Gracias"})
        unit = make_units(product, store_a, "SN-1")[0]
        sale = sales_service.record_sale(store_a.id, _items(unit), admin.id, "CASH")

        doc = sales_service.get_sale_document(sale.id)

        assert doc["settings"]["warranty_days"] == 90
        assert doc["settings"]["footer_text"] == "Gracias"

    def test_list_sales_by_store(self, product, store_a, store_b, admin, rate, make_units):
        a = make_units(product, store_a, "A-1")[0]
        b = make_units(product, store_b, "B-1")[0]
        sales_service.record_sale(store_a.id, _items(a), admin.id, "CASH")
        sales_service.record_sale(store_b.id, _items(b), admin.id, "CASH")

        assert len(sales_service.list_sales()) == 2
        assert [s.store_id for s in sales_service.list_sales(store_id=store_b.id)] == [store_b.id]
