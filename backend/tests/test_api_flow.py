"""
End-to-end API flows: catalog setup, unit assignment, selling, transferring
and reporting through the HTTP layer.
"""

from stockflow.extensions import db
from stockflow.models import Unit


def _create_product(client, headers, **overrides):
    body = {"name": "Phone Z", "cost_price_cents": 20000, "profit_bob_cents": 10000, "ram_gb": 6}
    body.update(overrides)
    resp = client.post("/api/products", headers=headers, json=body)
    assert resp.status_code == 201, resp.json
    return resp.json


def _assign(client, headers, product_id, store_id, *codes):
    ids = []
    for code in codes:
        resp = client.post("/api/units", headers=headers, json={
            "product_id": product_id, "store_id": store_id, "scan_code": code,
        })
        assert resp.status_code == 201, resp.json
        ids.append(resp.json["id"])
    return ids


class TestSellingFlow:

    def test_assign_sell_and_report(self, client, admin_headers, login, seller, store_a):
        assert client.post("/api/exchange-rates", headers=admin_headers, json={"rate": "6.96"}).status_code == 201
        product = _create_product(client, admin_headers)
        _assign(client, admin_headers, product["id"], store_a.id, "Z-1", "Z-2")

        seller_headers = login("seller")
        listing = client.get("/api/products", headers=seller_headers).json["items"]
        # 200.00 * 6.96 + 100.00 = 1492.00
        assert listing[0]["final_price_cents"] == 149200
        assert listing[0]["available_count"] == 2

        unit = client.get("/api/units/by-code/Z-1", headers=seller_headers).json
        assert unit["product_name"] == "Phone Z"

        resp = client.post("/api/sales", headers=seller_headers, json={
            "items": [{"unit": {"scan_code": "Z-1", "version_id": unit["version_id"]}, "device_codes": ["35-0001"]}],
            "payment_method": "qr",
            "customer_name": "Carla",
        })
        assert resp.status_code == 201, resp.json
        sale = resp.json
        assert sale["store_id"] == store_a.id
        assert sale["total_cents"] == 149200
        assert sale["lines"][0]["device_codes"] == ["35-0001"]

        product_view = client.get(f"/api/products/{product['id']}", headers=seller_headers).json
        assert product_view["available_count"] == 1

        doc = client.get(f"/api/sales/{sale['id']}/document", headers=seller_headers).json
        assert doc["employee"]["name"] == "Sam Seller"
        assert doc["lines"][0]["specs"]["ram_gb"] == 6

        dashboard = client.get("/api/reports/dashboard", headers=seller_headers).json
        assert dashboard["total_sales_cents"] == 149200
        assert dashboard["total_units"] == 1

    def test_resale_reports_conflict_details(self, client, admin_headers, product, store_a, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]
        body = {"items": [unit.id], "payment_method": "CASH"}

        assert client.post("/api/sales", headers=admin_headers, json=body).status_code == 201
        resp = client.post("/api/sales", headers=admin_headers, json=body)

        assert resp.status_code == 409
        assert resp.json["details"]["units"][0]["reason"] == "SOLD"

    def test_sale_without_rate(self, client, admin_headers, product, store_a, make_units):
        make_units(product, store_a, "SN-1", "SN-2")

        resp = client.post("/api/sales", headers=admin_headers, json={"items": ["SN-1"], "payment_method": "CASH"})
        assert resp.status_code == 400

        resp = client.post("/api/sales", headers=admin_headers, json={
            "items": ["SN-2"], "payment_method": "CASH", "total_cents": 50000,
        })
        assert resp.status_code == 201
        assert resp.json["computed_total_cents"] is None

    def test_store_id_sent_as_text_is_400(self, client, admin_headers, seller_headers, product, store_a, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]
        body = {"store_id": str(store_a.id), "items": [unit.id], "payment_method": "CASH"}

        for headers in (admin_headers, seller_headers):
            resp = client.post("/api/sales", headers=headers, json=body)
            assert resp.status_code == 400
            assert resp.json["error"] == "store_id must be an integer"

        resp = client.post("/api/transfers", headers=seller_headers, json={
            "origin_store_id": str(store_a.id), "destination_store_id": 9999, "units": [unit.id],
        })
        assert resp.status_code == 400

        db.session.expire_all()
        assert db.session.get(Unit, unit.id).sold is False

    def test_dashboard_year_zero_is_400(self, client, admin_headers):
        assert client.get("/api/reports/dashboard?year=0", headers=admin_headers).status_code == 400
        assert client.get("/api/reports/dashboard", headers=admin_headers).status_code == 200

    def test_correction_returns_unit(self, client, admin_headers, product, store_a, rate, make_units):
        unit = make_units(product, store_a, "SN-1")[0]
        sale = client.post("/api/sales", headers=admin_headers, json={
            "items": [unit.id], "payment_method": "CASH",
        }).json

        resp = client.delete(f"/api/sales/{sale['id']}/lines/{sale['lines'][0]['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["item_count"] == 0

        resp = client.patch(f"/api/sales/{sale['id']}", headers=admin_headers, json={"total_cents": 0})
        assert resp.json["total_cents"] == 0

        db.session.expire_all()
        assert db.session.get(Unit, unit.id).sold is False

    def test_duplicate_scan_code_is_409(self, client, admin_headers, product, store_a, store_b):
        _assign(client, admin_headers, product.id, store_a.id, "DUP-1")

        resp = client.post("/api/units", headers=admin_headers, json={
            "product_id": product.id, "store_id": store_b.id, "scan_code": "DUP-1",
        })

        assert resp.status_code == 409
        assert resp.json["details"]["scan_code"] == "DUP-1"


class TestTransferFlow:

    def test_seller_transfers_from_home_store(self, client, seller_headers, product, store_a, store_b, make_units):
        u1, u2 = make_units(product, store_a, "T-1", "T-2")

        resp = client.post("/api/transfers", headers=seller_headers, json={
            "destination_store_id": store_b.id,
            "units": [u1.id, "T-2"],
            "note": "weekend stock",
        })

        assert resp.status_code == 201, resp.json
        assert resp.json["origin_store_id"] == store_a.id
        assert resp.json["destination_store_name"] == "Norte"
        assert len(resp.json["lines"]) == 2

        listed = client.get("/api/transfers", headers=seller_headers).json
        assert listed["count"] == 1

        db.session.expire_all()
        assert {u.store_id for u in db.session.query(Unit).all()} == {store_b.id}

    def test_transfer_to_same_store_is_400(self, client, admin_headers, product, store_a, make_units):
        unit = make_units(product, store_a, "T-1")[0]

        resp = client.post("/api/transfers", headers=admin_headers, json={
            "origin_store_id": store_a.id,
            "destination_store_id": store_a.id,
            "units": [unit.id],
        })

        assert resp.status_code == 400

    def test_movements_merge_sales_and_transfers(
        self, client, admin_headers, product, store_a, store_b, rate, make_units
    ):
        sold, moved = make_units(product, store_a, "M-1", "M-2")
        client.post("/api/sales", headers=admin_headers, json={"items": [sold.id], "payment_method": "CASH"})
        client.post("/api/transfers", headers=admin_headers, json={
            "origin_store_id": store_a.id, "destination_store_id": store_b.id, "units": [moved.id],
        })

        rows = client.get("/api/movements", headers=admin_headers).json["items"]
        assert sorted(r["type"] for r in rows) == ["SALE", "TRANSFER"]

        only_transfers = client.get("/api/movements?type=transfer", headers=admin_headers).json["items"]
        assert [r["scan_code"] for r in only_transfers] == ["M-2"]

        assert client.get("/api/movements?date=yesterday", headers=admin_headers).status_code == 400
        assert client.get("/api/movements?type=RETURN", headers=admin_headers).status_code == 400


class TestAdministration:

    def test_store_lifecycle(self, client, admin_headers, store_a):
        created = client.post("/api/stores", headers=admin_headers, json={"name": "Este"})
        assert created.status_code == 201

        assert client.post("/api/stores", headers=admin_headers, json={"name": "Este"}).status_code == 409
        assert client.delete(f"/api/stores/{store_a.id}", headers=admin_headers).status_code == 409
        assert client.delete(f"/api/stores/{created.json['id']}", headers=admin_headers).status_code == 200

    def test_receipt_settings(self, client, admin_headers, seller_headers, store_a):
        resp = client.put(f"/api/stores/{store_a.id}/receipt-settings", headers=admin_headers, json={
            "business_name": "Celulares Centro",
            "warranty_days": 180,
        })
        assert resp.status_code == 200

        resp = client.get(f"/api/stores/{store_a.id}/receipt-settings", headers=seller_headers)
        assert resp.json["business_name"] == "Celulares Centro"
        assert resp.json["warranty_days"] == 180

        resp = client.put(f"/api/stores/{store_a.id}/receipt-settings", headers=admin_headers, json={
            "warranty_days": -1,
        })
        assert resp.status_code == 400

    def test_employee_management(self, client, admin, admin_headers, store_a):
        resp = client.post("/api/employees", headers=admin_headers, json={
            "first_name": "Rita",
            "last_name": "Quispe",
            "position": "SALES",
            "username": "rita",
            "password": "Password123!",
            "store_id": store_a.id,
        })
        assert resp.status_code == 201
        rita_id = resp.json["id"]

        assert client.post(f"/api/employees/{admin.id}/deactivate", headers=admin_headers).status_code == 400
        assert client.post(f"/api/employees/{rita_id}/deactivate", headers=admin_headers).status_code == 200
        resp = client.post("/api/auth/login", json={"username": "rita", "password": "Password123!"})
        assert resp.status_code == 401

    def test_positions_catalog(self, client, admin_headers, seller_headers):
        resp = client.get("/api/employees/positions", headers=admin_headers)

        assert resp.status_code == 200
        assert "CREATE_SALE" in resp.json["positions"]["SALES"]
        assert "MANAGE_UNITS" not in resp.json["positions"]["SALES"]
        categories = {c["category"]: c["permissions"] for c in resp.json["categories"]}
        assert "TRANSFER_ANY_STORE" in [p["code"] for p in categories["TRANSFERS"]]

        assert client.get("/api/employees/positions", headers=seller_headers).status_code == 403

    def test_unit_lookup_is_store_scoped(self, client, seller_headers, product, store_a, store_b, make_units):
        home = make_units(product, store_a, "U-1")[0]
        away = make_units(product, store_b, "U-2")[0]

        resp = client.get(f"/api/units/{home.id}", headers=seller_headers)
        assert resp.status_code == 200
        assert resp.json["scan_code"] == "U-1"

        assert client.get(f"/api/units/{away.id}", headers=seller_headers).status_code == 403
        assert client.get("/api/units/9999", headers=seller_headers).status_code == 404

    def test_purchase_order_payments(self, client, admin_headers, product):
        supplier = client.post("/api/suppliers", headers=admin_headers, json={"first_name": "Mayorista"}).json
        order = client.post("/api/purchase-orders", headers=admin_headers, json={
            "supplier_id": supplier["id"],
            "items": [{"product_id": product.id, "quantity": 5, "total_price_cents": 50000}],
        }).json
        assert order["status"] == "PENDING"

        resp = client.post(f"/api/purchase-orders/{order['id']}/payments", headers=admin_headers, json={
            "amount_cents": 20000,
        })
        assert resp.status_code == 201
        assert resp.json["status"] == "PARTIALLY_PAID"

        resp = client.post(f"/api/purchase-orders/{order['id']}/payments", headers=admin_headers, json={
            "amount_cents": 40000,
        })
        assert resp.status_code == 400

        payments = client.get(f"/api/purchase-orders/{order['id']}/payments", headers=admin_headers).json
        assert [p["payment_method"] for p in payments] == ["OTHER"]

        assert client.delete(f"/api/suppliers/{supplier['id']}", headers=admin_headers).status_code == 409

    def test_exchange_rate_history(self, client, admin_headers):
        assert client.get("/api/exchange-rates/current", headers=admin_headers).json["rate"] is None

        client.post("/api/exchange-rates", headers=admin_headers, json={"rate": "6.90"})
        client.post("/api/exchange-rates", headers=admin_headers, json={"rate": "6.96"})

        assert client.get("/api/exchange-rates/current", headers=admin_headers).json["rate"] == "6.9600"
        assert client.get("/api/exchange-rates", headers=admin_headers).json["count"] == 2
        assert client.post("/api/exchange-rates", headers=admin_headers, json={"rate": "0"}).status_code == 400
