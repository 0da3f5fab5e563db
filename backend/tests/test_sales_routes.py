"""HTTP surface of the sale flow."""

import pytest

from pharmatrack.models import Product, Sale


def _post_sale(client, headers, items, payment_method="cash"):
    return client.post("/api/sales", json={"items": items, "payment_method": payment_method}, headers=headers)


class TestCreateSale:
    def test_requires_authentication(self, client, db_session):
        response = client.post("/api/sales", json={"items": [], "payment_method": "cash"})
        assert response.status_code == 401

    def test_clerk_creates_sale(self, client, db_session, clerk_headers, make_product):
        p1 = make_product(name="Aspirin", price_cents=500, quantity=10)
        p2 = make_product(name="Vitamin C", price_cents=1000, quantity=10)

        response = _post_sale(client, clerk_headers, [
            {"product_id": p1.id, "quantity": 2, "unit_price_cents": 500},
            {"product_id": p2.id, "quantity": 1, "unit_price_cents": 1000},
        ])

        assert response.status_code == 201
        sale = response.get_json()["sale"]
        assert (sale["subtotal_cents"], sale["tax_cents"], sale["total_cents"]) == (2000, 160, 2160)
        assert [i["name"] for i in sale["items"]] == ["Aspirin", "Vitamin C"]

        db_session.expire_all()
        assert db_session.get(Product, p1.id).quantity == 8
        assert db_session.get(Product, p2.id).quantity == 9

    def test_insufficient_stock_is_409(self, client, db_session, clerk_headers, make_product):
        p = make_product(price_cents=500, quantity=1)

        response = _post_sale(client, clerk_headers, [{"product_id": p.id, "quantity": 5}])

        assert response.status_code == 409
        body = response.get_json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["details"] == {"product_id": p.id, "available": 1, "requested": 5}

        db_session.expire_all()
        assert db_session.get(Product, p.id).quantity == 1
        assert db_session.query(Sale).count() == 0

    def test_validation_error_is_400(self, client, db_session, clerk_headers):
        response = _post_sale(client, clerk_headers, [])

        assert response.status_code == 400
        body = response.get_json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "items"

    def test_unknown_product_is_404(self, client, db_session, clerk_headers):
        response = _post_sale(client, clerk_headers, [{"product_id": 999999, "quantity": 1}])

        assert response.status_code == 404
        assert response.get_json()["code"] == "PRODUCT_NOT_FOUND"

    @pytest.mark.parametrize("line, field", [
        ({"product_id": 2**70, "quantity": 1}, "items[0].product_id"),
        ({"product_id": 1, "quantity": 2**70}, "items[0].quantity"),
    ])
    def test_out_of_range_integers_are_400(self, client, db_session, clerk_headers, line, field):
        response = _post_sale(client, clerk_headers, [line])

        assert response.status_code == 400
        body = response.get_json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"] == {"field": field}

    def test_price_mismatch_is_409(self, client, db_session, clerk_headers, make_product):
        p = make_product(price_cents=500)

        response = _post_sale(client, clerk_headers, [{"product_id": p.id, "quantity": 1, "unit_price_cents": 1}])

        assert response.status_code == 409
        assert response.get_json()["code"] == "PRICE_MISMATCH"


class TestReadSales:
    def test_get_receipt(self, client, db_session, clerk_headers, make_product):
        p = make_product(name="Saline", price_cents=250, quantity=4)
        created = _post_sale(client, clerk_headers, [{"product_id": p.id, "quantity": 2}], "card").get_json()["sale"]

        response = client.get(f"/api/sales/{created['id']}", headers=clerk_headers)

        assert response.status_code == 200
        assert response.get_json()["sale"] == created

    def test_get_missing_sale(self, client, db_session, clerk_headers):
        response = client.get("/api/sales/424242", headers=clerk_headers)
        assert response.status_code == 404

    def test_ledger_listing_is_admin_only(self, client, db_session, admin_headers, clerk_headers, make_product):
        p = make_product(quantity=10)
        for _ in range(3):
            _post_sale(client, clerk_headers, [{"product_id": p.id, "quantity": 1}])

        assert client.get("/api/sales", headers=clerk_headers).status_code == 403

        response = client.get("/api/sales?page=1&per_page=2", headers=admin_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert body["count"] == 2
        assert body["pagination"]["total"] == 3
        assert body["items"][0]["clerk_name"] == "Clerk"
        assert body["items"][0]["id"] > body["items"][1]["id"]

    def test_mine_only_lists_callers_sales(self, client, db_session, admin_headers, clerk_headers, make_product):
        p = make_product(quantity=10)
        _post_sale(client, clerk_headers, [{"product_id": p.id, "quantity": 1}])
        _post_sale(client, admin_headers, [{"product_id": p.id, "quantity": 1}])

        body = client.get("/api/sales/mine", headers=clerk_headers).get_json()

        assert body["pagination"]["total"] == 1
        assert body["items"][0]["clerk_name"] == "Clerk"
