"""Product Store: conditional stock decrement and administrative writes."""

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from pharmatrack.models import Product
from pharmatrack.services import products_service, sales_service
from pharmatrack.services.errors import InsufficientStock, ProductNotFound
from pharmatrack.validation import ConflictError, ValidationError


class TestDecrementStock:
    def test_decrements_when_enough_on_hand(self, db_session, make_product):
        p = make_product(quantity=5)
        version = p.version_id

        products_service.decrement_stock(p.id, 5)
        db_session.commit()

        product = db_session.get(Product, p.id)
        assert product.quantity == 0
        assert product.version_id == version + 1

    def test_refuses_to_go_negative(self, db_session, make_product):
        p = make_product(quantity=2)

        with pytest.raises(InsufficientStock) as exc_info:
            products_service.decrement_stock(p.id, 3)
        db_session.rollback()

        assert exc_info.value.available == 2
        assert exc_info.value.requested == 3
        assert db_session.get(Product, p.id).quantity == 2

    def test_missing_product(self, db_session):
        with pytest.raises(ProductNotFound):
            products_service.decrement_stock(987654, 1)
        db_session.rollback()

    def test_loaded_instance_sees_new_quantity(self, db_session, make_product):
        p = make_product(quantity=9)
        loaded = products_service.get_product(p.id)
        assert loaded.quantity == 9

        products_service.decrement_stock(p.id, 4)

        assert loaded.quantity == 5
        db_session.commit()


class TestAdminWrites:
    def test_create_product(self, db_session, supplier):
        created = products_service.create_product(patch={
            "name": "Loratadine 10mg",
            "price_cents": 799,
            "quantity": 40,
            "supplier_id": supplier.id,
        })

        assert created["id"]
        assert created["reorder_level"] == 0
        assert created["supplier_name"] == "MedSupply Co"

    def test_create_with_unknown_supplier(self, db_session):
        with pytest.raises(ValidationError):
            products_service.create_product(patch={
                "name": "Orphan", "price_cents": 100, "quantity": 1, "supplier_id": 424242,
            })

    def test_update_product(self, db_session, make_product):
        p = make_product(quantity=3, price_cents=100)

        updated = products_service.update_product(product_id=p.id, patch={"quantity": 30, "price_cents": 150})

        assert updated["quantity"] == 30
        assert updated["price_cents"] == 150

    def test_update_missing_product(self, db_session):
        assert products_service.update_product(product_id=555555, patch={"quantity": 1}) is None

    def test_delete_unsold_product(self, db_session, make_product):
        p = make_product()
        assert products_service.delete_product(product_id=p.id) is True
        assert db_session.get(Product, p.id) is None

    def test_delete_sold_product_conflicts(self, db_session, clerk_user, make_product):
        p = make_product(quantity=2)
        sales_service.process_sale(
            user_id=clerk_user.id,
            items=[{"product_id": p.id, "quantity": 1}],
            payment_method="cash",
        )

        with pytest.raises(ConflictError):
            products_service.delete_product(product_id=p.id)
        assert db_session.get(Product, p.id) is not None

    def test_database_refuses_to_orphan_sale_items(self, db_session, clerk_user, make_product):
        p = make_product(quantity=2)
        sales_service.process_sale(
            user_id=clerk_user.id,
            items=[{"product_id": p.id, "quantity": 1}],
            payment_method="cash",
        )

        with pytest.raises(IntegrityError):
            db_session.execute(delete(Product).where(Product.id == p.id))
        db_session.rollback()

        assert db_session.get(Product, p.id) is not None

    def test_out_of_range_ids_are_not_found(self, db_session):
        assert products_service.get_product(2**70) is None
        assert products_service.update_product(product_id=2**70, patch={"quantity": 1}) is None
        assert products_service.delete_product(product_id=2**70) is False


class TestListing:
    def test_pagination_has_no_duplicates(self, db_session, supplier, make_product):
        ids = [make_product(name=f"Drug {i:02d}", supplier_id=supplier.id).id for i in range(7)]

        seen = []
        for page in (1, 2, 3):
            result = products_service.list_products(page=page, per_page=3)
            seen.extend(item["id"] for item in result["items"])

        assert seen == ids
        last = products_service.list_products(page=3, per_page=3)
        assert last["pagination"] == {
            "page": 3, "per_page": 3, "total": 7, "total_pages": 3,
            "has_next": False, "has_prev": True,
        }

    def test_search_by_name_and_id(self, db_session, make_product):
        target = make_product(name="Omeprazole 20mg")
        make_product(name="Metformin 500mg")

        by_name = products_service.list_products(search="omepra")
        assert [i["id"] for i in by_name["items"]] == [target.id]

        by_id = products_service.list_products(search=str(target.id))
        assert target.id in [i["id"] for i in by_id["items"]]

    def test_search_wildcards_match_literally(self, db_session, make_product):
        percent = make_product(name="Hydrocortisone 1% Cream")
        make_product(name="Hydrocortisone 10mg")
        underscore = make_product(name="Vit_D3")
        make_product(name="VitaD3")

        assert [i["id"] for i in products_service.list_products(search="1%")["items"]] == [percent.id]
        assert [i["id"] for i in products_service.list_products(search="t_D")["items"]] == [underscore.id]

    def test_low_stock(self, db_session, make_product):
        low = make_product(name="Low", quantity=2, reorder_level=5)
        edge = make_product(name="Edge", quantity=5, reorder_level=5)
        make_product(name="Plenty", quantity=50, reorder_level=5)

        assert [p.id for p in products_service.list_low_stock()] == [low.id, edge.id]
