"""Tests for category and product maintenance."""

from decimal import Decimal

import pytest

from inventory_kernel.exceptions import (
    CategoryNotFoundError,
    CategoryReferencedError,
    InvalidArgumentError,
    ProductNotFoundError,
    ProductReferencedError,
)


class TestCategories:
    def test_create_and_get(self, inventory):
        created = inventory.create_category("  Paint ", "Cans")
        fetched = inventory.get_category(created.id)
        assert fetched.name == "Paint"
        assert fetched.description == "Cans"
        assert inventory.category_exists(created.id)

    def test_duplicate_name_rejected_case_insensitively(self, inventory, category):
        with pytest.raises(InvalidArgumentError, match="already exists"):
            inventory.create_category("hardware")

    def test_update(self, inventory, category):
        updated = inventory.update_category(category.id, name="Tools")
        assert updated.name == "Tools"
        assert updated.description == "Tools and parts"

    def test_update_keeps_own_name(self, inventory, category):
        assert inventory.update_category(category.id, name="Hardware").name == "Hardware"

    def test_update_unknown_field(self, inventory, category):
        with pytest.raises(InvalidArgumentError, match="Unknown category fields: colour"):
            inventory.update_category(category.id, colour="red")

    def test_delete_empty_category(self, inventory):
        created = inventory.create_category("Temporary")
        inventory.delete_category(created.id)
        assert not inventory.category_exists(created.id)
        with pytest.raises(CategoryNotFoundError):
            inventory.get_category(created.id)

    def test_delete_category_with_products_forbidden(self, inventory, category, make_product):
        make_product()
        make_product()
        with pytest.raises(CategoryReferencedError) as exc_info:
            inventory.delete_category(category.id)
        assert exc_info.value.product_count == 2
        assert inventory.category_exists(category.id)

    def test_list_sorted_by_name(self, inventory):
        inventory.create_category("Zinc")
        inventory.create_category("Adhesives")
        assert [c.name for c in inventory.list_categories()] == ["Adhesives", "Zinc"]


class TestProducts:
    def test_create_with_initial_stock(self, inventory, category):
        product = inventory.create_product(
            "Hammer", category.id, description="Claw", price="12.5", stock=4
        )
        assert product.stock == 4
        assert product.price == Decimal("12.50")
        assert product.category_name == "Hardware"
        assert inventory.get_product(product.id).stock == 4

    def test_defaults(self, inventory, category):
        product = inventory.create_product("Nail", category.id)
        assert product.stock == 0
        assert product.price == Decimal("0.00")

    @pytest.mark.parametrize("kwargs", [{"stock": -1}, {"price": "-2"}, {"stock": "many"}, {"stock": 2**31}])
    def test_negative_values_rejected(self, inventory, category, kwargs):
        with pytest.raises(InvalidArgumentError):
            inventory.create_product("Nail", category.id, **kwargs)

    def test_unknown_category(self, inventory):
        with pytest.raises(CategoryNotFoundError):
            inventory.create_product("Nail", 123_456)

    def test_update_rejects_stock(self, inventory, make_product):
        product = make_product(stock=3)
        with pytest.raises(InvalidArgumentError, match="stock transactions"):
            inventory.update_product(product.id, stock=100)
        assert inventory.get_product(product.id).stock == 3

    def test_update_fields(self, inventory, make_product):
        other = inventory.create_category("Garden")
        product = make_product()
        updated = inventory.update_product(
            product.id, name="Rake", price="3", category_id=other.id
        )
        assert updated.name == "Rake"
        assert updated.price == Decimal("3.00")
        assert updated.category_id == other.id
        assert updated.category_name == "Garden"

    def test_update_unknown_category(self, inventory, make_product):
        product = make_product()
        with pytest.raises(CategoryNotFoundError):
            inventory.update_product(product.id, category_id=999_999)

    def test_delete_without_movements(self, inventory, make_product):
        product = make_product()
        inventory.delete_product(product.id)
        with pytest.raises(ProductNotFoundError):
            inventory.get_product(product.id)

    def test_delete_with_movements_forbidden(self, inventory, make_product):
        product = make_product(stock=1)
        inventory.apply_transaction(product.id, "out", 1)
        with pytest.raises(ProductReferencedError) as exc_info:
            inventory.delete_product(product.id)
        assert exc_info.value.transaction_count == 1
        assert inventory.get_product(product.id).stock == 0

    def test_list_with_search_and_paging(self, inventory, make_product):
        for name in ["Red paint", "Blue paint", "Brush", "Green paint"]:
            make_product(name=name)

        page = inventory.list_products(search="PAINT", limit=2, sort_by="name", sort_order="asc")

        assert page.total_items == 3
        assert page.total_pages == 2
        assert [p.name for p in page.items] == ["Blue paint", "Green paint"]
        assert page.has_next_page

    def test_list_by_category(self, inventory, make_product):
        other = inventory.create_category("Garden")
        make_product()
        make_product(category_id=other.id, name="Hose")
        page = inventory.list_products(category_id=other.id)
        assert [p.name for p in page.items] == ["Hose"]

    def test_low_stock(self, inventory, make_product):
        low = make_product(stock=2, name="Low")
        make_product(stock=50, name="Plenty")
        empty = make_product(stock=0, name="Empty")

        assert [p.id for p in inventory.list_low_stock()] == [empty.id, low.id]
        assert [p.id for p in inventory.list_low_stock(0)] == [empty.id]
