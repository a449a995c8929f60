"""Tests for paged movement listings and lookups."""

import pytest

from inventory_kernel.domain.movement import MovementType
from inventory_kernel.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    ProductNotFoundError,
    TransactionNotFoundError,
)


@pytest.fixture
def ledger(inventory, make_product, clock):
    """Two products, twelve movements, one second apart."""
    a = make_product(stock=100, name="Alpha")
    b = make_product(stock=100, name="Beta")
    ids = []
    for i in range(12):
        product = a if i % 2 == 0 else b
        type = "in" if i % 3 == 0 else "out"
        ids.append(inventory.apply_transaction(product.id, type, i + 1).id)
        clock.advance(1)
    return a, b, ids


class TestListTransactions:
    def test_default_page_is_newest_first(self, inventory, ledger):
        _, _, ids = ledger
        page = inventory.list_transactions()

        assert page.total_items == 12
        assert page.items_per_page == 10
        assert page.total_pages == 2
        assert [t.id for t in page.items] == sorted(ids, reverse=True)[:10]
        assert page.has_next_page and not page.has_prev_page

    def test_second_page(self, inventory, ledger):
        _, _, ids = ledger
        page = inventory.list_transactions(page=2)
        assert [t.id for t in page.items] == sorted(ids, reverse=True)[10:]
        assert page.has_prev_page and not page.has_next_page

    def test_limit_clamped(self, inventory, ledger):
        assert inventory.list_transactions(limit=1000).items_per_page == 100
        assert inventory.list_transactions(limit=0).items_per_page == 1

    def test_sort_by_quantity_ascending(self, inventory, ledger):
        page = inventory.list_transactions(sort_by="quantity", sort_order="asc", limit=3)
        assert [t.quantity for t in page.items] == [1, 2, 3]

    def test_unknown_sort_field_falls_back_to_id(self, inventory, ledger):
        _, _, ids = ledger
        page = inventory.list_transactions(sort_by="notes; DROP TABLE products", limit=12)
        assert [t.id for t in page.items] == sorted(ids, reverse=True)

    def test_filter_by_type_and_product(self, inventory, ledger):
        a, _, _ = ledger
        page = inventory.list_transactions(type="in", product_id=a.id, limit=100)
        assert page.total_items == 2
        assert {t.quantity for t in page.items} == {1, 7}
        assert all(t.type is MovementType.STOCK_IN for t in page.items)

    def test_rows_carry_names(self, inventory, ledger):
        a, _, _ = ledger
        page = inventory.list_transactions(product_id=a.id, limit=1)
        assert page.items[0].product_name == "Alpha"
        assert page.items[0].category_name == "Hardware"

    def test_invalid_type_filter(self, inventory, ledger):
        with pytest.raises(InvalidArgumentError):
            inventory.list_transactions(type="transfer")

    def test_date_window(self, inventory, ledger, clock):
        start = clock.now().replace(second=2)
        end = clock.now().replace(second=4)
        page = inventory.list_transactions(start_date=start, end_date=end)
        assert page.total_items == 3


class TestConvenienceListings:
    def test_by_product(self, inventory, ledger):
        _, b, _ = ledger
        page = inventory.list_by_product(b.id, limit=100)
        assert page.total_items == 6
        assert {t.product_id for t in page.items} == {b.id}

    def test_by_unknown_product(self, inventory, ledger):
        with pytest.raises(ProductNotFoundError):
            inventory.list_by_product(999_999)

    def test_by_type(self, inventory, ledger):
        page = inventory.list_by_type("stock_out", limit=100)
        assert page.total_items == 8

    def test_by_date_range_requires_both_bounds(self, inventory, ledger):
        with pytest.raises(InvalidArgumentError, match="Start date and end date are required"):
            inventory.list_by_date_range("2024-01-01", None)

    def test_by_date_range_whole_day(self, inventory, ledger):
        page = inventory.list_by_date_range("2024-01-01", "2024-01-01", limit=100)
        assert page.total_items == 12

    def test_by_batch_unknown(self, inventory, ledger):
        with pytest.raises(NotFoundError):
            inventory.list_by_batch("00000000-0000-0000-0000-000000000000")


class TestGetTransaction:
    def test_found(self, inventory, ledger):
        a, _, ids = ledger
        tx = inventory.get_transaction(ids[0])
        assert tx.product_id == a.id
        assert tx.quantity == 1

    def test_missing(self, inventory):
        with pytest.raises(TransactionNotFoundError):
            inventory.get_transaction(31337)

    def test_bad_id(self, inventory):
        with pytest.raises(InvalidArgumentError):
            inventory.get_transaction("seven")
