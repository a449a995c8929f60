"""Tests for the guarded stock writes of StockLedgerStore."""

import pytest

from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidArgumentError,
    OptimisticLockError,
    ProductNotFoundError,
)
from inventory_kernel.services.stock_ledger import StockLedgerStore, StockUpdateMode


@pytest.fixture
def product(make_product):
    return make_product(stock=5)


class TestUpdateStock:
    def test_add_and_subtract(self, database, product, current_stock):
        with database.session_scope() as session:
            store = StockLedgerStore(session)
            assert store.update_stock(product.id, 3, StockUpdateMode.ADD) == 8
            assert store.update_stock(product.id, 8, StockUpdateMode.SUBTRACT) == 0
        assert current_stock(product.id) == 0

    def test_subtract_guard_ignores_stale_read(self, database, product, current_stock):
        with pytest.raises(InsufficientStockError) as exc_info:
            with database.session_scope() as session:
                StockLedgerStore(session).update_stock(product.id, 6, StockUpdateMode.SUBTRACT)
        assert (exc_info.value.available, exc_info.value.requested) == (5, 6)
        assert current_stock(product.id) == 5

    def test_set_with_matching_expected(self, database, product, current_stock):
        with database.session_scope() as session:
            StockLedgerStore(session).update_stock(product.id, 9, StockUpdateMode.SET, expected=5)
        assert current_stock(product.id) == 9

    def test_set_lost_compare_and_swap(self, database, product, current_stock):
        with pytest.raises(OptimisticLockError) as exc_info:
            with database.session_scope() as session:
                StockLedgerStore(session).update_stock(
                    product.id, 9, StockUpdateMode.SET, expected=4
                )
        assert exc_info.value.expected_stock == 4
        assert current_stock(product.id) == 5

    def test_unknown_product(self, database):
        with pytest.raises(ProductNotFoundError):
            with database.session_scope() as session:
                StockLedgerStore(session).update_stock(999_999, 1, StockUpdateMode.ADD)

    def test_negative_value(self, database, product):
        with pytest.raises(InvalidArgumentError):
            with database.session_scope() as session:
                StockLedgerStore(session).update_stock(product.id, -1, StockUpdateMode.ADD)


class TestLocking:
    def test_lock_products_skips_missing_ids(self, database, make_product):
        a = make_product(stock=1)
        b = make_product(stock=2)
        with database.session_scope() as session:
            locked = StockLedgerStore(session).lock_products([b.id, 424_242, a.id, b.id])
            assert sorted(locked) == sorted([a.id, b.id])
            assert locked[b.id].stock == 2

    def test_lock_nothing(self, database):
        with database.session_scope() as session:
            assert StockLedgerStore(session).lock_products([]) == {}
