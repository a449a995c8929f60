"""
StockLedgerStore -- persistence over products' stock and the movement log.

Responsibility:
    The only code path that writes ``products.stock`` or inserts / deletes
    ``stock_transactions`` rows.  Offers row-locked product reads and guarded
    stock writes in three modes (set / add / subtract).

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Used by StockTransactionProcessor and BulkTransactionProcessor.

Invariants enforced:
    - Row locks: ``find_product(lock=True)`` and ``lock_products`` issue
      ``SELECT ... FOR UPDATE``; ``lock_products`` locks in ascending id
      order so two batches touching the same products cannot deadlock.
    - Guarded writes: SUBTRACT is ``UPDATE ... SET stock = stock - q WHERE
      stock >= q`` and SET is a compare-and-swap on the stock value read.
      Even a stale read can therefore never drive stock below zero.

Failure modes:
    - InsufficientStockError: guarded SUBTRACT matched no row.
    - OptimisticLockError: SET compare-and-swap matched no row.
    - ProductNotFoundError: stock write against a missing product.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import Enum

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from inventory_kernel.domain.movement import MovementRequest
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidArgumentError,
    OptimisticLockError,
    ProductNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.product import Product
from inventory_kernel.models.stock_transaction import StockTransaction
from inventory_kernel.services.base import BaseService

logger = get_logger("services.stock_ledger")


class StockUpdateMode(str, Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"


class StockLedgerStore(BaseService[Product]):
    """
    Persistence for stock levels and stock movements.

    Non-goals:
        - Does NOT validate business input (processors do).
        - Does NOT call ``session.commit()``.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # =========================================================================
    # Products
    # =========================================================================

    def find_product(self, product_id: int, lock: bool = False) -> Product | None:
        """Load a product, optionally holding its row lock until commit."""
        stmt = select(Product).where(Product.id == product_id)
        if lock:
            stmt = stmt.with_for_update()
        return self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def lock_products(self, product_ids: Iterable[int]) -> dict[int, Product]:
        """Lock every existing product in ``product_ids`` (ascending id order)."""
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(Product)
            .where(Product.id.in_(ids))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars()
        return {product.id: product for product in rows}

    def current_stock(self, product_id: int) -> int | None:
        return self.session.execute(
            select(Product.stock).where(Product.id == product_id)
        ).scalar_one_or_none()

    def update_stock(
        self,
        product_id: int,
        value: int,
        mode: StockUpdateMode,
        expected: int | None = None,
    ) -> int:
        """
        Write a product's stock and return the resulting value.

        Args:
            product_id: Product to update.
            value: Amount to add / subtract, or the new absolute stock.
            mode: ``set``, ``add`` or ``subtract``.
            expected: For ``set``, the stock value the caller read; the write
                only lands if the row still holds it.

        Raises:
            InvalidArgumentError: negative value.
            ProductNotFoundError: no such product.
            InsufficientStockError: ``subtract`` would go below zero.
            OptimisticLockError: ``set`` lost a compare-and-swap.
        """
        if value < 0:
            raise InvalidArgumentError("Stock value must be non-negative", field="stock")

        stmt = update(Product).where(Product.id == product_id)
        if mode is StockUpdateMode.ADD:
            stmt = stmt.values(stock=Product.stock + value)
        elif mode is StockUpdateMode.SUBTRACT:
            # INVARIANT: stock never drops below zero, even on a stale read
            stmt = stmt.where(Product.stock >= value).values(stock=Product.stock - value)
        else:
            if expected is not None:
                stmt = stmt.where(Product.stock == expected)
            stmt = stmt.values(stock=value)

        result = self.session.execute(
            stmt.execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            stock = self.current_stock(product_id)
            if stock is None:
                raise ProductNotFoundError(product_id)
            if mode is StockUpdateMode.SUBTRACT:
                raise InsufficientStockError(product_id, available=stock, requested=value)
            raise OptimisticLockError(product_id, expected_stock=expected)

        new_stock = self.current_stock(product_id)
        logger.debug(
            "stock_written",
            extra={
                "product_id": product_id,
                "mode": mode.value,
                "value": value,
                "stock": new_stock,
            },
        )
        return new_stock

    # =========================================================================
    # Transactions
    # =========================================================================

    def insert_transaction(
        self,
        request: MovementRequest,
        created_at: datetime,
        batch_id: str | None = None,
    ) -> StockTransaction:
        tx = StockTransaction(
            product_id=request.product_id,
            type=request.type,
            quantity=request.quantity,
            notes=request.notes,
            batch_id=batch_id,
            created_at=created_at,
        )
        self.session.add(tx)
        self.session.flush()
        return tx

    def insert_transactions(
        self,
        requests: Sequence[MovementRequest],
        created_at: datetime,
        batch_id: str,
    ) -> list[StockTransaction]:
        """Insert a batch of rows in one flush; ids come back in request order."""
        rows = [
            StockTransaction(
                product_id=request.product_id,
                type=request.type,
                quantity=request.quantity,
                notes=request.notes,
                batch_id=batch_id,
                created_at=created_at,
            )
            for request in requests
        ]
        self.session.add_all(rows)
        self.session.flush()
        return rows

    def find_transaction(
        self, transaction_id: int, lock: bool = False
    ) -> StockTransaction | None:
        """Load a movement row, optionally holding its row lock until commit."""
        stmt = select(StockTransaction).where(StockTransaction.id == transaction_id)
        if lock:
            stmt = stmt.with_for_update()
        return self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def delete_transaction(self, transaction_id: int) -> bool:
        result = self.session.execute(
            delete(StockTransaction)
            .where(StockTransaction.id == transaction_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def count_transactions(self, product_id: int) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(StockTransaction)
            .where(StockTransaction.product_id == product_id)
        ).scalar_one()
