"""
StockTransactionProcessor -- apply or reverse one stock movement.

Responsibility:
    Validates a single movement, locks the product row, checks stock,
    records the movement and adjusts stock.  Deleting a movement applies the
    inverse adjustment and removes the row.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes StockLedgerStore and an
    injected Clock.  Called by InventoryService inside one session scope.

Invariants enforced:
    - Stock never goes negative: checked on the locked row, then enforced
      again by the guarded SUBTRACT write.
    - Validation precedes every write, so a rejected call writes nothing.
    - A reversal that would drive stock negative is rejected.
    - A movement is reversed at most once: its row is locked and the delete
      must remove it before stock moves.
    - Stock never exceeds the INTEGER column range.

Failure modes:
    - InvalidArgumentError: bad product id / type / quantity / notes.
    - ProductNotFoundError, TransactionNotFoundError.
    - InsufficientStockError: out (or reversal of an in) exceeds stock.

Usage:
    processor = StockTransactionProcessor(session, clock)
    dto = processor.apply(build_request(7, "stock_out", 3))
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import TransactionDTO
from inventory_kernel.domain.movement import MovementRequest, MovementType
from inventory_kernel.domain.validation import MAX_STOCK
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidArgumentError,
    ProductNotFoundError,
    TransactionNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.converters import transaction_to_dto
from inventory_kernel.models.product import Product
from inventory_kernel.services.stock_ledger import StockLedgerStore, StockUpdateMode

logger = get_logger("services.transaction_processor")


class StockTransactionProcessor:
    """
    Applies and reverses single stock movements.

    Contract:
        ``apply`` takes an already-validated ``MovementRequest``; the facade
        builds it at the boundary.  Both operations leave the session dirty
        and never commit.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._ledger = StockLedgerStore(session)

    def apply(self, request: MovementRequest) -> TransactionDTO:
        """
        Record ``request`` and move the product's stock.

        Raises:
            ProductNotFoundError: product does not exist.
            InsufficientStockError: stock_out exceeds current stock.
        """
        product = self._ledger.find_product(request.product_id, lock=True)
        if product is None:
            raise ProductNotFoundError(request.product_id)

        self._adjust(product, request.type, request.quantity)

        tx = self._ledger.insert_transaction(request, created_at=self._clock.now())

        logger.info(
            "transaction_applied",
            extra={
                "transaction_id": tx.id,
                "product_id": product.id,
                "type": request.type.value,
                "quantity": request.quantity,
            },
        )
        return transaction_to_dto(
            tx,
            product_name=product.name,
            category_name=product.category.name if product.category else None,
        )

    def reverse(self, transaction_id: int) -> TransactionDTO:
        """
        Delete a movement and undo its effect on stock.

        Returns the deleted movement as it was before removal.

        Raises:
            TransactionNotFoundError: no such movement.
            InsufficientStockError: undoing a stock_in would go below zero.
        """
        tx = self._ledger.find_transaction(transaction_id, lock=True)
        if tx is None:
            raise TransactionNotFoundError(transaction_id)

        product = self._ledger.find_product(tx.product_id, lock=True)
        if product is None:
            raise ProductNotFoundError(tx.product_id)

        dto = transaction_to_dto(
            tx,
            product_name=product.name,
            category_name=product.category.name if product.category else None,
        )

        # A row already removed by another caller must not be undone twice
        if not self._ledger.delete_transaction(tx.id):
            raise TransactionNotFoundError(transaction_id)
        self._adjust(product, tx.type.inverse, tx.quantity)
        self._session.expunge(tx)

        logger.info(
            "transaction_reversed",
            extra={
                "transaction_id": dto.id,
                "product_id": product.id,
                "type": dto.type.value,
                "quantity": dto.quantity,
            },
        )
        return dto

    def _adjust(self, product: Product, direction: MovementType, quantity: int) -> int:
        if direction is MovementType.STOCK_IN:
            if product.stock + quantity > MAX_STOCK:
                raise InvalidArgumentError(
                    f"Stock for product {product.id} would exceed {MAX_STOCK}",
                    field="quantity",
                )
            return self._ledger.update_stock(product.id, quantity, StockUpdateMode.ADD)

        if quantity > product.stock:
            logger.warning(
                "stock_rejected",
                extra={
                    "product_id": product.id,
                    "available": product.stock,
                    "requested": quantity,
                },
            )
            raise InsufficientStockError(
                product.id,
                available=product.stock,
                requested=quantity,
                product_name=product.name,
            )
        return self._ledger.update_stock(product.id, quantity, StockUpdateMode.SUBTRACT)
