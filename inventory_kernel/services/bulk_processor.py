"""
BulkTransactionProcessor -- all-or-nothing application of a movement batch.

Responsibility:
    Validates every entry of a batch, aggregates the per-product net change
    against stock read once under row lock, rejects the batch if any product
    would go negative, then inserts every row under one batch id and writes
    each product's resulting stock.

Architecture position:
    Kernel > Services -- imperative shell.  Arithmetic lives in
    ``inventory_kernel.domain.net_change``; reads and writes go through
    StockLedgerStore.

Invariants enforced:
    - Net-change semantics: ``[out 15, in 20]`` on stock 10 succeeds (final
      15) because only ``current + net`` must be non-negative.
    - First failure wins: entries are checked in order and the error names
      the 1-based index of the first bad entry.
    - Products are locked in ascending id order, once per batch.
    - Stock is written with a compare-and-swap on the value read; a lost
      swap raises OptimisticLockError for the facade to retry.

Failure modes:
    - InvalidArgumentError: input is not a non-empty list.
    - BulkValidationError: entry ``i`` has a bad field or unknown product.
    - InsufficientStockError: aggregate would drive a product negative;
      ``requested`` is the product's total stock_out in the batch.
    - InvalidArgumentError: aggregate would push a product past MAX_STOCK.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import BulkResult
from inventory_kernel.domain.movement import MovementRequest
from inventory_kernel.domain.net_change import aggregate
from inventory_kernel.domain.validation import MAX_STOCK, coerce_request
from inventory_kernel.exceptions import (
    KIND_NOT_FOUND,
    BulkValidationError,
    InsufficientStockError,
    InvalidArgumentError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.stock_ledger import StockLedgerStore, StockUpdateMode

logger = get_logger("services.bulk_processor")


class BulkTransactionProcessor:
    """
    Applies a batch of movements as one unit.

    Non-goals:
        - Does NOT commit; the facade's session scope does.
        - Does NOT report partial success.  Either every row lands or none.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_factory: Callable[[], object] = uuid4,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._id_factory = id_factory
        self._ledger = StockLedgerStore(session)

    def apply(self, raw: object) -> BulkResult:
        entries = self._entries(raw)

        # Pass 1: parse every entry, remembering the first field error
        parsed: list[MovementRequest | None] = []
        first_error: tuple[int, InvalidArgumentError] | None = None
        for index, item in enumerate(entries, start=1):
            try:
                parsed.append(coerce_request(item))
            except InvalidArgumentError as exc:
                parsed.append(None)
                if first_error is None:
                    first_error = (index, exc)

        products = self._ledger.lock_products(
            request.product_id for request in parsed if request is not None
        )

        # Pass 2: walk the batch in order; the first bad entry aborts it
        for index, request in enumerate(parsed, start=1):
            if request is None:
                error_index, exc = first_error
                raise BulkValidationError(error_index, str(exc), field=exc.field)
            if request.product_id not in products:
                raise BulkValidationError(
                    index,
                    f"Product with ID {request.product_id} not found",
                    field="product_id",
                    kind=KIND_NOT_FOUND,
                )

        ledger = aggregate(
            parsed,
            {pid: (product.name, product.stock) for pid, product in products.items()},
        )

        infeasible = ledger.first_infeasible()
        if infeasible is not None:
            logger.warning(
                "stock_rejected",
                extra={
                    "product_id": infeasible.product_id,
                    "available": infeasible.current_stock,
                    "requested": infeasible.total_out,
                    "net_change": infeasible.net_change,
                },
            )
            raise InsufficientStockError(
                infeasible.product_id,
                available=infeasible.current_stock,
                requested=infeasible.total_out,
                product_name=infeasible.product_name,
            )

        overflow = ledger.first_overflowing(MAX_STOCK)
        if overflow is not None:
            raise InvalidArgumentError(
                f"Stock for product {overflow.product_id} would exceed {MAX_STOCK}",
                field="quantity",
            )

        batch_id = str(self._id_factory())
        with LogContext.bind(batch_id=batch_id):
            rows = self._ledger.insert_transactions(
                parsed, created_at=self._clock.now(), batch_id=batch_id
            )
            stock_after = {
                delta.product_id: delta.current_stock
                for delta in ledger.deltas.values()
            }
            for delta in ledger.changed():
                stock_after[delta.product_id] = self._ledger.update_stock(
                    delta.product_id,
                    delta.resulting_stock,
                    StockUpdateMode.SET,
                    expected=delta.current_stock,
                )

            logger.info(
                "bulk_applied",
                extra={
                    "inserted_count": len(rows),
                    "products": sorted(stock_after),
                },
            )
        return BulkResult(
            batch_id=batch_id,
            inserted_ids=tuple(row.id for row in rows),
            stock_after=stock_after,
        )

    @staticmethod
    def _entries(raw: object) -> Sequence[object]:
        if (
            isinstance(raw, (str, bytes, Mapping))
            or not isinstance(raw, Sequence)
            or len(raw) == 0
        ):
            raise InvalidArgumentError(
                "Transactions data must be a non-empty array", field="transactions"
            )
        return raw
