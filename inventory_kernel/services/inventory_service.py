"""
InventoryService -- public facade over the inventory kernel.

Responsibility:
    Owns the store handle, validates raw arguments at the boundary, runs
    every operation inside exactly one database transaction, retries
    transient write conflicts, and returns frozen DTOs.

Architecture position:
    Kernel > Services -- outermost kernel seam.  The (excluded) controller
    layer calls this class and maps ``InventoryKernelError.http_status``.

Invariants enforced:
    - One operation == one session scope: commit on success, rollback on
      any error, so a rejected call never leaves partial writes.
    - Transient conflicts (lost compare-and-swap, deadlock, serialization
      failure, lock timeout, SQLite "database is locked") are retried up to
      ``max_retries`` times with linear backoff, then surface as
      ConcurrencyError.
    - Any other SQLAlchemy failure surfaces as StorageError.  Domain errors
      propagate unchanged.

Usage:
    db = Database.from_url("sqlite:///inventory.db")
    db.create_tables()
    inventory = InventoryService(db)
    inventory.apply_transaction(1, "stock_in", 10)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.db.engine import Database
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    BatchDTO,
    BulkResult,
    CategoryDTO,
    ProductDTO,
    StockSummaryDTO,
    TransactionDTO,
)
from inventory_kernel.domain.movement import MovementType
from inventory_kernel.domain.paging import Page, PagePolicy, PageRequest
from inventory_kernel.domain.validation import (
    build_request,
    parse_date_bound,
    parse_date_range,
    parse_non_negative_int,
    parse_positive_int,
    parse_product_id,
)
from inventory_kernel.exceptions import (
    ConcurrencyError,
    InvalidArgumentError,
    NotFoundError,
    OptimisticLockError,
    ProductNotFoundError,
    StorageError,
    TransactionNotFoundError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.product_selector import PRODUCT_SORT_FIELDS, ProductSelector
from inventory_kernel.selectors.stock_summary_selector import StockSummarySelector
from inventory_kernel.selectors.transaction_selector import (
    TRANSACTION_SORT_FIELDS,
    TransactionFilter,
    TransactionSelector,
)
from inventory_kernel.services.bulk_processor import BulkTransactionProcessor
from inventory_kernel.services.category_service import CategoryService
from inventory_kernel.services.product_service import ProductService
from inventory_kernel.services.transaction_processor import StockTransactionProcessor

logger = get_logger("services.inventory")

T = TypeVar("T")

# PostgreSQL SQLSTATEs worth another attempt
_TRANSIENT_SQLSTATES = frozenset({
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
})


def is_transient(exc: BaseException) -> bool:
    """True if ``exc`` is a write conflict that a fresh attempt may clear."""
    if isinstance(exc, OptimisticLockError):
        return True
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if code in _TRANSIENT_SQLSTATES:
            return True
        return "database is locked" in str(orig).lower()
    return False


class InventoryService:
    """
    Facade for stock movements, stock queries and catalog maintenance.

    Contract:
        Every public method accepts raw boundary values (ints, strings,
        ``in``/``out`` aliases, ISO dates), returns DTOs or ``Page`` objects,
        and raises only ``InventoryKernelError`` subclasses.

    Guarantees:
        - Stock never becomes negative, under any interleaving of callers.
        - A bulk batch is applied entirely or not at all.
    """

    def __init__(
        self,
        database: Database,
        clock: Clock | None = None,
        page_policy: PagePolicy | None = None,
        max_retries: int = 5,
        backoff_seconds: float = 0.05,
        low_stock_threshold: int = 10,
    ):
        self._db = database
        self._clock = clock or SystemClock()
        self._page_policy = page_policy or PagePolicy()
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._low_stock_threshold = low_stock_threshold

    # =========================================================================
    # Transaction scope
    # =========================================================================

    def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        """Run ``work`` in one session scope, retrying transient conflicts."""
        attempt = 0
        while True:
            try:
                with self._db.session_scope() as session:
                    return work(session)
            except (OptimisticLockError, SQLAlchemyError) as exc:
                if not is_transient(exc):
                    logger.error(
                        "storage_failure",
                        extra={"operation": operation, "error": str(exc)},
                    )
                    raise StorageError(operation, str(exc)) from exc
                if attempt >= self._max_retries:
                    logger.warning(
                        "retries_exhausted",
                        extra={"operation": operation, "attempts": attempt + 1},
                    )
                    raise ConcurrencyError(
                        f"{operation} conflicted with concurrent writers "
                        f"after {attempt + 1} attempt(s)"
                    ) from exc
                attempt += 1
                logger.info(
                    "retrying_after_conflict",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "error": type(exc).__name__,
                    },
                )
                time.sleep(self._backoff_seconds * attempt)

    def _page(
        self,
        page: object,
        limit: object,
        sort_by: str | None,
        sort_order: str | None,
        allowed_sort: frozenset[str],
    ) -> PageRequest:
        return PageRequest.normalize(
            page,
            limit,
            sort_by,
            sort_order,
            allowed_sort=allowed_sort,
            policy=self._page_policy,
        )

    @staticmethod
    def _require_product(session: Session, product_id: int) -> Product:
        product = session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    # =========================================================================
    # Stock movements
    # =========================================================================

    def apply_transaction(
        self,
        product_id: object,
        type: object,
        quantity: object,
        notes: object = None,
    ) -> TransactionDTO:
        """
        Record one stock movement and adjust the product's stock.

        Raises:
            InvalidArgumentError: malformed product id, type or quantity.
            ProductNotFoundError: unknown product.
            InsufficientStockError: stock_out exceeds current stock.
        """
        request = build_request(product_id, type, quantity, notes)
        with LogContext.bind(product_id=request.product_id):
            return self._run(
                "apply_transaction",
                lambda session: StockTransactionProcessor(session, self._clock).apply(request),
            )

    def delete_transaction(self, transaction_id: object) -> TransactionDTO:
        """
        Delete a movement and reverse its stock effect.

        Raises:
            TransactionNotFoundError: unknown movement.
            InsufficientStockError: reversing a stock_in would go negative.
        """
        tx_id = parse_positive_int(transaction_id, "transaction_id", "Transaction ID")
        with LogContext.bind(transaction_id=tx_id):
            return self._run(
                "delete_transaction",
                lambda session: StockTransactionProcessor(session, self._clock).reverse(tx_id),
            )

    def apply_bulk(self, transactions: object) -> BulkResult:
        """
        Apply a batch of movements as one all-or-nothing unit.

        Raises:
            InvalidArgumentError: input is not a non-empty list.
            BulkValidationError: entry ``i`` is invalid ("Transaction i: ...").
            InsufficientStockError: a product's net change is infeasible.
        """
        return self._run(
            "apply_bulk",
            lambda session: BulkTransactionProcessor(session, self._clock).apply(transactions),
        )

    # =========================================================================
    # Movement queries
    # =========================================================================

    def get_transaction(self, transaction_id: object) -> TransactionDTO:
        tx_id = parse_positive_int(transaction_id, "transaction_id", "Transaction ID")

        def work(session: Session) -> TransactionDTO:
            dto = TransactionSelector(session).get(tx_id)
            if dto is None:
                raise TransactionNotFoundError(tx_id)
            return dto

        return self._run("get_transaction", work)

    def list_transactions(
        self,
        page: object = None,
        limit: object = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        type: object = None,
        product_id: object = None,
        start_date: object = None,
        end_date: object = None,
        batch_id: str | None = None,
    ) -> Page[TransactionDTO]:
        """
        Page through the movement log.

        ``limit`` is clamped to the paging policy (default [1, 100]); unknown
        ``sort_by`` values fall back to ``id``; the default order is
        descending.
        """
        start, end = parse_date_range(start_date, end_date)
        criteria = TransactionFilter(
            type=MovementType.parse(type) if type not in (None, "") else None,
            product_id=parse_product_id(product_id) if product_id not in (None, "") else None,
            start=start,
            end=end,
            batch_id=batch_id or None,
        )
        request = self._page(page, limit, sort_by, sort_order, TRANSACTION_SORT_FIELDS)
        return self._run(
            "list_transactions",
            lambda session: TransactionSelector(session).list(criteria, request),
        )

    def list_by_product(
        self,
        product_id: object,
        page: object = None,
        limit: object = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Page[TransactionDTO]:
        pid = parse_product_id(product_id)
        request = self._page(page, limit, sort_by, sort_order, TRANSACTION_SORT_FIELDS)

        def work(session: Session) -> Page[TransactionDTO]:
            self._require_product(session, pid)
            return TransactionSelector(session).list(TransactionFilter(product_id=pid), request)

        return self._run("list_by_product", work)

    def list_by_type(
        self,
        type: object,
        page: object = None,
        limit: object = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Page[TransactionDTO]:
        criteria = TransactionFilter(type=MovementType.parse(type))
        request = self._page(page, limit, sort_by, sort_order, TRANSACTION_SORT_FIELDS)
        return self._run(
            "list_by_type",
            lambda session: TransactionSelector(session).list(criteria, request),
        )

    def list_by_date_range(
        self,
        start_date: object,
        end_date: object,
        page: object = None,
        limit: object = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Page[TransactionDTO]:
        if start_date in (None, "") or end_date in (None, ""):
            raise InvalidArgumentError(
                "Start date and end date are required", field="start_date"
            )
        start, end = parse_date_range(start_date, end_date)
        criteria = TransactionFilter(start=start, end=end)
        request = self._page(page, limit, sort_by, sort_order, TRANSACTION_SORT_FIELDS)
        return self._run(
            "list_by_date_range",
            lambda session: TransactionSelector(session).list(criteria, request),
        )

    def list_by_batch(self, batch_id: object) -> BatchDTO:
        """
        All movements written by one bulk call.

        Raises:
            NotFoundError: no movement carries ``batch_id``.
        """
        if not isinstance(batch_id, str) or not batch_id.strip():
            raise InvalidArgumentError("Batch ID is required", field="batch_id")
        key = batch_id.strip()

        def work(session: Session) -> BatchDTO:
            rows = TransactionSelector(session).by_batch(key)
            if not rows:
                raise NotFoundError(f"Batch not found: {key}")
            return BatchDTO(batch_id=key, transactions=rows)

        return self._run("list_by_batch", work)

    def get_stock_summary(
        self,
        product_id: object,
        start_date: object = None,
        end_date: object = None,
    ) -> StockSummaryDTO:
        """
        Movement totals for one product over an optional inclusive window.

        Raises:
            InvalidArgumentError: unparsable dates, or start after end.
            ProductNotFoundError: unknown product.
        """
        pid = parse_product_id(product_id)
        start, end = parse_date_range(start_date, end_date)

        def work(session: Session) -> StockSummaryDTO:
            product = self._require_product(session, pid)
            return StockSummarySelector(session).summary(product, start, end)

        return self._run("get_stock_summary", work)

    def get_stock_as_of(self, product_id: object, as_of: object) -> int:
        """Reconstruct a product's stock at ``as_of`` from the movement log."""
        pid = parse_product_id(product_id)
        instant = parse_date_bound(as_of, "as_of", end=True)
        if instant is None:
            raise InvalidArgumentError("as_of is required", field="as_of")

        def work(session: Session) -> int:
            product = self._require_product(session, pid)
            return StockSummarySelector(session).stock_as_of(product, instant)

        return self._run("get_stock_as_of", work)

    # =========================================================================
    # Categories
    # =========================================================================

    def create_category(self, name: object, description: object = None) -> CategoryDTO:
        return self._run(
            "create_category",
            lambda session: CategoryService(session).create_category(name, description),
        )

    def update_category(self, category_id: object, **fields: Any) -> CategoryDTO:
        cid = parse_positive_int(category_id, "category_id", "Category ID")
        unknown = sorted(set(fields) - {"name", "description"})
        if unknown:
            raise InvalidArgumentError(
                f"Unknown category fields: {', '.join(unknown)}", field=unknown[0]
            )
        return self._run(
            "update_category",
            lambda session: CategoryService(session).update_category(cid, **fields),
        )

    def delete_category(self, category_id: object) -> CategoryDTO:
        cid = parse_positive_int(category_id, "category_id", "Category ID")
        return self._run(
            "delete_category",
            lambda session: CategoryService(session).delete_category(cid),
        )

    def get_category(self, category_id: object) -> CategoryDTO:
        cid = parse_positive_int(category_id, "category_id", "Category ID")
        return self._run(
            "get_category",
            lambda session: CategoryService(session).get_by_id(cid),
        )

    def category_exists(self, category_id: object) -> bool:
        cid = parse_positive_int(category_id, "category_id", "Category ID")
        return self._run(
            "category_exists",
            lambda session: CategoryService(session).exists(cid),
        )

    def list_categories(self) -> tuple[CategoryDTO, ...]:
        return self._run(
            "list_categories",
            lambda session: ProductSelector(session).categories(),
        )

    # =========================================================================
    # Products
    # =========================================================================

    def create_product(
        self,
        name: object,
        category_id: object,
        description: object = None,
        price: object = None,
        stock: object = 0,
    ) -> ProductDTO:
        return self._run(
            "create_product",
            lambda session: ProductService(session).create_product(
                name, category_id, description=description, price=price, stock=stock
            ),
        )

    def update_product(self, product_id: object, **fields: Any) -> ProductDTO:
        """Update catalog fields.  Passing ``stock`` raises InvalidArgumentError."""
        pid = parse_product_id(product_id)
        return self._run(
            "update_product",
            lambda session: ProductService(session).update_product(pid, **fields),
        )

    def delete_product(self, product_id: object) -> ProductDTO:
        """
        Raises:
            ProductReferencedError: the product has recorded movements.
        """
        pid = parse_product_id(product_id)
        return self._run(
            "delete_product",
            lambda session: ProductService(session).delete_product(pid),
        )

    def get_product(self, product_id: object) -> ProductDTO:
        pid = parse_product_id(product_id)

        def work(session: Session) -> ProductDTO:
            dto = ProductSelector(session).get(pid)
            if dto is None:
                raise ProductNotFoundError(pid)
            return dto

        return self._run("get_product", work)

    def list_products(
        self,
        page: object = None,
        limit: object = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        search: str | None = None,
        category_id: object = None,
    ) -> Page[ProductDTO]:
        cid = (
            parse_positive_int(category_id, "category_id", "Category ID")
            if category_id not in (None, "")
            else None
        )
        request = self._page(page, limit, sort_by, sort_order, PRODUCT_SORT_FIELDS)
        return self._run(
            "list_products",
            lambda session: ProductSelector(session).list(request, search=search, category_id=cid),
        )

    def list_low_stock(self, threshold: object = None) -> tuple[ProductDTO, ...]:
        """Products whose stock is at or below ``threshold`` (configured default)."""
        limit = (
            self._low_stock_threshold
            if threshold is None
            else parse_non_negative_int(threshold, "threshold", "Threshold")
        )
        return self._run(
            "list_low_stock",
            lambda session: ProductSelector(session).low_stock(limit),
        )
