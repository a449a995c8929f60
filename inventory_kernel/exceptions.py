"""
Typed exception hierarchy for the inventory kernel.

Every error a caller can observe is a subclass of ``InventoryKernelError``.
Each class carries:

  - ``code``: a machine-readable class attribute (API-safe, stable).
  - ``kind``: the coarse taxonomy bucket the controller layer maps to a
    status code (``invalid_argument``, ``not_found``, ``insufficient_stock``,
    ``conflict``, ``internal``).
  - structured attributes (product ids, quantities, indexes) so callers never
    parse message strings.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- InvalidArgumentError
    |   +-- BulkValidationError
    |
    +-- NotFoundError
    |   +-- CategoryNotFoundError
    |   +-- ProductNotFoundError
    |   +-- TransactionNotFoundError
    |
    +-- InsufficientStockError
    |
    +-- ReferentialIntegrityError
    |   +-- CategoryReferencedError
    |   +-- ProductReferencedError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- StorageError

===============================================================================
HANDLING PATTERN
===============================================================================

    try:
        inventory.apply_transaction(product_id, "stock_out", 6)
    except InsufficientStockError as e:
        return {"error": e.code, "available": e.available, "requested": e.requested}
    except InventoryKernelError as e:
        return {"error": e.code, "message": str(e)}, e.http_status
"""

KIND_INVALID_ARGUMENT = "invalid_argument"
KIND_NOT_FOUND = "not_found"
KIND_INSUFFICIENT_STOCK = "insufficient_stock"
KIND_CONFLICT = "conflict"
KIND_INTERNAL = "internal"

_HTTP_STATUS_BY_KIND = {
    KIND_INVALID_ARGUMENT: 400,
    KIND_NOT_FOUND: 404,
    KIND_INSUFFICIENT_STOCK: 400,
    KIND_CONFLICT: 409,
    KIND_INTERNAL: 500,
}


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "INVENTORY_KERNEL_ERROR"
    kind: str = KIND_INTERNAL

    @property
    def http_status(self) -> int:
        """Conventional HTTP status for the excluded controller layer."""
        return _HTTP_STATUS_BY_KIND.get(self.kind, 500)


# Validation


class InvalidArgumentError(InventoryKernelError):
    """An input field is missing, malformed, or out of range."""

    code: str = "INVALID_ARGUMENT"
    kind: str = KIND_INVALID_ARGUMENT

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class BulkValidationError(InvalidArgumentError):
    """
    One request inside a bulk batch failed validation.

    The whole batch is rejected; ``index`` is 1-based.  ``kind`` follows the
    underlying failure so an unknown product still maps to not-found.
    """

    code: str = "BULK_VALIDATION_FAILED"

    def __init__(
        self,
        index: int,
        reason: str,
        field: str | None = None,
        kind: str = KIND_INVALID_ARGUMENT,
    ):
        self.index = index
        self.reason = reason
        self.kind = kind
        super().__init__(f"Transaction {index}: {reason}", field=field)


# Lookups


class NotFoundError(InventoryKernelError):
    """A referenced record does not exist."""

    code: str = "NOT_FOUND"
    kind: str = KIND_NOT_FOUND


class CategoryNotFoundError(NotFoundError):
    """Category with given ID was not found."""

    code: str = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id):
        self.category_id = category_id
        super().__init__(f"Category not found: {category_id}")


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class TransactionNotFoundError(NotFoundError):
    """Stock transaction with given ID was not found."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


# Stock


class InsufficientStockError(InventoryKernelError):
    """
    A movement (or a bulk batch's net effect) would drive stock below zero.

    ``requested`` is the quantity taken out: the single movement's quantity,
    or the sum of all ``stock_out`` lines for the product in a bulk batch.
    """

    code: str = "INSUFFICIENT_STOCK"
    kind: str = KIND_INSUFFICIENT_STOCK

    def __init__(
        self,
        product_id: int,
        available: int,
        requested: int,
        product_name: str | None = None,
    ):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        label = f"'{product_name}'" if product_name else str(product_id)
        super().__init__(
            f"Insufficient stock for product {label}: "
            f"available={available}, requested={requested}"
        )


# Referential integrity


class ReferentialIntegrityError(InventoryKernelError):
    """A record cannot be removed while other records reference it."""

    code: str = "REFERENTIAL_INTEGRITY"
    kind: str = KIND_INVALID_ARGUMENT


class CategoryReferencedError(ReferentialIntegrityError):
    """Category still has products and cannot be deleted."""

    code: str = "CATEGORY_REFERENCED"

    def __init__(self, category_id: int, product_count: int):
        self.category_id = category_id
        self.product_count = product_count
        super().__init__(
            f"Category {category_id} is referenced by {product_count} product(s)"
        )


class ProductReferencedError(ReferentialIntegrityError):
    """Product still has stock transactions and cannot be deleted."""

    code: str = "PRODUCT_REFERENCED"

    def __init__(self, product_id: int, transaction_count: int):
        self.product_id = product_id
        self.transaction_count = transaction_count
        super().__init__(
            f"Product {product_id} is referenced by "
            f"{transaction_count} transaction(s)"
        )


# Concurrency


class ConcurrencyError(InventoryKernelError):
    """Concurrent writers conflicted and retries were exhausted."""

    code: str = "CONCURRENCY_CONFLICT"
    kind: str = KIND_CONFLICT


class OptimisticLockError(ConcurrencyError):
    """Stock changed between the read and the compare-and-swap write."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, product_id: int, expected_stock: int):
        self.product_id = product_id
        self.expected_stock = expected_stock
        super().__init__(
            f"Stock of product {product_id} changed concurrently "
            f"(expected {expected_stock})"
        )


# Storage


class StorageError(InventoryKernelError):
    """The backing store failed underneath the kernel."""

    code: str = "INTERNAL"
    kind: str = KIND_INTERNAL

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")
