"""
DTOs returned across the kernel boundary.

All frozen dataclasses: callers never receive live ORM instances, so nothing
they do can write through to the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from inventory_kernel.domain.movement import MovementType


@dataclass(frozen=True)
class CategoryDTO:
    id: int
    name: str
    description: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class ProductDTO:
    id: int
    name: str
    description: str | None
    category_id: int
    category_name: str | None
    stock: int
    price: Decimal
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class TransactionDTO:
    id: int
    product_id: int
    product_name: str | None
    category_name: str | None
    type: MovementType
    quantity: int
    notes: str | None
    batch_id: str | None
    created_at: datetime

    @property
    def signed_quantity(self) -> int:
        return self.type.signed(self.quantity)


@dataclass(frozen=True)
class BulkResult:
    """Outcome of a successful bulk application."""

    batch_id: str
    inserted_ids: tuple[int, ...]
    stock_after: dict[int, int]

    @property
    def inserted_count(self) -> int:
        return len(self.inserted_ids)


@dataclass(frozen=True)
class BatchDTO:
    batch_id: str
    transactions: tuple[TransactionDTO, ...]

    @property
    def total_transactions(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True)
class StockSummaryDTO:
    """Aggregated movement totals for one product over an optional window."""

    product_id: int
    product_name: str
    total_in: int
    total_out: int
    transaction_count: int
    current_stock: int
    start_date: datetime | None
    end_date: datetime | None

    @property
    def net_change(self) -> int:
        return self.total_in - self.total_out
