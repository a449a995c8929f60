"""
Module: inventory_kernel.selectors.transaction_selector
Responsibility: Paged, filtered listings of stock transactions joined with
    their product and category names.
Architecture position: Kernel > Selectors.  Read-only.

Filters combine with AND: type, product, batch and a created_at window whose
bounds are inclusive.  Sorting is restricted to TRANSACTION_SORT_FIELDS; ties
break on id in the same direction so paging is stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.dtos import TransactionDTO
from inventory_kernel.domain.movement import MovementType
from inventory_kernel.domain.paging import Page, PageRequest
from inventory_kernel.models.category import Category
from inventory_kernel.models.converters import transaction_to_dto
from inventory_kernel.models.product import Product
from inventory_kernel.models.stock_transaction import StockTransaction
from inventory_kernel.selectors.base import BaseSelector

TRANSACTION_SORT_FIELDS = frozenset({"id", "created_at", "quantity", "type", "product_id"})

_SORT_COLUMNS = {
    "id": StockTransaction.id,
    "created_at": StockTransaction.created_at,
    "quantity": StockTransaction.quantity,
    "type": StockTransaction.type,
    "product_id": StockTransaction.product_id,
}


@dataclass(frozen=True)
class TransactionFilter:
    """Already-parsed listing filters.  ``None`` means no constraint."""

    type: MovementType | None = None
    product_id: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    batch_id: str | None = None

    def apply(self, stmt: Select) -> Select:
        if self.type is not None:
            stmt = stmt.where(StockTransaction.type == self.type)
        if self.product_id is not None:
            stmt = stmt.where(StockTransaction.product_id == self.product_id)
        if self.batch_id is not None:
            stmt = stmt.where(StockTransaction.batch_id == self.batch_id)
        if self.start is not None:
            stmt = stmt.where(StockTransaction.created_at >= self.start)
        if self.end is not None:
            stmt = stmt.where(StockTransaction.created_at <= self.end)
        return stmt


class TransactionSelector(BaseSelector[StockTransaction]):
    """Read access to the movement log."""

    def __init__(self, session: Session):
        super().__init__(session)

    @staticmethod
    def _joined() -> Select:
        return (
            select(StockTransaction, Product.name, Category.name)
            .join(Product, StockTransaction.product_id == Product.id)
            .outerjoin(Category, Product.category_id == Category.id)
        )

    @staticmethod
    def _to_dto(row) -> TransactionDTO:
        tx, product_name, category_name = row
        return transaction_to_dto(tx, product_name=product_name, category_name=category_name)

    def get(self, transaction_id: int) -> TransactionDTO | None:
        row = self.session.execute(
            self._joined().where(StockTransaction.id == transaction_id)
        ).first()
        return self._to_dto(row) if row is not None else None

    def count(self, criteria: TransactionFilter) -> int:
        stmt = criteria.apply(select(func.count()).select_from(StockTransaction))
        return self.session.execute(stmt).scalar_one()

    def list(self, criteria: TransactionFilter, request: PageRequest) -> Page[TransactionDTO]:
        """
        Return one page of transactions matching ``criteria``.

        Args:
            criteria: Filters.
            request: Normalized page, limit and sort (see PageRequest.normalize).
        """
        column = _SORT_COLUMNS[request.sort_by]
        if request.descending:
            order = (column.desc(), StockTransaction.id.desc())
        else:
            order = (column.asc(), StockTransaction.id.asc())

        stmt = (
            criteria.apply(self._joined())
            .order_by(*order)
            .offset(request.offset)
            .limit(request.limit)
        )
        items = tuple(self._to_dto(row) for row in self.session.execute(stmt))

        return Page(
            items=items,
            current_page=request.page,
            items_per_page=request.limit,
            total_items=self.count(criteria),
        )

    def by_batch(self, batch_id: str) -> tuple[TransactionDTO, ...]:
        """All rows of one bulk batch, in insertion order."""
        stmt = (
            TransactionFilter(batch_id=batch_id)
            .apply(self._joined())
            .order_by(StockTransaction.id.asc())
        )
        return tuple(self._to_dto(row) for row in self.session.execute(stmt))
