"""
Module: inventory_kernel.selectors.stock_summary_selector
Responsibility: Aggregate movement totals per product over an optional time
    window, and reconstruct a product's stock at a past instant.
Architecture position: Kernel > Selectors.  Read-only.

Point-in-time stock is derived from the log rather than stored:
    stock(as_of) = current_stock - sum(signed quantity of rows after as_of)
which holds because every stock change is recorded as a movement row.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.dtos import StockSummaryDTO
from inventory_kernel.domain.movement import MovementType
from inventory_kernel.models.product import Product
from inventory_kernel.models.stock_transaction import StockTransaction
from inventory_kernel.selectors.base import BaseSelector

_signed_quantity = case(
    (StockTransaction.type == MovementType.STOCK_IN, StockTransaction.quantity),
    else_=-StockTransaction.quantity,
)


class StockSummarySelector(BaseSelector[StockTransaction]):
    """Totals and point-in-time reconstruction over the movement log."""

    def __init__(self, session: Session):
        super().__init__(session)

    def summary(
        self,
        product: Product,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> StockSummaryDTO:
        """
        Sum movements of ``product`` inside ``[start, end]``.

        Args:
            product: Loaded product row (supplies name and current stock).
            start: Inclusive lower bound, or None for unbounded.
            end: Inclusive upper bound, or None for unbounded.
        """
        stmt = (
            select(
                StockTransaction.type,
                func.coalesce(func.sum(StockTransaction.quantity), 0),
                func.count(StockTransaction.id),
            )
            .where(StockTransaction.product_id == product.id)
            .group_by(StockTransaction.type)
        )
        if start is not None:
            stmt = stmt.where(StockTransaction.created_at >= start)
        if end is not None:
            stmt = stmt.where(StockTransaction.created_at <= end)

        totals = {MovementType.STOCK_IN: 0, MovementType.STOCK_OUT: 0}
        count = 0
        for movement_type, quantity, rows in self.session.execute(stmt):
            totals[MovementType(movement_type)] = int(quantity)
            count += int(rows)

        return StockSummaryDTO(
            product_id=product.id,
            product_name=product.name,
            total_in=totals[MovementType.STOCK_IN],
            total_out=totals[MovementType.STOCK_OUT],
            transaction_count=count,
            current_stock=product.stock,
            start_date=start,
            end_date=end,
        )

    def net_change_after(self, product_id: int, instant: datetime) -> int:
        """Signed sum of movements recorded strictly after ``instant``."""
        stmt = select(func.coalesce(func.sum(_signed_quantity), 0)).where(
            StockTransaction.product_id == product_id,
            StockTransaction.created_at > instant,
        )
        return int(self.session.execute(stmt).scalar_one())

    def stock_as_of(self, product: Product, instant: datetime) -> int:
        """Stock ``product`` held at ``instant``."""
        return product.stock - self.net_change_after(product.id, instant)
