"""
Module: inventory_kernel.models.stock_transaction
Responsibility: ORM persistence for the append-only log of stock movements.
Architecture position: Kernel > Models.  May import from db/base.py and the
    domain movement enum.

Invariants enforced:
    - quantity > 0 (CHECK constraint); direction lives in ``type``.
    - type is persisted as MovementType.value (``stock_in`` / ``stock_out``).
    - Rows are never updated.  Deleting a row is only done by the
      transaction processor together with the inverse stock adjustment.
    - created_at is stamped from the injected clock and never changes.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, IdType
from inventory_kernel.domain.movement import MovementType


class StockTransaction(Base):
    """One recorded stock movement."""

    __tablename__ = "stock_transactions"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_transactions_quantity_positive"),
        Index("idx_stock_tx_product", "product_id"),
        Index("idx_stock_tx_created_at", "created_at"),
        Index("idx_stock_tx_batch", "batch_id"),
        Index("idx_stock_tx_product_created", "product_id", "created_at"),
    )

    product_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("products.id"),
        nullable=False,
    )

    type: Mapped[MovementType] = mapped_column(
        Enum(
            MovementType,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Shared by every row created by one bulk call
    batch_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    product = relationship("Product")

    @property
    def signed_quantity(self) -> int:
        return self.type.signed(self.quantity)

    def __repr__(self) -> str:
        return f"<StockTransaction {self.id} {self.type.value} {self.quantity} of {self.product_id}>"
