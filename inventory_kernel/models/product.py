"""
Module: inventory_kernel.models.product
Responsibility: ORM persistence for products and their on-hand stock.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - stock >= 0 (CHECK constraint; the ledger store also guards every write).
    - price >= 0 (CHECK constraint).
    - category_id references an existing Category (FK, checked by services
      before writing so the caller gets a typed not-found error).

Stock is written only through the ledger store.  ProductService rejects a
``stock`` field on update.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, TrackedBase


class Product(TrackedBase):
    """A stocked item."""

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        Index("idx_products_category", "category_id"),
        Index("idx_products_name", "name"),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    category_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("categories.id"),
        nullable=False,
    )

    stock: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    category = relationship("Category", back_populates="products")

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.name!r} stock={self.stock}>"
