"""
Module: inventory_kernel.models.category
Responsibility: ORM persistence for product categories.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - name is unique and non-empty.
    - A category cannot be deleted while products reference it (enforced by
      CategoryService; the FK has no cascade).
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase


class Category(TrackedBase):
    """A named grouping of products."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    products = relationship("Product", back_populates="category")

    def __repr__(self) -> str:
        return f"<Category {self.id} {self.name!r}>"
