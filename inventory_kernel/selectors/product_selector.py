"""
Module: inventory_kernel.selectors.product_selector
Responsibility: Catalog read views -- paged product listing with search and
    category filter, low-stock report, and category listing.
Architecture position: Kernel > Selectors.  Read-only.
"""

from __future__ import annotations

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.dtos import CategoryDTO, ProductDTO
from inventory_kernel.domain.paging import Page, PageRequest
from inventory_kernel.models.category import Category
from inventory_kernel.models.converters import category_to_dto, product_to_dto
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.base import BaseSelector

PRODUCT_SORT_FIELDS = frozenset({"id", "name", "stock", "price", "created_at", "category_id"})

_SORT_COLUMNS = {
    "id": Product.id,
    "name": Product.name,
    "stock": Product.stock,
    "price": Product.price,
    "created_at": Product.created_at,
    "category_id": Product.category_id,
}


class ProductSelector(BaseSelector[Product]):
    """Read access to products and categories."""

    def __init__(self, session: Session):
        super().__init__(session)

    @staticmethod
    def _joined() -> Select:
        return select(Product, Category.name).outerjoin(
            Category, Product.category_id == Category.id
        )

    @staticmethod
    def _filtered(stmt: Select, search: str | None, category_id: int | None) -> Select:
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Product.name).like(pattern),
                    func.lower(Product.description).like(pattern),
                )
            )
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        return stmt

    def get(self, product_id: int) -> ProductDTO | None:
        row = self.session.execute(self._joined().where(Product.id == product_id)).first()
        if row is None:
            return None
        product, category_name = row
        return product_to_dto(product, category_name=category_name)

    def list(
        self,
        request: PageRequest,
        search: str | None = None,
        category_id: int | None = None,
    ) -> Page[ProductDTO]:
        """Page through products, optionally matching ``search`` in name or description."""
        column = _SORT_COLUMNS[request.sort_by]
        if request.descending:
            order = (column.desc(), Product.id.desc())
        else:
            order = (column.asc(), Product.id.asc())

        stmt = (
            self._filtered(self._joined(), search, category_id)
            .order_by(*order)
            .offset(request.offset)
            .limit(request.limit)
        )
        items = tuple(
            product_to_dto(product, category_name=category_name)
            for product, category_name in self.session.execute(stmt)
        )

        total = self.session.execute(
            self._filtered(select(func.count()).select_from(Product), search, category_id)
        ).scalar_one()

        return Page(
            items=items,
            current_page=request.page,
            items_per_page=request.limit,
            total_items=total,
        )

    def low_stock(self, threshold: int) -> tuple[ProductDTO, ...]:
        """Products with stock at or below ``threshold``, lowest first."""
        stmt = (
            self._joined()
            .where(Product.stock <= threshold)
            .order_by(Product.stock.asc(), Product.id.asc())
        )
        return tuple(
            product_to_dto(product, category_name=category_name)
            for product, category_name in self.session.execute(stmt)
        )

    def categories(self) -> tuple[CategoryDTO, ...]:
        stmt = select(Category).order_by(Category.name.asc())
        return tuple(category_to_dto(c) for c in self.session.execute(stmt).scalars())
