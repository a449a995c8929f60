"""
Service layer for Category operations.

Returns CategoryDTO instances, never ORM entities.  A category with products
cannot be deleted.
"""

from __future__ import annotations

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import CategoryDTO
from inventory_kernel.domain.validation import parse_description, parse_name
from inventory_kernel.exceptions import (
    CategoryNotFoundError,
    CategoryReferencedError,
    InvalidArgumentError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.category import Category
from inventory_kernel.models.converters import category_to_dto
from inventory_kernel.models.product import Product
from inventory_kernel.services.base import BaseService

logger = get_logger("services.category")

_UNSET = object()


class CategoryService(BaseService[Category]):
    """Create, rename and remove product categories."""

    def _get_by_id(self, category_id: int) -> Category:
        category = self.session.get(Category, category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    def _ensure_unique_name(self, name: str, exclude_id: int | None = None) -> None:
        stmt = select(Category.id).where(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        if self.session.execute(stmt).first() is not None:
            raise InvalidArgumentError(
                f"Category with name '{name}' already exists", field="name"
            )

    def get_by_id(self, category_id: int) -> CategoryDTO:
        """
        Raises:
            CategoryNotFoundError: If category doesn't exist.
        """
        return category_to_dto(self._get_by_id(category_id))

    def exists(self, category_id: int) -> bool:
        return self.session.get(Category, category_id) is not None

    def create_category(self, name: object, description: object = None) -> CategoryDTO:
        """
        Create a new category.

        Raises:
            InvalidArgumentError: missing name, or the name is taken
                (compared case-insensitively).
        """
        clean_name = parse_name(name)
        self._ensure_unique_name(clean_name)

        category = Category(name=clean_name, description=parse_description(description))
        self.session.add(category)
        self.session.flush()
        self.session.refresh(category)

        logger.info(
            "category_created",
            extra={"category_id": category.id, "category_name": category.name},
        )
        return category_to_dto(category)

    def update_category(
        self,
        category_id: int,
        name: object = _UNSET,
        description: object = _UNSET,
    ) -> CategoryDTO:
        """Rename or re-describe a category.  Omitted fields are left alone."""
        category = self._get_by_id(category_id)

        if name is not _UNSET:
            clean_name = parse_name(name)
            self._ensure_unique_name(clean_name, exclude_id=category.id)
            category.name = clean_name
        if description is not _UNSET:
            category.description = parse_description(description)

        self.session.flush()
        self.session.refresh(category)
        return category_to_dto(category)

    def delete_category(self, category_id: int) -> CategoryDTO:
        """
        Remove a category that no product references.

        Raises:
            CategoryNotFoundError: If category doesn't exist.
            CategoryReferencedError: If products still belong to it.
        """
        category = self._get_by_id(category_id)

        product_count = self.session.execute(
            select(func.count()).select_from(Product).where(Product.category_id == category.id)
        ).scalar_one()
        if product_count:
            raise CategoryReferencedError(category.id, product_count)

        dto = category_to_dto(category)
        self.session.delete(category)
        self.session.flush()

        logger.info("category_deleted", extra={"category_id": dto.id})
        return dto
