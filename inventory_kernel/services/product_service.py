"""
Service layer for Product operations.

Returns ProductDTO instances, never ORM entities.

Stock is owned by the transaction processors: a product is created with an
optional initial stock, and afterwards ``update_product`` refuses to touch it.
A product that has recorded movements cannot be deleted.
"""

from __future__ import annotations

from typing import Any

from inventory_kernel.domain.dtos import ProductDTO
from inventory_kernel.domain.validation import (
    parse_description,
    parse_name,
    parse_non_negative_int,
    parse_positive_int,
    parse_price,
)
from inventory_kernel.exceptions import (
    CategoryNotFoundError,
    InvalidArgumentError,
    ProductNotFoundError,
    ProductReferencedError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.category import Category
from inventory_kernel.models.converters import product_to_dto
from inventory_kernel.models.product import Product
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.stock_ledger import StockLedgerStore

logger = get_logger("services.product")

_UPDATABLE_FIELDS = frozenset({"name", "description", "category_id", "price"})


class ProductService(BaseService[Product]):
    """Catalog maintenance for products."""

    def _get_by_id(self, product_id: int) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def _resolve_category(self, category_id: object) -> Category:
        parsed = parse_positive_int(category_id, "category_id", "Category ID")
        category = self.session.get(Category, parsed)
        if category is None:
            raise CategoryNotFoundError(parsed)
        return category

    def get_by_id(self, product_id: int) -> ProductDTO:
        """
        Raises:
            ProductNotFoundError: If product doesn't exist.
        """
        return product_to_dto(self._get_by_id(product_id))

    def create_product(
        self,
        name: object,
        category_id: object,
        description: object = None,
        price: object = None,
        stock: object = 0,
    ) -> ProductDTO:
        """
        Create a new product.

        Args:
            name: Display name (required).
            category_id: Existing category.
            description: Optional free text.
            price: Non-negative amount, stored with two decimals.
            stock: Initial on-hand quantity (non-negative).

        Raises:
            InvalidArgumentError: bad name, price or stock.
            CategoryNotFoundError: category does not exist.
        """
        clean_name = parse_name(name)
        clean_price = parse_price(price)
        initial_stock = parse_non_negative_int(stock, "stock", "Stock")
        category = self._resolve_category(category_id)

        product = Product(
            name=clean_name,
            description=parse_description(description),
            category_id=category.id,
            price=clean_price,
            stock=initial_stock,
        )
        self.session.add(product)
        self.session.flush()
        self.session.refresh(product)

        logger.info(
            "product_created",
            extra={
                "product_id": product.id,
                "category_id": category.id,
                "stock": product.stock,
            },
        )
        return product_to_dto(product, category_name=category.name)

    def update_product(self, product_id: int, **fields: Any) -> ProductDTO:
        """
        Update catalog fields of a product.

        Only ``name``, ``description``, ``category_id`` and ``price`` may be
        changed.  Stock moves exclusively through stock transactions.

        Raises:
            InvalidArgumentError: ``stock`` or an unknown field was passed,
                or a value is malformed.
            ProductNotFoundError, CategoryNotFoundError.
        """
        if "stock" in fields:
            raise InvalidArgumentError(
                "Stock can only be changed through stock transactions", field="stock"
            )
        unknown = sorted(set(fields) - _UPDATABLE_FIELDS)
        if unknown:
            raise InvalidArgumentError(
                f"Unknown product fields: {', '.join(unknown)}", field=unknown[0]
            )

        product = self._get_by_id(product_id)

        if "name" in fields:
            product.name = parse_name(fields["name"])
        if "description" in fields:
            product.description = parse_description(fields["description"])
        if "price" in fields:
            product.price = parse_price(fields["price"])
        if "category_id" in fields:
            product.category_id = self._resolve_category(fields["category_id"]).id

        self.session.flush()
        self.session.refresh(product)
        return product_to_dto(product)

    def delete_product(self, product_id: int) -> ProductDTO:
        """
        Remove a product with no recorded movements.

        Raises:
            ProductNotFoundError: If product doesn't exist.
            ProductReferencedError: If stock transactions reference it.
        """
        product = self._get_by_id(product_id)

        transaction_count = StockLedgerStore(self.session).count_transactions(product.id)
        if transaction_count:
            raise ProductReferencedError(product.id, transaction_count)

        dto = product_to_dto(product)
        self.session.delete(product)
        self.session.flush()

        logger.info("product_deleted", extra={"product_id": dto.id})
        return dto
