"""ORM -> DTO conversion shared by services and selectors."""

from datetime import datetime, timezone

from inventory_kernel.domain.dtos import CategoryDTO, ProductDTO, TransactionDTO
from inventory_kernel.models.category import Category
from inventory_kernel.models.product import Product
from inventory_kernel.models.stock_transaction import StockTransaction


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything stored is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def category_to_dto(category: Category) -> CategoryDTO:
    return CategoryDTO(
        id=category.id,
        name=category.name,
        description=category.description,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def product_to_dto(product: Product, category_name: str | None = None) -> ProductDTO:
    if category_name is None and product.category is not None:
        category_name = product.category.name
    return ProductDTO(
        id=product.id,
        name=product.name,
        description=product.description,
        category_id=product.category_id,
        category_name=category_name,
        stock=product.stock,
        price=product.price,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def transaction_to_dto(
    tx: StockTransaction,
    product_name: str | None = None,
    category_name: str | None = None,
) -> TransactionDTO:
    return TransactionDTO(
        id=tx.id,
        product_id=tx.product_id,
        product_name=product_name,
        category_name=category_name,
        type=tx.type,
        quantity=tx.quantity,
        notes=tx.notes,
        batch_id=tx.batch_id,
        created_at=_as_utc(tx.created_at),
    )
