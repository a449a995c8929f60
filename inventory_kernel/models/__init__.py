"""ORM models for the inventory kernel."""

from inventory_kernel.models.category import Category
from inventory_kernel.models.product import Product
from inventory_kernel.models.stock_transaction import StockTransaction

__all__ = ["Category", "Product", "StockTransaction"]
