"""Services for the inventory kernel (write side and facade)."""

from inventory_kernel.services.bulk_processor import BulkTransactionProcessor
from inventory_kernel.services.category_service import CategoryService
from inventory_kernel.services.inventory_service import InventoryService
from inventory_kernel.services.product_service import ProductService
from inventory_kernel.services.stock_ledger import StockLedgerStore, StockUpdateMode
from inventory_kernel.services.transaction_processor import StockTransactionProcessor

__all__ = [
    "BulkTransactionProcessor",
    "CategoryService",
    "InventoryService",
    "ProductService",
    "StockLedgerStore",
    "StockTransactionProcessor",
    "StockUpdateMode",
]
