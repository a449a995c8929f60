"""Read-only query selectors."""

from inventory_kernel.selectors.product_selector import ProductSelector
from inventory_kernel.selectors.stock_summary_selector import StockSummarySelector
from inventory_kernel.selectors.transaction_selector import (
    TRANSACTION_SORT_FIELDS,
    TransactionFilter,
    TransactionSelector,
)

__all__ = [
    "ProductSelector",
    "StockSummarySelector",
    "TRANSACTION_SORT_FIELDS",
    "TransactionFilter",
    "TransactionSelector",
]
