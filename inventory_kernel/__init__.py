"""
Inventory Kernel

A stock ledger over products and an append-only log of stock movements:
- Single and bulk stock movements applied atomically
- Bulk batches validated against per-product net change
- Stock never drops below zero, including under concurrent writers
- Read-side summaries and point-in-time stock reconstruction
"""

__version__ = "0.1.0"
