"""
Config -> Kernel Bridges.

Functions that turn an ``InventoryConfig`` into kernel objects.  These live
in inventory_config (the producer) because the kernel must NEVER import
inventory_config.

Usage:
    from inventory_config import get_active_config
    from inventory_config.bridges import build_inventory_service

    config = get_active_config()
    inventory = build_inventory_service(config)
"""

from __future__ import annotations

from inventory_config.schema import InventoryConfig
from inventory_kernel.db.engine import Database
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.paging import PagePolicy
from inventory_kernel.logging_config import configure_logging
from inventory_kernel.services.inventory_service import InventoryService


def build_database(config: InventoryConfig, create_tables: bool = False) -> Database:
    """Build the store handle described by ``config.database``."""
    db_config = config.database
    database = Database.from_url(
        db_config.url,
        echo=db_config.echo,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_recycle=db_config.pool_recycle,
        busy_timeout=db_config.busy_timeout,
    )
    if create_tables:
        database.create_tables()
    return database


def build_page_policy(config: InventoryConfig) -> PagePolicy:
    return PagePolicy(
        default_limit=config.paging.default_limit,
        max_limit=config.paging.max_limit,
        default_sort_order=config.paging.default_sort_order,
    )


def build_inventory_service(
    config: InventoryConfig,
    database: Database | None = None,
    clock: Clock | None = None,
) -> InventoryService:
    """
    Wire an ``InventoryService`` from configuration.

    Also configures kernel logging at ``config.log_level`` (idempotent).
    """
    configure_logging(level=config.log_level)
    return InventoryService(
        database or build_database(config),
        clock=clock,
        page_policy=build_page_policy(config),
        max_retries=config.retry.max_retries,
        backoff_seconds=config.retry.backoff_seconds,
        low_stock_threshold=config.low_stock_threshold,
    )
