"""
Inventory configuration schema.

Frozen dataclasses parsed from YAML by ``inventory_config.loader``.  Each
section validates itself in ``__post_init__`` so an invalid file fails at load
time rather than on first use.
"""

from __future__ import annotations

from dataclasses import dataclass, field

VALID_SORT_ORDERS = {"asc", "desc"}
PAGE_LIMIT_CEILING = 100


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the backing store."""

    url: str = "sqlite:///./inventory.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    # SQLite only: seconds a writer waits for the database lock
    busy_timeout: float = 30.0

    def __post_init__(self):
        if not self.url:
            raise ValueError("database.url is required")
        if self.pool_size < 1:
            raise ValueError(f"database.pool_size must be >= 1, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(f"database.max_overflow must be >= 0, got {self.max_overflow}")
        if self.busy_timeout <= 0:
            raise ValueError("database.busy_timeout must be positive")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


@dataclass(frozen=True)
class PagingConfig:
    """Pagination and sorting rules for list views."""

    default_limit: int = 10
    max_limit: int = 100
    default_sort_order: str = "desc"

    def __post_init__(self):
        if not 1 <= self.max_limit <= PAGE_LIMIT_CEILING:
            raise ValueError(
                f"paging.max_limit must be within [1, {PAGE_LIMIT_CEILING}], "
                f"got {self.max_limit}"
            )
        if not 1 <= self.default_limit <= self.max_limit:
            raise ValueError(
                f"paging.default_limit must be within [1, {self.max_limit}], "
                f"got {self.default_limit}"
            )
        if self.default_sort_order not in VALID_SORT_ORDERS:
            raise ValueError(
                f"paging.default_sort_order must be one of {VALID_SORT_ORDERS}"
            )


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for transient write conflicts."""

    max_retries: int = 5
    backoff_seconds: float = 0.05

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"retry.max_retries must be >= 0, got {self.max_retries}")
        if self.backoff_seconds < 0:
            raise ValueError("retry.backoff_seconds must be >= 0")


@dataclass(frozen=True)
class InventoryConfig:
    """Top-level configuration for the inventory kernel."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    paging: PagingConfig = field(default_factory=PagingConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    low_stock_threshold: int = 10
    log_level: str = "INFO"

    def __post_init__(self):
        if self.low_stock_threshold < 0:
            raise ValueError("low_stock_threshold must be >= 0")
