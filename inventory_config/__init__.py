"""
inventory_config — single public entrypoint for inventory configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  The kernel never reads YAML files or
    environment variables itself; the application builds an
    ``InventoryConfig`` here and injects the relevant sections.

Resolution order:
    1. ``path`` argument, else the ``INVENTORY_CONFIG`` environment variable,
       else the packaged ``defaults.yaml``.
    2. ``DATABASE_URL`` (if set) overrides ``database.url``.

Failure modes:
    - ``FileNotFoundError`` -- the named configuration file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from inventory_config.loader import load_config, parse_config
from inventory_config.schema import (
    DatabaseConfig,
    InventoryConfig,
    PagingConfig,
    RetryConfig,
)

__all__ = [
    "DatabaseConfig",
    "InventoryConfig",
    "PagingConfig",
    "RetryConfig",
    "get_active_config",
    "load_config",
    "parse_config",
]

_logger = logging.getLogger("inventory_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> InventoryConfig:
    """Load the active configuration, applying environment overrides."""
    if path is None:
        path = os.environ.get("INVENTORY_CONFIG") or DEFAULT_CONFIG_PATH
    path = Path(path)

    config = load_config(path)

    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    _logger.info(
        "inventory_config_loaded",
        extra={
            "config_path": str(path),
            "database_dialect": config.database.url.split(":", 1)[0],
            "max_retries": config.retry.max_retries,
        },
    )
    return config
