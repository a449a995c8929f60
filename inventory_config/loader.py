"""
Configuration loader (``inventory_config.loader``).

Loads a YAML file and parses it into the typed ``inventory_config.schema``
dataclasses.  Unknown keys are rejected so typos surface immediately.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    DatabaseConfig,
    InventoryConfig,
    PagingConfig,
    RetryConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML document must be a mapping")
    return data


def _build(cls, data: dict[str, Any] | None, section: str):
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown key(s) in '{section}': {sorted(unknown)}")
    return cls(**data)


def parse_config(data: dict[str, Any]) -> InventoryConfig:
    """Parse a raw mapping into an ``InventoryConfig``."""
    data = dict(data)
    database = _build(DatabaseConfig, data.pop("database", None), "database")
    paging = _build(PagingConfig, data.pop("paging", None), "paging")
    retry = _build(RetryConfig, data.pop("retry", None), "retry")

    scalars = {f.name for f in fields(InventoryConfig)} - {"database", "paging", "retry"}
    unknown = set(data) - scalars
    if unknown:
        raise ValueError(f"Unknown top-level key(s): {sorted(unknown)}")
    return InventoryConfig(database=database, paging=paging, retry=retry, **data)


def load_config(path: Path) -> InventoryConfig:
    """Load and parse a configuration file."""
    return parse_config(load_yaml_file(path))

