"""
Movement -- stock movement direction and validated movement requests.

Responsibility:
    Defines the one canonical two-variant ``MovementType`` and the frozen
    ``MovementRequest`` value object.  Legacy ``in`` / ``out`` spellings are
    translated here, at the boundary, and never travel further inward.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from inventory_kernel.exceptions import InvalidArgumentError


class MovementType(str, Enum):
    """Direction of a stock movement."""

    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"

    @property
    def sign(self) -> int:
        """+1 for stock_in, -1 for stock_out."""
        return 1 if self is MovementType.STOCK_IN else -1

    def signed(self, quantity: int) -> int:
        return self.sign * quantity

    @property
    def inverse(self) -> "MovementType":
        if self is MovementType.STOCK_IN:
            return MovementType.STOCK_OUT
        return MovementType.STOCK_IN

    @classmethod
    def parse(cls, value: object) -> "MovementType":
        """
        Translate a boundary value into the canonical enum.

        Accepts a ``MovementType``, ``stock_in`` / ``stock_out`` or the legacy
        ``in`` / ``out`` (case-insensitive, surrounding whitespace ignored).

        Raises:
            InvalidArgumentError: for anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            found = _ALIASES.get(key)
            if found is not None:
                return found
        if value is None or value == "":
            raise InvalidArgumentError("Type is required", field="type")
        raise InvalidArgumentError(
            "Type must be either stock_in or stock_out", field="type"
        )


_ALIASES = {
    "stock_in": MovementType.STOCK_IN,
    "stock_out": MovementType.STOCK_OUT,
    "in": MovementType.STOCK_IN,
    "out": MovementType.STOCK_OUT,
}


@dataclass(frozen=True)
class MovementRequest:
    """A validated request to move ``quantity`` units of one product."""

    product_id: int
    type: MovementType
    quantity: int
    notes: str | None = None

    @property
    def signed_quantity(self) -> int:
        return self.type.signed(self.quantity)
