"""Pure domain layer: movement types, validation, aggregation, paging, DTOs."""

from inventory_kernel.domain.movement import MovementRequest, MovementType

__all__ = ["MovementRequest", "MovementType"]
