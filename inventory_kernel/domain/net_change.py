"""
NetChange -- per-product aggregation of a bulk batch.

Responsibility:
    Folds an ordered batch of ``MovementRequest`` values into one signed net
    change per product, seeded with each product's stock as read once, and
    decides feasibility on the aggregate rather than line by line.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The bulk processor
    owns the reads and writes; this module only does arithmetic.

Invariants enforced:
    - A batch is feasible iff ``current + net >= 0`` for every product it
      touches.  Intermediate per-line states are irrelevant.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from inventory_kernel.domain.movement import MovementRequest, MovementType


@dataclass
class ProductDelta:
    """Running aggregate for one product inside a batch."""

    product_id: int
    product_name: str
    current_stock: int
    total_in: int = 0
    total_out: int = 0

    @property
    def net_change(self) -> int:
        return self.total_in - self.total_out

    @property
    def resulting_stock(self) -> int:
        return self.current_stock + self.net_change

    @property
    def is_feasible(self) -> bool:
        return self.resulting_stock >= 0

    def add(self, request: MovementRequest) -> None:
        if request.type is MovementType.STOCK_IN:
            self.total_in += request.quantity
        else:
            self.total_out += request.quantity


@dataclass
class NetChangeLedger:
    """Ordered collection of ``ProductDelta`` keyed by product id."""

    deltas: dict[int, ProductDelta] = field(default_factory=dict)

    def __contains__(self, product_id: int) -> bool:
        return product_id in self.deltas

    def seed(self, product_id: int, product_name: str, current_stock: int) -> None:
        """Record a product's stock the first time the batch touches it."""
        if product_id not in self.deltas:
            self.deltas[product_id] = ProductDelta(
                product_id=product_id,
                product_name=product_name,
                current_stock=current_stock,
            )

    def apply(self, request: MovementRequest) -> ProductDelta:
        delta = self.deltas[request.product_id]
        delta.add(request)
        return delta

    def first_infeasible(self) -> ProductDelta | None:
        """Return the first product (in touch order) whose stock would go negative."""
        for delta in self.deltas.values():
            if not delta.is_feasible:
                return delta
        return None

    def first_overflowing(self, maximum: int) -> ProductDelta | None:
        for delta in self.deltas.values():
            if delta.resulting_stock > maximum:
                return delta
        return None

    def changed(self) -> list[ProductDelta]:
        """Products whose stock actually moves, ordered by product id."""
        return sorted(
            (d for d in self.deltas.values() if d.net_change != 0),
            key=lambda d: d.product_id,
        )


def aggregate(
    requests: list[MovementRequest], stock_by_product: dict[int, tuple[str, int]]
) -> NetChangeLedger:
    """
    Fold ``requests`` into a ledger.

    Args:
        requests: Validated requests in batch order.
        stock_by_product: ``product_id -> (name, current_stock)`` for every
            product referenced by ``requests``.
    """
    ledger = NetChangeLedger()
    for request in requests:
        name, stock = stock_by_product[request.product_id]
        ledger.seed(request.product_id, name, stock)
        ledger.apply(request)
    return ledger
