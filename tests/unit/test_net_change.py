"""
Tests for per-product net-change aggregation.

Includes hypothesis properties: feasibility depends only on the aggregate,
never on the order of lines inside the batch.
"""

from hypothesis import given
from hypothesis import strategies as st

from inventory_kernel.domain.movement import MovementRequest, MovementType
from inventory_kernel.domain.net_change import NetChangeLedger, aggregate


def req(product_id: int, type: MovementType, quantity: int) -> MovementRequest:
    return MovementRequest(product_id=product_id, type=type, quantity=quantity)


OUT = MovementType.STOCK_OUT
IN = MovementType.STOCK_IN


class TestAggregate:
    def test_compensating_in_makes_batch_feasible(self):
        ledger = aggregate([req(1, OUT, 15), req(1, IN, 20)], {1: ("Widget", 10)})
        delta = ledger.deltas[1]
        assert delta.net_change == 5
        assert delta.resulting_stock == 15
        assert ledger.first_infeasible() is None

    def test_infeasible_aggregate_reports_total_out(self):
        ledger = aggregate(
            [req(1, OUT, 4), req(1, IN, 1), req(1, OUT, 4)], {1: ("Widget", 6)}
        )
        bad = ledger.first_infeasible()
        assert bad.product_id == 1
        assert bad.current_stock == 6
        assert bad.total_out == 8
        assert bad.resulting_stock == -1

    def test_first_infeasible_in_touch_order(self):
        ledger = aggregate(
            [req(2, OUT, 5), req(1, OUT, 5)], {1: ("A", 0), 2: ("B", 0)}
        )
        assert ledger.first_infeasible().product_id == 2

    def test_changed_excludes_zero_net_and_sorts_by_id(self):
        ledger = aggregate(
            [req(3, IN, 1), req(2, IN, 4), req(2, OUT, 4), req(1, OUT, 1)],
            {1: ("A", 5), 2: ("B", 5), 3: ("C", 5)},
        )
        assert [d.product_id for d in ledger.changed()] == [1, 3]

    def test_seed_only_once(self):
        ledger = NetChangeLedger()
        ledger.seed(1, "A", 10)
        ledger.seed(1, "A", 99)
        assert ledger.deltas[1].current_stock == 10
        assert 1 in ledger


movements = st.lists(
    st.tuples(st.sampled_from([IN, OUT]), st.integers(min_value=1, max_value=50)),
    min_size=1,
    max_size=20,
)


@given(stock=st.integers(min_value=0, max_value=200), lines=movements)
def test_feasible_iff_resulting_stock_non_negative(stock, lines):
    requests = [req(1, t, q) for t, q in lines]
    ledger = aggregate(requests, {1: ("Widget", stock)})
    expected = stock + sum(t.signed(q) for t, q in lines)
    assert ledger.deltas[1].resulting_stock == expected
    assert (ledger.first_infeasible() is None) == (expected >= 0)


@given(stock=st.integers(min_value=0, max_value=200), lines=movements, data=st.data())
def test_order_of_lines_does_not_matter(stock, lines, data):
    shuffled = data.draw(st.permutations(lines))
    a = aggregate([req(1, t, q) for t, q in lines], {1: ("W", stock)})
    b = aggregate([req(1, t, q) for t, q in shuffled], {1: ("W", stock)})
    assert a.deltas[1].net_change == b.deltas[1].net_change
    assert (a.first_infeasible() is None) == (b.first_infeasible() is None)


def test_first_overflowing_reports_product_past_ceiling():
    ledger = aggregate([req(1, IN, 3), req(2, IN, 6)], {1: ("A", 5), 2: ("B", 5)})
    assert ledger.first_overflowing(10).product_id == 2
    assert ledger.first_overflowing(11) is None
