"""
Property-based tests using Hypothesis.

Invariants checked over generated inputs:
- Installments sum exactly to the total and differ by at most the remainder
- Transfers conserve the source amount and never leave a zero card
- Canonical amount text parses back to the same minor units
- The reconciled board order covers every known list exactly once
- A board in fallback mode never calls the store again
"""

import asyncio
from collections import Counter
from datetime import datetime, timezone

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from finboard.board import BoardStateManager
from finboard.errors import InsufficientFundsError
from finboard.models.board import BoardList, Card
from finboard.money.currency import format_amount, format_plain, parse_amount
from finboard.money.installments import split_installments
from finboard.money.transfer import compute_transfer
from finboard.ordering.board_order import reconcile_board_order


WHEN = datetime(2025, 1, 1, tzinfo=timezone.utc)

amounts = st.integers(min_value=1, max_value=10**12)
list_ids = st.text(alphabet="abcdefgh", min_size=1, max_size=3)


def _source(amount):
    return Card(id="src", list_id="a", amount_minor_units=amount, occurred_at=WHEN)


class TestInstallmentProperties:
    """Conservation of installment splits."""

    @given(total=amounts, count=st.integers(min_value=1, max_value=120))
    def test_sum_is_total(self, total, count):
        parts = split_installments(total, count)
        assert len(parts) == count
        assert sum(parts) == total

    @given(total=amounts, count=st.integers(min_value=1, max_value=120))
    def test_remainder_goes_to_last(self, total, count):
        parts = split_installments(total, count)
        assert all(part == total // count for part in parts[:-1])
        assert parts[-1] - parts[0] == total % count


class TestTransferProperties:
    """Conservation and rejection of transfers."""

    @given(data=st.data(), original=amounts)
    def test_amount_is_conserved(self, data, original):
        amount = data.draw(st.integers(min_value=1, max_value=original))
        result = compute_transfer(_source(original), amount, "b", occurred_at=WHEN, new_card_id="new")

        remaining = result.updated_source.amount_minor_units if result.updated_source else 0
        assert remaining + result.new_card.amount_minor_units == original
        assert result.new_card.is_projection is False
        if result.updated_source is not None:
            assert result.updated_source.amount_minor_units > 0

    @given(original=amounts, excess=st.integers(min_value=1, max_value=10**6))
    def test_overdraw_rejected(self, original, excess):
        with pytest.raises(InsufficientFundsError):
            compute_transfer(_source(original), original + excess, "b", occurred_at=WHEN)


class TestCurrencyProperties:
    """Parse and format agree."""

    @given(minor_units=st.integers(min_value=0, max_value=10**15))
    def test_plain_text_round_trips(self, minor_units):
        assert parse_amount(format_plain(minor_units)) == minor_units

    @given(minor_units=st.integers(min_value=0, max_value=10**15))
    def test_display_text_round_trips(self, minor_units):
        text = format_amount(minor_units, currency_symbol="", decimal_separator=",", thousands_separator=".")
        assert parse_amount(text) == minor_units


class TestBoardOrderProperties:
    """Every known list is shown exactly once."""

    @given(
        known=st.sets(list_ids, max_size=10),
        order=st.lists(list_ids, max_size=15),
    )
    def test_reconcile_covers_known_lists(self, known, order):
        result = reconcile_board_order(known, order)
        assert sorted(result) == sorted(known)
        assert len(result) == len(set(result))

    @given(known=st.sets(list_ids, min_size=1, max_size=10), data=st.data())
    def test_complete_order_is_kept(self, known, data):
        order = data.draw(st.permutations(sorted(known)))
        assert reconcile_board_order(known, order) == list(order)


operations = st.lists(
    st.one_of(
        st.tuples(st.just("add_list"), st.sampled_from(["X", "Y"])),
        st.tuples(st.just("remove_list"), st.sampled_from(["a", "b", "list-1"])),
        st.tuples(st.just("add_card"), st.sampled_from(["a", "b", "list-1"]), st.integers(1, 10**6)),
        st.tuples(st.just("transfer"), st.sampled_from(["c1", "card-1"]), st.integers(1, 100), st.sampled_from(["a", "b"])),
        st.tuples(st.just("toggle"), st.sampled_from(["c1", "card-1", "card-2"])),
    ),
    max_size=12,
)


class TestFallbackProperties:
    """Once degraded, a board stays local."""

    @settings(deadline=None, max_examples=40, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(ops=operations)
    def test_no_store_calls_after_fallback(self, flaky_store_class, board_settings, ops):
        store = flaky_store_class(
            lists=[BoardList(id="a", title="A"), BoardList(id="b", title="B")],
            cards=[Card(id="c1", list_id="a", amount_minor_units=10000, occurred_at=WHEN)],
            fail_on={"*"},
        )
        counts = Counter()

        def next_id(prefix):
            counts[prefix] += 1
            return f"{prefix}-{counts[prefix]}"

        board = BoardStateManager(store=store, settings=board_settings, id_factory=next_id)

        async def scenario():
            await board.connect()
            # First write fails and degrades the board
            await board.add_card("a", 1)
            for op in ops:
                if op[0] == "add_list":
                    await board.add_list(op[1])
                elif op[0] == "remove_list":
                    await board.remove_list(op[1])
                elif op[0] == "add_card":
                    await board.add_card(op[1], op[2])
                elif op[0] == "transfer":
                    try:
                        await board.transfer(op[1], op[2], op[3])
                    except InsufficientFundsError:
                        pass
                else:
                    await board.toggle_projection(op[1])

        asyncio.run(scenario())
        assert board.is_fallback is True
        assert store.remote_writes == ["create_card"]

        snapshot = board.snapshot()
        known = set(snapshot.list_ids)
        assert all(card.list_id in known for card in snapshot.cards)
        assert all(card.amount_minor_units > 0 for card in snapshot.cards)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
