"""Tests for the persistence adapter and its one-way fallback."""

import asyncio
from datetime import datetime, timezone

import pytest

from finboard.errors import InsufficientFundsError
from finboard.models.board import BoardList, Card
from finboard.services.persistence import (
    PersistenceAdapter,
    PersistenceFallbackError,
    build_snapshot,
)
from finboard.services.storage import NotFoundError


WHEN = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _card(card_id="c1", list_id="a", amount=10000):
    return Card(id=card_id, list_id=list_id, amount_minor_units=amount, occurred_at=WHEN)


class FallbackRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, trigger, error):
        self.calls.append((trigger, error))


class TestBuildSnapshot:
    """Tests for combining the three store collections."""

    def test_missing_order_sorted_by_id(self):
        """Test partial readiness: no board order yet."""
        snapshot = build_snapshot(
            [BoardList(id="b", title="B"), BoardList(id="a", title="A")],
            None,
            [],
        )
        assert snapshot.list_ids == ["a", "b"]
        assert snapshot.board_order == ("a", "b")

    def test_order_applied(self):
        """Test a known order wins over id order."""
        snapshot = build_snapshot(
            [BoardList(id="a", title="A"), BoardList(id="b", title="B")],
            ["b", "a", "gone"],
            [_card()],
        )
        assert snapshot.list_ids == ["b", "a"]
        assert snapshot.board_order == ("b", "a")
        assert snapshot.cards == (_card(),)


class TestSubscribe:
    """Tests for subscription and fallback on connect."""

    def test_subscribe_pushes_snapshots(self, flaky_store_class):
        """Test store pushes arrive as snapshots."""
        store = flaky_store_class(lists=[BoardList(id="a", title="A")], cards=[_card()])
        adapter = PersistenceAdapter(store)
        snapshots = []

        assert asyncio.run(adapter.subscribe(snapshots.append)) is True
        assert adapter.is_fallback is False
        assert adapter.is_subscribed is True
        assert snapshots[-1].list_ids == ["a"]

    def test_no_store_falls_back(self):
        """Test a board without a store is local from the start."""
        recorder = FallbackRecorder()
        adapter = PersistenceAdapter(None, on_fallback=recorder)

        assert asyncio.run(adapter.subscribe(lambda snapshot: None)) is False
        assert adapter.is_fallback is True
        assert recorder.calls == [("connect", None)]

    def test_failed_subscribe_falls_back(self, flaky_store_class):
        """Test a subscription that throws on startup."""
        recorder = FallbackRecorder()
        store = flaky_store_class(fail_subscribe=True)
        adapter = PersistenceAdapter(store, on_fallback=recorder)

        assert asyncio.run(adapter.subscribe(lambda snapshot: None)) is False
        assert adapter.is_fallback is True
        assert recorder.calls[0][0] == "subscribe"

    def test_broken_subscription_falls_back_and_unsubscribes(self, flaky_store_class):
        """Test a subscription error later in the session."""
        recorder = FallbackRecorder()
        store = flaky_store_class(lists=[BoardList(id="a", title="A")])
        adapter = PersistenceAdapter(store, on_fallback=recorder)
        snapshots = []

        async def scenario():
            await adapter.subscribe(snapshots.append)
            store.break_subscription()
            await store.create_list("B")

        asyncio.run(scenario())
        assert adapter.is_fallback is True
        assert recorder.calls[0][0] == "subscription"
        assert store.subscriber_count == 0
        assert len(snapshots) == 1

    def test_close_is_idempotent(self, flaky_store_class):
        """Test releasing the subscription twice."""
        store = flaky_store_class()
        adapter = PersistenceAdapter(store)
        asyncio.run(adapter.subscribe(lambda snapshot: None))

        adapter.close()
        adapter.close()
        assert store.subscriber_count == 0
        assert adapter.is_subscribed is False


class TestWrites:
    """Tests for store calls through the adapter."""

    def test_write_failure_enters_fallback_once(self, flaky_store_class):
        """Test the first failing write switches to fallback, permanently."""
        recorder = FallbackRecorder()
        store = flaky_store_class(lists=[BoardList(id="a", title="A")], fail_on={"create_card"})
        adapter = PersistenceAdapter(store, on_fallback=recorder)

        async def scenario():
            await adapter.subscribe(lambda snapshot: None)
            with pytest.raises(PersistenceFallbackError) as error:
                await adapter.create_card(_card())
            assert error.value.operation == "create_card"
            with pytest.raises(PersistenceFallbackError):
                await adapter.delete_list("a")

        asyncio.run(scenario())
        assert adapter.is_fallback is True
        assert len(recorder.calls) == 1
        # The second call never reached the store
        assert store.remote_writes == ["create_card"]
        assert store.subscriber_count == 0

    def test_stale_source_propagates(self, flaky_store_class):
        """Test NotFoundError is not a store failure."""
        store = flaky_store_class(lists=[BoardList(id="a", title="A")])
        adapter = PersistenceAdapter(store)

        async def scenario():
            await adapter.subscribe(lambda snapshot: None)
            with pytest.raises(NotFoundError):
                await adapter.transfer_card("missing", 100, "a", WHEN, "new")

        asyncio.run(scenario())
        assert adapter.is_fallback is False

    def test_remote_input_rejection_propagates(self, flaky_store_class):
        """Test an input error raised by the store keeps the board remote."""
        store = flaky_store_class(lists=[BoardList(id="a", title="A")], cards=[_card(amount=100)])
        adapter = PersistenceAdapter(store)

        async def scenario():
            await adapter.subscribe(lambda snapshot: None)
            with pytest.raises(InsufficientFundsError):
                await adapter.transfer_card("c1", 500, "a", WHEN, "new")

        asyncio.run(scenario())
        assert adapter.is_fallback is False

    def test_successful_writes_reach_store(self, flaky_store_class):
        """Test each adapter call maps to one store call."""
        store = flaky_store_class(lists=[BoardList(id="a", title="A")])
        adapter = PersistenceAdapter(store)

        async def scenario():
            await adapter.subscribe(lambda snapshot: None)
            await adapter.create_list("B", "b")
            await adapter.set_board_order(["b", "a"])
            await adapter.create_card(_card())
            await adapter.update_card("c1", {"amount_minor_units": 5})
            await adapter.create_cards([_card("c2")])
            await adapter.delete_card("c2")

        asyncio.run(scenario())
        assert store.remote_writes == [
            "create_list",
            "set_board_order",
            "create_card",
            "update_card",
            "create_cards",
            "delete_card",
        ]
        assert adapter.remote_call_count == 7
        assert store.board_order == ["b", "a"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
