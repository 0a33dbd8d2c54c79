"""
Shared fixtures for FinBoard tests.

No test talks to a real remote store: boards are backed by the
in-memory store, optionally wrapped to fail on demand.
"""

from datetime import datetime, timedelta, timezone

import pytest

from finboard.config import BoardSettings
from finboard.services.storage import (
    InMemoryBoardStore,
    StorageError,
    SubscriptionError,
)


START = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; every call is one second after the previous one."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


class SequentialIds:
    """Id factory producing list-1, card-1, card-2, ..."""

    def __init__(self):
        self.counters: dict[str, int] = {}

    def __call__(self, prefix: str) -> str:
        self.counters[prefix] = self.counters.get(prefix, 0) + 1
        return f"{prefix}-{self.counters[prefix]}"


class FlakyBoardStore(InMemoryBoardStore):
    """
    In-memory store that records every call and fails on demand.

    fail_on names the operations that raise StorageError ("*" for all).
    """

    def __init__(self, *args, fail_subscribe=False, fail_on=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_subscribe = fail_subscribe
        self.fail_on = set(fail_on)
        self.calls: list[str] = []
        self.error_callbacks = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on or "*" in self.fail_on:
            raise StorageError(f"{name} failed")

    def break_subscription(self, error=None) -> None:
        """Report a broken subscription to every subscriber."""
        for on_error in self.error_callbacks:
            if on_error is not None:
                on_error(error or StorageError("stream closed"))

    async def subscribe_all(self, on_change, on_error=None):
        self.calls.append("subscribe_all")
        if self.fail_subscribe:
            raise SubscriptionError("subscription refused")
        self.error_callbacks.append(on_error)
        return await super().subscribe_all(on_change, on_error)

    async def create_list(self, title, list_id=None):
        self._record("create_list")
        return await super().create_list(title, list_id)

    async def delete_list(self, list_id):
        self._record("delete_list")
        await super().delete_list(list_id)

    async def set_board_order(self, order):
        self._record("set_board_order")
        await super().set_board_order(order)

    async def create_card(self, list_id, amount_minor_units, occurred_at, is_projection, card_id=None):
        self._record("create_card")
        return await super().create_card(
            list_id, amount_minor_units, occurred_at, is_projection, card_id=card_id
        )

    async def create_cards(self, cards):
        self._record("create_cards")
        return await super().create_cards(cards)

    async def delete_card(self, card_id):
        self._record("delete_card")
        await super().delete_card(card_id)

    async def update_card(self, card_id, fields):
        self._record("update_card")
        await super().update_card(card_id, fields)

    async def transfer_card(self, source_id, amount_minor_units, target_list_id, occurred_at, new_card_id=None):
        self._record("transfer_card")
        return await super().transfer_card(
            source_id, amount_minor_units, target_list_id, occurred_at, new_card_id=new_card_id
        )

    @property
    def remote_writes(self) -> list[str]:
        return [name for name in self.calls if name != "subscribe_all"]


@pytest.fixture
def board_settings():
    """Board settings with the stock defaults, independent of the environment."""
    return BoardSettings(
        default_list_titles="Investment 1,Investment 2,Investment 3",
        currency_symbol="R$",
        decimal_separator=",",
        thousands_separator=".",
        installment_day_of_month=10,
        installment_hour_utc=12,
        installment_minute_utc=0,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def flaky_store_class():
    """The FlakyBoardStore class, for tests that build their own."""
    return FlakyBoardStore
