"""
Persistence Adapter with Fallback

Wraps a board store for the board manager and owns two things:
1. The store subscription (established on connect, released on teardown)
2. The one-way switch to fallback mode

FALLBACK IS TRIGGERED BY:
- No store configured
- The initial subscription failing or throwing
- The subscription breaking later
- Any write failing

Once in fallback the adapter never calls the store again for the rest of
the session. There is no reconnection attempt: a board that silently
flips back and forth between two sources of truth is worse than one that
is honestly local.

Stale-reference rejections (NotFoundError) and input rejections from the
store are NOT failures of the store. They propagate unchanged.
"""

from typing import Any, Awaitable, Callable, Optional, Sequence

from finboard.errors import BoardInputError
from finboard.events import BoardLogger
from finboard.models.board import BoardList, BoardSnapshot, Card
from finboard.ordering.board_order import order_lists, reconcile_board_order
from finboard.services.storage.interface import (
    BoardStoreInterface,
    NotFoundError,
    Unsubscribe,
)


SnapshotCallback = Callable[[BoardSnapshot], None]
FallbackCallback = Callable[[str, Optional[BaseException]], None]


class PersistenceFallbackError(Exception):
    """A store call failed and the adapter is now in fallback mode."""

    def __init__(self, operation: str, cause: Optional[BaseException]):
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"Remote store failed during {operation}: {cause}"
            if cause
            else f"Remote store unavailable during {operation}"
        )


def build_snapshot(
    lists: Sequence[BoardList],
    board_order: Optional[Sequence[str]],
    cards: Sequence[Card],
) -> BoardSnapshot:
    """
    Combine the three store collections into one snapshot.

    Tolerates partial readiness: a missing board order is treated as
    empty, and lists are then shown in id order.
    """
    ordered = order_lists(lists, board_order)
    return BoardSnapshot(
        lists=tuple(ordered),
        board_order=tuple(reconcile_board_order((l.id for l in lists), board_order)),
        cards=tuple(cards),
    )


class PersistenceAdapter:
    """
    The board manager's only handle on the store.

    Usage:
        adapter = PersistenceAdapter(store, on_fallback=handle_fallback)
        await adapter.subscribe(apply_snapshot)
        ...
        await adapter.create_card(...)
        ...
        adapter.close()
    """

    def __init__(
        self,
        store: Optional[BoardStoreInterface],
        on_fallback: Optional[FallbackCallback] = None,
        board_logger: Optional[BoardLogger] = None,
    ):
        """
        Initialize the adapter.

        Args:
            store: The remote store. If None, the adapter falls back
                   as soon as it is asked to subscribe.
            on_fallback: Called once, with the trigger and the error,
                         when the adapter switches to fallback.
            board_logger: Logger for the fallback transition.
        """
        self._store = store
        self._on_fallback = on_fallback
        self._logger = board_logger or BoardLogger()
        self._unsubscribe: Optional[Unsubscribe] = None
        self._fallback = False
        self._fallback_cause: Optional[BaseException] = None
        self._remote_calls = 0

    @property
    def is_fallback(self) -> bool:
        return self._fallback

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    @property
    def remote_call_count(self) -> int:
        """Number of store calls attempted so far."""
        return self._remote_calls

    # -------------------------------------------------------------------------
    # Subscription lifecycle
    # -------------------------------------------------------------------------

    async def subscribe(self, on_update: SnapshotCallback) -> bool:
        """
        Subscribe to the store's board snapshots.

        Returns:
            True if subscribed; False if the adapter is (now) in fallback mode
        """
        if self._fallback:
            return False
        if self._store is None:
            self._enter_fallback("connect", None)
            return False

        def handle_change(
            lists: list[BoardList],
            board_order: Optional[list[str]],
            cards: list[Card],
        ) -> None:
            if self._fallback:
                return
            on_update(build_snapshot(lists, board_order, cards))

        self._remote_calls += 1
        try:
            self._unsubscribe = await self._store.subscribe_all(
                handle_change,
                self._handle_subscription_error,
            )
        except Exception as e:
            self._enter_fallback("subscribe", e)
            return False
        return True

    def _handle_subscription_error(self, error: Exception) -> None:
        self._enter_fallback("subscription", error)

    def close(self) -> None:
        """Release the subscription. Safe to call more than once."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _enter_fallback(self, trigger: str, error: Optional[BaseException]) -> None:
        if self._fallback:
            return
        self._fallback = True
        self._fallback_cause = error
        self._logger.log_fallback_entered(trigger, error)

        # No further remote traffic, including the subscription
        try:
            self.close()
        except Exception as e:
            self._logger.log_remote_rejected("unsubscribe", e)

        if self._on_fallback is not None:
            self._on_fallback(trigger, error)

    # -------------------------------------------------------------------------
    # Store calls
    # -------------------------------------------------------------------------

    async def _run(
        self,
        operation: str,
        call: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        if self._fallback:
            raise PersistenceFallbackError(operation, self._fallback_cause)

        self._remote_calls += 1
        try:
            return await call(*args, **kwargs)
        except (NotFoundError, BoardInputError):
            raise
        except Exception as e:
            self._enter_fallback(operation, e)
            raise PersistenceFallbackError(operation, e) from e

    async def create_list(self, title: str, list_id: str) -> str:
        return await self._run("create_list", self._store.create_list, title, list_id=list_id)

    async def delete_list(self, list_id: str) -> None:
        await self._run("delete_list", self._store.delete_list, list_id)

    async def set_board_order(self, order: Sequence[str]) -> None:
        await self._run("set_board_order", self._store.set_board_order, list(order))

    async def create_card(self, card: Card) -> str:
        return await self._run(
            "create_card",
            self._store.create_card,
            card.list_id,
            card.amount_minor_units,
            card.occurred_at,
            card.is_projection,
            card_id=card.id,
        )

    async def create_cards(self, cards: Sequence[Card]) -> list[str]:
        return await self._run("create_cards", self._store.create_cards, list(cards))

    async def delete_card(self, card_id: str) -> None:
        await self._run("delete_card", self._store.delete_card, card_id)

    async def update_card(self, card_id: str, fields: dict) -> None:
        await self._run("update_card", self._store.update_card, card_id, fields)

    async def transfer_card(
        self,
        source_id: str,
        amount_minor_units: int,
        target_list_id: str,
        occurred_at,
        new_card_id: str,
    ) -> str:
        return await self._run(
            "transfer_card",
            self._store.transfer_card,
            source_id,
            amount_minor_units,
            target_list_id,
            occurred_at,
            new_card_id=new_card_id,
        )
