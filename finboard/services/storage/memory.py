"""
In-Memory Board Store

A complete BoardStoreInterface implementation held in process memory.
Used by tests and by sessions that run without a remote store.

Every write notifies subscribers synchronously with a copy of the full
board, mirroring how the remote store pushes snapshots. Writes that
touch several entities are applied to local variables first and only
then swapped in, so subscribers never see half a transfer.
"""

from datetime import datetime
from typing import Callable, Optional, Sequence

from finboard.models.board import BoardList, Card, ensure_utc, new_identifier
from finboard.money.transfer import compute_transfer
from finboard.services.storage.interface import (
    BoardStoreInterface,
    ChangeCallback,
    ErrorCallback,
    NotFoundError,
    Unsubscribe,
)


class InMemoryBoardStore(BoardStoreInterface):
    """
    Board store backed by three in-process collections.

    board_order=None models a store whose order entry has never been
    written; subscribers then receive None for it.
    """

    def __init__(
        self,
        lists: Optional[Sequence[BoardList]] = None,
        board_order: Optional[Sequence[str]] = None,
        cards: Optional[Sequence[Card]] = None,
        id_factory: Callable[[str], str] = new_identifier,
    ):
        self._lists: dict[str, BoardList] = {l.id: l for l in lists or ()}
        self._board_order: Optional[list[str]] = (
            list(board_order) if board_order is not None else None
        )
        self._cards: dict[str, Card] = {c.id: c for c in cards or ()}
        self._id_factory = id_factory
        self._subscribers: list[ChangeCallback] = []

    # -------------------------------------------------------------------------
    # Inspection (tests and diagnostics)
    # -------------------------------------------------------------------------

    @property
    def lists(self) -> list[BoardList]:
        return list(self._lists.values())

    @property
    def board_order(self) -> Optional[list[str]]:
        return list(self._board_order) if self._board_order is not None else None

    @property
    def cards(self) -> list[Card]:
        return list(self._cards.values())

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    async def subscribe_all(
        self,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Register a subscriber and push the current board to it."""
        self._subscribers.append(on_change)
        on_change(self.lists, self.board_order, self.cards)

        def unsubscribe() -> None:
            if on_change in self._subscribers:
                self._subscribers.remove(on_change)

        return unsubscribe

    def _notify(self) -> None:
        for subscriber in list(self._subscribers):
            subscriber(self.lists, self.board_order, self.cards)

    # -------------------------------------------------------------------------
    # Lists and order
    # -------------------------------------------------------------------------

    async def create_list(self, title: str, list_id: Optional[str] = None) -> str:
        list_id = list_id or self._id_factory("list")
        self._lists[list_id] = BoardList(id=list_id, title=title)
        order = self._board_order or []
        if list_id not in order:
            order = order + [list_id]
        self._board_order = order
        self._notify()
        return list_id

    async def delete_list(self, list_id: str) -> None:
        if list_id not in self._lists:
            return
        lists = {k: v for k, v in self._lists.items() if k != list_id}
        cards = {k: v for k, v in self._cards.items() if v.list_id != list_id}
        order = [x for x in self._board_order or [] if x != list_id]

        self._lists, self._cards, self._board_order = lists, cards, order
        self._notify()

    async def set_board_order(self, order: Sequence[str]) -> None:
        self._board_order = list(order)
        self._notify()

    # -------------------------------------------------------------------------
    # Cards
    # -------------------------------------------------------------------------

    async def create_card(
        self,
        list_id: str,
        amount_minor_units: int,
        occurred_at: datetime,
        is_projection: bool,
        card_id: Optional[str] = None,
    ) -> str:
        card = Card(
            id=card_id or self._id_factory("card"),
            list_id=list_id,
            amount_minor_units=amount_minor_units,
            occurred_at=occurred_at,
            is_projection=is_projection,
        )
        self._cards[card.id] = card
        self._notify()
        return card.id

    async def create_cards(self, cards: Sequence[Card]) -> list[str]:
        merged = dict(self._cards)
        for card in cards:
            merged[card.id] = card
        self._cards = merged
        self._notify()
        return [card.id for card in cards]

    async def delete_card(self, card_id: str) -> None:
        if self._cards.pop(card_id, None) is not None:
            self._notify()

    async def update_card(self, card_id: str, fields: dict) -> None:
        card = self._cards.get(card_id)
        if card is None:
            return
        updates = dict(fields)
        if "occurred_at" in updates:
            updates["occurred_at"] = ensure_utc(updates["occurred_at"])
        self._cards[card_id] = card.model_copy(update=updates)
        self._notify()

    async def transfer_card(
        self,
        source_id: str,
        amount_minor_units: int,
        target_list_id: str,
        occurred_at: datetime,
        new_card_id: Optional[str] = None,
    ) -> str:
        source = self._cards.get(source_id)
        if source is None:
            raise NotFoundError(f"Source card not found: {source_id}")

        result = compute_transfer(
            source,
            amount_minor_units,
            target_list_id,
            occurred_at=occurred_at,
            new_card_id=new_card_id,
            id_factory=self._id_factory,
        )

        cards = dict(self._cards)
        if result.updated_source is None:
            del cards[source_id]
        else:
            cards[source_id] = result.updated_source
        cards[result.new_card.id] = result.new_card

        self._cards = cards
        self._notify()
        return result.new_card.id
