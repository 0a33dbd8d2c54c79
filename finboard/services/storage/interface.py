"""
Abstract Board Store Interface

DESIGN DECISION: We define an abstract interface for the board's store.
This allows us to:
1. Use a remote, multi-client store (Google Sheets) in production
2. Use in-memory storage for testing and offline sessions
3. Keep the board manager decoupled from any wire protocol

The store is push-based: subscribers receive the full board whenever
lists, board order or cards change, whoever changed them.

Multi-entity changes (transfer, installment batch, list removal with its
cards) are single calls, so a store can apply them atomically. A store
must never leave a transfer half applied.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional, Sequence

from finboard.models.board import BoardList, Card


# on_change(lists, board_order, cards); board_order is None until loaded
ChangeCallback = Callable[[list[BoardList], Optional[list[str]], list[Card]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class BoardStoreInterface(ABC):
    """
    Abstract interface for board storage operations.

    Any store implementation (Google Sheets, in-memory, etc.)
    must implement these methods.

    Operations on ids that no longer exist are no-ops, except
    transfer_card, which raises NotFoundError when the source is gone.
    """

    @abstractmethod
    async def subscribe_all(
        self,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """
        Subscribe to board changes.

        on_change is called with the current board as soon as it is
        available, then after every change. on_error is called if the
        subscription breaks after it was established.

        Returns:
            A callable that releases the subscription

        Raises:
            StorageError: If the subscription cannot be established
        """
        pass

    @abstractmethod
    async def create_list(self, title: str, list_id: Optional[str] = None) -> str:
        """
        Create a list and append it to the board order.

        Args:
            title: List title
            list_id: Identifier to use; generated if None

        Returns:
            The list id
        """
        pass

    @abstractmethod
    async def delete_list(self, list_id: str) -> None:
        """Delete a list, all its cards, and its board order entry, atomically."""
        pass

    @abstractmethod
    async def set_board_order(self, order: Sequence[str]) -> None:
        """Replace the board order."""
        pass

    @abstractmethod
    async def create_card(
        self,
        list_id: str,
        amount_minor_units: int,
        occurred_at: datetime,
        is_projection: bool,
        card_id: Optional[str] = None,
    ) -> str:
        """
        Create a card.

        Returns:
            The card id
        """
        pass

    @abstractmethod
    async def create_cards(self, cards: Sequence[Card]) -> list[str]:
        """
        Create several cards in one atomic write (installment batches).

        Returns:
            The card ids, in input order
        """
        pass

    @abstractmethod
    async def delete_card(self, card_id: str) -> None:
        """Delete a card."""
        pass

    @abstractmethod
    async def update_card(self, card_id: str, fields: dict) -> None:
        """
        Update some fields of a card (last write wins per field).

        Args:
            card_id: The card to update
            fields: Subset of list_id, amount_minor_units, occurred_at, is_projection
        """
        pass

    @abstractmethod
    async def transfer_card(
        self,
        source_id: str,
        amount_minor_units: int,
        target_list_id: str,
        occurred_at: datetime,
        new_card_id: Optional[str] = None,
    ) -> str:
        """
        Move part of a card's amount into a new realized card, atomically.

        The source is reduced, or deleted when nothing remains.

        Returns:
            The new card id

        Raises:
            NotFoundError: If the source card does not exist
            InsufficientFundsError: If the source holds less than the amount
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class SubscriptionError(StorageError):
    """The change subscription could not be established or broke."""
    pass
