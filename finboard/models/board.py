"""
Core Data Models for FinBoard

These models define the strict schemas for everything on the board.
They are designed to:
1. Keep money as integer minor units (cents), never floats
2. Keep timestamps as timezone-aware UTC instants
3. Be immutable values the board state manager swaps, never edits in place
4. Be serializable for storage and logging

DESIGN DECISION: Lists, the board order and cards are three separate
collections. List membership and list order change independently (and
race independently between clients), so the order is a projection
applied on top of whatever lists are known.
"""

import random
import string
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_identifier(prefix: str) -> str:
    """
    Generate an opaque identifier like ``card-1730462400000-k3f9``.

    Millisecond timestamp plus four random base36 characters.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=4))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


MinorUnits = Annotated[int, Field(ge=0, strict=True)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class DragKind(str, Enum):
    """What is being dragged (or hovered)."""
    LIST = "list"
    CARD = "card"


class BoardMode(str, Enum):
    """
    Persistence mode of a board.

    The only allowed transitions are DISCONNECTED -> REMOTE,
    DISCONNECTED -> FALLBACK and REMOTE -> FALLBACK. Fallback is
    permanent for the session.
    """
    DISCONNECTED = "disconnected"
    REMOTE = "remote"
    FALLBACK = "fallback"


class BoardCapability(str, Enum):
    """
    Operations a board accepts.

    DESIGN DECISION: Capabilities are granted explicitly when the board is
    created, rather than inferred from which UI controls happen to exist.
    """
    ADD_LIST = "add_list"
    REMOVE_LIST = "remove_list"
    REORDER_LISTS = "reorder_lists"
    ADD_CARD = "add_card"
    REMOVE_CARD = "remove_card"
    EDIT_CARD = "edit_card"
    MOVE_CARDS = "move_cards"
    TRANSFER = "transfer"
    INSTALLMENTS = "installments"


ALL_CAPABILITIES = frozenset(BoardCapability)
READ_ONLY_CAPABILITIES: frozenset = frozenset()


# =============================================================================
# BOARD ENTITIES
# =============================================================================

class BoardList(BaseModel):
    """A column on the board."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier, unique within the board"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display title"
    )


class Card(BaseModel):
    """
    A single money entry: a realized balance or a planned projection.

    CRITICAL: amount_minor_units is an integer count of cents.
    A card never holds zero in steady state; operations that would
    leave zero delete the card instead.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier, unique within the board"
    )
    list_id: str = Field(
        ...,
        min_length=1,
        description="List this card belongs to"
    )
    amount_minor_units: MinorUnits = Field(
        ...,
        description="Amount in hundredths of the currency unit"
    )
    occurred_at: datetime = Field(
        default_factory=utc_now,
        description="When the amount was (or will be) realized, UTC"
    )
    is_projection: bool = Field(
        default=False,
        description="True for planned amounts, False for realized balances"
    )

    @field_validator('occurred_at')
    @classmethod
    def normalize_occurred_at(cls, v: datetime) -> datetime:
        """Store every timestamp as aware UTC."""
        return ensure_utc(v)


class CardUpdate(BaseModel):
    """
    Partial update of a card.

    Only fields that were explicitly set are sent to storage.
    """
    model_config = ConfigDict(frozen=True)

    list_id: Optional[str] = Field(default=None, min_length=1)
    amount_minor_units: Optional[Annotated[int, Field(gt=0, strict=True)]] = None
    occurred_at: Optional[datetime] = None
    is_projection: Optional[bool] = None

    @field_validator('occurred_at')
    @classmethod
    def normalize_occurred_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    def changes(self) -> dict:
        """Fields explicitly set on this update."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def apply_to(self, card: Card) -> Card:
        """Return the card with this update applied."""
        return card.model_copy(update=self.changes())

    @property
    def is_empty(self) -> bool:
        return not self.changes()


class BoardSnapshot(BaseModel):
    """
    Read-only view of the whole board.

    lists are in display order (board_order already reconciled).
    cards are in arrival order; use cards_for_list() for display order.
    """
    model_config = ConfigDict(frozen=True)

    lists: tuple[BoardList, ...] = ()
    board_order: tuple[str, ...] = ()
    cards: tuple[Card, ...] = ()

    def find_list(self, list_id: str) -> Optional[BoardList]:
        for board_list in self.lists:
            if board_list.id == list_id:
                return board_list
        return None

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def cards_for_list(self, list_id: str) -> list[Card]:
        """Cards of one list, most recent first; ties keep arrival order."""
        in_list = [card for card in self.cards if card.list_id == list_id]
        return sorted(in_list, key=lambda c: c.occurred_at, reverse=True)

    @property
    def list_ids(self) -> list[str]:
        return [board_list.id for board_list in self.lists]


class OperationOutcome(BaseModel):
    """
    Result of a board operation.

    applied=False means the operation referred to something that no
    longer exists and was ignored. persisted=False with a warning means
    the board has just dropped to local-only mode: the change is kept,
    but only for this session.
    """
    model_config = ConfigDict(frozen=True)

    operation: str
    applied: bool = True
    persisted: bool = False
    entity_id: Optional[str] = None
    entity_ids: tuple[str, ...] = ()
    warning: Optional[str] = None

    @property
    def degraded(self) -> bool:
        """True if this operation triggered the switch to local mode."""
        return self.warning is not None
