"""
Drag State Machine

A drag gesture is a stream of events: start, many "now over X" updates,
then end or cancel. This module turns that stream into state changes
plus a list of effects for the board manager to carry out. It never
touches the board or storage itself.

STATES:
    Idle
    Dragging(kind, active_id, origin_container_id)

WHAT EACH "OVER" MEANS:
- List over list: preview the list moved to the target's position
- Card over card in the same list: preview the card at that position
- Card over card in another list, or card over a list: REASSIGN the card
  to that list with a fresh timestamp. This is a real edit and is
  persisted immediately, not at drop time.

END: a list drag commits the final board order; a card drag has already
committed its reassignments. CANCEL: previews are discarded and the board
returns to the last state pushed by storage; committed reassignments stay.

Hovering an item over itself is always a no-op.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from finboard.models.board import BoardSnapshot, DragKind
from finboard.ordering.board_order import array_move


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# STATES
# =============================================================================

class Idle(_Frozen):
    """No gesture in progress."""

    @property
    def is_dragging(self) -> bool:
        return False


class Dragging(_Frozen):
    """
    A gesture in progress.

    For a list drag, initial_order/preview_order are board orders.
    For a card drag, they are card ids of container_id, the list the card
    currently sits in (its origin list until it is reassigned).
    """
    kind: DragKind
    active_id: str
    origin_container_id: Optional[str] = None
    container_id: Optional[str] = None
    initial_order: tuple[str, ...] = ()
    preview_order: tuple[str, ...] = ()

    @property
    def is_dragging(self) -> bool:
        return True


DragState = Union[Idle, Dragging]

IDLE = Idle()


# =============================================================================
# EVENTS
# =============================================================================

class DragStart(_Frozen):
    kind: DragKind
    active_id: str


class DragOver(_Frozen):
    over_kind: DragKind
    over_id: str


class DragEnd(_Frozen):
    """Drop. over_* is empty when the item was dropped outside any target."""
    over_kind: Optional[DragKind] = None
    over_id: Optional[str] = None


class DragCancel(_Frozen):
    pass


DragEvent = Union[DragStart, DragOver, DragEnd, DragCancel]


# =============================================================================
# EFFECTS
# =============================================================================

class PreviewBoardOrder(_Frozen):
    """Show lists in this order; do not persist."""
    order: tuple[str, ...]


class PreviewCardOrder(_Frozen):
    """Show the cards of one list in this order; do not persist."""
    list_id: str
    card_ids: tuple[str, ...]


class ReassignCard(_Frozen):
    """Move a card to another list with a fresh timestamp; persist now."""
    card_id: str
    target_list_id: str
    occurred_at: datetime


class CommitBoardOrder(_Frozen):
    """Persist this board order."""
    order: tuple[str, ...]


class ClearPreview(_Frozen):
    """Drop any preview ordering."""
    pass


class RestoreLastSnapshot(_Frozen):
    """Drop previews and re-apply the last state pushed by storage."""
    pass


DragEffect = Union[
    PreviewBoardOrder,
    PreviewCardOrder,
    ReassignCard,
    CommitBoardOrder,
    ClearPreview,
    RestoreLastSnapshot,
]


class Transition(_Frozen):
    state: DragState
    effects: tuple[DragEffect, ...] = ()


# =============================================================================
# TRANSITION FUNCTION
# =============================================================================

def transition(
    state: DragState,
    event: DragEvent,
    board: BoardSnapshot,
    now: datetime,
) -> Transition:
    """
    Compute the next state and effects for one drag event.

    Pure: `board` is only read, and `now` is the timestamp given to a
    reassigned card.
    """
    if isinstance(event, DragStart):
        return _start(state, event, board)
    if isinstance(event, DragOver):
        return _over(state, event, board, now)
    if isinstance(event, DragEnd):
        return _end(state, event, board, now)
    if isinstance(event, DragCancel):
        if isinstance(state, Dragging):
            return Transition(state=IDLE, effects=(RestoreLastSnapshot(),))
        return Transition(state=state)
    raise TypeError(f"Unknown drag event: {event!r}")


def _start(state: DragState, event: DragStart, board: BoardSnapshot) -> Transition:
    if isinstance(state, Dragging):
        return Transition(state=state)

    if event.kind == DragKind.LIST:
        if board.find_list(event.active_id) is None:
            return Transition(state=state)
        order = tuple(board.board_order)
        return Transition(state=Dragging(
            kind=DragKind.LIST,
            active_id=event.active_id,
            initial_order=order,
            preview_order=order,
        ))

    card = board.find_card(event.active_id)
    if card is None:
        return Transition(state=state)
    card_ids = tuple(c.id for c in board.cards_for_list(card.list_id))
    return Transition(state=Dragging(
        kind=DragKind.CARD,
        active_id=card.id,
        origin_container_id=card.list_id,
        container_id=card.list_id,
        initial_order=card_ids,
        preview_order=card_ids,
    ))


def _over(
    state: DragState,
    event: DragOver,
    board: BoardSnapshot,
    now: datetime,
) -> Transition:
    if not isinstance(state, Dragging) or event.over_id == state.active_id:
        return Transition(state=state)

    if state.kind == DragKind.LIST:
        return _list_over(state, event)
    return _card_over(state, event, board, now)


def _list_over(state: Dragging, event: DragOver) -> Transition:
    # Lists only reorder against other lists
    if event.over_kind != DragKind.LIST:
        return Transition(state=state)

    order = list(state.preview_order)
    if state.active_id not in order or event.over_id not in order:
        return Transition(state=state)

    moved = tuple(array_move(order, order.index(state.active_id), order.index(event.over_id)))
    if moved == state.preview_order:
        return Transition(state=state)
    return Transition(
        state=state.model_copy(update={"preview_order": moved}),
        effects=(PreviewBoardOrder(order=moved),),
    )


def _card_over(
    state: Dragging,
    event: DragOver,
    board: BoardSnapshot,
    now: datetime,
) -> Transition:
    if board.find_card(state.active_id) is None:
        return Transition(state=state)

    if event.over_kind == DragKind.LIST:
        target_list_id = event.over_id
        over_card_id = None
    else:
        over_card = board.find_card(event.over_id)
        if over_card is None:
            return Transition(state=state)
        target_list_id = over_card.list_id
        over_card_id = over_card.id

    if board.find_list(target_list_id) is None:
        return Transition(state=state)

    if target_list_id != state.container_id:
        return _reassign(state, target_list_id, board, now)

    if over_card_id is None:
        return Transition(state=state)

    order = list(state.preview_order)
    if state.active_id not in order or over_card_id not in order:
        order = [c.id for c in board.cards_for_list(target_list_id)]
        if state.active_id not in order or over_card_id not in order:
            return Transition(state=state)

    moved = tuple(array_move(order, order.index(state.active_id), order.index(over_card_id)))
    return Transition(
        state=state.model_copy(update={"preview_order": moved}),
        effects=(PreviewCardOrder(list_id=target_list_id, card_ids=moved),),
    )


def _reassign(
    state: Dragging,
    target_list_id: str,
    board: BoardSnapshot,
    now: datetime,
) -> Transition:
    # The fresh timestamp sorts the card to the top of its new list
    others = tuple(
        c.id for c in board.cards_for_list(target_list_id) if c.id != state.active_id
    )
    preview = (state.active_id,) + others
    return Transition(
        state=state.model_copy(update={
            "container_id": target_list_id,
            "preview_order": preview,
        }),
        effects=(
            ReassignCard(
                card_id=state.active_id,
                target_list_id=target_list_id,
                occurred_at=now,
            ),
        ),
    )


def _end(
    state: DragState,
    event: DragEnd,
    board: BoardSnapshot,
    now: datetime,
) -> Transition:
    if not isinstance(state, Dragging):
        return Transition(state=state)

    effects: list[DragEffect] = []
    if event.over_kind is not None and event.over_id is not None:
        final = _over(state, DragOver(over_kind=event.over_kind, over_id=event.over_id), board, now)
        state = final.state
        effects.extend(final.effects)

    if state.kind == DragKind.LIST and state.preview_order != state.initial_order:
        effects.append(CommitBoardOrder(order=state.preview_order))
    effects.append(ClearPreview())
    return Transition(state=IDLE, effects=tuple(effects))
