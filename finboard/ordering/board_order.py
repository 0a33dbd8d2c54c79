"""
Board Order Reconciliation

The list set and the board order are stored separately and change
independently: another client may add a list before its id reaches the
order, or delete a list whose id lingers in the order. These pure
functions turn "whatever is currently known" into one display order.

RULES:
- Ids in the order that name no known list are dropped
- Duplicate ids keep their first position
- Known lists missing from the order are appended, sorted by id,
  so no list is ever hidden and the result is deterministic
"""

from typing import Iterable, Optional, Sequence, TypeVar

from finboard.models.board import BoardList, Card


T = TypeVar("T")


def array_move(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """
    Move one element to a new index (remove, then insert).

    array_move(["a", "b", "c"], 0, 2) -> ["b", "c", "a"]
    """
    moved = list(items)
    moved.insert(to_index, moved.pop(from_index))
    return moved


def reconcile_board_order(
    list_ids: Iterable[str],
    board_order: Optional[Sequence[str]],
) -> list[str]:
    """
    Display order for the known lists.

    A missing board order (not loaded yet) counts as empty.
    """
    known = set(list_ids)
    seen: set[str] = set()
    ordered = []

    for list_id in board_order or ():
        if list_id in known and list_id not in seen:
            ordered.append(list_id)
            seen.add(list_id)

    ordered.extend(sorted(known - seen))
    return ordered


def order_lists(
    lists: Iterable[BoardList],
    board_order: Optional[Sequence[str]],
) -> list[BoardList]:
    """Lists in reconciled display order."""
    by_id = {board_list.id: board_list for board_list in lists}
    return [by_id[list_id] for list_id in reconcile_board_order(by_id, board_order)]


def sort_cards(cards: Iterable[Card]) -> list[Card]:
    """Most recent first. The sort is stable, so ties keep arrival order."""
    return sorted(cards, key=lambda card: card.occurred_at, reverse=True)


def normalize_cards(cards: Sequence[Card], board_order: Sequence[str]) -> list[Card]:
    """
    All cards grouped by list in board order, each group most recent first.

    Cards whose list is not in the order (a list deleted by another
    client, not yet cascaded) go last rather than disappearing.
    """
    normalized = []
    for list_id in board_order:
        normalized.extend(sort_cards(card for card in cards if card.list_id == list_id))

    ordered_ids = set(board_order)
    normalized.extend(sort_cards(card for card in cards if card.list_id not in ordered_ids))
    return normalized
