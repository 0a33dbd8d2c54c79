"""
Ordering Package

Board order reconciliation and the drag-and-drop state machine.
Everything here is pure: it reads board snapshots and returns new
orders, states and effects.
"""

from finboard.ordering.board_order import (
    array_move,
    normalize_cards,
    order_lists,
    reconcile_board_order,
    sort_cards,
)
from finboard.ordering.drag import (
    IDLE,
    ClearPreview,
    CommitBoardOrder,
    DragCancel,
    DragEffect,
    DragEnd,
    DragEvent,
    Dragging,
    DragOver,
    DragStart,
    DragState,
    Idle,
    PreviewBoardOrder,
    PreviewCardOrder,
    ReassignCard,
    RestoreLastSnapshot,
    Transition,
    transition,
)

__all__ = [
    # Board order
    "array_move",
    "normalize_cards",
    "order_lists",
    "reconcile_board_order",
    "sort_cards",
    # Drag state machine
    "IDLE",
    "ClearPreview",
    "CommitBoardOrder",
    "DragCancel",
    "DragEffect",
    "DragEnd",
    "DragEvent",
    "Dragging",
    "DragOver",
    "DragStart",
    "DragState",
    "Idle",
    "PreviewBoardOrder",
    "PreviewCardOrder",
    "ReassignCard",
    "RestoreLastSnapshot",
    "Transition",
    "transition",
]
