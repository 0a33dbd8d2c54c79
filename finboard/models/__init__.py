"""
Data Models Package

This package contains all Pydantic models used by FinBoard.
All data flowing through the board must conform to these schemas.
"""

from finboard.models.board import (
    ALL_CAPABILITIES,
    READ_ONLY_CAPABILITIES,
    BoardCapability,
    BoardList,
    BoardMode,
    BoardSnapshot,
    Card,
    CardUpdate,
    DragKind,
    OperationOutcome,
    ensure_utc,
    new_identifier,
    utc_now,
)
from finboard.models.events import (
    BoardEvent,
    BoardEventBuilder,
    BoardEventSeverity,
    BoardEventType,
)

__all__ = [
    # Board models
    "ALL_CAPABILITIES",
    "READ_ONLY_CAPABILITIES",
    "BoardCapability",
    "BoardList",
    "BoardMode",
    "BoardSnapshot",
    "Card",
    "CardUpdate",
    "DragKind",
    "OperationOutcome",
    "ensure_utc",
    "new_identifier",
    "utc_now",
    # Event models
    "BoardEvent",
    "BoardEventBuilder",
    "BoardEventSeverity",
    "BoardEventType",
]
