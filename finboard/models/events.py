"""
Board Event Models for FinBoard

Significant board actions are described as typed events and written to
the structured log. This provides:
1. Debugging information when a session drops to fallback mode
2. A readable trace of what the board did and why

DESIGN DECISION: Events are log records only. They are never persisted
to the board's store and there is no history to query or replay.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finboard.models.board import utc_now


class BoardEventType(str, Enum):
    """Types of events the board logs."""
    # Lifecycle
    BOARD_CONNECTED = "board_connected"
    BOARD_TORN_DOWN = "board_torn_down"
    SNAPSHOT_RECEIVED = "snapshot_received"

    # Operations
    OPERATION_APPLIED = "operation_applied"
    OPERATION_IGNORED = "operation_ignored"
    INPUT_REJECTED = "input_rejected"
    REMOTE_REJECTED = "remote_rejected"

    # Drag gestures
    DRAG_STARTED = "drag_started"
    DRAG_ENDED = "drag_ended"
    DRAG_CANCELLED = "drag_cancelled"

    # Persistence
    FALLBACK_ENTERED = "fallback_entered"
    DEFAULT_LISTS_SEEDED = "default_lists_seeded"


class BoardEventSeverity(str, Enum):
    """Severity level for board events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class BoardEvent(BaseModel):
    """A single board event, rendered as one structured log line."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: BoardEventType = Field(
        ...,
        description="Type of event"
    )
    severity: BoardEventSeverity = Field(
        default=BoardEventSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'list', 'card', 'board')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class BoardEventBuilder:
    """
    Helper class to build board events with common patterns.

    Usage:
        event = BoardEventBuilder.operation_applied("add_card", "card", card_id, persisted=True)
        event = BoardEventBuilder.fallback_entered("create_card", str(error))
    """

    @staticmethod
    def board_connected(mode: str, list_count: int, card_count: int) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.BOARD_CONNECTED,
            entity_type="board",
            description=f"Board connected in {mode} mode",
            details={
                "mode": mode,
                "list_count": list_count,
                "card_count": card_count,
            },
        )

    @staticmethod
    def board_torn_down(mode: str) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.BOARD_TORN_DOWN,
            entity_type="board",
            description="Board torn down, subscription released",
            details={"mode": mode},
        )

    @staticmethod
    def snapshot_received(list_count: int, card_count: int) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.SNAPSHOT_RECEIVED,
            severity=BoardEventSeverity.DEBUG,
            entity_type="board",
            description=f"Remote snapshot: {list_count} lists, {card_count} cards",
            details={
                "list_count": list_count,
                "card_count": card_count,
            },
        )

    @staticmethod
    def operation_applied(
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        persisted: bool,
    ) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.OPERATION_APPLIED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{operation} applied ({'persisted' if persisted else 'local only'})",
            details={
                "operation": operation,
                "persisted": persisted,
            },
        )

    @staticmethod
    def operation_ignored(
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
    ) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.OPERATION_IGNORED,
            severity=BoardEventSeverity.DEBUG,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{operation} ignored: {entity_type} {entity_id} no longer exists",
            details={"operation": operation},
        )

    @staticmethod
    def input_rejected(operation: str, error: Exception) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.INPUT_REJECTED,
            severity=BoardEventSeverity.INFO,
            description=f"{operation} rejected: {type(error).__name__}",
            error_message=str(error),
            details={"operation": operation},
        )

    @staticmethod
    def remote_rejected(operation: str, error: Exception) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.REMOTE_REJECTED,
            severity=BoardEventSeverity.WARNING,
            description=f"Remote store rejected {operation} as stale",
            error_message=str(error),
            details={"operation": operation},
        )

    @staticmethod
    def drag_started(kind: str, active_id: str) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.DRAG_STARTED,
            severity=BoardEventSeverity.DEBUG,
            entity_type=kind,
            entity_id=active_id,
            description=f"Picked up {kind} {active_id}",
        )

    @staticmethod
    def drag_ended(kind: str, active_id: str, committed: bool) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.DRAG_ENDED,
            severity=BoardEventSeverity.DEBUG,
            entity_type=kind,
            entity_id=active_id,
            description=f"Dropped {kind} {active_id}",
            details={"committed": committed},
        )

    @staticmethod
    def drag_cancelled(kind: str, active_id: str) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.DRAG_CANCELLED,
            severity=BoardEventSeverity.DEBUG,
            entity_type=kind,
            entity_id=active_id,
            description=f"Dragging {kind} {active_id} cancelled",
        )

    @staticmethod
    def fallback_entered(trigger: str, error_message: str) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.FALLBACK_ENTERED,
            severity=BoardEventSeverity.WARNING,
            entity_type="board",
            description=f"Remote store unavailable during {trigger}; continuing in local mode",
            error_message=error_message,
            details={"trigger": trigger},
        )

    @staticmethod
    def default_lists_seeded(list_ids: list[str]) -> BoardEvent:
        return BoardEvent(
            event_type=BoardEventType.DEFAULT_LISTS_SEEDED,
            entity_type="board",
            description=f"Seeded {len(list_ids)} default lists",
            details={"list_ids": list_ids},
        )
