"""
Board Logger

Every significant board action is written to the structured log:
operations, rejected input, drag gestures, and above all the switch
to fallback mode, which is the one event an operator must be able to find.

The board logger:
- Logs locally only (no persistence, no history)
- Binds the board name to every line
"""

from typing import Optional

import structlog

from finboard.models.events import BoardEvent, BoardEventBuilder, BoardEventSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class BoardLogger:
    """
    Central logging service for a board.

    Each board manager owns one; the board id is bound to every line.
    """

    def __init__(self, board_name: Optional[str] = None):
        self._logger = structlog.get_logger("finboard").bind(board=board_name or "default")

    def log(self, event: BoardEvent) -> None:
        """Log a board event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == BoardEventSeverity.ERROR:
            self._logger.error("board_event", **log_dict)
        elif event.severity == BoardEventSeverity.WARNING:
            self._logger.warning("board_event", **log_dict)
        elif event.severity == BoardEventSeverity.DEBUG:
            self._logger.debug("board_event", **log_dict)
        else:
            self._logger.info("board_event", **log_dict)

    def log_connected(self, mode: str, list_count: int, card_count: int) -> None:
        self.log(BoardEventBuilder.board_connected(mode, list_count, card_count))

    def log_torn_down(self, mode: str) -> None:
        self.log(BoardEventBuilder.board_torn_down(mode))

    def log_snapshot_received(self, list_count: int, card_count: int) -> None:
        self.log(BoardEventBuilder.snapshot_received(list_count, card_count))

    def log_operation(
        self,
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
        persisted: bool,
    ) -> None:
        """Log an operation that changed the board."""
        self.log(BoardEventBuilder.operation_applied(
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            persisted=persisted,
        ))

    def log_ignored(
        self,
        operation: str,
        entity_type: str,
        entity_id: Optional[str],
    ) -> None:
        """Log an operation on a list or card that no longer exists."""
        self.log(BoardEventBuilder.operation_ignored(operation, entity_type, entity_id))

    def log_input_rejected(self, operation: str, error: Exception) -> None:
        self.log(BoardEventBuilder.input_rejected(operation, error))

    def log_remote_rejected(self, operation: str, error: Exception) -> None:
        self.log(BoardEventBuilder.remote_rejected(operation, error))

    def log_drag_started(self, kind: str, active_id: str) -> None:
        self.log(BoardEventBuilder.drag_started(kind, active_id))

    def log_drag_ended(self, kind: str, active_id: str, committed: bool) -> None:
        self.log(BoardEventBuilder.drag_ended(kind, active_id, committed))

    def log_drag_cancelled(self, kind: str, active_id: str) -> None:
        self.log(BoardEventBuilder.drag_cancelled(kind, active_id))

    def log_fallback_entered(self, trigger: str, error: Optional[BaseException]) -> None:
        """Log the one-way switch to local-only mode."""
        self.log(BoardEventBuilder.fallback_entered(
            trigger=trigger,
            error_message=str(error) if error else "remote store not configured",
        ))

    def log_defaults_seeded(self, list_ids: list[str]) -> None:
        self.log(BoardEventBuilder.default_lists_seeded(list_ids))
