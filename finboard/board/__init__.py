"""Board package: the state manager and board totals."""

from finboard.board.manager import (
    FALLBACK_WARNING,
    BoardStateManager,
    create_board_manager,
)
from finboard.board.totals import BoardSummary, ListTotals, summarize

__all__ = [
    "FALLBACK_WARNING",
    "BoardStateManager",
    "create_board_manager",
    "BoardSummary",
    "ListTotals",
    "summarize",
]
