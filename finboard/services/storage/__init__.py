"""
Storage Services Package

Provides the abstract board store interface and its implementations.
Google Sheets is the remote backend; the in-memory store serves tests
and offline sessions.
"""

from finboard.services.storage.interface import (
    BoardStoreInterface,
    ChangeCallback,
    ConnectionError,
    ErrorCallback,
    NotFoundError,
    StorageError,
    SubscriptionError,
    Unsubscribe,
)
from finboard.services.storage.memory import InMemoryBoardStore
from finboard.services.storage.google_sheets import (
    GoogleSheetsBoardStore,
    GoogleSheetsClient,
)

__all__ = [
    # Interface
    "BoardStoreInterface",
    "ChangeCallback",
    "ErrorCallback",
    "Unsubscribe",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    "SubscriptionError",
    # Implementations
    "InMemoryBoardStore",
    "GoogleSheetsBoardStore",
    "GoogleSheetsClient",
]
