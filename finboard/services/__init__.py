"""Services package."""

from finboard.services.persistence import (
    PersistenceAdapter,
    PersistenceFallbackError,
    build_snapshot,
)
from finboard.services.storage import (
    BoardStoreInterface,
    ConnectionError,
    GoogleSheetsBoardStore,
    GoogleSheetsClient,
    InMemoryBoardStore,
    NotFoundError,
    StorageError,
    SubscriptionError,
)

__all__ = [
    # Persistence adapter
    "PersistenceAdapter",
    "PersistenceFallbackError",
    "build_snapshot",
    # Storage services
    "BoardStoreInterface",
    "ConnectionError",
    "GoogleSheetsBoardStore",
    "GoogleSheetsClient",
    "InMemoryBoardStore",
    "NotFoundError",
    "StorageError",
    "SubscriptionError",
]
