"""Board event logging package."""

from finboard.events.logger import BoardLogger

__all__ = ["BoardLogger"]
