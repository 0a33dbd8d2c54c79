"""
User-correctable input errors.

Every error here is raised BEFORE any state mutation or persistence call.
The caller (a form, a drag handler) shows the message and lets the user
try again. None of them end the session.

Storage failures live in finboard.services.storage.interface and are
handled differently: they switch the board into fallback mode.
"""

from typing import Optional


class BoardInputError(Exception):
    """Base exception for rejected user input."""
    pass


class AmountParseError(BoardInputError):
    """Amount text could not be parsed."""

    def __init__(self, text: Optional[str], message: str):
        self.text = text
        super().__init__(message)


class InvalidAmountFormatError(AmountParseError):
    """Amount text is empty or not shaped like a number."""
    pass


class TooManyFractionDigitsError(AmountParseError):
    """Amount text has more than two digits after the decimal separator."""
    pass


class InvalidAmountError(BoardInputError):
    """Amount is not a positive whole number of minor units."""
    pass


class InsufficientFundsError(BoardInputError):
    """Transfer asks for more than the source card holds."""

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Cannot transfer {requested} minor units: only {available} available"
        )


class InvalidMonthRangeError(BoardInputError):
    """Installment month range is empty or reversed."""
    pass


class InvalidTitleError(BoardInputError):
    """List title is blank."""
    pass


class CapabilityDeniedError(BoardInputError):
    """Operation is not enabled for this board."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"Operation not permitted on this board: {capability}")
