"""
Currency Parsing and Formatting

All amounts on the board are integer minor units (cents).
This module is the only place where human text becomes money
and money becomes human text.

PARSING RULES:
- "." and "," are both accepted
- If both appear, the one appearing LAST is the decimal separator
  and the other is a thousands separator ("1.234,56" and "1,234.56")
- If only one appears, it is the decimal separator ("500,5" is 500.50)
- At most two fraction digits; three or more is a distinct error
- Missing fraction digits are padded ("500" is 500.00)

Formatting never raises: it is called from display code.
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from pydantic import ValidationError

from finboard.config import BoardSettings, get_settings
from finboard.errors import (
    InvalidAmountError,
    InvalidAmountFormatError,
    TooManyFractionDigitsError,
)


MINOR_UNITS_PER_UNIT = 100

# After normalization: digits, optional point, optional fraction digits
_NORMALIZED_AMOUNT = re.compile(r"^([0-9]+)(?:\.([0-9]*))?$")


def _normalize_separators(raw: str) -> str:
    """Rewrite the text so that "." is the only (decimal) separator."""
    last_dot = raw.rfind(".")
    last_comma = raw.rfind(",")

    if last_dot >= 0 and last_comma >= 0:
        if last_comma > last_dot:
            return raw.replace(".", "").replace(",", ".")
        return raw.replace(",", "")

    return raw.replace(",", ".")


def parse_amount(text: Optional[str]) -> int:
    """
    Parse human-entered amount text into minor units.

    Examples:
        parse_amount("500") -> 50000
        parse_amount("500,00") -> 50000
        parse_amount("1.234,56") -> 123456
        parse_amount("1234.56") -> 123456

    Raises:
        InvalidAmountFormatError: empty input or not a number
        TooManyFractionDigitsError: three or more fraction digits
    """
    if text is None or not str(text).strip():
        raise InvalidAmountFormatError(text, "Amount is required")

    raw = str(text).strip()
    normalized = _normalize_separators(raw)

    match = _NORMALIZED_AMOUNT.match(normalized)
    if not match:
        raise InvalidAmountFormatError(text, f"Not a valid amount: {raw!r}")

    whole, fraction = match.group(1), match.group(2) or ""
    if len(fraction) > 2:
        raise TooManyFractionDigitsError(
            text,
            f"Amounts have at most 2 decimal places: {raw!r}",
        )

    value = Decimal(f"{whole}.{fraction.ljust(2, '0')}")
    return decimal_to_minor_units(value)


def decimal_to_minor_units(value: Decimal) -> int:
    """Convert a decimal amount to minor units, rounding half-up to the cent."""
    cents = (value * MINOR_UNITS_PER_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def minor_units_to_decimal(minor_units: int) -> Decimal:
    """Exact two-decimal value of an amount in minor units."""
    return (Decimal(minor_units) / MINOR_UNITS_PER_UNIT).quantize(Decimal("0.01"))


def ensure_positive_amount(value: object) -> int:
    """
    Check that a value is a usable card amount: a positive integer of minor units.

    Floats, bools and anything non-integral are rejected, so NaN and
    infinity can never reach the board.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(
            f"Amount must be a whole number of minor units, got {value!r}"
        )
    if value <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    return value


def coerce_amount(value: Union[int, str]) -> int:
    """
    Accept either minor units or amount text typed by the user.

    Strings go through parse_amount; the result must still be positive.
    """
    if isinstance(value, str):
        return ensure_positive_amount(parse_amount(value))
    return ensure_positive_amount(value)


def format_plain(minor_units: int) -> str:
    """
    Canonical two-decimal representation, e.g. 123456 -> "1234.56".

    Uses integer arithmetic only.
    """
    sign = "-" if minor_units < 0 else ""
    whole, cents = divmod(abs(int(minor_units)), MINOR_UNITS_PER_UNIT)
    return f"{sign}{whole}.{cents:02d}"


_DISPLAY_FIELDS = ("currency_symbol", "decimal_separator", "thousands_separator")


def _display_settings() -> dict[str, str]:
    """Display settings from the environment, or their defaults if the environment is invalid."""
    try:
        board_settings = get_settings().board
    except ValidationError:
        return {name: BoardSettings.model_fields[name].default for name in _DISPLAY_FIELDS}
    return {name: getattr(board_settings, name) for name in _DISPLAY_FIELDS}


def format_amount(
    minor_units: int,
    currency_symbol: Optional[str] = None,
    decimal_separator: Optional[str] = None,
    thousands_separator: Optional[str] = None,
) -> str:
    """
    Format an amount for display, e.g. 123456 -> "R$ 1.234,56".

    Separators and symbol default to the board settings.
    Never raises: anything that is not an amount renders as "--".
    """
    display = _display_settings()
    symbol = display["currency_symbol"] if currency_symbol is None else currency_symbol
    decimal_sep = display["decimal_separator"] if decimal_separator is None else decimal_separator
    thousands_sep = (
        display["thousands_separator"]
        if thousands_separator is None
        else thousands_separator
    )
    prefix = f"{symbol} " if symbol else ""

    try:
        amount = int(minor_units)
    except (TypeError, ValueError, OverflowError):
        return f"{prefix}--"

    sign = "-" if amount < 0 else ""
    whole, cents = divmod(abs(amount), MINOR_UNITS_PER_UNIT)
    grouped = f"{whole:,}".replace(",", thousands_sep)
    return f"{sign}{prefix}{grouped}{decimal_sep}{cents:02d}"
