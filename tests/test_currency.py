"""Tests for currency parsing and formatting."""

from decimal import Decimal

import pytest

from finboard.errors import (
    AmountParseError,
    InvalidAmountError,
    InvalidAmountFormatError,
    TooManyFractionDigitsError,
)
from finboard.money.currency import (
    coerce_amount,
    decimal_to_minor_units,
    ensure_positive_amount,
    format_amount,
    format_plain,
    minor_units_to_decimal,
    parse_amount,
)


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize("text", ["500", "500,00", "500.00", "500,0", " 500 "])
    def test_same_value_in_every_format(self, text):
        """Test that common spellings of 500 all parse to 50000."""
        assert parse_amount(text) == 50000

    @pytest.mark.parametrize("text", ["1.234,56", "1,234.56", "1234.56", "1234,56"])
    def test_thousands_and_decimal_separators(self, text):
        """Test that the last separator is the decimal one when both appear."""
        assert parse_amount(text) == 123456

    def test_single_fraction_digit_is_padded(self):
        """Test "500,5" is 500.50."""
        assert parse_amount("500,5") == 50050

    def test_trailing_separator(self):
        """Test "500," is 500.00."""
        assert parse_amount("500,") == 50000

    def test_large_grouped_amount(self):
        """Test several thousands groups."""
        assert parse_amount("1.234.567,89") == 123456789

    def test_zero_parses(self):
        """Test that zero is a valid amount text (positivity is checked later)."""
        assert parse_amount("0,00") == 0

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_rejects_empty(self, text):
        """Test that empty input is rejected."""
        with pytest.raises(InvalidAmountFormatError):
            parse_amount(text)

    @pytest.mark.parametrize("text", ["abc", "12a", "-5", "1 000", "R$ 10", ",5", "1e3"])
    def test_rejects_non_numeric(self, text):
        """Test that anything but digits and separators is rejected."""
        with pytest.raises(InvalidAmountFormatError):
            parse_amount(text)

    @pytest.mark.parametrize("text", ["1,234", "10.999", "0,001"])
    def test_rejects_three_fraction_digits(self, text):
        """Test that 3+ fraction digits fail with their own error."""
        with pytest.raises(TooManyFractionDigitsError):
            parse_amount(text)

    def test_errors_are_distinguishable(self):
        """Test both parse errors share a base class but are different types."""
        with pytest.raises(AmountParseError) as format_error:
            parse_amount("abc")
        with pytest.raises(AmountParseError) as digits_error:
            parse_amount("1,234")
        assert type(format_error.value) is not type(digits_error.value)
        assert digits_error.value.text == "1,234"


class TestDecimalConversion:
    """Tests for decimal <-> minor unit conversion."""

    def test_rounds_half_up(self):
        """Test rounding to the nearest cent, halves rounded up."""
        assert decimal_to_minor_units(Decimal("1.005")) == 101
        assert decimal_to_minor_units(Decimal("1.004")) == 100

    def test_minor_units_to_decimal_is_exact(self):
        """Test the reverse conversion keeps two places."""
        assert minor_units_to_decimal(123456) == Decimal("1234.56")
        assert str(minor_units_to_decimal(5)) == "0.05"


class TestAmountValidation:
    """Tests for ensure_positive_amount and coerce_amount."""

    @pytest.mark.parametrize("value", [0, -1, 1.5, float("nan"), float("inf"), True, "10", None])
    def test_rejects_unusable_amounts(self, value):
        """Test that only positive integers are usable card amounts."""
        with pytest.raises(InvalidAmountError):
            ensure_positive_amount(value)

    def test_accepts_positive_integer(self):
        """Test a positive integer passes through."""
        assert ensure_positive_amount(1) == 1

    def test_coerce_text(self):
        """Test that amount text is parsed."""
        assert coerce_amount("1.234,56") == 123456

    def test_coerce_zero_text_rejected(self):
        """Test that text parsing to zero is still rejected."""
        with pytest.raises(InvalidAmountError):
            coerce_amount("0,00")


class TestFormatting:
    """Tests for format_amount and format_plain."""

    def test_format_plain(self):
        """Test the canonical two-decimal representation."""
        assert format_plain(123456) == "1234.56"
        assert format_plain(5) == "0.05"
        assert format_plain(-150) == "-1.50"

    def test_round_trip_through_plain(self):
        """Test that every accepted format formats back to the same text."""
        for text in ["500", "500,00", "1.234,56", "1234.56"]:
            assert parse_amount(format_plain(parse_amount(text))) == parse_amount(text)

    def test_format_amount_default_locale(self):
        """Test display formatting with explicit pt-BR style settings."""
        assert format_amount(123456, "R$", ",", ".") == "R$ 1.234,56"
        assert format_amount(0, "R$", ",", ".") == "R$ 0,00"
        assert format_amount(100000000, "R$", ",", ".") == "R$ 1.000.000,00"

    def test_format_amount_other_separators(self):
        """Test formatting with another symbol and separators."""
        assert format_amount(123456, "$", ".", ",") == "$ 1,234.56"

    def test_format_amount_negative(self):
        """Test negative amounts carry the sign before the symbol."""
        assert format_amount(-4000, "R$", ",", ".") == "-R$ 40,00"

    def test_format_amount_without_symbol(self):
        """Test an empty symbol leaves no leading space."""
        assert format_amount(1050, "", ",", ".") == "10,50"

    @pytest.mark.parametrize("value", [None, "abc", float("nan"), object()])
    def test_format_amount_never_raises(self, value):
        """Test that non-amounts render a placeholder instead of failing."""
        assert format_amount(value, "R$", ",", ".") == "R$ --"

    def test_format_amount_with_invalid_environment(self, monkeypatch):
        """Test that a bad FINBOARD_ setting falls back to the default display."""
        monkeypatch.setenv("FINBOARD_DECIMAL_SEPARATOR", "")
        assert format_amount(123456) == "R$ 1.234,56"

    def test_format_amount_uses_environment(self, monkeypatch):
        """Test that valid FINBOARD_ settings are applied."""
        monkeypatch.setenv("FINBOARD_CURRENCY_SYMBOL", "US$")
        monkeypatch.setenv("FINBOARD_DECIMAL_SEPARATOR", ".")
        monkeypatch.setenv("FINBOARD_THOUSANDS_SEPARATOR", ",")
        assert format_amount(123456) == "US$ 1,234.56"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
