"""Unit tests for value formatting and inline directives."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from mergemate.formatting import (
    apply_directive,
    format_date,
    format_number,
    format_phone,
    format_value,
    parse_date,
    parse_number,
    to_text,
)
from mergemate.models import RenderOptions


# =============================================================================
# Parsing
# =============================================================================


class TestParsing:
    """Test suite for date and number parsing."""

    @pytest.mark.parametrize(
        "raw",
        ["2024-01-15", "2024-01-15T09:30:00Z", "01/15/2024", "January 15, 2024", "Jan 15, 2024", "15 Jan 2024"],
    )
    def test_parse_date_formats(self, raw):
        assert parse_date(raw) == date(2024, 1, 15)

    def test_parse_date_objects(self):
        assert parse_date(datetime(2024, 1, 15, 10, 0)) == date(2024, 1, 15)
        assert parse_date(date(2024, 1, 15)) == date(2024, 1, 15)

    @pytest.mark.parametrize("raw", ["not a date", "", "2024-13-45", 20240115, None])
    def test_parse_date_rejects(self, raw):
        assert parse_date(raw) is None

    def test_parse_number(self):
        assert parse_number("  42 ") == Decimal("42")
        assert parse_number(3.5) == Decimal("3.5")
        assert parse_number("1e3") == Decimal("1e3")

    @pytest.mark.parametrize("raw", ["abc", "1,234", "NaN", "1_000", True, None, ""])
    def test_parse_number_rejects(self, raw):
        assert parse_number(raw) is None

    def test_to_text(self):
        assert to_text(None) == ""
        assert to_text(5.0) == "5"
        assert to_text(2.5) == "2.5"
        assert to_text(True) == "true"
        assert to_text(date(2024, 1, 15)) == "2024-01-15"


# =============================================================================
# Phone
# =============================================================================


class TestFormatPhone:
    """Test suite for phone formatting."""

    def test_ten_digits(self):
        assert format_phone("5551234567") == "(555) 123-4567"

    def test_eleven_digits_with_country_code(self):
        assert format_phone("15551234567") == "+1 (555) 123-4567"

    def test_punctuation_is_stripped_before_counting(self):
        assert format_phone("555.123.4567") == "(555) 123-4567"

    def test_seven_digits_unchanged(self):
        assert format_phone("555-0123") == "555-0123"

    def test_eleven_digits_without_leading_one_unchanged(self):
        assert format_phone("25551234567") == "25551234567"


# =============================================================================
# Dates
# =============================================================================


class TestFormatDate:
    """Test suite for date formatting."""

    @pytest.mark.parametrize(
        "fmt, expected",
        [
            ("MM/DD/YYYY", "01/05/2024"),
            ("DD/MM/YYYY", "05/01/2024"),
            ("YYYY-MM-DD", "2024-01-05"),
            ("long", "January 5, 2024"),
            ("short", "Jan 5, 2024"),
            (None, "01/05/2024"),
            ("bogus", "01/05/2024"),
        ],
    )
    def test_formats(self, fmt, expected):
        assert format_date("2024-01-05", fmt) == expected

    def test_unparseable_returns_original(self):
        assert format_date("sometime soon", "long") == "sometime soon"


# =============================================================================
# Numbers
# =============================================================================


class TestFormatNumber:
    """Test suite for en-US number formatting."""

    def test_default_grouping(self):
        assert format_number("1234567") == "1,234,567"
        assert format_number(1234.5) == "1,234.5"
        assert format_number("1234.56789") == "1,234.568"

    def test_currency(self):
        assert format_number("1234.5", "currency") == "$1,234.50"
        assert format_number(-5, "currency") == "-$5.00"

    def test_percent(self):
        assert format_number("15", "percent") == "15%"
        assert format_number("12.345", "percent") == "12.35%"

    def test_decimal(self):
        assert format_number("1234", "decimal") == "1,234.00"
        assert format_number("0.005", "decimal") == "0.01"

    def test_unparseable_returns_original(self):
        assert format_number("lots", "currency") == "lots"

    def test_values_beyond_default_precision(self):
        """Test that numbers wider than 28 digits are still formatted in full."""
        assert format_number("1e40", "currency") == f"${10 ** 40:,}.00"
        assert format_number("1e40") == f"{10 ** 40:,}"
        assert format_number("123456789012345678901234567890.125", "decimal") == (
            "123,456,789,012,345,678,901,234,567,890.13"
        )


# =============================================================================
# Dispatch by type
# =============================================================================


class TestFormatValue:
    """Test suite for format_value."""

    def test_empty_uses_default_value(self):
        options = RenderOptions(default_value="Colleague")
        assert format_value(None, "text", options) == "Colleague"
        assert format_value("", "email", options) == "Colleague"

    def test_empty_without_default(self):
        assert format_value(None, "text") == ""

    def test_email_lowercased(self):
        assert format_value("John.Doe@Example.COM", "email") == "john.doe@example.com"

    def test_phone(self):
        assert format_value(5551234567, "phone") == "(555) 123-4567"

    def test_date_uses_option(self):
        assert format_value("2024-01-15", "date", RenderOptions(date_format="long")) == "January 15, 2024"

    def test_number_uses_option(self):
        assert format_value(99.5, "number", RenderOptions(number_format="currency")) == "$99.50"

    def test_text_and_url_pass_through(self):
        assert format_value("Hello World", "text") == "Hello World"
        assert format_value("https://x.io", "url") == "https://x.io"


# =============================================================================
# Directives
# =============================================================================


class TestApplyDirective:
    """Test suite for inline formatting directives."""

    def test_upper_lower(self):
        assert apply_directive("john", "upper") == "JOHN"
        assert apply_directive("JOHN", "lower") == "john"

    def test_title(self):
        assert apply_directive("hELLO wORLD", "title") == "Hello World"

    def test_truncate(self):
        value = "a very long descriptive string here"
        assert apply_directive(value, "truncate", "10") == "a very lon..."

    def test_truncate_default_length(self):
        value = "x" * 60
        assert apply_directive(value, "truncate") == "x" * 50 + "..."

    def test_truncate_zero_falls_back_to_default(self):
        assert apply_directive("short", "truncate", "0") == "short"

    def test_truncate_shorter_value_unchanged(self):
        assert apply_directive("short", "truncate", "10") == "short"

    def test_unknown_directive_returns_value(self):
        assert apply_directive("John", "sparkle") == "John"

    @pytest.mark.parametrize("value", [None, "", 0])
    def test_falsy_value_is_empty(self, value):
        assert apply_directive(value, "upper") == ""
