"""Unit tests for scalar normalizers."""

import math
import re

import pytest

from snaptosheet.extraction.normalizers import (
    normalize_currency,
    to_nullable_iso_date,
    to_nullable_number,
    to_nullable_percent,
    to_nullable_string,
)

ODD_INPUTS = [
    None,
    {},
    [],
    {"a": 1},
    [1, 2],
    object(),
    float("nan"),
    float("inf"),
    float("-inf"),
    10**400,
    True,
    b"bytes",
    "",
    "   ",
]


@pytest.mark.parametrize("value", ODD_INPUTS)
def test_normalizers_are_total(value: object) -> None:
    """Every normalizer returns None or a canonical value, never raises."""
    text = to_nullable_string(value)
    assert text is None or (text == text.strip() and text)

    for number in (to_nullable_number(value), to_nullable_percent(value)):
        assert number is None or math.isfinite(number)

    date = to_nullable_iso_date(value)
    assert date is None or re.fullmatch(r"\d{4}-\d{2}-\d{2}", date)

    currency = normalize_currency(value)
    assert currency is None or re.fullmatch(r"[A-Z]{3}", currency)


class TestStringNormalizer:
    def test_trims(self) -> None:
        assert to_nullable_string("  Acme Traders \n") == "Acme Traders"

    def test_blank_is_none(self) -> None:
        assert to_nullable_string(" \t ") is None

    def test_non_string_is_none(self) -> None:
        assert to_nullable_string(123) is None

    @pytest.mark.parametrize("value", ["N/A", "n/a", "null", "None", " - "])
    def test_filler_values_are_none(self, value: str) -> None:
        assert to_nullable_string(value) is None


class TestNumberNormalizer:
    def test_strips_currency_and_separators(self) -> None:
        assert to_nullable_number("₹32,250.4") == 32250.4

    def test_accepts_finite_numbers(self) -> None:
        assert to_nullable_number(42) == 42.0
        assert to_nullable_number(-3.5) == -3.5

    @pytest.mark.parametrize("value", ["", "-", ".", "abc", "N/A"])
    def test_empty_after_cleaning_is_none(self, value: str) -> None:
        assert to_nullable_number(value) is None

    def test_negative_string(self) -> None:
        assert to_nullable_number("-12.50") == -12.5

    def test_reads_leading_numeric_run(self) -> None:
        assert to_nullable_number("1.2.3") == 1.2

    def test_rejects_bool(self) -> None:
        assert to_nullable_number(False) is None


class TestPercentNormalizer:
    def test_trailing_percent(self) -> None:
        assert to_nullable_percent("18%") == 18

    def test_spaced_percent(self) -> None:
        assert to_nullable_percent(" 2.5 % ") == 2.5

    def test_plain_number(self) -> None:
        assert to_nullable_percent(9) == 9.0

    def test_garbage(self) -> None:
        assert to_nullable_percent("%") is None


class TestDateNormalizer:
    def test_iso_passes_through(self) -> None:
        assert to_nullable_iso_date("2024-03-15") == "2024-03-15"

    @pytest.mark.parametrize("value", ["2021-01-01", "1999-12-31", "2024-02-29"])
    def test_iso_round_trip(self, value: str) -> None:
        assert to_nullable_iso_date(value) == value

    def test_day_month_name_year(self) -> None:
        assert to_nullable_iso_date("12-May-2021") == "2021-05-12"

    def test_long_form(self) -> None:
        assert to_nullable_iso_date("March 15, 2024") == "2024-03-15"

    def test_not_a_date(self) -> None:
        assert to_nullable_iso_date("not a date") is None

    def test_timezone_converted_to_utc(self) -> None:
        assert to_nullable_iso_date("2024-03-15T02:00:00+05:30") == "2024-03-14"

    @pytest.mark.parametrize("value", ["March 2024", "15 Mar", "2024"])
    def test_partial_date_is_none(self, value: str) -> None:
        """Missing date parts are never filled in from the current date."""
        assert to_nullable_iso_date(value) is None

    def test_full_date_matching_fill_in_defaults(self) -> None:
        assert to_nullable_iso_date("1 Jan 2000") == "2000-01-01"
        assert to_nullable_iso_date("2 Feb 2001") == "2001-02-02"


class TestCurrencyNormalizer:
    @pytest.mark.parametrize("code", ["INR", "USD", "EUR", "GBP", "JPY"])
    def test_canonical_code_unchanged(self, code: str) -> None:
        assert normalize_currency(code) == code

    def test_lowercase_code(self) -> None:
        assert normalize_currency("usd") == "USD"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("₹1,234", "INR"), ("$ 99.00", "USD"), ("€5", "EUR"), ("Rs INR", "INR")],
    )
    def test_symbol_wins_over_numeric_content(self, value: str, expected: str) -> None:
        assert normalize_currency(value) == expected

    @pytest.mark.parametrize("value", ["Rupees", "US", "", "12"])
    def test_unknown_is_none(self, value: str) -> None:
        assert normalize_currency(value) is None
