"""Scalar normalizers for untrusted extraction values.

Every function here is total: bad input degrades to None instead of raising.
"""

import math
import re
from datetime import UTC, datetime
from typing import Any

from dateutil import parser as date_parser

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
NON_NUMERIC_CHARS = re.compile(r"[^0-9,.\-]")
LEADING_FLOAT = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")
ISO_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")

# Two fill-in defaults that differ in every date part; a date that parses
# differently under each is missing a day, month or year
PARTIAL_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

# Filler values models emit instead of null
PLACEHOLDER_STRINGS = frozenset({"n/a", "null", "none", "nil", "-", "--"})

# Checked in order; first hit wins
CURRENCY_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("INR", ("INR", "₹")),
    ("USD", ("USD", "$")),
    ("EUR", ("EUR", "€")),
)


def to_nullable_string(value: Any) -> str | None:
    """Return the trimmed string, or None for non-strings, blanks and "N/A"-style fillers."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed or trimmed.lower() in PLACEHOLDER_STRINGS:
        return None
    return trimmed


def _finite_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _parse_cleaned_number(text: str) -> float | None:
    # Keeps only the leading numeric run, so "12.5.3" reads as 12.5
    cleaned = NON_NUMERIC_CHARS.sub("", text).replace(",", "")
    match = LEADING_FLOAT.match(cleaned)
    if match is None:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def to_nullable_number(value: Any) -> float | None:
    """Coerce a number or numeric-looking string to a finite float.

    Currency symbols, letters and thousands separators are stripped:
    "₹32,250.4" -> 32250.4. "", "-" and "." yield None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return _parse_cleaned_number(value.strip())
    return _finite_number(value)


def to_nullable_percent(value: Any) -> float | None:
    """Like to_nullable_number but tolerant of a trailing percent sign ("18%" -> 18)."""
    if isinstance(value, str):
        return _parse_cleaned_number(value.strip().rstrip("%"))
    return _finite_number(value)


def to_nullable_iso_date(value: Any) -> str | None:
    """Normalize a date-like string to YYYY-MM-DD, or None if unparsable."""
    text = to_nullable_string(value)
    if text is None:
        return None
    if ISO_DATE_PATTERN.match(text):
        return text
    rendered: set[str] = set()
    for default in PARTIAL_DATE_DEFAULTS:
        try:
            parsed = date_parser.parse(text, default=default)
        except (ValueError, OverflowError):
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(UTC)
        rendered.add(f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}")
    # Incomplete dates ("March 2024", "15 Mar") are rejected, not filled in
    return rendered.pop() if len(rendered) == 1 else None


def normalize_currency(value: Any) -> str | None:
    """Map a currency symbol or code to an uppercase ISO 4217 code."""
    text = to_nullable_string(value)
    if text is None:
        return None
    upper = text.upper()
    for code, markers in CURRENCY_MARKERS:
        if any(marker in upper for marker in markers):
            return code
    if ISO_CURRENCY_PATTERN.match(upper):
        return upper
    return None
