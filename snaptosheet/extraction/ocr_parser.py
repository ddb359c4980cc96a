"""Heuristic OCR text parser.

Produces a best-guess InvoiceData from raw OCR text without any remote
call. The text has no guaranteed structure, so parsing is line oriented:
each field is driven by a small pattern table below, which keeps the rules
enumerable and individually testable.

Output is deterministic for a given input.
"""

import re
from dataclasses import dataclass

from snaptosheet.extraction.normalizers import to_nullable_iso_date, to_nullable_number
from snaptosheet.extraction.schema import InvoiceData, InvoiceLineItem

# Currency: symbols are checked before codes, over the whole text
CURRENCY_SYMBOLS: tuple[tuple[str, str], ...] = (
    ("₹", "INR"),
    ("$", "USD"),
    ("€", "EUR"),
    ("£", "GBP"),
)
CURRENCY_CODES: tuple[str, ...] = ("INR", "USD", "EUR", "GBP")

# GST breakdown
GST_LABELS: tuple[str, ...] = ("igst", "cgst", "sgst")
RATE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")

# Header fields
INVOICE_NUMBER_PATTERN = re.compile(r"^(invoice\s*(no|#)|inv-?|invoice)", re.IGNORECASE)
DATE_LABEL_PATTERN = re.compile(r"(date|dated|invoice\s*date)", re.IGNORECASE)
VALUE_SEPARATOR = re.compile(r"[:=]")
MAX_INVOICE_NUMBER_LENGTH = 49

VENDOR_SCAN_LINES = 5
VENDOR_EXCLUDE_PATTERN = re.compile(
    r"\b(?:invoice|date|address|email|phone|tel|plot|road|suite|city|st)\b", re.IGNORECASE
)
LEADING_DIGIT = re.compile(r"^\d")

# Line items
LINE_ITEM_HEADER_PATTERN = re.compile(
    r"(description|qty|quantity|price|rate|total|hsn|sac|gst|tax|invoice|date|address)",
    re.IGNORECASE,
)
NUMBER_TOKEN = re.compile(r"\d+[\d.,]*")
MAX_DESCRIPTION_LENGTH = 100
MAX_QUANTITY = 1000

TOKEN_SEPARATOR = re.compile(r"[:\s]+")


@dataclass(frozen=True)
class TotalRule:
    """How one financial summary field is read from a line.

    Attributes:
        field: InvoiceData field to fill
        pattern: Label pattern, matched against the lowercased line
        exclude: Pattern that disqualifies an otherwise matching line
        positive_only: Ignore zero and negative values
        first_wins: Keep the first accepted value instead of the last
    """

    field: str
    pattern: re.Pattern[str]
    exclude: re.Pattern[str] | None = None
    positive_only: bool = True
    first_wins: bool = False


TOTAL_RULES: tuple[TotalRule, ...] = (
    TotalRule("subtotal", re.compile(r"^subtotal\s*[:\s]"), positive_only=False),
    TotalRule(
        "discount",
        re.compile(r"(discount|less)\s*[:\s]"),
        exclude=re.compile(r"discount\s*%"),
    ),
    TotalRule("shipping", re.compile(r"(shipping|delivery|handling|freight)\s*[:\s]")),
    TotalRule(
        "tax",
        re.compile(r"(tax|igst|gst|vat)\s*[:\s]"),
        exclude=re.compile(r"tax%|igst\s*%|gst\s*%"),
        first_wins=True,
    ),
    TotalRule(
        "total",
        re.compile(r"^(total|grand\s*total|amount\s*(due|payable))\s*[:\s]?"),
        first_wins=True,
    ),
)


def split_lines(raw_text: str) -> list[str]:
    """Split text into trimmed, non-empty lines."""
    return [line.strip() for line in raw_text.split("\n") if line.strip()]


def infer_currency(text: str) -> str | None:
    """Guess the document currency from symbols first, then ISO codes."""
    for symbol, code in CURRENCY_SYMBOLS:
        if symbol in text:
            return code
    upper = text.upper()
    for code in CURRENCY_CODES:
        if code in upper:
            return code
    return None


def parse_gst_details(lines: list[str]) -> dict[str, float | None]:
    """Read IGST/CGST/SGST rate and amount pairs.

    A line only contributes to the tax types it names. The amount is the
    first number after the label once rate tokens ("9%") are removed, so
    "CGST 9%: 90" gives rate 9 and amount 90.
    """
    gst: dict[str, float | None] = {}
    for label in GST_LABELS:
        gst[f"{label}_rate"] = None
        gst[f"{label}_amount"] = None

    for line in lines:
        lower = line.lower()
        without_rates = RATE_PATTERN.sub(" ", line)
        for label in GST_LABELS:
            if label not in lower:
                continue
            rate_match = RATE_PATTERN.search(line)
            if rate_match:
                gst[f"{label}_rate"] = float(rate_match.group(1))
            amount_match = re.search(rf"{label}[^0-9]*(\d+[\d.,]*)", without_rates, re.IGNORECASE)
            if amount_match:
                gst[f"{label}_amount"] = to_nullable_number(amount_match.group(1))
    return gst


def _value_after_separator(line: str) -> str | None:
    parts = VALUE_SEPARATOR.split(line)
    if len(parts) < 2:
        return None
    return parts[1].strip()


def find_invoice_number(lines: list[str]) -> str | None:
    """First value after ':' or '=' on an invoice-number-like line."""
    for line in lines:
        if not INVOICE_NUMBER_PATTERN.match(line.lower()):
            continue
        candidate = _value_after_separator(line)
        if candidate and len(candidate) <= MAX_INVOICE_NUMBER_LENGTH:
            return candidate
    return None


def find_invoice_date(lines: list[str]) -> str | None:
    """Date on a labelled line, or on the line right after the label."""
    for index, line in enumerate(lines):
        if not DATE_LABEL_PATTERN.search(line):
            continue
        candidate = _value_after_separator(line)
        if candidate:
            parsed = to_nullable_iso_date(candidate)
            if parsed:
                return parsed
        if index + 1 < len(lines):
            parsed = to_nullable_iso_date(lines[index + 1])
            if parsed:
                return parsed
    return None


def find_vendor_name(lines: list[str]) -> str | None:
    """First plausible company-name line near the top of the document."""
    for line in lines[:VENDOR_SCAN_LINES]:
        if not 3 < len(line) < 80:
            continue
        if VENDOR_EXCLUDE_PATTERN.search(line) or LEADING_DIGIT.match(line):
            continue
        return line
    return None


def _last_token_number(line: str) -> float | None:
    return to_nullable_number(TOKEN_SEPARATOR.split(line)[-1])


def parse_totals(lines: list[str]) -> dict[str, float | None]:
    """Apply TOTAL_RULES to every line independently."""
    totals: dict[str, float | None] = {rule.field: None for rule in TOTAL_RULES}
    for line in lines:
        lower = line.lower()
        for rule in TOTAL_RULES:
            if not rule.pattern.search(lower):
                continue
            if rule.exclude is not None and rule.exclude.search(lower):
                continue
            if rule.first_wins and totals[rule.field] is not None:
                continue
            value = _last_token_number(line)
            if value is None or (rule.positive_only and value <= 0):
                continue
            totals[rule.field] = value
    return totals


def parse_line_item(line: str) -> InvoiceLineItem | None:
    """Interpret a non-header line with two or more numbers as a line item.

    The trailing numbers are read right to left as line total, unit price
    and quantity; the leading words are the description.
    """
    if LINE_ITEM_HEADER_PATTERN.search(line):
        return None
    numbers = NUMBER_TOKEN.findall(line)
    if len(numbers) < 2:
        return None

    words = line.split()
    description = " ".join(words[: -len(numbers)]).strip()
    if not description or len(description) >= MAX_DESCRIPTION_LENGTH:
        return None

    line_total = to_nullable_number(numbers[-1])
    if not line_total or line_total <= 0:
        return None
    unit_price = to_nullable_number(numbers[-2])
    quantity = to_nullable_number(numbers[-3]) if len(numbers) > 2 else None
    if unit_price is not None and (unit_price <= 0 or unit_price == line_total):
        unit_price = None

    return InvoiceLineItem(
        description=description,
        quantity=quantity if quantity and quantity < MAX_QUANTITY else None,
        unit_price=unit_price,
        line_total=line_total,
    )


def parse_line_items(lines: list[str]) -> list[InvoiceLineItem]:
    """Collect line items in document order."""
    items = []
    for line in lines:
        item = parse_line_item(line)
        if item is not None:
            items.append(item)
    return items


def parse_ocr_text(raw_text: str) -> InvoiceData:
    """Parse raw OCR text into a partial InvoiceData.

    Only fields that can be inferred are set; the rest stay None. When no
    explicit total is found but a subtotal is, the total is derived as
    subtotal - discount + shipping + tax.

    Args:
        raw_text: Unstructured OCR output

    Returns:
        Best-effort InvoiceData
    """
    lines = split_lines(raw_text)
    totals = parse_totals(lines)

    if totals["total"] is None and totals["subtotal"] is not None:
        totals["total"] = (
            totals["subtotal"]
            - (totals["discount"] or 0)
            + (totals["shipping"] or 0)
            + (totals["tax"] or 0)
        )

    return InvoiceData(
        vendor_name=find_vendor_name(lines),
        invoice_number=find_invoice_number(lines),
        invoice_date=find_invoice_date(lines),
        currency=infer_currency(raw_text),
        line_items=parse_line_items(lines),
        **totals,
        **parse_gst_details(lines),
    )
