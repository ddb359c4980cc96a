"""Reconciliation engine for normalized invoice records.

Runs after normalization and returns a corrected copy of the record:

1. Invoice number fallback from OCR text
2. Invoice date fallback from OCR text
3. Totals recomputation from line items (line-item arithmetic is trusted
   over a reported grand total when they disagree materially)
4. Line-item rescue through one narrower remote request
"""

import logging
import math
import re
from collections.abc import Callable
from typing import Any

from snaptosheet.extraction.normalizers import to_nullable_iso_date
from snaptosheet.extraction.records import normalize_line_items
from snaptosheet.extraction.repair import extract_json_array
from snaptosheet.extraction.schema import InvoiceData, InvoiceLineItem

logger = logging.getLogger(__name__)

DEFAULT_TOTALS_TOLERANCE = 1.0

LOW_CONFIDENCE_INVOICE_NUMBER = re.compile(r"^\d{1,6}$")

INVOICE_NUMBER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?P<value>INV(?:-[A-Za-z0-9]|[/#]?\d)[A-Za-z0-9/-]*)", re.IGNORECASE),
    re.compile(
        r"Invoice\s*(?:No\.?|Number|#)\s*[:#\-\s]*(?P<value>[A-Za-z0-9][A-Za-z0-9/-]*)",
        re.IGNORECASE,
    ),
    re.compile(
        r"Bill\s*(?:No\.?|#)\s*[:#\-\s]*(?P<value>[A-Za-z0-9][A-Za-z0-9/-]*)",
        re.IGNORECASE,
    ),
)

DATE_TOKEN_PATTERN = re.compile(
    r"\b(\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"
    r"|\d{4}[/-]\d{1,2}[/-]\d{1,2}"
    r"|\d{1,2}\s+[A-Za-z]{3,9}\s+\d{2,4})\b"
)

TABLE_MARKERS = re.compile(r"(qty|quantity|description|hsn|rate|amount)", re.IGNORECASE)

# Takes OCR text, returns the raw content of a line-items-only model reply
LineItemFetcher = Callable[[str], Any]


def find_invoice_number(ocr_text: str | None) -> str | None:
    """Recover an invoice number from OCR text (INV-..., Invoice No, Bill No)."""
    if not ocr_text:
        return None
    for pattern in INVOICE_NUMBER_PATTERNS:
        match = pattern.search(ocr_text)
        if match:
            return match.group("value").strip()
    return None


def find_first_date(ocr_text: str | None) -> str | None:
    """First date-shaped token in OCR text that normalizes to YYYY-MM-DD."""
    if not ocr_text:
        return None
    for match in DATE_TOKEN_PATTERN.finditer(ocr_text):
        iso = to_nullable_iso_date(match.group(1))
        if iso:
            return iso
    return None


def apply_invoice_number_fallback(record: InvoiceData, ocr_text: str | None) -> InvoiceData:
    """Fill a missing invoice number from OCR text.

    A short bare number is treated as low confidence and triggers the
    lookup, but an existing value is never overwritten.
    """
    current = record.invoice_number
    if current is not None and not LOW_CONFIDENCE_INVOICE_NUMBER.match(current):
        return record

    recovered = find_invoice_number(ocr_text)
    if recovered is None:
        return record
    if current is not None:
        logger.debug(
            f"Keeping low-confidence invoice number {current!r}; OCR suggests {recovered!r}"
        )
        return record

    logger.info(f"Invoice number recovered from OCR text: {recovered}")
    return record.model_copy(update={"invoice_number": recovered})


def apply_invoice_date_fallback(record: InvoiceData, ocr_text: str | None) -> InvoiceData:
    """Fill a missing invoice date from the first parsable date in OCR text."""
    if record.invoice_date is not None:
        return record
    recovered = find_first_date(ocr_text)
    if recovered is None:
        return record
    logger.info(f"Invoice date recovered from OCR text: {recovered}")
    return record.model_copy(update={"invoice_date": recovered})


def compute_line_item_totals(
    line_items: list[InvoiceLineItem], shipping: float | None
) -> dict[str, float]:
    """Sum subtotal, discount and tax over line items and derive the total.

    Quantity defaults to 1 and unit price falls back to the line total.
    """
    subtotal = 0.0
    discount = 0.0
    tax = 0.0
    for item in line_items:
        quantity = item.quantity if item.quantity is not None else 1.0
        if item.unit_price is not None:
            unit_price = item.unit_price
        else:
            unit_price = item.line_total if item.line_total is not None else 0.0
        subtotal += quantity * unit_price
        discount += item.discount or 0.0
        tax += item.tax or 0.0
    total = subtotal - discount + (shipping or 0.0) + tax
    return {"subtotal": subtotal, "discount": discount, "tax": tax, "total": total}


def append_note(notes: str | None, note: str) -> str:
    """Append a note on its own line."""
    return f"{notes}\n{note}" if notes else note


def apply_totals_recomputation(
    record: InvoiceData, tolerance: float = DEFAULT_TOTALS_TOLERANCE
) -> InvoiceData:
    """Override reported totals when they disagree with the line items.

    Args:
        record: Normalized invoice
        tolerance: Absolute deviation allowed between reported and computed total

    Returns:
        The same record, or a copy with subtotal/discount/tax/total replaced
        and an explanatory note appended
    """
    if not record.line_items:
        return record

    computed = compute_line_item_totals(record.line_items, record.shipping)
    if not math.isfinite(computed["total"]):
        logger.warning(
            f"Line-item totals overflowed (computed total={computed['total']}); "
            f"keeping reported totals"
        )
        return record
    if record.total is not None and abs(record.total - computed["total"]) <= tolerance:
        return record

    count = len(record.line_items)
    logger.info(
        f"Totals inferred from {count} line items "
        f"(reported total={record.total}, computed total={computed['total']:.2f})"
    )
    # A non-finite component keeps the record's own value
    update: dict[str, Any] = {
        field: round(value, 2) for field, value in computed.items() if math.isfinite(value)
    }
    update["notes"] = append_note(record.notes, f"Totals inferred from {count} line items.")
    return record.model_copy(update=update)


def apply_line_item_rescue(
    record: InvoiceData,
    ocr_text: str | None,
    line_item_fetcher: LineItemFetcher | None,
) -> InvoiceData:
    """Ask the model for line items only, when the first pass found none.

    Runs only if the OCR text shows table markers. Any failure is logged and
    the record is returned unchanged.
    """
    if record.line_items or line_item_fetcher is None:
        return record
    if not isinstance(ocr_text, str) or not TABLE_MARKERS.search(ocr_text):
        return record

    logger.info("No line items extracted - attempting focused retry for line_items")
    try:
        content = line_item_fetcher(ocr_text)
        if content is None:
            return record
        items = normalize_line_items(extract_json_array(content))
    except Exception as e:
        logger.warning(f"Focused retry for line_items failed: {e}")
        return record

    if not items:
        return record
    logger.info(f"Recovered {len(items)} line items from focused retry")
    return record.model_copy(update={"line_items": items})


def reconcile(
    record: InvoiceData,
    ocr_text: str | None = None,
    has_image: bool = False,
    line_item_fetcher: LineItemFetcher | None = None,
    tolerance: float = DEFAULT_TOTALS_TOLERANCE,
) -> InvoiceData:
    """Apply all reconciliation steps in order.

    Args:
        record: Normalized invoice
        ocr_text: Original OCR text, if any
        has_image: Whether the request carried an image
        line_item_fetcher: Callable issuing the line-item rescue request
        tolerance: Totals tolerance passed to the recomputation step

    Returns:
        Reconciled copy of the record (the input is not mutated)
    """
    logger.debug(f"Reconciling record (has_image={has_image}, ocr_text={ocr_text is not None})")
    record = apply_invoice_number_fallback(record, ocr_text)
    record = apply_invoice_date_fallback(record, ocr_text)
    record = apply_totals_recomputation(record, tolerance)
    return apply_line_item_rescue(record, ocr_text, line_item_fetcher)
