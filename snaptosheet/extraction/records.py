"""Record normalizer: untrusted parsed JSON -> typed InvoiceData.

The model output crosses this boundary with an arbitrary shape. Every
access is a type check plus default, so normalization never fails.
"""

from collections.abc import Callable
from typing import Any

from snaptosheet.extraction.normalizers import (
    normalize_currency,
    to_nullable_iso_date,
    to_nullable_number,
    to_nullable_percent,
    to_nullable_string,
)
from snaptosheet.extraction.schema import InvoiceData, InvoiceLineItem

Normalizer = Callable[[Any], Any]

LINE_ITEM_FIELDS: dict[str, Normalizer] = {
    "description": to_nullable_string,
    "hsn_code": to_nullable_string,
    "quantity": to_nullable_number,
    "unit": to_nullable_string,
    "unit_price": to_nullable_number,
    "discount": to_nullable_number,
    "discount_percentage": to_nullable_number,
    "tax": to_nullable_number,
    "tax_rate": to_nullable_number,
    "line_total": to_nullable_number,
}

INVOICE_FIELDS: dict[str, Normalizer] = {
    # Vendor
    "vendor_name": to_nullable_string,
    "vendor_gst_number": to_nullable_string,
    "vendor_address": to_nullable_string,
    "vendor_phone": to_nullable_string,
    "vendor_email": to_nullable_string,
    "vendor_website": to_nullable_string,
    # Invoice details
    "invoice_number": to_nullable_string,
    "invoice_date": to_nullable_iso_date,
    "due_date": to_nullable_iso_date,
    "po_number": to_nullable_string,
    "eway_bill_number": to_nullable_string,
    "vehicle_number": to_nullable_string,
    "currency": normalize_currency,
    # Buyer and shipping
    "buyer_name": to_nullable_string,
    "buyer_gst_number": to_nullable_string,
    "buyer_address": to_nullable_string,
    "shipping_name": to_nullable_string,
    "shipping_address": to_nullable_string,
    # Financial summary
    "subtotal": to_nullable_number,
    "discount": to_nullable_number,
    "discount_percentage": to_nullable_number,
    "shipping": to_nullable_number,
    "tax": to_nullable_number,
    "total": to_nullable_number,
    "amount_in_words": to_nullable_string,
    # GST breakdown
    "igst_rate": to_nullable_percent,
    "igst_amount": to_nullable_number,
    "cgst_rate": to_nullable_percent,
    "cgst_amount": to_nullable_number,
    "sgst_rate": to_nullable_percent,
    "sgst_amount": to_nullable_number,
    # Bank details
    "bank_name": to_nullable_string,
    "bank_branch": to_nullable_string,
    "account_number": to_nullable_string,
    "ifsc_code": to_nullable_string,
    "upi_id": to_nullable_string,
    # Additional information
    "terms_and_conditions": to_nullable_string,
    "notes": to_nullable_string,
}


def _as_object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def normalize_line_item(value: Any) -> InvoiceLineItem:
    """Normalize one line item; non-objects become an all-null item."""
    obj = _as_object(value)
    return InvoiceLineItem(**{name: norm(obj.get(name)) for name, norm in LINE_ITEM_FIELDS.items()})


def normalize_line_items(value: Any) -> list[InvoiceLineItem]:
    """Normalize a line-item collection; non-lists become an empty list."""
    if not isinstance(value, list):
        return []
    return [normalize_line_item(item) for item in value]


def normalize_invoice_data(value: Any) -> InvoiceData:
    """Map an arbitrary parsed JSON value onto the InvoiceData schema.

    Args:
        value: Parsed model output (any JSON value)

    Returns:
        Fully typed InvoiceData; unusable fields are None
    """
    obj = _as_object(value)
    fields = {name: norm(obj.get(name)) for name, norm in INVOICE_FIELDS.items()}
    return InvoiceData(**fields, line_items=normalize_line_items(obj.get("line_items")))
