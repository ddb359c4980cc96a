"""Unit tests for normalizing parsed model output into InvoiceData."""

import pytest

from snaptosheet.extraction.records import (
    INVOICE_FIELDS,
    LINE_ITEM_FIELDS,
    normalize_invoice_data,
    normalize_line_item,
    normalize_line_items,
)
from snaptosheet.extraction.schema import InvoiceData, InvoiceLineItem


def test_field_tables_cover_schema() -> None:
    """Every schema field has exactly one normalizer."""
    assert set(INVOICE_FIELDS) | {"line_items"} == set(InvoiceData.model_fields)
    assert set(LINE_ITEM_FIELDS) == set(InvoiceLineItem.model_fields)


@pytest.mark.parametrize("value", [None, "text", 42, [1, 2], True])
def test_non_object_yields_empty_record(value: object) -> None:
    data = normalize_invoice_data(value)
    assert data == InvoiceData()
    assert data.line_items == []


def test_full_record() -> None:
    raw = {
        "vendor_name": "  Acme Traders ",
        "invoice_number": "INV-7",
        "invoice_date": "12-May-2021",
        "due_date": "not a date",
        "currency": "₹",
        "subtotal": "₹1,000.00",
        "total": 1180,
        "cgst_rate": "9%",
        "cgst_amount": "90",
        "notes": "N/A",
        "vendor_email": "",
        "unknown_field": "ignored",
        "line_items": [
            {"description": "Widget", "quantity": "2", "unit_price": 500, "line_total": "1,000"},
        ],
    }

    data = normalize_invoice_data(raw)

    assert data.vendor_name == "Acme Traders"
    assert data.invoice_number == "INV-7"
    assert data.invoice_date == "2021-05-12"
    assert data.due_date is None
    assert data.currency == "INR"
    assert data.subtotal == 1000
    assert data.total == 1180
    assert data.cgst_rate == 9
    assert data.cgst_amount == 90
    assert data.notes is None
    assert data.vendor_email is None
    assert "unknown_field" not in data.model_dump()
    assert data.line_items == [
        InvoiceLineItem(description="Widget", quantity=2, unit_price=500, line_total=1000)
    ]


def test_wrong_types_become_null() -> None:
    data = normalize_invoice_data({"vendor_name": 123, "total": {"value": 5}, "currency": 1})
    assert data.vendor_name is None
    assert data.total is None
    assert data.currency is None


class TestLineItems:
    def test_non_list_is_empty(self) -> None:
        assert normalize_line_items("oops") == []
        assert normalize_line_items({"description": "A"}) == []

    def test_non_object_element_becomes_null_item(self) -> None:
        items = normalize_line_items([{"description": "A"}, "junk"])
        assert len(items) == 2
        assert items[0].description == "A"
        assert items[1] == InvoiceLineItem()

    def test_line_item_fields(self) -> None:
        item = normalize_line_item(
            {
                "description": " Cable ",
                "hsn_code": "8544",
                "quantity": 3,
                "unit": "pcs",
                "unit_price": "$12.50",
                "discount": "-",
                "tax_rate": "18%",
                "line_total": 37.5,
            }
        )
        assert item.description == "Cable"
        assert item.hsn_code == "8544"
        assert item.quantity == 3
        assert item.unit == "pcs"
        assert item.unit_price == 12.5
        assert item.discount is None
        assert item.tax_rate == 18
        assert item.line_total == 37.5

    def test_order_preserved(self) -> None:
        items = normalize_line_items([{"description": "B"}, {"description": "A"}])
        assert [item.description for item in items] == ["B", "A"]
