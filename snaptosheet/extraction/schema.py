"""Invoice data models for structured extraction.

Field names follow the JSON schema the model is asked to fill (snake_case,
null for absent values), so a normalized record serializes straight back
into the same shape for the spreadsheet exporter.
"""

from pydantic import BaseModel, Field


class InvoiceLineItem(BaseModel):
    """One purchased good or service row, in document order."""

    description: str | None = Field(None, description="Item or service description")
    hsn_code: str | None = Field(None, description="HSN/SAC tax classification code")
    quantity: float | None = Field(None, description="Quantity billed")
    unit: str | None = Field(None, description="Unit of measure (pcs, kg, ...)")
    unit_price: float | None = Field(None, description="Rate per unit")
    discount: float | None = Field(None, description="Discount amount for the line")
    discount_percentage: float | None = Field(None, description="Discount percent for the line")
    tax: float | None = Field(None, description="Tax amount for the line")
    tax_rate: float | None = Field(None, description="Tax rate percent for the line")
    line_total: float | None = Field(None, description="Authoritative amount for the line")


class InvoiceData(BaseModel):
    """Structured invoice data extracted from a document.

    Every scalar is either a typed value or None. Dates are YYYY-MM-DD
    strings, currency is an uppercase ISO 4217 code.
    """

    # Vendor/seller details
    vendor_name: str | None = Field(None, description="Vendor/seller company name")
    vendor_gst_number: str | None = Field(None, description="Vendor GSTIN")
    vendor_address: str | None = Field(None, description="Vendor address")
    vendor_phone: str | None = Field(None, description="Vendor phone")
    vendor_email: str | None = Field(None, description="Vendor email")
    vendor_website: str | None = Field(None, description="Vendor website")

    # Invoice details
    invoice_number: str | None = Field(None, description="Unique invoice identifier")
    invoice_date: str | None = Field(None, description="Issue date (YYYY-MM-DD)")
    due_date: str | None = Field(None, description="Payment due date (YYYY-MM-DD)")
    po_number: str | None = Field(None, description="Purchase order reference")
    eway_bill_number: str | None = Field(None, description="E-way bill number")
    vehicle_number: str | None = Field(None, description="Transport vehicle number")

    # Buyer (bill to)
    buyer_name: str | None = Field(None, description="Buyer company or person name")
    buyer_gst_number: str | None = Field(None, description="Buyer GSTIN")
    buyer_address: str | None = Field(None, description="Buyer address")

    # Shipping (ship to)
    shipping_name: str | None = Field(None, description="Ship-to name")
    shipping_address: str | None = Field(None, description="Ship-to address")

    currency: str | None = Field(None, description="Currency code (ISO 4217)")

    # Financial summary
    subtotal: float | None = Field(None, description="Subtotal before discount and tax")
    discount: float | None = Field(None, description="Total discount")
    discount_percentage: float | None = Field(None, description="Overall discount percent")
    shipping: float | None = Field(None, description="Shipping/freight charges")
    tax: float | None = Field(None, description="Total tax amount")
    total: float | None = Field(None, description="Grand total / amount payable")
    amount_in_words: str | None = Field(None, description="Total spelled out")

    # GST breakdown
    igst_rate: float | None = Field(None, description="Integrated GST rate percent")
    igst_amount: float | None = Field(None, description="Integrated GST amount")
    cgst_rate: float | None = Field(None, description="Central GST rate percent")
    cgst_amount: float | None = Field(None, description="Central GST amount")
    sgst_rate: float | None = Field(None, description="State GST rate percent")
    sgst_amount: float | None = Field(None, description="State GST amount")

    # Bank details
    bank_name: str | None = Field(None, description="Bank name")
    bank_branch: str | None = Field(None, description="Bank branch")
    account_number: str | None = Field(None, description="Account number")
    ifsc_code: str | None = Field(None, description="IFSC code")
    upi_id: str | None = Field(None, description="UPI ID")

    line_items: list[InvoiceLineItem] = Field(
        default_factory=list, description="Line items in document row order"
    )

    terms_and_conditions: str | None = Field(None, description="Terms and conditions")
    notes: str | None = Field(None, description="Notes/remarks")
