"""Prompt and schema constants for remote extraction.

Plain module-level strings; the provider reads them and never mutates them.
"""

SYSTEM_PROMPT = """You are an expert invoice data extraction assistant. \
You extract every piece of data from invoices.

EXTRACTION RULES:
1. Read the entire document - header to footer, left to right
2. Extract every visible field - vendor, buyer, dates, amounts, line items, bank details
3. Return ONLY valid JSON - no markdown, no explanations, no expressions
4. If a field is not found, use null (not "", not 0, not "N/A")
5. Numbers: remove currency symbols and commas. "₹32,250.4" -> 32250.4
6. Dates: convert to YYYY-MM-DD. "12-May-2021" -> "2021-05-12"
7. GST numbers: 15 character alphanumeric GSTIN
8. Line items: extract every product/service with HSN, qty, rate, discount, tax, amount
9. Calculations: when tax must be calculated (e.g. price * rate / 100), calculate it \
and return the number. Never return "2535.0 * 18.0 / 100" - return 456.3 instead.
10. All numbers in the JSON must be literal values, never expressions or formulas."""

OCR_USER_PROMPT = """TASK: Extract complete invoice data from this OCR text.

==== RAW OCR TEXT ====
{ocr_text}
==== END OCR TEXT ====

Count the rows in the LINE ITEMS table and extract ALL of them. \
If you see 2 items, return 2 items (not 1).

EXTRACT (if present):

VENDOR/SELLER: company name, GSTIN, full address, phone, email, website
INVOICE DETAILS: invoice number (INV-XXXXX, Bill No, ...), invoice date, due date, \
PO number, e-way bill number, vehicle number
BUYER/BILL TO: name, GSTIN, full address
SHIPPING TO (if different): name, address
LINE ITEMS: description, HSN/SAC code, quantity and unit, unit rate, \
discount amount and percentage, tax amount and rate, line total
TOTALS: subtotal, total discount, shipping/freight, IGST/CGST/SGST rate and amount, \
grand total / amount payable
BANK DETAILS: bank name and branch, account number, IFSC code, UPI ID
OTHER: terms and conditions, notes/remarks

RETURN ONLY JSON - NO MARKDOWN, NO EXPLANATIONS."""

IMAGE_USER_PROMPT = """TASK: Extract every piece of data from this invoice image.

This invoice may have MULTIPLE LINE ITEMS. Count the rows in the table and extract ALL of them.

Read the entire image - headers and logos, every table row, fine print, bank details.

EXTRACT:
1. VENDOR: company name, GSTIN, address, phone, website
2. INVOICE INFO: invoice number, date (YYYY-MM-DD), PO number, e-way bill, vehicle number
3. BILL TO: name, GSTIN, address
4. SHIPPING TO (if different)
5. LINE ITEMS: description, HSN code, quantity and unit, rate, discount (amount and %), \
tax (amount and %), line total
6. TOTALS: subtotal, discount, shipping, tax (IGST or CGST+SGST with rates), grand total
7. BANK DETAILS: account number, IFSC code, bank name and branch, UPI ID
8. TERMS AND NOTES

Convert: "₹32,250.4" -> 32250.4, "12-May-2021" -> "2021-05-12"
RETURN ONLY JSON."""

RULES_AND_FORMAT = """
STRICT OUTPUT RULES:
- Return ONLY valid JSON - NO markdown, NO explanations
- If a field is not found, use null
- Numbers: remove currency symbols and commas -> pure numbers
- Dates: convert to YYYY-MM-DD

REQUIRED JSON SCHEMA:

{
  "vendor_name": string | null,
  "vendor_gst_number": string | null,
  "vendor_address": string | null,
  "vendor_phone": string | null,
  "vendor_email": string | null,
  "vendor_website": string | null,

  "invoice_number": string | null,
  "invoice_date": string | null,
  "due_date": string | null,
  "po_number": string | null,
  "eway_bill_number": string | null,
  "vehicle_number": string | null,

  "buyer_name": string | null,
  "buyer_gst_number": string | null,
  "buyer_address": string | null,

  "shipping_name": string | null,
  "shipping_address": string | null,

  "currency": string | null,

  "subtotal": number | null,
  "discount": number | null,
  "discount_percentage": number | null,
  "shipping": number | null,
  "tax": number | null,
  "total": number | null,
  "amount_in_words": string | null,

  "igst_rate": number | null,
  "igst_amount": number | null,
  "cgst_rate": number | null,
  "cgst_amount": number | null,
  "sgst_rate": number | null,
  "sgst_amount": number | null,

  "bank_name": string | null,
  "bank_branch": string | null,
  "account_number": string | null,
  "ifsc_code": string | null,
  "upi_id": string | null,

  "line_items": [
    {
      "description": string | null,
      "hsn_code": string | null,
      "quantity": number | null,
      "unit": string | null,
      "unit_price": number | null,
      "discount": number | null,
      "discount_percentage": number | null,
      "tax": number | null,
      "tax_rate": number | null,
      "line_total": number | null
    }
  ],

  "terms_and_conditions": string | null,
  "notes": string | null
}

JSON RULES:
- ALL values must be literal numbers or strings - NO EXPRESSIONS
- WRONG: "tax": 2535.0 * 18.0 / 100
- RIGHT: "tax": 456.3
- Calculate subtotal, discount, tax and line_total BEFORE returning JSON
- Numbers MUST NOT contain currency symbols, commas or expressions

DATE EXAMPLES: "12-May-2021" -> "2021-05-12", "15/03/24" -> "2024-03-15"
NUMBER EXAMPLES: "₹32,250.4" -> 32250.4, "18%" -> 18
"""

LINE_ITEM_RESCUE_PROMPT = """The previous response missed the invoice line items. \
From the OCR text below, return ONLY a JSON array named "line_items" containing objects \
with fields: description, hsn_code, quantity, unit, unit_price, discount, \
discount_percentage, tax, tax_rate, line_total. Use literal numbers, no expressions. OCR:

{ocr_text}"""

DEBUG_SYSTEM_PROMPT = "DEBUG: return raw response"
DEBUG_USER_PROMPT = "Return the raw JSON response without modification."


def build_ocr_user_prompt(ocr_text: str) -> str:
    """User message for the OCR-text request."""
    return OCR_USER_PROMPT.replace("{ocr_text}", ocr_text) + "\n\n" + RULES_AND_FORMAT


def build_image_user_prompt() -> str:
    """Text part of the user message for the image request."""
    return IMAGE_USER_PROMPT + "\n\n" + RULES_AND_FORMAT


def build_line_item_prompt(ocr_text: str) -> str:
    """User message for the narrower line-item rescue request."""
    return LINE_ITEM_RESCUE_PROMPT.replace("{ocr_text}", ocr_text) + "\n\n" + RULES_AND_FORMAT
