"""Offline extraction provider backed by the heuristic OCR text parser.

No remote call is made, so results are deterministic and the provider works
without credentials. Image-only requests cannot be served.
"""

import logging

from snaptosheet.extraction.base import ExtractionProvider, ExtractionRequest, ExtractionResult
from snaptosheet.extraction.errors import ExtractionError, InputError
from snaptosheet.extraction.ocr_parser import parse_ocr_text
from snaptosheet.extraction.reconcile import (
    apply_invoice_date_fallback,
    apply_invoice_number_fallback,
)

logger = logging.getLogger(__name__)


class HeuristicExtractionProvider(ExtractionProvider):
    """Extraction provider that parses OCR text with line-oriented heuristics."""

    @property
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier 'heuristic'
        """
        return "heuristic"

    def is_available(self) -> bool:
        """The parser has no prerequisites."""
        return True

    def extract_invoice_fields(self, request: ExtractionRequest) -> ExtractionResult:
        """Parse the request's OCR text.

        Only the invoice-number and invoice-date fallbacks run here. The parser
        already reads labelled totals, so they are never recomputed from line
        items it guessed at.

        Args:
            request: Request carrying OCR text

        Returns:
            ExtractionResult with best-effort invoice data, or an input error
        """
        try:
            if not request.ocr_text or not request.ocr_text.strip():
                raise InputError("Heuristic extraction requires ocrText")

            parsed = parse_ocr_text(request.ocr_text)
            invoice_data = apply_invoice_number_fallback(parsed, request.ocr_text)
            invoice_data = apply_invoice_date_fallback(invoice_data, request.ocr_text)
        except ExtractionError as e:
            logger.warning(f"Heuristic extraction rejected: {e.message}")
            return ExtractionResult.from_error(e, provider=self.provider_name)

        logger.info(
            f"Heuristic extraction: invoice_number={invoice_data.invoice_number}, "
            f"total={invoice_data.total}, line_items={len(invoice_data.line_items)}"
        )
        return ExtractionResult(
            invoice_data=invoice_data, success=True, provider=self.provider_name
        )
