"""Public entry points of the extraction package.

Prefer importing from here in application code:
    from snaptosheet.extraction.service import ExtractionRequest, create_extraction_service
"""

from snaptosheet.extraction.base import ExtractionProvider, ExtractionRequest, ExtractionResult
from snaptosheet.extraction.factory import create_extraction_service
from snaptosheet.extraction.heuristic_provider import HeuristicExtractionProvider
from snaptosheet.extraction.ocr_parser import parse_ocr_text
from snaptosheet.extraction.openrouter_provider import OpenRouterExtractionProvider
from snaptosheet.extraction.schema import InvoiceData, InvoiceLineItem

__all__ = [
    "ExtractionProvider",  # Base interface
    "ExtractionRequest",  # Request model
    "ExtractionResult",  # Result model
    "HeuristicExtractionProvider",  # Offline provider
    "InvoiceData",  # Schema
    "InvoiceLineItem",  # Schema
    "OpenRouterExtractionProvider",  # Remote provider
    "create_extraction_service",  # Factory
    "parse_ocr_text",  # Heuristic parser
]
