"""Unit tests for extraction base classes and interfaces.

Tests cover:
- Abstract base class enforcement
- ExtractionRequest aliases and mode helpers
- ExtractionResult construction from errors
"""

import pytest

from snaptosheet.extraction.base import ExtractionProvider, ExtractionRequest, ExtractionResult
from snaptosheet.extraction.errors import InputError, RepairFailure, UpstreamRejection
from snaptosheet.extraction.schema import InvoiceData
from snaptosheet.shared.config import Settings


def test_extraction_result_with_success() -> None:
    """Test ExtractionResult with successful extraction."""
    invoice_data = InvoiceData(invoice_number="INV-001", currency="INR")

    result = ExtractionResult(invoice_data=invoice_data, success=True, provider="test")

    assert result.success is True
    assert result.invoice_data is not None
    assert result.invoice_data.invoice_number == "INV-001"
    assert result.error is None
    assert result.status_code == 200
    assert result.used_fallback_model is False


def test_extraction_result_from_input_error() -> None:
    """Test that input errors map to 400."""
    result = ExtractionResult.from_error(InputError("Missing image or ocrText in request"), "test")

    assert result.success is False
    assert result.invoice_data is None
    assert result.error == "Missing image or ocrText in request"
    assert result.error_type == "input"
    assert result.status_code == 400


def test_extraction_result_from_payment_rejection() -> None:
    """Test that payment rejections map to 402 and keep the upstream body as hint."""
    error = UpstreamRejection("payment", "Payment required", 402, "x" * 2000)

    result = ExtractionResult.from_error(error, "openrouter", model="some/model")

    assert result.status_code == 402
    assert result.error_type == "upstream_rejection"
    assert result.hint is not None
    assert len(result.hint) == 1000
    assert result.model == "some/model"


def test_extraction_result_from_repair_failure() -> None:
    """Test that repair failures map to 500 with a raw excerpt."""
    result = ExtractionResult.from_error(RepairFailure("bad", "not json"), "openrouter")

    assert result.status_code == 500
    assert result.error == "Failed to parse invoice data. Raw response: not json"


def test_extraction_request_accepts_camel_case() -> None:
    """Test that the request accepts the browser's camelCase keys."""
    request = ExtractionRequest.model_validate({"ocrText": "Invoice", "apiKey": "k"})

    assert request.ocr_text == "Invoice"
    assert request.api_key == "k"
    assert request.has_ocr_text is True
    assert request.has_image is False


def test_extraction_request_accepts_field_names() -> None:
    """Test that snake_case names work too."""
    request = ExtractionRequest(ocr_text="text", image="data:image/png;base64,AAAA")

    assert request.has_image is True
    assert request.has_ocr_text is True


def test_extraction_provider_is_abstract() -> None:
    """Test that ExtractionProvider cannot be instantiated directly."""
    settings = Settings(_env_file=None)

    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        ExtractionProvider(settings)  # type: ignore[abstract]


def test_extraction_provider_requires_implementation() -> None:
    """Test that concrete providers must implement all abstract methods."""

    class IncompleteProvider(ExtractionProvider):
        def extract_invoice_fields(self, request: ExtractionRequest) -> ExtractionResult:
            return ExtractionResult(invoice_data=None, success=False, provider="incomplete")

        def is_available(self) -> bool:
            return True

        # Missing: provider_name property

    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        IncompleteProvider(Settings(_env_file=None))  # type: ignore[abstract]


def test_concrete_provider_implementation() -> None:
    """Test that properly implemented provider works correctly."""

    class TestProvider(ExtractionProvider):
        def extract_invoice_fields(self, request: ExtractionRequest) -> ExtractionResult:
            return ExtractionResult(
                invoice_data=InvoiceData(invoice_number="TEST"),
                success=True,
                provider=self.provider_name,
            )

        def is_available(self) -> bool:
            return True

        @property
        def provider_name(self) -> str:
            return "test"

    provider = TestProvider(Settings(_env_file=None))

    result = provider.extract_invoice_fields(ExtractionRequest(ocr_text="Sample text"))
    assert result.success is True
    assert result.provider == "test"
    assert result.invoice_data is not None
    assert result.invoice_data.invoice_number == "TEST"
