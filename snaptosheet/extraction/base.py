"""Abstract base class for extraction providers.

Enables switching between the remote LLM pipeline and the offline heuristic
parser while keeping one request/result contract.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from snaptosheet.extraction.errors import ErrorType, ExtractionError
from snaptosheet.extraction.schema import InvoiceData
from snaptosheet.shared.config import Settings


class ExtractionRequest(BaseModel):
    """Input of one extraction request.

    Attributes:
        image: Invoice image as a base64 data URL
        ocr_text: Raw OCR text of the invoice
        api_key: Per-request credential; falls back to the configured key
        model: Per-request model override
        referer: Caller page, forwarded as HTTP-Referer
    """

    model_config = ConfigDict(populate_by_name=True)

    image: str | None = None
    ocr_text: str | None = Field(None, alias="ocrText")
    api_key: str | None = Field(None, alias="apiKey")
    model: str | None = None
    referer: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    @property
    def has_ocr_text(self) -> bool:
        return bool(self.ocr_text)


class ExtractionResult(BaseModel):
    """Result of extraction operation.

    Attributes:
        invoice_data: Extracted invoice data or None if extraction failed
        success: Whether operation succeeded
        error: Error message if operation failed
        error_type: Failure class if operation failed
        status_code: HTTP status matching the failure class (200 on success)
        hint: Truncated upstream body, for diagnosis
        details: Truncated transport or parser message, for diagnosis
        provider: Name of provider that performed extraction
        model: Model that produced the response, if a remote call was made
        used_fallback_model: Whether the image-input fallback model was used
    """

    invoice_data: InvoiceData | None
    success: bool
    error: str | None = None
    error_type: ErrorType | None = None
    status_code: int = 200
    hint: str | None = None
    details: str | None = None
    provider: str
    model: str | None = None
    used_fallback_model: bool = False

    @classmethod
    def from_error(
        cls, error: ExtractionError, provider: str, model: str | None = None
    ) -> "ExtractionResult":
        """Build a failed result from an ExtractionError."""
        return cls(
            invoice_data=None,
            success=False,
            error=error.message,
            error_type=error.error_type,
            status_code=error.status_code,
            hint=error.hint,
            details=error.details,
            provider=provider,
            model=model,
        )


class ExtractionProvider(ABC):
    """Abstract base class for invoice extraction providers.

    Example implementations:
    - OpenRouterExtractionProvider: remote chat-completion model
    - HeuristicExtractionProvider: offline OCR text parser
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    def extract_invoice_fields(self, request: ExtractionRequest) -> ExtractionResult:
        """Extract structured invoice data from an image or OCR text.

        Args:
            request: Image and/or OCR text plus optional credential and model

        Returns:
            ExtractionResult with normalized, reconciled invoice data or error
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is available/configured.

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier (e.g., 'openrouter', 'heuristic')
        """
        pass
