"""Error taxonomy for extraction requests.

Only structural failures are modelled here. Field-level problems never
raise; they degrade to None in the normalizers.
"""

from typing import Literal

DIAGNOSTIC_LIMIT = 1000

ErrorType = Literal[
    "input",
    "upstream_transport",
    "upstream_rejection",
    "empty_response",
    "repair",
]

RejectionKind = Literal["payment", "image_unsupported", "data_policy", "generic"]


def truncate(text: str, limit: int = DIAGNOSTIC_LIMIT) -> str:
    """Clip diagnostic text to a size safe to return to clients."""
    return text[:limit]


class ExtractionError(Exception):
    """Base class for failures that abort an extraction request.

    Attributes:
        message: User-facing error message
        status_code: HTTP status the API should answer with
        error_type: Failure class identifier
        hint: Optional truncated upstream body for diagnosis
        details: Optional truncated transport message
    """

    status_code: int = 500
    error_type: ErrorType = "repair"

    def __init__(self, message: str, hint: str | None = None, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details


class InputError(ExtractionError):
    """Missing image/OCR text or missing credential. No remote call is made."""

    status_code = 400
    error_type = "input"


class UpstreamTransportError(ExtractionError):
    """Network failure while contacting the model endpoint."""

    status_code = 502
    error_type = "upstream_transport"

    def __init__(self, message: str, cause: BaseException | str) -> None:
        super().__init__(message, details=truncate(str(cause)))


class UpstreamRejection(ExtractionError):
    """Non-2xx answer from the model endpoint, classified by its body."""

    error_type = "upstream_rejection"

    def __init__(self, kind: RejectionKind, message: str, upstream_status: int, body: str) -> None:
        super().__init__(message, hint=truncate(body))
        self.kind = kind
        self.upstream_status = upstream_status
        self.status_code = 402 if kind == "payment" else 502


class EmptyResponseError(ExtractionError):
    """The model answered 2xx but without message content."""

    status_code = 500
    error_type = "empty_response"


class RepairFailure(ExtractionError):
    """No JSON object could be recovered from the model response."""

    status_code = 500
    error_type = "repair"

    def __init__(self, reason: str, raw_content: str) -> None:
        super().__init__(
            f"Failed to parse invoice data. Raw response: {truncate(raw_content)}",
            details=reason,
        )
        self.reason = reason
