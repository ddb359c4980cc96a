"""FastAPI application for invoice extraction.

Endpoints:
- Invoice extraction from an image data URL or OCR text (remote model)
- Heuristic OCR-text parsing without any remote call
- Raw-response debug endpoint (development only)
- Health and readiness checks, Prometheus metrics

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
import traceback

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from snaptosheet.api import metrics
from snaptosheet.extraction.base import ExtractionRequest, ExtractionResult
from snaptosheet.extraction.errors import ExtractionError
from snaptosheet.extraction.factory import create_extraction_service
from snaptosheet.extraction.heuristic_provider import HeuristicExtractionProvider
from snaptosheet.extraction.openrouter_provider import OpenRouterExtractionProvider
from snaptosheet.extraction.schema import InvoiceData
from snaptosheet.shared.config import get_settings
from snaptosheet.shared.log_config import configure_logging

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SnapToSheet",
    description="Invoice extraction API: image or OCR text in, normalized invoice record out",
    version=settings.service_version,
)

extraction_service = create_extraction_service(settings)
heuristic_service = HeuristicExtractionProvider(settings)
debug_client = OpenRouterExtractionProvider(settings)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool


class ExtractInvoiceResponse(BaseModel):
    """Successful extraction response."""

    data: InvoiceData


class ErrorResponse(BaseModel):
    """Structured error response."""

    error: str
    hint: str | None = None
    details: str | None = None


class ParseTextRequest(BaseModel):
    """Heuristic parse request."""

    ocr_text: str | None = Field(None, alias="ocrText")


ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse, "description": "Missing input or credential"},
    402: {"model": ErrorResponse, "description": "Upstream payment/auth issue"},
    500: {"model": ErrorResponse, "description": "Model response could not be parsed"},
    502: {"model": ErrorResponse, "description": "Upstream unreachable or rejected the call"},
}


def _error_body(message: str, hint: str | None, details: str | None) -> dict[str, str]:
    body = {"error": message}
    if hint:
        body["hint"] = hint
    if details:
        body["details"] = details
    return body


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    """Render structural extraction failures as {"error", "hint", "details"}."""
    return JSONResponse(
        status_code=exc.status_code, content=_error_body(exc.message, exc.hint, exc.details)
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; the stack trace is only exposed outside production."""
    logger.exception(f"Unhandled error in {request.url.path}: {exc}")
    content: dict[str, str] = {"error": str(exc) or "Unknown error"}
    if settings.environment != "production":
        content["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def _record_extraction(result: ExtractionResult, duration: float) -> None:
    outcome = "success" if result.success else "failed"
    metrics.extraction_requests_total.labels(provider=result.provider, status=outcome).inc()
    metrics.extraction_processing_duration_seconds.labels(provider=result.provider).observe(
        duration
    )
    if result.error_type is not None:
        metrics.extraction_failures_total.labels(error_type=result.error_type).inc()
    if result.used_fallback_model:
        metrics.model_fallbacks_total.inc()


def _to_response(result: ExtractionResult) -> ExtractInvoiceResponse | JSONResponse:
    if result.success and result.invoice_data is not None:
        return ExtractInvoiceResponse(data=result.invoice_data)
    return JSONResponse(
        status_code=result.status_code,
        content=_error_body(result.error or "Extraction failed", result.hint, result.details),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe.

    Returns:
        Health status information
    """
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check endpoint for Kubernetes readiness probe.

    Returns:
        Readiness status
    """
    return ReadinessResponse(ready=True)


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.post(
    "/api/extract-invoice",
    response_model=ExtractInvoiceResponse,
    responses=ERROR_RESPONSES,
    tags=["Extraction"],
)
def extract_invoice(
    body: ExtractionRequest, request: Request
) -> ExtractInvoiceResponse | JSONResponse:
    """Extract a normalized, reconciled invoice record.

    Accepts either `image` (base64 data URL) or `ocrText`, plus optional
    `apiKey` and `model` overrides. When both are sent the image goes to
    the model and the OCR text is used for reconciliation fallbacks.

    ## Error Handling

    - 400: missing image and OCR text, or no API key configured
    - 402: upstream payment/auth issue
    - 502: upstream unreachable or rejected the call
    - 500: model response could not be parsed

    Args:
        body: Extraction request
        request: Incoming HTTP request (referer is forwarded upstream)

    Returns:
        {"data": InvoiceData} or a structured error
    """
    extraction_request = body.model_copy(update={"referer": request.headers.get("referer")})
    mode = "image" if extraction_request.has_image else "ocr_text"
    metrics.extraction_input_size_chars.labels(mode=mode).observe(
        len(extraction_request.image or extraction_request.ocr_text or "")
    )

    start = time.time()
    result = extraction_service.extract_invoice_fields(extraction_request)
    _record_extraction(result, time.time() - start)
    return _to_response(result)


@app.post(
    "/api/extract-invoice/parse-text",
    response_model=ExtractInvoiceResponse,
    responses={400: ERROR_RESPONSES[400]},
    tags=["Extraction"],
)
def parse_invoice_text(body: ParseTextRequest) -> ExtractInvoiceResponse | JSONResponse:
    """Parse OCR text with the offline heuristic parser (no remote call).

    Args:
        body: Request carrying `ocrText`

    Returns:
        {"data": InvoiceData} with best-effort fields, or 400 without text
    """
    start = time.time()
    result = heuristic_service.extract_invoice_fields(ExtractionRequest(ocr_text=body.ocr_text))
    _record_extraction(result, time.time() - start)
    return _to_response(result)


@app.post("/api/extract-invoice/debug", tags=["Debug"])
def debug_extract(body: ExtractionRequest) -> JSONResponse:
    """Return the model's raw reply for an image (requires APP_ENABLE_DEBUG=true).

    Args:
        body: Request carrying `image` and optional `apiKey`/`model`

    Returns:
        {"ok": true, "raw": ...} or {"ok": true, "rawText": ...}
    """
    if not settings.enable_debug:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN, content={"error": "Debug endpoint disabled"}
        )
    return JSONResponse(content=debug_client.fetch_raw_response(body))
