"""Prometheus metrics for the API service.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Extraction outcomes by provider and failure class
- Image-input model fallbacks

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Extraction metrics
extraction_requests_total = Counter(
    "extraction_requests_total",
    "Total invoice extraction requests",
    ["provider", "status"],  # success, failed
)

extraction_failures_total = Counter(
    "extraction_failures_total",
    "Failed extraction requests by failure class",
    ["error_type"],  # input, upstream_transport, upstream_rejection, empty_response, repair
)

extraction_processing_duration_seconds = Histogram(
    "extraction_processing_duration_seconds",
    "Extraction duration in seconds, remote calls included",
    ["provider"],
    buckets=(0.05, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

extraction_input_size_chars = Histogram(
    "extraction_input_size_chars",
    "Size of the extraction input (data URL or OCR text) in characters",
    ["mode"],  # image, ocr_text
    buckets=(1024, 10240, 102400, 1048576, 10485760),
)

model_fallbacks_total = Counter(
    "model_fallbacks_total",
    "Requests retried with the default model after an image-input 404",
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
