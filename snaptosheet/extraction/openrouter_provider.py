"""OpenRouter-based extraction provider.

Sends the invoice image or OCR text to an OpenAI-compatible chat-completion
endpoint (OpenRouter), repairs the raw reply into JSON, normalizes it and
reconciles it against the OCR text.

Per request the pipeline moves through:

    RECEIVED -> IMAGE_REQUEST | TEXT_REQUEST | REJECTED
             -> REMOTE_CALL_SUCCEEDED | REMOTE_CALL_FAILED
                (REMOTE_CALL_FAILED -> RETRY_WITH_DEFAULT_MODEL, at most once)
             -> RESPONSE_REPAIRED | REPAIR_FAILED
             -> NORMALIZED -> RECONCILED -> RETURNED

The only retry is the image-input fallback: a 404 saying the chosen model
has no image-capable endpoint is retried once with the default model.
All remote calls for one request are sequential.
"""

import logging
import re
from enum import Enum
from functools import partial
from typing import Any

import openai
from openai import OpenAI
from tenacity import Retrying, before_sleep_log, retry_if_exception, stop_after_attempt

from snaptosheet.extraction import prompts
from snaptosheet.extraction.base import ExtractionProvider, ExtractionRequest, ExtractionResult
from snaptosheet.extraction.errors import (
    EmptyResponseError,
    ExtractionError,
    InputError,
    UpstreamRejection,
    UpstreamTransportError,
    truncate,
)
from snaptosheet.extraction.reconcile import reconcile
from snaptosheet.extraction.records import normalize_invoice_data
from snaptosheet.extraction.repair import extract_json_object

logger = logging.getLogger(__name__)

IMAGE_UNSUPPORTED_PATTERN = re.compile(
    r"no endpoints found that support image input", re.IGNORECASE
)
PAYMENT_PATTERN = re.compile(r"payment required", re.IGNORECASE)
DATA_POLICY_PATTERN = re.compile(r"data policy", re.IGNORECASE)

MAX_MODEL_ATTEMPTS = 2

MISSING_KEY_MESSAGE = (
    "No OpenRouter API key configured. Set OPENROUTER_API_KEY in your environment."
)
DEBUG_MISSING_KEY_MESSAGE = "No OpenRouter API key configured on server"


class PipelineState(str, Enum):
    """States of one extraction request."""

    RECEIVED = "received"
    IMAGE_REQUEST = "image_request"
    TEXT_REQUEST = "text_request"
    REJECTED = "rejected"
    REMOTE_CALL_SUCCEEDED = "remote_call_succeeded"
    REMOTE_CALL_FAILED = "remote_call_failed"
    RETRY_WITH_DEFAULT_MODEL = "retry_with_default_model"
    RESPONSE_REPAIRED = "response_repaired"
    REPAIR_FAILED = "repair_failed"
    NORMALIZED = "normalized"
    RECONCILED = "reconciled"
    RETURNED = "returned"


def select_request_mode(request: ExtractionRequest) -> PipelineState:
    """RECEIVED transition: image wins over OCR text; neither is a rejection."""
    if request.has_image:
        return PipelineState.IMAGE_REQUEST
    if request.has_ocr_text:
        return PipelineState.TEXT_REQUEST
    return PipelineState.REJECTED


def error_body(error: openai.APIStatusError) -> str:
    """Raw body of a non-2xx response."""
    return error.response.text or error.message


def next_model_after_failure(
    error: BaseException, chosen_model: str, default_model: str
) -> str | None:
    """REMOTE_CALL_FAILED transition.

    Returns:
        The model to retry with, or None when the failure is terminal
    """
    if not isinstance(error, openai.APIStatusError) or error.status_code != 404:
        return None
    if chosen_model == default_model:
        return None
    if not IMAGE_UNSUPPORTED_PATTERN.search(error_body(error)):
        return None
    return default_model


def classify_rejection(status_code: int, body: str, default_model: str) -> UpstreamRejection:
    """Map a non-2xx upstream answer to a user-facing rejection."""
    if status_code == 402 or PAYMENT_PATTERN.search(body):
        return UpstreamRejection(
            "payment",
            "Payment required or invalid OpenRouter key/model. "
            "Add credit or use a free/allowed model.",
            status_code,
            body,
        )
    if IMAGE_UNSUPPORTED_PATTERN.search(body):
        return UpstreamRejection(
            "image_unsupported",
            f"Model does not support image input. "
            f"Try a vision-capable model such as {default_model}.",
            status_code,
            body,
        )
    if DATA_POLICY_PATTERN.search(body):
        return UpstreamRejection(
            "data_policy",
            "Your OpenRouter data policy blocks this free model. "
            "Update privacy settings or choose a paid/allowed model.",
            status_code,
            body,
        )
    return UpstreamRejection("generic", f"API error: {truncate(body)}", status_code, body)


def build_messages(mode: PipelineState, request: ExtractionRequest) -> list[dict[str, Any]]:
    """Chat messages for the primary extraction call."""
    if mode is PipelineState.IMAGE_REQUEST:
        user_content: list[dict[str, Any]] = [
            {"type": "text", "text": prompts.build_image_user_prompt()},
            {"type": "image_url", "image_url": {"url": request.image}},
        ]
    else:
        user_content = [
            {"type": "text", "text": prompts.build_ocr_user_prompt(request.ocr_text or "")},
        ]
    return [
        {"role": "system", "content": prompts.SYSTEM_PROMPT},
        {"role": "user", "content": user_content},
    ]


class OpenRouterExtractionProvider(ExtractionProvider):
    """Extraction provider calling an OpenRouter chat-completion model.

    Requires an API key, either per request or via Settings.openrouter_api_key.
    """

    @property
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier 'openrouter'
        """
        return "openrouter"

    def is_available(self) -> bool:
        """Check if a server-side OpenRouter key is configured.

        Requests may still bring their own key when this returns False.
        """
        return bool(self.settings.openrouter_api_key)

    def extract_invoice_fields(self, request: ExtractionRequest) -> ExtractionResult:
        """Run the full remote pipeline for one request.

        Args:
            request: Image and/or OCR text plus optional credential and model

        Returns:
            ExtractionResult with reconciled invoice data, or the failure class
            and HTTP status for a structural failure
        """
        chosen_model = self._chosen_model(request)
        try:
            mode = select_request_mode(request)
            if mode is PipelineState.REJECTED:
                raise InputError("Missing image or ocrText in request")
            api_key = self._api_key(request)

            logger.info(
                f"Extraction request: model={chosen_model}, mode={mode.value}, "
                f"data_length={self._data_length(request, mode)}"
            )

            client = self._create_client(api_key)
            content, model_used = self._complete_with_model_fallback(
                client, build_messages(mode, request), chosen_model, request.referer
            )

            parsed = extract_json_object(content)
            logger.debug(f"State: {PipelineState.RESPONSE_REPAIRED.value}")
            record = normalize_invoice_data(parsed)
            logger.debug(f"State: {PipelineState.NORMALIZED.value}")
            record = reconcile(
                record,
                ocr_text=request.ocr_text,
                has_image=request.has_image,
                line_item_fetcher=partial(
                    self._fetch_line_items, client, chosen_model, request.referer
                ),
                tolerance=self.settings.totals_tolerance,
            )
            logger.debug(f"State: {PipelineState.RECONCILED.value}")
        except ExtractionError as e:
            logger.error(f"Extraction failed ({e.error_type}): {e.message}")
            return ExtractionResult.from_error(e, provider=self.provider_name, model=chosen_model)

        logger.info(
            f"Extraction result: vendor_name={record.vendor_name}, "
            f"invoice_number={record.invoice_number}, subtotal={record.subtotal}, "
            f"total={record.total}, line_items_count={len(record.line_items)}"
        )
        return ExtractionResult(
            invoice_data=record,
            success=True,
            provider=self.provider_name,
            model=model_used,
            used_fallback_model=model_used != chosen_model,
        )

    def fetch_raw_response(self, request: ExtractionRequest) -> dict[str, Any]:
        """Send the image with a bare prompt and return the upstream reply untouched.

        Development aid behind the debug endpoint; no repair or normalization.

        Returns:
            {"ok": True, "raw": <parsed JSON>} or {"ok": True, "rawText": <text>}

        Raises:
            InputError: If image or credential is missing
            UpstreamTransportError: If the endpoint cannot be reached
        """
        if not request.has_image:
            raise InputError("Missing image")
        api_key = self._api_key(request, DEBUG_MISSING_KEY_MESSAGE)
        model = request.model.strip() if request.model and request.model.strip() else None
        client = self._create_client(api_key)
        messages = [
            {"role": "system", "content": prompts.DEBUG_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompts.DEBUG_USER_PROMPT},
                    {"type": "image_url", "image_url": {"url": request.image}},
                ],
            },
        ]
        try:
            raw = client.chat.completions.with_raw_response.create(
                model=model or self.settings.debug_model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=1000,
                temperature=0,
            )
            text = raw.http_response.text
            http_response = raw.http_response
        except openai.APIStatusError as e:
            text = error_body(e)
            http_response = e.response
        except openai.APIConnectionError as e:
            raise UpstreamTransportError("Failed to contact OpenRouter", e) from e

        try:
            return {"ok": True, "raw": http_response.json()}
        except ValueError:
            return {"ok": True, "rawText": text}

    def _chosen_model(self, request: ExtractionRequest) -> str:
        if request.model and request.model.strip():
            return request.model.strip()
        return self.settings.default_model

    def _api_key(
        self, request: ExtractionRequest, missing_message: str = MISSING_KEY_MESSAGE
    ) -> str:
        api_key = request.api_key or self.settings.openrouter_api_key
        if not api_key:
            raise InputError(missing_message)
        return api_key

    @staticmethod
    def _data_length(request: ExtractionRequest, mode: PipelineState) -> int:
        if mode is PipelineState.IMAGE_REQUEST:
            return len(request.image or "")
        return len(request.ocr_text or "")

    def _create_client(self, api_key: str) -> OpenAI:
        # SDK-level retries are disabled; the only retry is the model fallback
        return OpenAI(
            api_key=api_key,
            base_url=self.settings.openrouter_base_url,
            timeout=self.settings.request_timeout_seconds,
            max_retries=0,
            default_headers={"X-Title": self.settings.app_title},
        )

    def _create_completion(
        self,
        client: OpenAI,
        model: str,
        messages: list[dict[str, Any]],
        referer: str | None,
    ) -> Any:
        return client.chat.completions.create(  # type: ignore[call-overload]
            model=model,
            messages=messages,
            extra_headers={"HTTP-Referer": referer or ""},
        )

    def _complete_with_model_fallback(
        self,
        client: OpenAI,
        messages: list[dict[str, Any]],
        chosen_model: str,
        referer: str | None,
    ) -> tuple[str, str]:
        """Call the model, retrying once with the default model on image-input 404.

        Returns:
            (message content, model that produced it)

        Raises:
            UpstreamTransportError: If the endpoint cannot be reached
            UpstreamRejection: If the endpoint answers non-2xx
            EmptyResponseError: If the reply carries no content
        """
        default_model = self.settings.default_model
        model = chosen_model
        retrying = Retrying(
            retry=retry_if_exception(
                lambda e: next_model_after_failure(e, chosen_model, default_model) is not None
            ),
            stop=stop_after_attempt(MAX_MODEL_ATTEMPTS),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.info(
                            f"State: {PipelineState.RETRY_WITH_DEFAULT_MODEL.value} "
                            f"({chosen_model} -> {default_model})"
                        )
                        model = default_model
                    response = self._create_completion(client, model, messages, referer)
        except openai.APIStatusError as e:
            body = error_body(e)
            logger.error(
                f"OpenRouter returned {e.status_code} for model {model}: {truncate(body, 200)}"
            )
            raise classify_rejection(e.status_code, body, default_model) from e
        except openai.APIConnectionError as e:
            logger.error(f"OpenRouter request failed for model {model}: {e}")
            message = "Failed to contact OpenRouter"
            if model != chosen_model:
                message += " on retry"
            raise UpstreamTransportError(message, e) from e

        logger.debug(f"State: {PipelineState.REMOTE_CALL_SUCCEEDED.value} (model={model})")
        content = self._message_content(response)
        if not content:
            raise EmptyResponseError("No response from API")
        return content, model

    @staticmethod
    def _message_content(response: Any) -> Any:
        choices = getattr(response, "choices", None)
        if not choices:
            return None
        return choices[0].message.content

    def _fetch_line_items(
        self, client: OpenAI, model: str, referer: str | None, ocr_text: str
    ) -> Any:
        """Issue the narrower line-items-only request used by reconciliation."""
        response = self._create_completion(
            client,
            model,
            [
                {"role": "system", "content": prompts.SYSTEM_PROMPT},
                {"role": "user", "content": prompts.build_line_item_prompt(ocr_text)},
            ],
            referer,
        )
        return self._message_content(response)
