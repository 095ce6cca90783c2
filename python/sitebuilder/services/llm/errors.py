"""Normalized LLM failures.

Adapters let raw httpx errors escape; LLMClient classifies them with
classify_provider_error() and re-raises an LLMError carrying one of the
LLMErrorClass values below.
"""

from enum import Enum

import httpx


class LLMErrorClass(str, Enum):
    INVALID_KEY = "E_LLM_INVALID_KEY"
    RATE_LIMIT = "E_LLM_RATE_LIMIT"
    CONTEXT_TOO_LARGE = "E_LLM_CONTEXT_TOO_LARGE"
    TIMEOUT = "E_LLM_TIMEOUT"
    PROVIDER_DOWN = "E_LLM_PROVIDER_DOWN"
    MODEL_NOT_AVAILABLE = "E_MODEL_NOT_AVAILABLE"


class LLMError(Exception):
    def __init__(self, error_class: LLMErrorClass, message: str):
        self.error_class = error_class
        self.message = message
        super().__init__(message)


_STATUS_CLASSES = {
    401: LLMErrorClass.INVALID_KEY,
    403: LLMErrorClass.INVALID_KEY,
    404: LLMErrorClass.MODEL_NOT_AVAILABLE,
    429: LLMErrorClass.RATE_LIMIT,
}

_CONTEXT_LENGTH_CODE = "context_length_exceeded"


def _classify_bad_request(json_body: dict | None) -> LLMErrorClass:
    """Read an OpenAI-style `{"error": {"code", "message"}}` 400 body."""
    error = (json_body or {}).get("error")
    if not isinstance(error, dict):
        return LLMErrorClass.PROVIDER_DOWN

    message = str(error.get("message") or "").lower()
    if error.get("code") == _CONTEXT_LENGTH_CODE or "maximum context length" in message:
        return LLMErrorClass.CONTEXT_TOO_LARGE
    if "model" in message and "not found" in message:
        return LLMErrorClass.MODEL_NOT_AVAILABLE
    return LLMErrorClass.PROVIDER_DOWN


def classify_provider_error(
    status_code: int | None,
    json_body: dict | None,
    exception: Exception | None = None,
) -> LLMErrorClass:
    """Map a transport exception or an HTTP error response to an error class.

    Anything unrecognized (no status, other 4xx, any 5xx) counts as the
    provider being down.
    """
    if isinstance(exception, httpx.TimeoutException):
        return LLMErrorClass.TIMEOUT
    if exception is not None or status_code is None:
        return LLMErrorClass.PROVIDER_DOWN

    if status_code in _STATUS_CLASSES:
        return _STATUS_CLASSES[status_code]
    if status_code == 400:
        return _classify_bad_request(json_body)
    return LLMErrorClass.PROVIDER_DOWN
