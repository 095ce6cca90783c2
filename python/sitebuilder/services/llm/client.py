"""LLM client: adapter invocation with error normalization and observability.

- Holds the shared adapter, API key, and transport timeout
- Emits llm.request.started / llm.request.finished / llm.request.failed events
- All events go through safe_kv() so prompts and documents never reach the logs

Error handling:
- No key configured → E_LLM_INVALID_KEY (before any network call)
- Provider 401/403 → E_LLM_INVALID_KEY
- Provider 429 → E_LLM_RATE_LIMIT
- Timeout → E_LLM_TIMEOUT
- Context too large → E_LLM_CONTEXT_TOO_LARGE
- Other → E_LLM_PROVIDER_DOWN
"""

import time

import httpx

from sitebuilder.logging import get_logger
from sitebuilder.services.llm.adapter import LLMAdapter
from sitebuilder.services.llm.errors import LLMError, LLMErrorClass, classify_provider_error
from sitebuilder.services.llm.types import LLMRequest, LLMResponse
from sitebuilder.services.redact import safe_kv

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 120


class LLMClient:
    """Calls one LLM adapter and normalizes its failures into LLMError."""

    def __init__(
        self,
        adapter: LLMAdapter,
        *,
        api_key: str | None,
        timeout_s: int = DEFAULT_TIMEOUT_S,
    ):
        self._adapter = adapter
        self._api_key = api_key
        self._timeout_s = timeout_s

    async def generate(self, req: LLMRequest, *, operation: str = "other") -> LLMResponse:
        """Non-streaming generation with error normalization.

        Args:
            req: The LLM request.
            operation: Short label for logs (e.g. "enhance", "generate_document").

        Returns:
            LLMResponse with generated text and usage info.

        Raises:
            LLMError: With normalized error class on failure.
        """
        base = {
            "model_name": req.model_name,
            "llm_operation": operation,
        }

        if not self._api_key:
            logger.error(
                "llm.request.failed",
                **safe_kv(**base, error_class=LLMErrorClass.INVALID_KEY.value),
            )
            raise LLMError(LLMErrorClass.INVALID_KEY, "No LLM API key configured")

        logger.info(
            "llm.request.started",
            **safe_kv(**base, message_chars=sum(len(m.content) for m in req.messages)),
        )

        start = time.monotonic()

        try:
            response = await self._adapter.generate(
                req, api_key=self._api_key, timeout_s=self._timeout_s
            )
        except httpx.TimeoutException as e:
            self._log_failure(base, LLMErrorClass.TIMEOUT, start)
            raise LLMError(LLMErrorClass.TIMEOUT, "Request timed out") from e
        except httpx.HTTPStatusError as e:
            error_class = classify_provider_error(
                e.response.status_code, self._safe_parse_json(e.response)
            )
            self._log_failure(
                base,
                error_class,
                start,
                provider_request_id=e.response.headers.get("x-request-id"),
            )
            raise LLMError(
                error_class, f"Provider returned HTTP {e.response.status_code}"
            ) from e
        except httpx.NetworkError as e:
            self._log_failure(base, LLMErrorClass.PROVIDER_DOWN, start)
            raise LLMError(LLMErrorClass.PROVIDER_DOWN, "Network error") from e
        except LLMError:
            raise
        except Exception as e:
            self._log_failure(base, LLMErrorClass.PROVIDER_DOWN, start)
            raise LLMError(
                LLMErrorClass.PROVIDER_DOWN, f"Unexpected error: {type(e).__name__}"
            ) from e

        usage = response.usage
        logger.info(
            "llm.request.finished",
            **safe_kv(
                **base,
                outcome="success",
                latency_ms=int((time.monotonic() - start) * 1000),
                output_chars=len(response.text),
                tokens_input=usage.prompt_tokens if usage else None,
                tokens_output=usage.completion_tokens if usage else None,
                tokens_total=usage.total_tokens if usage else None,
                provider_request_id=response.provider_request_id,
            ),
        )
        return response

    def _log_failure(
        self,
        base: dict,
        error_class: LLMErrorClass,
        start: float,
        provider_request_id: str | None = None,
    ) -> None:
        logger.error(
            "llm.request.failed",
            **safe_kv(
                **base,
                outcome="error",
                error_class=error_class.value,
                latency_ms=int((time.monotonic() - start) * 1000),
                provider_request_id=provider_request_id,
            ),
        )

    def _safe_parse_json(self, response: httpx.Response) -> dict | None:
        """Parse JSON from an error response, returning None on failure."""
        try:
            return response.json()
        except ValueError:
            return None
