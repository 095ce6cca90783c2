"""Chat completions over the OpenAI wire format.

The same code talks to api.openai.com or to any compatible gateway
(OpenRouter, a local proxy); only `base_url` changes.

    POST {base_url}/chat/completions
    {"model": ..., "messages": [{"role", "content"}, ...], "stream": false}

Only choices[0].message.content and the optional usage block are read.
A null or missing content becomes "", which the caller treats as an empty
generation.
"""

from typing import Any

import httpx

from sitebuilder.services.llm.adapter import LLMAdapter
from sitebuilder.services.llm.types import LLMRequest, LLMResponse, LLMUsage

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
CONNECT_TIMEOUT_S = 10.0


def _first_choice_text(data: dict[str, Any]) -> str:
    choices = data.get("choices") or []
    if not choices:
        return ""
    return (choices[0].get("message") or {}).get("content") or ""


def _usage(data: dict[str, Any]) -> LLMUsage | None:
    usage = data.get("usage")
    if not usage:
        return None
    return LLMUsage(
        prompt_tokens=usage.get("prompt_tokens"),
        completion_tokens=usage.get("completion_tokens"),
        total_tokens=usage.get("total_tokens"),
    )


class OpenAIAdapter(LLMAdapter):
    def __init__(self, client: httpx.AsyncClient, base_url: str = DEFAULT_OPENAI_BASE_URL):
        super().__init__(client)
        self.chat_url = f"{base_url.rstrip('/')}/chat/completions"

    def request_body(self, req: LLMRequest) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": req.model_name,
            "messages": [{"role": turn.role, "content": turn.content} for turn in req.messages],
            "stream": False,
        }
        optional = {"max_tokens": req.max_tokens, "temperature": req.temperature}
        body.update({key: value for key, value in optional.items() if value is not None})
        return body

    async def generate(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> LLMResponse:
        response = await self._client.post(
            self.chat_url,
            headers={"Authorization": f"Bearer {api_key}"},
            json=self.request_body(req),
            timeout=httpx.Timeout(timeout_s, connect=CONNECT_TIMEOUT_S),
        )
        response.raise_for_status()

        data = response.json()
        return LLMResponse(
            text=_first_choice_text(data),
            usage=_usage(data),
            provider_request_id=response.headers.get("x-request-id") or data.get("id"),
        )
