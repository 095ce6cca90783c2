"""Provider adapter interface.

An adapter translates an LLMRequest into one provider HTTP call over the
shared httpx.AsyncClient and back into an LLMResponse. It never retries,
never touches the database and never logs payloads. httpx errors
(HTTPStatusError, TimeoutException, NetworkError) propagate unchanged so
LLMClient can classify them.
"""

from abc import ABC, abstractmethod

import httpx

from sitebuilder.services.llm.types import LLMRequest, LLMResponse


class LLMAdapter(ABC):
    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @abstractmethod
    async def generate(self, req: LLMRequest, *, api_key: str, timeout_s: int) -> LLMResponse:
        """Run one non-streaming completion."""
