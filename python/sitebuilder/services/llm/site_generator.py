"""Site generation on top of the LLM client.

SiteGenerator is the seam the revision engine depends on; tests swap in a
deterministic fake through the get_site_generator dependency.
"""

from typing import Protocol

from sitebuilder.services.llm.client import LLMClient
from sitebuilder.services.llm.errors import LLMError, LLMErrorClass
from sitebuilder.services.llm.prompt import (
    PromptTooLargeError,
    render_document_prompt,
    render_enhance_prompt,
    validate_prompt_size,
)
from sitebuilder.services.llm.types import LLMRequest, Turn


class SiteGenerator(Protocol):
    """Produces enhanced instructions and complete HTML documents."""

    async def enhance(self, text: str, *, creating: bool = False) -> str:
        """Rewrite a user request into a specific, actionable instruction."""
        ...

    async def generate_document(self, current_code: str | None, instruction: str) -> str:
        """Return a complete HTML document implementing the instruction.

        current_code is None or empty when building a site from scratch.
        The result may still be wrapped in markdown code fences.
        """
        ...


class LLMSiteGenerator:
    """SiteGenerator backed by an OpenAI-compatible chat model."""

    def __init__(self, client: LLMClient, model_name: str):
        self._client = client
        self._model_name = model_name

    async def enhance(self, text: str, *, creating: bool = False) -> str:
        turns = render_enhance_prompt(text, creating=creating)
        return await self._complete(turns, operation="enhance")

    async def generate_document(self, current_code: str | None, instruction: str) -> str:
        turns = render_document_prompt(current_code, instruction)
        return await self._complete(turns, operation="generate_document")

    async def _complete(self, turns: list[Turn], *, operation: str) -> str:
        try:
            validate_prompt_size(turns)
        except PromptTooLargeError as e:
            raise LLMError(LLMErrorClass.CONTEXT_TOO_LARGE, str(e)) from e

        response = await self._client.generate(
            LLMRequest(model_name=self._model_name, messages=turns),
            operation=operation,
        )
        return response.text.strip()
