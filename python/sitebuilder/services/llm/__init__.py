"""Talking to the language model.

Layers, outermost first:

    LLMSiteGenerator  enhance a prompt, write or revise a document
    LLMClient         key check, error classification, safe logging
    OpenAIAdapter     one HTTP call per request, no retries

    client = LLMClient(OpenAIAdapter(httpx_client, base_url), api_key="sk-...")
    generator = LLMSiteGenerator(client, model_name="openai/gpt-4o-mini")
    html = await generator.generate_document(current_code, "Make the header blue")
"""

from sitebuilder.services.llm.adapter import LLMAdapter
from sitebuilder.services.llm.client import LLMClient
from sitebuilder.services.llm.errors import LLMError, LLMErrorClass, classify_provider_error
from sitebuilder.services.llm.openai_adapter import OpenAIAdapter
from sitebuilder.services.llm.prompt import (
    PromptTooLargeError,
    render_document_prompt,
    render_enhance_prompt,
    validate_prompt_size,
)
from sitebuilder.services.llm.site_generator import LLMSiteGenerator, SiteGenerator
from sitebuilder.services.llm.types import LLMRequest, LLMResponse, LLMUsage, Turn

__all__ = [
    "Turn",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "LLMAdapter",
    "OpenAIAdapter",
    "LLMError",
    "LLMErrorClass",
    "classify_provider_error",
    "PromptTooLargeError",
    "render_enhance_prompt",
    "render_document_prompt",
    "validate_prompt_size",
    "LLMClient",
    "LLMSiteGenerator",
    "SiteGenerator",
]
