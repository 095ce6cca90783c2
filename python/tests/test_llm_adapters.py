"""Tests for the LLM layer.

Test coverage:
- OpenAI-compatible adapter: success, custom base URL, null content, HTTP errors
- Error classification of provider responses
- LLMClient: missing key, timeout, network and status error normalization
- Prompt rendering and size validation
- LLMSiteGenerator: prompt selection and whitespace trimming

Explicitly Forbidden:
- Live provider calls
- Real API keys anywhere in test code

These are pure unit tests; HTTP is mocked with respx.
"""

import json

import httpx
import pytest
import respx

from sitebuilder.services.llm import (
    LLMClient,
    LLMError,
    LLMErrorClass,
    LLMRequest,
    LLMSiteGenerator,
    OpenAIAdapter,
    PromptTooLargeError,
    Turn,
    classify_provider_error,
    render_document_prompt,
    render_enhance_prompt,
    validate_prompt_size,
)
from sitebuilder.services.llm.prompt import (
    CREATE_ENHANCE_SYSTEM_PROMPT,
    CREATE_SYSTEM_PROMPT,
    ENHANCE_SYSTEM_PROMPT,
    REVISE_SYSTEM_PROMPT,
)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"

SUCCESS_BODY = {
    "id": "chatcmpl-test",
    "object": "chat.completion",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Hello! How can I help you today?"},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 10, "completion_tokens": 8, "total_tokens": 18},
}


def _completion(text: str | None) -> dict:
    return {"id": "chatcmpl-x", "choices": [{"message": {"content": text}}]}


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def httpx_client():
    """Create an httpx AsyncClient for testing."""
    return httpx.AsyncClient()


@pytest.fixture
def llm_request():
    """Create a basic LLM request for testing."""
    return LLMRequest(
        model_name="test-model",
        messages=[
            Turn(role="system", content="You are helpful."),
            Turn(role="user", content="Hello!"),
        ],
        max_tokens=100,
        temperature=0.7,
    )


# =============================================================================
# OpenAI Adapter Tests
# =============================================================================


class TestOpenAIAdapter:
    @pytest.mark.asyncio
    @respx.mock
    async def test_nonstream_success(self, httpx_client, llm_request):
        route = respx.post(OPENAI_URL).respond(
            200, json=SUCCESS_BODY, headers={"x-request-id": "req-test-123"}
        )

        adapter = OpenAIAdapter(httpx_client)
        response = await adapter.generate(llm_request, api_key="sk-test", timeout_s=30)

        assert response.text == "Hello! How can I help you today?"
        assert response.usage is not None
        assert response.usage.prompt_tokens == 10
        assert response.usage.completion_tokens == 8
        assert response.usage.total_tokens == 18
        assert response.provider_request_id == "req-test-123"

        sent = route.calls.last.request
        assert sent.headers["authorization"] == "Bearer sk-test"
        body = json.loads(sent.content)
        assert body == {
            "model": "test-model",
            "messages": [
                {"role": "system", "content": "You are helpful."},
                {"role": "user", "content": "Hello!"},
            ],
            "stream": False,
            "max_tokens": 100,
            "temperature": 0.7,
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_custom_base_url(self, httpx_client, llm_request):
        route = respx.post("https://openrouter.ai/api/v1/chat/completions").respond(
            200, json=SUCCESS_BODY
        )

        adapter = OpenAIAdapter(httpx_client, base_url="https://openrouter.ai/api/v1/")
        response = await adapter.generate(llm_request, api_key="sk-test", timeout_s=30)

        assert route.called
        assert response.provider_request_id == "chatcmpl-test"

    @pytest.mark.asyncio
    @respx.mock
    async def test_null_content_is_empty_text(self, httpx_client, llm_request):
        respx.post(OPENAI_URL).respond(200, json=_completion(None))

        adapter = OpenAIAdapter(httpx_client)
        response = await adapter.generate(llm_request, api_key="sk-test", timeout_s=30)

        assert response.text == ""
        assert response.usage is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_choices_is_empty_text(self, httpx_client, llm_request):
        respx.post(OPENAI_URL).respond(200, json={"id": "chatcmpl-x", "choices": []})

        adapter = OpenAIAdapter(httpx_client)
        response = await adapter.generate(llm_request, api_key="sk-test", timeout_s=30)

        assert response.text == ""

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_key_401(self, httpx_client, llm_request):
        """401 response should raise HTTPStatusError."""
        respx.post(OPENAI_URL).respond(
            401, json={"error": {"message": "Incorrect API key", "code": "invalid_api_key"}}
        )

        adapter = OpenAIAdapter(httpx_client)
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await adapter.generate(llm_request, api_key="sk-invalid", timeout_s=30)

        assert exc_info.value.response.status_code == 401


# =============================================================================
# Error Classification Tests
# =============================================================================


class TestClassifyProviderError:
    @pytest.mark.parametrize(
        ("status", "body", "expected"),
        [
            (401, None, LLMErrorClass.INVALID_KEY),
            (403, None, LLMErrorClass.INVALID_KEY),
            (429, None, LLMErrorClass.RATE_LIMIT),
            (404, None, LLMErrorClass.MODEL_NOT_AVAILABLE),
            (500, None, LLMErrorClass.PROVIDER_DOWN),
            (503, None, LLMErrorClass.PROVIDER_DOWN),
            (
                400,
                {"error": {"code": "context_length_exceeded", "message": "too long"}},
                LLMErrorClass.CONTEXT_TOO_LARGE,
            ),
            (
                400,
                {"error": {"message": "This model's maximum context length is 8192 tokens"}},
                LLMErrorClass.CONTEXT_TOO_LARGE,
            ),
            (
                400,
                {"error": {"message": "The model `gpt-9` was not found"}},
                LLMErrorClass.MODEL_NOT_AVAILABLE,
            ),
            (400, {"error": "bad"}, LLMErrorClass.PROVIDER_DOWN),
            (None, None, LLMErrorClass.PROVIDER_DOWN),
        ],
    )
    def test_status_mapping(self, status, body, expected):
        assert classify_provider_error(status, body) == expected

    def test_timeout_exception(self):
        exc = httpx.ReadTimeout("timed out")
        assert classify_provider_error(None, None, exc) == LLMErrorClass.TIMEOUT

    def test_connect_exception(self):
        exc = httpx.ConnectError("refused")
        assert classify_provider_error(None, None, exc) == LLMErrorClass.PROVIDER_DOWN


# =============================================================================
# LLMClient Tests
# =============================================================================


class TestLLMClient:
    @pytest.mark.asyncio
    async def test_missing_key_fails_before_network(self, httpx_client, llm_request):
        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(OPENAI_URL).respond(200, json=SUCCESS_BODY)
            client = LLMClient(OpenAIAdapter(httpx_client), api_key=None)

            with pytest.raises(LLMError) as exc_info:
                await client.generate(llm_request)

        assert exc_info.value.error_class == LLMErrorClass.INVALID_KEY
        assert not route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_success(self, httpx_client, llm_request):
        respx.post(OPENAI_URL).respond(200, json=SUCCESS_BODY)
        client = LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test")

        response = await client.generate(llm_request, operation="enhance")

        assert response.text == "Hello! How can I help you today?"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, LLMErrorClass.INVALID_KEY),
            (429, LLMErrorClass.RATE_LIMIT),
            (500, LLMErrorClass.PROVIDER_DOWN),
        ],
    )
    @respx.mock
    async def test_status_errors_are_normalized(self, httpx_client, llm_request, status, expected):
        respx.post(OPENAI_URL).respond(status, json={"error": {"message": "nope"}})
        client = LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test")

        with pytest.raises(LLMError) as exc_info:
            await client.generate(llm_request)

        assert exc_info.value.error_class == expected

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_error_body(self, httpx_client, llm_request):
        respx.post(OPENAI_URL).respond(502, text="<html>Bad gateway</html>")
        client = LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test")

        with pytest.raises(LLMError) as exc_info:
            await client.generate(llm_request)

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_DOWN

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self, httpx_client, llm_request):
        respx.post(OPENAI_URL).mock(side_effect=httpx.ReadTimeout("timed out"))
        client = LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test")

        with pytest.raises(LLMError) as exc_info:
            await client.generate(llm_request)

        assert exc_info.value.error_class == LLMErrorClass.TIMEOUT

    @pytest.mark.asyncio
    @respx.mock
    async def test_network_error(self, httpx_client, llm_request):
        respx.post(OPENAI_URL).mock(side_effect=httpx.ConnectError("refused"))
        client = LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test")

        with pytest.raises(LLMError) as exc_info:
            await client.generate(llm_request)

        assert exc_info.value.error_class == LLMErrorClass.PROVIDER_DOWN


# =============================================================================
# Prompt Rendering Tests
# =============================================================================


class TestPromptRendering:
    def test_enhance_prompt_for_revision(self):
        turns = render_enhance_prompt("make it blue")

        assert turns[0] == Turn(role="system", content=ENHANCE_SYSTEM_PROMPT)
        assert turns[1].role == "user"
        assert "make it blue" in turns[1].content

    def test_enhance_prompt_for_creation(self):
        turns = render_enhance_prompt("a bakery", creating=True)

        assert turns[0].content == CREATE_ENHANCE_SYSTEM_PROMPT

    def test_document_prompt_includes_current_code(self):
        turns = render_document_prompt("<p>old</p>", "make it blue")

        assert turns[0].content == REVISE_SYSTEM_PROMPT
        assert "<p>old</p>" in turns[1].content
        assert "make it blue" in turns[1].content

    @pytest.mark.parametrize("current_code", [None, ""])
    def test_document_prompt_without_code_builds_from_scratch(self, current_code):
        turns = render_document_prompt(current_code, "a bakery")

        assert turns[0].content == CREATE_SYSTEM_PROMPT
        assert "a bakery" in turns[1].content

    def test_validate_prompt_size(self):
        turns = [Turn(role="user", content="x" * 11)]

        validate_prompt_size(turns, max_chars=11)
        with pytest.raises(PromptTooLargeError) as exc_info:
            validate_prompt_size(turns, max_chars=10)

        assert exc_info.value.actual_size == 11
        assert exc_info.value.max_size == 10


# =============================================================================
# LLMSiteGenerator Tests
# =============================================================================


class TestLLMSiteGenerator:
    @pytest.mark.asyncio
    @respx.mock
    async def test_enhance_strips_whitespace(self, httpx_client):
        route = respx.post(OPENAI_URL).respond(200, json=_completion("  Make it blue.\n"))
        generator = LLMSiteGenerator(
            LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test"), "test-model"
        )

        result = await generator.enhance("blue pls")

        assert result == "Make it blue."
        body = json.loads(route.calls.last.request.content)
        assert body["model"] == "test-model"
        assert body["messages"][0]["content"] == ENHANCE_SYSTEM_PROMPT

    @pytest.mark.asyncio
    @respx.mock
    async def test_generate_document_returns_raw_fenced_output(self, httpx_client):
        respx.post(OPENAI_URL).respond(200, json=_completion("```html\n<p>new</p>\n```"))
        generator = LLMSiteGenerator(
            LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test"), "test-model"
        )

        result = await generator.generate_document("<p>old</p>", "Make it new")

        assert result == "```html\n<p>new</p>\n```"

    @pytest.mark.asyncio
    async def test_oversized_prompt_is_context_error(self, httpx_client):
        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(OPENAI_URL).respond(200, json=SUCCESS_BODY)
            generator = LLMSiteGenerator(
                LLMClient(OpenAIAdapter(httpx_client), api_key="sk-test"), "test-model"
            )

            with pytest.raises(LLMError) as exc_info:
                await generator.generate_document("x" * 400_001, "change it")

        assert exc_info.value.error_class == LLMErrorClass.CONTEXT_TOO_LARGE
        assert not route.called
