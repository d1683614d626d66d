"""
Tests for the OpenAI-compatible provider and the provider factory.
"""

import json

import httpx
import openai
import pytest

from publish_docs_ai.llm import LLMProviderType, create_llm_provider
from publish_docs_ai.llm.openai_compat import OpenAICompatibleProvider


def completion(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gemini-2.0-flash",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 4, "total_tokens": 16},
    }


class TestOpenAICompatibleProvider:
    """Chat completions against a mocked endpoint."""

    async def test_chat(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=completion("  こんにちは  "))

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = OpenAICompatibleProvider("gemini", api_key="key", http_client=http)

        response = await provider.chat("system", "안녕하세요", temperature=0.1)
        await provider.aclose()

        assert response.content == "こんにちは"
        assert response.input_tokens == 12
        assert response.output_tokens == 4
        assert response.model == "gemini-2.0-flash"
        assert response.finish_reason == "stop"
        assert not response.truncated

        request = requests[0]
        assert str(request.url).startswith(
            "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions"
        )
        payload = json.loads(request.content)
        assert payload["model"] == "gemini-2.0-flash"
        assert payload["messages"][1] == {"role": "user", "content": "안녕하세요"}
        assert payload["temperature"] == 0.1

    async def test_server_error_raises_without_retry(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={"error": {"message": "boom"}})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = OpenAICompatibleProvider("gemini", api_key="key", http_client=http)

        with pytest.raises(openai.APIStatusError):
            await provider.chat("system", "text")
        await provider.aclose()

        assert len(calls) == 1

    async def test_no_choices(self):
        body = completion("x")
        body["choices"] = []
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        )
        provider = OpenAICompatibleProvider("openrouter", api_key="key", http_client=http)

        with pytest.raises(ValueError, match="no choices"):
            await provider.chat("system", "text")
        await provider.aclose()


class TestFactory:
    """Provider creation."""

    def test_model_alias_resolution(self):
        provider = create_llm_provider("gemini", api_key="key")
        assert provider.name == "gemini"
        assert provider.model == "gemini-2.0-flash"

    def test_full_model_name_passthrough(self):
        provider = create_llm_provider(
            LLMProviderType.OPENROUTER, api_key="key", model="google/gemini-2.5-flash"
        )
        assert provider.model == "google/gemini-2.5-flash"

    def test_invalid_provider(self):
        with pytest.raises(ValueError, match="Invalid provider type"):
            create_llm_provider("claude-code", api_key="key")

    def test_missing_api_key(self):
        with pytest.raises(ValueError, match="requires an API key"):
            create_llm_provider("gemini", api_key="")
