"""
OpenAI-compatible LLM provider.

Gemini and OpenRouter both expose the chat-completions API, so one
AsyncOpenAI-backed provider serves either endpoint.
"""

from __future__ import annotations

import asyncio
import time

import httpx
from openai import AsyncOpenAI

from publish_docs_ai.llm.base import LLMProvider, LLMResponse


class OpenAICompatibleProvider(LLMProvider):
    """
    Chat-completions provider for any OpenAI-compatible endpoint.

    Model aliases are resolved per endpoint, so "default" means a Gemini
    flash model on Gemini and a Claude model on OpenRouter.
    """

    BASE_URLS = {
        "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "openrouter": "https://openrouter.ai/api/v1",
    }

    MODELS = {
        "gemini": {
            "default": "gemini-2.0-flash",
            "fast": "gemini-2.0-flash-lite",
            "quality": "gemini-2.5-pro",
        },
        "openrouter": {
            "default": "anthropic/claude-sonnet-4.5",
            "fast": "anthropic/claude-3-haiku",
            "gemini": "google/gemini-2.0-flash-001",
        },
    }

    def __init__(
        self,
        provider_name: str,
        api_key: str,
        model: str = "default",
        base_url: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 1,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the provider.

        Args:
            provider_name: Endpoint family ("gemini" or "openrouter").
            api_key: API key for the endpoint.
            model: Model alias or full model name.
            base_url: Endpoint override; defaults to BASE_URLS[provider_name].
            timeout: Request timeout in seconds.
            max_retries: Attempts per request (1 means no retry).
            http_client: Custom HTTP client handed to the SDK.
        """
        self._name = provider_name
        self._model_name = self.MODELS.get(provider_name, {}).get(model, model)
        self._max_retries = max(1, max_retries)

        # Retries are handled here, not by the SDK
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or self.BASE_URLS[provider_name],
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    @property
    def name(self) -> str:
        """Provider name."""
        return self._name

    @property
    def model(self) -> str:
        """Resolved model name."""
        return self._model_name

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        """
        Generate a completion, retrying with backoff up to max_retries attempts.

        Raises:
            Exception: The last API or transport error once attempts run out.
        """
        start_time = time.perf_counter()
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.chat.completions.create(
                    model=self._model_name,
                    messages=messages,  # type: ignore[arg-type]
                    temperature=temperature,
                    max_tokens=max_tokens,
                )

                if not response.choices:
                    raise ValueError(f"{self._name} returned no choices")

                choice = response.choices[0]
                usage = response.usage
                return LLMResponse(
                    content=(choice.message.content or "").strip(),
                    model=self._model_name,
                    finish_reason=choice.finish_reason,
                    input_tokens=usage.prompt_tokens if usage else 0,
                    output_tokens=usage.completion_tokens if usage else 0,
                    latency_ms=(time.perf_counter() - start_time) * 1000,
                )

            except Exception as e:
                last_error = e
                if attempt < self._max_retries - 1:
                    await asyncio.sleep(2**attempt)

        raise last_error or RuntimeError(f"{self._name} request failed after retries")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
