"""
LLM provider factory.

Creates the appropriate LLM provider based on configuration.
"""

from __future__ import annotations

from enum import Enum

from publish_docs_ai.llm.base import LLMProvider


class LLMProviderType(str, Enum):
    """Available LLM provider types."""

    GEMINI = "gemini"
    OPENROUTER = "openrouter"


def create_llm_provider(
    provider_type: LLMProviderType | str,
    *,
    api_key: str | None = None,
    model: str = "default",
    base_url: str | None = None,
    timeout: float = 120.0,
    max_retries: int = 1,
) -> LLMProvider:
    """
    Create an LLM provider instance.

    Args:
        provider_type: Type of provider to create (gemini or openrouter).
        api_key: API key for the provider.
        model: Model name or alias.
        base_url: Optional endpoint override.
        timeout: Request timeout in seconds.
        max_retries: Attempts per request.

    Returns:
        LLMProvider instance.

    Raises:
        ValueError: If provider_type is invalid or the API key is missing.

    Examples:
        provider = create_llm_provider("gemini", api_key="AIza...", model="default")
    """
    # Normalize provider type
    if isinstance(provider_type, str):
        provider_type = provider_type.lower().replace("_", "-")
        try:
            provider_type = LLMProviderType(provider_type)
        except ValueError:
            valid = [p.value for p in LLMProviderType]
            raise ValueError(
                f"Invalid provider type: {provider_type}. Valid options: {valid}"
            ) from None

    if not api_key:
        raise ValueError(f"{provider_type.value} provider requires an API key")

    from publish_docs_ai.llm.openai_compat import OpenAICompatibleProvider

    return OpenAICompatibleProvider(
        provider_type.value,
        api_key=api_key,
        model=model,
        base_url=base_url,
        timeout=timeout,
        max_retries=max_retries,
    )
