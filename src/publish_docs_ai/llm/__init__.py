"""
LLM provider abstraction layer.

Supports OpenAI-compatible chat endpoints:
- Gemini (default): Google's OpenAI-compatible endpoint
- OpenRouter: Pay-per-token access to many model vendors
"""

from publish_docs_ai.llm.base import LLMProvider, LLMResponse
from publish_docs_ai.llm.factory import LLMProviderType, create_llm_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMProviderType",
    "create_llm_provider",
]
