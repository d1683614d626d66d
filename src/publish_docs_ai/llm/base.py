"""
Chat provider interface used by the translators.

FragmentTranslator only needs a system + user exchange and the reply text, so
providers implement ``complete`` and inherit ``chat``. Tests pass stub
providers through the same interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

# Finish reason reported when the reply hit the token limit
FINISH_LENGTH = "length"


@dataclass
class LLMResponse:
    """Reply to one chat exchange."""

    content: str
    model: str = ""
    finish_reason: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: float = 0.0

    @property
    def truncated(self) -> bool:
        """True when the provider cut the reply off at max_tokens."""
        return self.finish_reason == FINISH_LENGTH


class LLMProvider(ABC):
    """A chat-completions backend (Gemini, OpenRouter or a stub)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in log messages."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Resolved model name."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            messages: Message dicts with 'role' and 'content' keys.
            temperature: Sampling temperature.
            max_tokens: Upper bound on reply tokens.

        Raises:
            Exception: Any provider or transport failure. Callers degrade
                rather than retrying.
        """
        ...

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        return await self.complete(messages, temperature=temperature, max_tokens=max_tokens)

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None
