"""
Fragment and title translation through an LLM provider.

Every call is isolated: a failure degrades to the original text instead of
propagating, so one bad fragment never aborts a document.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from publish_docs_ai.errors import TranslationError
from publish_docs_ai.llm.base import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "ko": "Korean",
    "ja": "Japanese",
    "en": "English",
    "zh": "Chinese",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
}


def language_name(code: str) -> str:
    """Human-readable language name for prompts."""
    return LANGUAGE_NAMES.get(code.lower(), code)


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of one translation call."""

    text: str
    source: str
    degraded: bool = False
    error: str | None = None
    model_used: str = ""
    latency_ms: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0

    @classmethod
    def degrade(cls, source: str, error: Exception) -> TranslationResult:
        """Result carrying the untouched source after a failed call."""
        return cls(
            text=source,
            source=source,
            degraded=True,
            error=f"{type(error).__name__}: {error}",
        )


class SupportsTranslate(Protocol):
    """Anything that can translate a single fragment."""

    async def translate(self, fragment: str, target_language: str) -> TranslationResult: ...


def strip_wrapping_quotes(text: str) -> str:
    """Remove one layer of double quotes wrapping the entire response."""
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


class FragmentTranslator:
    """
    Translates prose fragments and titles.

    The provider is injected, so the same translator works against Gemini,
    OpenRouter or a test stub.
    """

    def __init__(
        self,
        provider: LLMProvider,
        *,
        source_language: str = "ko",
        temperature: float = 0.3,
        max_tokens: int = 4096,
        timeout: float | None = 120.0,
    ):
        """
        Initialize fragment translator.

        Args:
            provider: LLM provider used for every call.
            source_language: Language code of the source documents.
            temperature: Sampling temperature.
            max_tokens: Maximum output tokens per call.
            timeout: Upper bound for one call in seconds; None disables it.
        """
        self._provider = provider
        self._source_language = source_language
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    async def translate(self, fragment: str, target_language: str) -> TranslationResult:
        """
        Translate one prose fragment.

        Args:
            fragment: Prose text, possibly with surrounding whitespace.
            target_language: Target language code.

        Returns:
            TranslationResult; degraded with the untrimmed fragment on failure.
        """
        return await self._translate(
            fragment,
            target_language,
            system_prompt=self._body_system_prompt(target_language),
            kind="fragment",
        )

    async def translate_title(self, title: str, target_language: str) -> TranslationResult:
        """Translate a document title as a single fragment."""
        return await self._translate(
            title,
            target_language,
            system_prompt=self._title_system_prompt(target_language),
            kind="title",
        )

    async def _translate(
        self,
        text: str,
        target_language: str,
        *,
        system_prompt: str,
        kind: str,
    ) -> TranslationResult:
        try:
            response = await self._call(text.strip(), system_prompt)
            if response.truncated:
                raise TranslationError(
                    f"{self._provider.name} stopped at max_tokens={self._max_tokens}"
                )
            translated = strip_wrapping_quotes(response.content.strip())
            if not translated:
                raise TranslationError(f"{self._provider.name} returned an empty translation")
        except Exception as e:
            logger.warning(
                "Translation of %s to %s failed, keeping original: %s | %r",
                kind,
                target_language,
                e,
                text,
            )
            return TranslationResult.degrade(text, e)

        return TranslationResult(
            text=translated,
            source=text,
            model_used=response.model,
            latency_ms=response.latency_ms,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )

    async def _call(self, text: str, system_prompt: str) -> LLMResponse:
        call = self._provider.chat(
            system_prompt=system_prompt,
            user_prompt=text,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if self._timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError:
            raise TranslationError(f"translation call timed out after {self._timeout}s") from None

    def _body_system_prompt(self, target_language: str) -> str:
        source_name = language_name(self._source_language)
        target_name = language_name(target_language)
        return f"""You translate fragments of a {source_name} blog post into {target_name}.
The fragment is markdown prose taken from between code blocks.

1. Preserve markdown markup exactly (headings, emphasis, lists, links, tables)
2. Keep URLs, file paths and identifiers unchanged
3. Do not add, drop or summarize content

Respond with only the translated text. Add no commentary, notes or surrounding quotes."""

    def _title_system_prompt(self, target_language: str) -> str:
        source_name = language_name(self._source_language)
        target_name = language_name(target_language)
        return (
            f"Translate the following {source_name} blog post title into {target_name}. "
            "Respond with only the translated title, nothing else, without surrounding quotes."
        )
