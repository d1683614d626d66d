"""
Code-preserving body translation.

segment -> translate each non-blank prose span -> reassemble.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from publish_docs_ai.translation.reassembler import reassemble
from publish_docs_ai.translation.segmenter import Span, segment
from publish_docs_ai.translation.translator import SupportsTranslate, TranslationResult

logger = logging.getLogger(__name__)


@dataclass
class BodyTranslation:
    """Translated body plus per-fragment bookkeeping."""

    body: str
    fragments_total: int = 0
    fragments_degraded: int = 0
    results: dict[int, TranslationResult] = field(default_factory=dict)

    @property
    def fully_translated(self) -> bool:
        return self.fragments_degraded == 0


class BodyTranslator:
    """Translates a markdown body while leaving code regions byte-identical."""

    def __init__(self, translator: SupportsTranslate, concurrent_fragments: int = 1):
        """
        Initialize body translator.

        Args:
            translator: Fragment translator (or any object with ``translate``).
            concurrent_fragments: Fragments in flight at once; 1 keeps calls
                strictly sequential.
        """
        self._translator = translator
        self._concurrency = max(1, concurrent_fragments)

    async def translate_body(self, body: str, target_language: str) -> BodyTranslation:
        """
        Translate the prose of a body.

        Args:
            body: Markdown body in the source language.
            target_language: Target language code.

        Returns:
            BodyTranslation with the reassembled body.
        """
        spans = segment(body)
        pending = [
            (index, span)
            for index, span in enumerate(spans)
            if not span.is_code and not span.is_blank
        ]

        if self._concurrency == 1:
            results = {}
            for index, span in pending:
                results[index] = await self._translator.translate(span.text, target_language)
        else:
            results = await self._translate_concurrently(pending, target_language)

        degraded = sum(1 for result in results.values() if result.degraded)
        if degraded:
            logger.warning(
                "%d of %d fragments left untranslated (%s)", degraded, len(pending), target_language
            )

        return BodyTranslation(
            body=reassemble(spans, results),
            fragments_total=len(pending),
            fragments_degraded=degraded,
            results=results,
        )

    async def _translate_concurrently(
        self, pending: list[tuple[int, Span]], target_language: str
    ) -> dict[int, TranslationResult]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run(span: Span) -> TranslationResult:
            async with semaphore:
                return await self._translator.translate(span.text, target_language)

        translated = await asyncio.gather(*(run(span) for _, span in pending))
        # gather preserves argument order, so results line up with span indexes
        return {index: result for (index, _), result in zip(pending, translated)}
