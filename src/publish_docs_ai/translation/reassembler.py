"""
Recombine translated prose and untouched code into one body.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from publish_docs_ai.translation.segmenter import Span
from publish_docs_ai.translation.translator import TranslationResult


def reassemble(spans: Sequence[Span], translations: Mapping[int, TranslationResult]) -> str:
    """
    Rebuild a body from spans and per-span translations.

    Args:
        spans: Spans in original order.
        translations: Translation results keyed by span index.

    Returns:
        The body with only prose content replaced. Whitespace around each
        prose span is taken from the original span; spans without a
        successful translation are emitted verbatim.
    """
    parts: list[str] = []
    for index, span in enumerate(spans):
        result = translations.get(index)
        if span.is_code or result is None or result.degraded:
            parts.append(span.text)
        else:
            parts.append(f"{span.leading_whitespace}{result.text}{span.trailing_whitespace}")
    return "".join(parts)
