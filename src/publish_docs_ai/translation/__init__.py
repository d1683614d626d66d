"""
Translation core for publish-docs-ai.

Provides:
- Span segmentation that isolates code and image markup from prose
- Fragment and title translation with degrade-to-original on failure
- Reassembly that restores the original whitespace skeleton
"""

from publish_docs_ai.translation.body import BodyTranslation, BodyTranslator
from publish_docs_ai.translation.reassembler import reassemble
from publish_docs_ai.translation.segmenter import Span, SpanKind, segment
from publish_docs_ai.translation.translator import (
    FragmentTranslator,
    TranslationResult,
    strip_wrapping_quotes,
)

__all__ = [
    "BodyTranslation",
    "BodyTranslator",
    "FragmentTranslator",
    "Span",
    "SpanKind",
    "TranslationResult",
    "reassemble",
    "segment",
    "strip_wrapping_quotes",
]
