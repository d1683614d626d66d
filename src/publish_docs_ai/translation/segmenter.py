"""
Span segmentation for markdown bodies.

Splits a body into an ordered sequence of CODE spans (kept verbatim) and
PROSE spans (eligible for translation). Concatenating the spans' text always
reproduces the input exactly.

Recognized verbatim regions:
- fenced blocks opened and closed by ``` (an unclosed fence runs to the end)
- inline code delimited by a run of one or two backticks and closed by the
  next run of the same length, so ``echo `date` `` stays whole
- image markup: ![caption](target), where the caption may hold balanced or
  backslash-escaped brackets
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

FENCE = "```"
BACKTICK = "`"


class SpanKind(str, Enum):
    """Kind of body span."""

    CODE = "code"
    PROSE = "prose"


@dataclass(frozen=True)
class Span:
    """A typed slice of a document body."""

    kind: SpanKind
    text: str
    leading_whitespace: str = ""
    trailing_whitespace: str = ""

    @classmethod
    def code(cls, text: str) -> Span:
        return cls(SpanKind.CODE, text)

    @classmethod
    def prose(cls, text: str) -> Span:
        """Build a prose span, recording the whitespace around its content."""
        core = text.strip()
        if not core:
            return cls(SpanKind.PROSE, text, leading_whitespace=text)
        leading = text[: len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()) :]
        return cls(SpanKind.PROSE, text, leading, trailing)

    @property
    def is_code(self) -> bool:
        return self.kind is SpanKind.CODE

    @property
    def is_blank(self) -> bool:
        """True for prose spans that hold only whitespace."""
        return self.kind is SpanKind.PROSE and not self.text.strip()

    @property
    def content(self) -> str:
        """Text without the recorded surrounding whitespace."""
        if self.kind is SpanKind.CODE:
            return self.text
        end = len(self.text) - len(self.trailing_whitespace)
        return self.text[len(self.leading_whitespace) : end]


def _match_fence(body: str, start: int) -> int:
    """End offset of the fenced block opening at start."""
    close = body.find(FENCE, start + len(FENCE))
    if close == -1:
        return len(body)
    return close + len(FENCE)


def _backtick_run(body: str, start: int) -> int:
    end = start
    while end < len(body) and body[end] == BACKTICK:
        end += 1
    return end - start


def _match_inline_code(body: str, start: int) -> int | None:
    """End offset of an inline code span opening at start, if any."""
    width = _backtick_run(body, start)
    search = start + width
    while True:
        close = body.find(BACKTICK * width, search)
        if close == -1:
            return None
        run = _backtick_run(body, close)
        if run == width:
            return close + width
        search = close + run


def _match_image(body: str, start: int) -> int | None:
    """End offset of ![caption](target) opening at start, if any."""
    if not body.startswith("![", start):
        return None
    caption_end = start + 2
    depth = 0
    while caption_end < len(body):
        char = body[caption_end]
        if char == "\\":
            caption_end += 2
            continue
        if char == "\n":
            return None
        if char == "[":
            depth += 1
        elif char == "]":
            if depth == 0:
                break
            depth -= 1
        caption_end += 1
    if not body.startswith("](", caption_end):
        return None
    target_end = caption_end + 2
    while target_end < len(body) and body[target_end] not in ")\n":
        target_end += 1
    if target_end >= len(body) or body[target_end] != ")":
        return None
    return target_end + 1


def segment(body: str) -> list[Span]:
    """
    Split a markdown body into ordered CODE and PROSE spans.

    Args:
        body: Markdown body.

    Returns:
        Spans in document order; empty for an empty body.
    """
    spans: list[Span] = []
    prose_start = 0
    i = 0

    def flush_prose(end: int) -> None:
        if end > prose_start:
            spans.append(Span.prose(body[prose_start:end]))

    while i < len(body):
        end: int | None = None
        step = 1
        if body.startswith(FENCE, i):
            end = _match_fence(body, i)
        elif body[i] == BACKTICK:
            end = _match_inline_code(body, i)
            # An unmatched run is literal as a whole
            step = _backtick_run(body, i)
        elif body[i] == "!":
            end = _match_image(body, i)

        if end is None:
            i += step
            continue

        flush_prose(i)
        spans.append(Span.code(body[i:end]))
        i = prose_start = end

    flush_prose(len(body))
    return spans


def join_spans(spans: list[Span]) -> str:
    """Concatenate the original text of spans."""
    return "".join(span.text for span in spans)
