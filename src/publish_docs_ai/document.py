"""
Document model and Hugo front matter rendering.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any

import yaml

BOM = "\ufeff"
FRONT_MATTER_DELIMITER = "---"

FrontMatterValue = str | list[str]


@dataclass(frozen=True)
class Document:
    """
    One publishable document in one language.

    Instances are never mutated; a translation is a sibling built with
    ``translated``.
    """

    title: str
    slug: str
    language: str
    body: str = ""
    front_matter: dict[str, FrontMatterValue] = field(default_factory=dict)
    page_id: str = ""

    def translated(self, title: str, body: str, language: str) -> Document:
        """
        Sibling document with a new title, body and language.

        Byte order marks from model output are dropped from the title and the
        start of the body.
        """
        return replace(
            self,
            title=title.replace(BOM, ""),
            body=body.removeprefix(BOM),
            language=language,
            front_matter={
                key: list(value) if isinstance(value, list) else value
                for key, value in self.front_matter.items()
            },
        )

    @property
    def file_name(self) -> str:
        """Artifact file name, e.g. ``my-post.ja.md``."""
        return f"{self.slug}.{self.language}.md"

    def render_front_matter(self) -> str:
        lines = [FRONT_MATTER_DELIMITER, f"title: {_quote(self.title)}"]
        for key, value in self.front_matter.items():
            if isinstance(value, list):
                items = ", ".join(_quote(item) for item in value)
                lines.append(f"{key}: [{items}]")
            else:
                lines.append(f"{key}: {value}")
        lines.append(FRONT_MATTER_DELIMITER)
        return "\n".join(lines)

    def to_markdown(self) -> str:
        """Render the artifact: front matter, blank line, body."""
        return f"{self.render_front_matter()}\n\n{self.body}"


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def parse_markdown(text: str, *, slug: str, language: str) -> Document:
    """
    Parse an artifact written by ``Document.to_markdown``.

    Args:
        text: File content.
        slug: Slug of the document (taken from the file name).
        language: Language of the file.

    Returns:
        Document with front matter fields other than title preserved.

    Raises:
        ValueError: If the text has no front matter block or no title.
    """
    text = text.removeprefix(BOM)
    lines = text.split("\n")
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        raise ValueError("missing front matter")
    try:
        end = next(
            i for i, line in enumerate(lines[1:], start=1) if line.strip() == FRONT_MATTER_DELIMITER
        )
    except StopIteration:
        raise ValueError("unterminated front matter") from None

    meta: dict[str, Any] = yaml.safe_load("\n".join(lines[1:end])) or {}
    title = meta.pop("title", None)
    if not title:
        raise ValueError("front matter has no title")

    front_matter: dict[str, FrontMatterValue] = {}
    for key, value in meta.items():
        if isinstance(value, list):
            front_matter[str(key)] = [str(item) for item in value]
        else:
            front_matter[str(key)] = "" if value is None else str(value)

    body = "\n".join(lines[end + 1 :])
    # to_markdown separates front matter and body with one blank line
    body = body.removeprefix("\n")
    return Document(
        title=str(title),
        slug=slug,
        language=language,
        body=body,
        front_matter=front_matter,
    )
