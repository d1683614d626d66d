"""
Notion block tree to markdown rendering.

Images are delegated to an async hook that receives an ImageDescriptor and
returns the markdown to emit, so downloading stays outside the renderer.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any

from publish_docs_ai.images import ImageDescriptor, remote_image_reference

logger = logging.getLogger(__name__)

ImageHook = Callable[[ImageDescriptor], Awaitable[str]]

INDENT = "    "
LIST_TYPES = {"bulleted_list_item", "numbered_list_item", "to_do"}
SKIPPED_TYPES = {"child_page", "child_database", "table_of_contents", "breadcrumb", "unsupported"}
LINK_TYPES = {"bookmark", "embed", "link_preview", "video", "file", "pdf", "audio"}


def render_rich_text(parts: list[dict[str, Any]]) -> str:
    """Render a Notion rich text array with its annotations."""
    rendered = []
    for part in parts:
        if part.get("type") == "equation":
            rendered.append(f"${part.get('equation', {}).get('expression', '')}$")
            continue
        rendered.append(_annotate(part.get("plain_text", ""), part))
    return "".join(rendered)


def _annotate(text: str, part: dict[str, Any]) -> str:
    if not text.strip():
        return text

    # Markers must hug the text, so surrounding spaces stay outside them
    core = text.strip()
    leading = text[: len(text) - len(text.lstrip())]
    trailing = text[len(text.rstrip()) :]

    annotations = part.get("annotations") or {}
    if annotations.get("code"):
        core = _inline_code(core)
    if annotations.get("bold"):
        core = f"**{core}**"
    if annotations.get("italic"):
        core = f"_{core}_"
    if annotations.get("strikethrough"):
        core = f"~~{core}~~"

    href = part.get("href")
    if href:
        core = f"[{core}]({href})"
    return f"{leading}{core}{trailing}"


def _inline_code(code: str) -> str:
    """Wrap code in a backtick delimiter longer than any backtick run it holds."""
    longest = max((len(run) for run in re.findall(r"`+", code)), default=0)
    if longest == 0:
        return f"`{code}`"
    delimiter = "`" * (longest + 1)
    return f"{delimiter} {code} {delimiter}"


def _indent(text: str) -> str:
    return "\n".join(INDENT + line if line else line for line in text.split("\n"))


class MarkdownRenderer:
    """Renders a block tree fetched by NotionClient.fetch_block_tree."""

    def __init__(self, image_hook: ImageHook | None = None):
        """
        Initialize renderer.

        Args:
            image_hook: Resolves image blocks to markdown. When omitted,
                images reference their remote URL.
        """
        self._image_hook = image_hook

    async def render(self, blocks: list[dict[str, Any]]) -> str:
        """
        Render blocks to a markdown body.

        Consecutive list items are separated by a single newline, every other
        block boundary by a blank line.
        """
        chunks: list[str] = []
        previous_type: str | None = None
        number = 0

        for block in blocks:
            block_type = block.get("type", "")
            if block_type == "numbered_list_item" and previous_type == block_type:
                number += 1
            else:
                number = 1

            rendered = await self._render_block(block, number)
            if rendered is None:
                continue

            if chunks:
                tight = block_type in LIST_TYPES and previous_type in LIST_TYPES
                chunks.append("\n" if tight else "\n\n")
            chunks.append(rendered)
            previous_type = block_type

        return "".join(chunks)

    async def _render_children(self, block: dict[str, Any]) -> str:
        children = block.get("children") or []
        if not children:
            return ""
        return await self.render(children)

    async def _render_block(self, block: dict[str, Any], number: int) -> str | None:
        block_type = block.get("type", "")
        data = block.get(block_type) or {}
        text = render_rich_text(data.get("rich_text", []))

        if block_type in SKIPPED_TYPES:
            return None

        if block_type == "paragraph":
            children = await self._render_children(block)
            if children:
                return f"{text}\n\n{_indent(children)}"
            # Empty paragraphs are Notion spacing
            return text or None

        if block_type in ("heading_1", "heading_2", "heading_3"):
            level = int(block_type[-1])
            return f"{'#' * level} {text}"

        if block_type in LIST_TYPES:
            if block_type == "bulleted_list_item":
                marker = "-"
            elif block_type == "numbered_list_item":
                marker = f"{number}."
            else:
                marker = "- [x]" if data.get("checked") else "- [ ]"
            children = await self._render_children(block)
            line = f"{marker} {text}"
            return f"{line}\n{_indent(children)}" if children else line

        if block_type == "toggle":
            children = await self._render_children(block)
            return f"<details>\n<summary>{text}</summary>\n\n{children}\n\n</details>"

        if block_type in ("quote", "callout"):
            if block_type == "callout":
                icon = (data.get("icon") or {}).get("emoji", "")
                text = f"{icon} {text}" if icon else text
            children = await self._render_children(block)
            content = f"{text}\n\n{children}" if children else text
            return "\n".join(f"> {line}" if line else ">" for line in content.split("\n"))

        if block_type == "code":
            language = data.get("language", "")
            if language == "plain text":
                language = ""
            code = "".join(part.get("plain_text", "") for part in data.get("rich_text", []))
            return f"```{language}\n{code}\n```"

        if block_type == "divider":
            return "---"

        if block_type == "equation":
            return f"$$\n{data.get('expression', '')}\n$$"

        if block_type == "image":
            descriptor = ImageDescriptor.from_block(block)
            if self._image_hook is None:
                return remote_image_reference(descriptor)
            return await self._image_hook(descriptor) or None

        if block_type in LINK_TYPES:
            url = data.get("url") or (data.get(data.get("type", ""), {}) or {}).get("url", "")
            caption = render_rich_text(data.get("caption", [])) or url
            return f"[{caption}]({url})" if url else None

        if block_type == "table":
            return self._render_table(block, data)

        if block_type in ("column_list", "column", "synced_block"):
            return await self._render_children(block) or None

        logger.debug("Skipping unsupported block type: %s", block_type)
        return None

    def _render_table(self, block: dict[str, Any], data: dict[str, Any]) -> str | None:
        rows = [
            [
                render_rich_text(cell).replace("|", "\\|")
                for cell in row.get("table_row", {}).get("cells", [])
            ]
            for row in block.get("children") or []
            if row.get("type") == "table_row"
        ]
        if not rows:
            return None

        width = max(len(row) for row in rows)
        rows = [row + [""] * (width - len(row)) for row in rows]
        if not data.get("has_column_header"):
            rows.insert(0, [""] * width)

        lines = [f"| {' | '.join(rows[0])} |", f"|{'|'.join(['---'] * width)}|"]
        lines.extend(f"| {' | '.join(row)} |" for row in rows[1:])
        return "\n".join(lines)
