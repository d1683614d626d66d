"""
Notion page properties to Document mapping.
"""

from __future__ import annotations

from typing import Any

from publish_docs_ai.config import NotionConfig
from publish_docs_ai.document import Document, FrontMatterValue
from publish_docs_ai.errors import RecordValidationError


def get_property_value(prop: dict[str, Any] | None) -> str | list[str]:
    """
    Plain value of a Notion property.

    title and rich_text yield their plain text, multi_select a list of option
    names, select/status the option name and date the start date. Unknown or
    missing properties yield "".
    """
    if not prop:
        return ""
    kind = prop.get("type")
    if kind in ("title", "rich_text"):
        return "".join(part.get("plain_text", "") for part in prop.get(kind) or [])
    if kind == "multi_select":
        return [option.get("name", "") for option in prop.get("multi_select") or []]
    if kind in ("select", "status"):
        return (prop.get(kind) or {}).get("name", "")
    if kind == "date":
        return (prop.get("date") or {}).get("start", "") or ""
    return ""


def _as_text(value: str | list[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_list(value: str | list[str]) -> list[str]:
    if isinstance(value, list):
        return [item for item in value if item]
    return [value] if value else []


def record_to_document(page: dict[str, Any], config: NotionConfig, language: str) -> Document:
    """
    Map a Notion page to a source-language Document without a body.

    Args:
        page: Page object from a database query.
        config: Notion settings naming the properties.
        language: Source language code.

    Returns:
        Document with title, slug, date and tags.

    Raises:
        RecordValidationError: If the title or slug is missing.
    """
    page_id = page.get("id", "")
    properties = page.get("properties", {})

    title = _as_text(get_property_value(properties.get(config.title_property)))
    slug = _as_text(get_property_value(properties.get(config.slug_property)))
    if not title or not slug:
        label = title or page_id
        raise RecordValidationError(f'"{label}" has no title or slug, skipping', page_id=page_id)

    front_matter: dict[str, FrontMatterValue] = {
        "date": _as_text(get_property_value(properties.get(config.date_property))),
        "tags": _as_list(get_property_value(properties.get(config.tags_property))),
    }
    return Document(
        title=title,
        slug=slug,
        language=language,
        front_matter=front_matter,
        page_id=page_id,
    )
