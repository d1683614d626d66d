"""
Notion content source.

Provides:
- An async REST client for the ready-page query, block trees and status updates
- Property mapping from Notion pages to Documents
- Block tree to markdown rendering
"""

from publish_docs_ai.notion.client import NotionClient, status_of
from publish_docs_ai.notion.markdown import MarkdownRenderer, render_rich_text
from publish_docs_ai.notion.properties import get_property_value, record_to_document

__all__ = [
    "MarkdownRenderer",
    "NotionClient",
    "get_property_value",
    "record_to_document",
    "render_rich_text",
    "status_of",
]
