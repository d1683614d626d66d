"""
Async Notion REST client.

Covers the three calls the publisher needs: query the database for ready
pages, read a page's block tree, and flip a page's status.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from publish_docs_ai.config import NotionConfig, StatusPropertyType
from publish_docs_ai.errors import FetchError, StatusUpdateError

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


def _error_message(response: httpx.Response) -> str:
    """Extract Notion's error message from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    return data.get("message") or response.reason_phrase


def status_of(page: dict[str, Any], config: NotionConfig) -> str:
    """Current status value of a Notion page ("" when unset)."""
    prop = page.get("properties", {}).get(config.status_property) or {}
    value = prop.get(config.status_type.value) or {}
    return value.get("name", "")


class NotionClient:
    """Thin async wrapper around the Notion API."""

    def __init__(self, config: NotionConfig, client: httpx.AsyncClient | None = None):
        """
        Initialize Notion client.

        Args:
            config: Notion section of the settings.
            client: Preconfigured HTTP client (tests pass one with a mock
                transport). Created from config when omitted.
        """
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )
        self._headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Notion-Version": config.api_version,
            "Content-Type": "application/json",
        }

    async def __aenter__(self) -> NotionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def ready_filter(self) -> dict[str, Any]:
        """Database query filter selecting pages in the ready state."""
        return {
            "property": self.config.status_property,
            self.config.status_type.value: {"equals": self.config.ready_value},
        }

    async def query_ready_pages(self) -> list[dict[str, Any]]:
        """
        Fetch every page whose status equals the ready value.

        Returns:
            Page objects, following pagination to the end.

        Raises:
            FetchError: If any query request fails.
        """
        pages: list[dict[str, Any]] = []
        payload: dict[str, Any] = {"filter": self.ready_filter(), "page_size": PAGE_SIZE}

        while True:
            try:
                response = await self._client.post(
                    f"databases/{self.config.database_id}/query",
                    json=payload,
                    headers=self._headers,
                )
            except httpx.HTTPError as e:
                raise FetchError(f"Notion query failed: {e}") from e

            if response.is_error:
                raise FetchError(f"Notion API error: {_error_message(response)}")

            data = response.json()
            pages.extend(data.get("results", []))
            if not data.get("has_more") or not data.get("next_cursor"):
                break
            payload["start_cursor"] = data["next_cursor"]

        ready = [page for page in pages if status_of(page, self.config) == self.config.ready_value]
        if len(ready) != len(pages):
            logger.warning("Dropped %d pages not in the ready state", len(pages) - len(ready))
        return ready

    async def list_children(self, block_id: str) -> list[dict[str, Any]]:
        """All direct children of a block or page."""
        children: list[dict[str, Any]] = []
        params: dict[str, Any] = {"page_size": PAGE_SIZE}

        while True:
            try:
                response = await self._client.get(
                    f"blocks/{block_id}/children",
                    params=params,
                    headers=self._headers,
                )
            except httpx.HTTPError as e:
                raise FetchError(f"Failed to read blocks of {block_id}: {e}") from e

            if response.is_error:
                raise FetchError(
                    f"Failed to read blocks of {block_id}: {_error_message(response)}"
                )
            data = response.json()
            children.extend(data.get("results", []))
            if not data.get("has_more") or not data.get("next_cursor"):
                return children
            params["start_cursor"] = data["next_cursor"]

    async def fetch_block_tree(self, block_id: str) -> list[dict[str, Any]]:
        """
        Read the full block tree below a page.

        Blocks with ``has_children`` get their children attached under a
        ``children`` key, recursively.
        """
        blocks = await self.list_children(block_id)
        for block in blocks:
            # child_page content belongs to another page
            if block.get("has_children") and block.get("type") != "child_page":
                block["children"] = await self.fetch_block_tree(block["id"])
        return blocks

    async def mark_published(self, page_id: str) -> None:
        """
        Set a page's status to the published value.

        Raises:
            StatusUpdateError: If the update request fails.
        """
        if self.config.status_type is StatusPropertyType.STATUS:
            value = {"status": {"name": self.config.published_value}}
        else:
            value = {"select": {"name": self.config.published_value}}

        try:
            response = await self._client.patch(
                f"pages/{page_id}",
                json={"properties": {self.config.status_property: value}},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise StatusUpdateError(f"Status update failed for {page_id}: {e}") from e

        if response.is_error:
            raise StatusUpdateError(
                f"Status update failed for {page_id}: {_error_message(response)}"
            )
