"""
Shared fixtures: a stub LLM provider and an in-memory Notion API.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from publish_docs_ai.config import NotionConfig
from publish_docs_ai.llm.base import LLMProvider, LLMResponse
from publish_docs_ai.log import PACKAGE_LOGGER
from publish_docs_ai.notion import NotionClient


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ==================== LLM ====================


class StubProvider(LLMProvider):
    """Provider that answers from a function and records every user prompt."""

    def __init__(
        self,
        respond: Callable[[str], str] | None = None,
        *,
        fail: bool = False,
        delay: float = 0.0,
        finish_reason: str = "stop",
    ):
        self.respond = respond or (lambda text: f"{text} [T]")
        self.fail = fail
        self.delay = delay
        self.finish_reason = finish_reason
        self.calls: list[str] = []
        self.system_prompts: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    @property
    def model(self) -> str:
        return "stub-model"

    async def complete(self, messages, *, temperature=0.3, max_tokens=4096):
        self.system_prompts.append(messages[0]["content"])
        user = messages[-1]["content"]
        self.calls.append(user)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("provider unavailable")
        return LLMResponse(
            content=self.respond(user),
            model=self.model,
            finish_reason=self.finish_reason,
            latency_ms=1.0,
        )


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()


# ==================== Notion ====================


def rich_text(text: str, **annotations: bool) -> list[dict[str, Any]]:
    if not text:
        return []
    return [{"type": "text", "plain_text": text, "annotations": annotations, "href": None}]


def make_page(
    page_id: str,
    title: str,
    slug: str,
    *,
    status: str = "Ready to Publish",
    tags: tuple[str, ...] = (),
    date: str | None = "2024-05-01",
) -> dict[str, Any]:
    return {
        "object": "page",
        "id": page_id,
        "properties": {
            "Title": {"type": "title", "title": rich_text(title)},
            "Slug": {"type": "rich_text", "rich_text": rich_text(slug)},
            "Tags": {"type": "multi_select", "multi_select": [{"name": t} for t in tags]},
            "PublishedDate": {"type": "date", "date": {"start": date} if date else None},
            "Status": {"type": "select", "select": {"name": status} if status else None},
        },
    }


def block(block_type: str, text: str = "", block_id: str = "", **data: Any) -> dict[str, Any]:
    payload = {"rich_text": rich_text(text), **data}
    return {
        "object": "block",
        "id": block_id or f"{block_type}-{abs(hash(text)) % 10_000}",
        "type": block_type,
        "has_children": False,
        block_type: payload,
    }


class FakeNotion:
    """
    In-memory Notion database served through httpx.MockTransport.

    The database query applies the select/status ``equals`` filter it
    receives, so filtering is exercised end to end.
    """

    def __init__(self, pages: list[dict[str, Any]], blocks: dict[str, list[dict[str, Any]]]):
        self.pages = pages
        self.blocks = blocks
        self.page_size: int | None = None
        self.fail_query = False
        self.fail_update: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []

    def _matches(self, page: dict[str, Any], filter_: dict[str, Any]) -> bool:
        prop = page["properties"].get(filter_["property"]) or {}
        for kind in ("select", "status"):
            if kind in filter_:
                value = (prop.get(kind) or {}).get("name")
                return value == filter_[kind]["equals"]
        return True

    def _paginate(self, items: list[Any], cursor: str | None, size: int) -> dict[str, Any]:
        start = int(cursor or 0)
        end = start + size
        return {
            "object": "list",
            "results": items[start:end],
            "has_more": end < len(items),
            "next_cursor": str(end) if end < len(items) else None,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1/")

        if request.method == "POST" and path.endswith("/query"):
            if self.fail_query:
                return httpx.Response(401, json={"message": "API token is invalid."})
            payload = json.loads(request.content)
            matching = [p for p in self.pages if self._matches(p, payload.get("filter", {}))]
            size = self.page_size or payload.get("page_size", 100)
            return httpx.Response(
                200, json=self._paginate(matching, payload.get("start_cursor"), size)
            )

        if request.method == "GET" and path.startswith("blocks/"):
            block_id = path.split("/")[1]
            if block_id not in self.blocks:
                return httpx.Response(404, json={"message": f"Could not find block {block_id}"})
            size = self.page_size or int(request.url.params.get("page_size", 100))
            return httpx.Response(
                200,
                json=self._paginate(
                    self.blocks[block_id], request.url.params.get("start_cursor"), size
                ),
            )

        if request.method == "PATCH" and path.startswith("pages/"):
            page_id = path.split("/")[1]
            if page_id in self.fail_update:
                return httpx.Response(409, json={"message": "Conflict occurred while saving."})
            properties = json.loads(request.content)["properties"]
            self.updates.append((page_id, properties))
            for page in self.pages:
                if page["id"] == page_id:
                    page["properties"].update(
                        {name: {"type": "select", **value} for name, value in properties.items()}
                    )
            return httpx.Response(200, json={"object": "page", "id": page_id})

        return httpx.Response(400, json={"message": f"Unexpected request {request.method} {path}"})

    def client(self, config: NotionConfig) -> NotionClient:
        http = httpx.AsyncClient(
            base_url=config.base_url,
            transport=httpx.MockTransport(self.handler),
        )
        return NotionClient(config, client=http)


@pytest.fixture
def notion_config() -> NotionConfig:
    return NotionConfig(api_key="secret_test", database_id="db123")
