"""
Image handling for Notion image blocks.

``image_reference`` is a pure function from an image descriptor to the local
markdown reference; ``ImageDownloader`` fetches each image once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlparse

import httpx

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"
# Kept as-is in remote image URLs; whitespace and parentheses are encoded
URL_SAFE_CHARACTERS = "/:?#@!$&'*+,;=%~[]"


@dataclass(frozen=True)
class ImageDescriptor:
    """An image embedded in a Notion page."""

    block_id: str
    url: str
    caption: str = ""

    @classmethod
    def from_block(cls, block: dict) -> ImageDescriptor:
        """Build a descriptor from a Notion ``image`` block."""
        image = block.get("image", {})
        source = image.get(image.get("type", "external"), {}) or {}
        caption = "".join(part.get("plain_text", "") for part in image.get("caption", []))
        return cls(block_id=block.get("id", ""), url=source.get("url", ""), caption=caption)


def local_image_name(descriptor: ImageDescriptor) -> str:
    """Stable file name for an image: block id plus the URL's extension."""
    extension = Path(urlparse(descriptor.url).path).suffix or DEFAULT_EXTENSION
    return f"{descriptor.block_id}{extension}"


def image_alt_text(caption: str) -> str:
    """
    Caption as markdown alt text.

    Whitespace runs (newlines included) collapse to one space and brackets
    are escaped, so the markup always reads as a single image reference.
    """
    text = " ".join(caption.split())
    return text.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def image_reference(descriptor: ImageDescriptor, url_prefix: str) -> str:
    """Markdown that points at the local copy of an image."""
    target = f"{url_prefix.rstrip('/')}/{local_image_name(descriptor)}"
    return f"![{image_alt_text(descriptor.caption)}]({target})"


def remote_image_reference(descriptor: ImageDescriptor) -> str:
    """Markdown that points at the image's original URL."""
    target = quote(descriptor.url, safe=URL_SAFE_CHARACTERS)
    return f"![{image_alt_text(descriptor.caption)}]({target})"


class ImageDownloader:
    """Downloads Notion images into the static images directory."""

    def __init__(
        self,
        images_dir: Path,
        url_prefix: str = "/images/posts",
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        """
        Initialize image downloader.

        Args:
            images_dir: Directory the images are written to.
            url_prefix: Site-relative URL of images_dir.
            client: Shared HTTP client; one is created when omitted.
            timeout: Download timeout in seconds.
        """
        self.images_dir = Path(images_dir)
        self.url_prefix = url_prefix
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def __aenter__(self) -> ImageDownloader:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def __call__(self, descriptor: ImageDescriptor) -> str:
        """
        Fetch an image (once) and return its local markdown reference.

        Returns an empty string when the image cannot be fetched, so a broken
        image never blocks the document.
        """
        if not descriptor.url:
            logger.warning("Image block %s has no URL, skipping", descriptor.block_id)
            return ""

        target = self.images_dir / local_image_name(descriptor)
        if target.exists():
            logger.debug("Image already downloaded: %s", target.name)
            return image_reference(descriptor, self.url_prefix)

        partial = target.with_name(target.name + ".part")
        try:
            self.images_dir.mkdir(parents=True, exist_ok=True)
            async with self._get_client().stream("GET", descriptor.url) as response:
                response.raise_for_status()
                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
            partial.replace(target)
        except (httpx.HTTPError, OSError) as e:
            logger.error("Image download failed (URL: %s): %s", descriptor.url, e)
            partial.unlink(missing_ok=True)
            return ""

        logger.info("Downloaded image: %s", target.name)
        return image_reference(descriptor, self.url_prefix)
