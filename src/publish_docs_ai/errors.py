"""
Error taxonomy for the publishing run.

Only FetchError is fatal for a run; everything else is contained at the
document (or fragment) boundary.
"""

from __future__ import annotations


class PublishError(Exception):
    """Base class for publish-docs-ai errors."""


class FetchError(PublishError):
    """The content-source query failed or returned a non-success status."""


class RecordValidationError(PublishError):
    """A fetched record lacks a required field (title or slug)."""

    def __init__(self, message: str, page_id: str = ""):
        super().__init__(message)
        self.page_id = page_id


class TranslationError(PublishError):
    """A single fragment or title translation call failed."""


class WriteError(PublishError):
    """Writing an output artifact failed."""


class StatusUpdateError(PublishError):
    """The terminal status mutation on the source record failed."""
