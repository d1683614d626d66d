"""
publish-docs-ai: Notion to multilingual Hugo publishing.

This package provides tools for:
- Querying a Notion database for pages marked ready to publish
- Rendering Notion block trees to markdown, with local image copies
- Code-preserving, fragment-level AI translation into target languages
- Writing per-language Hugo artifacts and marking pages as published
"""

__version__ = "0.1.0"
__author__ = "yharby"

from publish_docs_ai.config import Settings, load_config
from publish_docs_ai.database import Database, Publication
from publish_docs_ai.document import Document, parse_markdown
from publish_docs_ai.errors import (
    FetchError,
    PublishError,
    RecordValidationError,
    StatusUpdateError,
    TranslationError,
    WriteError,
)
from publish_docs_ai.export import HugoExporter
from publish_docs_ai.publish import PipelineConfig, PublishPipeline
from publish_docs_ai.translation import (
    BodyTranslator,
    FragmentTranslator,
    TranslationResult,
    reassemble,
    segment,
)

__all__ = [
    # Config
    "Settings",
    "load_config",
    # Database
    "Database",
    "Publication",
    # Documents
    "Document",
    "parse_markdown",
    "HugoExporter",
    # Errors
    "PublishError",
    "FetchError",
    "RecordValidationError",
    "TranslationError",
    "WriteError",
    "StatusUpdateError",
    # Translation
    "segment",
    "reassemble",
    "FragmentTranslator",
    "BodyTranslator",
    "TranslationResult",
    # Pipeline
    "PipelineConfig",
    "PublishPipeline",
]
