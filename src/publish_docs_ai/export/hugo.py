"""
Hugo content exporter.

Writes one artifact per document and language to
``<content_dir>/<lang>/<section>/<slug>.<lang>.md``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from publish_docs_ai.document import Document
from publish_docs_ai.errors import WriteError


@dataclass
class ExportResult:
    """Result of an export operation."""

    slug: str
    language: str
    output_path: Path
    bytes_written: int


class HugoExporter:
    """Writes Documents into per-language Hugo content directories."""

    def __init__(self, content_dir: Path, section: str = "posts") -> None:
        """
        Initialize the exporter.

        Args:
            content_dir: Hugo content root.
            section: Section directory below each language directory.
        """
        self.content_dir = Path(content_dir)
        self.section = section

    def language_dir(self, language: str) -> Path:
        return self.content_dir / language / self.section

    def output_path(self, document: Document) -> Path:
        """Where a document's artifact is written."""
        return self.language_dir(document.language) / self._sanitize_filename(document.file_name)

    def export(self, document: Document) -> ExportResult:
        """
        Write a document, overwriting any earlier artifact for the same slug.

        Raises:
            WriteError: If the directory or file cannot be written.
        """
        output_path = self.output_path(document)
        content = document.to_markdown()

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise WriteError(f"Could not write {output_path}: {e}") from e

        return ExportResult(
            slug=document.slug,
            language=document.language,
            output_path=output_path,
            bytes_written=len(content.encode("utf-8")),
        )

    def _sanitize_filename(self, name: str) -> str:
        """Sanitize filename for filesystem compatibility."""
        return "".join(c if c.isalnum() or c in "._-" else "_" for c in name)
