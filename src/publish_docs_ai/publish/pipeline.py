"""
LangGraph-based publishing pipeline.

One graph run per document:
render -> write_source -> translate -> write_targets -> update_status

Any stage may route to the error node. The status update is the last action
and only happens when every artifact of the document was written.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, TypedDict

from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, StateGraph

from publish_docs_ai.database import Database, Publication
from publish_docs_ai.document import Document
from publish_docs_ai.errors import RecordValidationError, StatusUpdateError
from publish_docs_ai.export import HugoExporter
from publish_docs_ai.notion import MarkdownRenderer, NotionClient, record_to_document
from publish_docs_ai.translation import BodyTranslator, FragmentTranslator

logger = logging.getLogger(__name__)


class PublishStage(str, Enum):
    """Per-document pipeline stages."""

    INIT = "init"
    RENDER = "render"
    WRITE_SOURCE = "write_source"
    TRANSLATE = "translate"
    WRITE_TARGETS = "write_targets"
    UPDATE_STATUS = "update_status"
    COMPLETE = "complete"
    ERROR = "error"


class PublishState(TypedDict):
    """State for one document's pipeline run."""

    # Document info
    page_id: str
    slug: str
    title: str
    front_matter: dict[str, Any]

    # Configuration
    source_lang: str
    target_langs: list[str]

    # Progress tracking
    current_stage: PublishStage
    source_body: str

    # Per language: title, body, fragments_total, fragments_degraded, title_degraded
    translations: dict[str, dict[str, Any]]

    # Results
    written: Annotated[list[str], operator.add]
    status_updated: bool

    # Error handling
    errors: Annotated[list[dict[str, Any]], operator.add]


@dataclass
class ProgressInfo:
    """Progress information for callbacks."""

    stage: str
    stage_display: str
    slug: str
    detail: str | None = None


ProgressCallback = Callable[[ProgressInfo], None] | None


@dataclass
class PipelineConfig:
    """Configuration for the publishing pipeline."""

    source_lang: str = "ko"
    target_langs: list[str] = field(default_factory=lambda: ["ja"])
    # Write artifacts but leave the Notion status untouched
    dry_run: bool = False


@dataclass
class PublishResult:
    """Outcome of one document."""

    slug: str
    title: str
    page_id: str = ""
    stage: PublishStage = PublishStage.INIT
    written: list[str] = field(default_factory=list)
    fragments_degraded: dict[str, int] = field(default_factory=dict)
    status_updated: bool = False
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.stage is PublishStage.COMPLETE


@dataclass
class RunSummary:
    """Outcome of a whole run."""

    found: int = 0
    skipped: int = 0
    results: list[PublishResult] = field(default_factory=list)

    @property
    def published(self) -> int:
        return sum(1 for r in self.results if r.status_updated)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.succeeded)


class PublishPipeline:
    """
    Publishes ready Notion pages as multilingual Hugo content.

    Documents are processed strictly one after another; every document runs
    inside its own error boundary.
    """

    def __init__(
        self,
        db: Database,
        notion: NotionClient,
        renderer: MarkdownRenderer,
        exporter: HugoExporter,
        translator: FragmentTranslator,
        config: PipelineConfig,
        *,
        concurrent_fragments: int = 1,
    ):
        """
        Initialize publishing pipeline.

        Args:
            db: Run log database.
            notion: Notion client (query, block tree, status update).
            renderer: Block tree to markdown renderer.
            exporter: Writer for Hugo artifacts.
            translator: Fragment and title translator.
            config: Pipeline configuration.
            concurrent_fragments: Fragments translated in parallel per document.
        """
        self.db = db
        self.notion = notion
        self.renderer = renderer
        self.exporter = exporter
        self.translator = translator
        self.body_translator = BodyTranslator(translator, concurrent_fragments)
        self.config = config

        self._graph = self._build_graph()
        self._checkpointer = MemorySaver()
        self._progress_callback: ProgressCallback = None

    def _build_graph(self) -> StateGraph:
        """Build the LangGraph workflow."""
        workflow = StateGraph(PublishState)

        workflow.add_node("render", self._node_render)
        workflow.add_node("write_source", self._node_write_source)
        workflow.add_node("translate", self._node_translate)
        workflow.add_node("write_targets", self._node_write_targets)
        workflow.add_node("update_status", self._node_update_status)
        workflow.add_node("error", self._node_error)

        workflow.set_entry_point("render")

        sequence = ["render", "write_source", "translate", "write_targets", "update_status"]
        for current, following in zip(sequence, sequence[1:]):
            workflow.add_conditional_edges(
                current,
                self._route,
                {"next": following, "error": "error"},
            )
        workflow.add_conditional_edges(
            "update_status",
            self._route,
            {"next": END, "error": "error"},
        )
        workflow.add_edge("error", END)

        return workflow

    def _route(self, state: PublishState) -> str:
        """Continue unless the last node failed."""
        if state["current_stage"] == PublishStage.ERROR:
            return "error"
        return "next"

    def _report_progress(
        self, stage: str, stage_display: str, slug: str, detail: str | None = None
    ) -> None:
        """Report progress via callback if set."""
        if self._progress_callback:
            self._progress_callback(
                ProgressInfo(stage=stage, stage_display=stage_display, slug=slug, detail=detail)
            )

    def _log(
        self,
        level: str,
        stage: str,
        message: str,
        slug: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Log to the package logger and the run log table."""
        logger.log(logging.getLevelName(level), message)
        self.db.log(level=level, stage=stage, message=message, slug=slug, context=context)

    def _source_document(self, state: PublishState) -> Document:
        return Document(
            title=state["title"],
            slug=state["slug"],
            language=state["source_lang"],
            body=state["source_body"],
            front_matter=state["front_matter"],
            page_id=state["page_id"],
        )

    def _record_publication(
        self,
        state: PublishState,
        language: str,
        output_path: str,
        fragments_total: int = 0,
        fragments_degraded: int = 0,
    ) -> None:
        self.db.add_publication(
            Publication(
                run_id=self.db.run_id,
                page_id=state["page_id"],
                slug=state["slug"],
                language=language,
                output_path=output_path,
                fragments_total=fragments_total,
                fragments_degraded=fragments_degraded,
            )
        )

    # ==================== Nodes ====================

    async def _node_render(self, state: PublishState) -> dict[str, Any]:
        """Fetch the page's blocks and render the source body."""
        slug = state["slug"]
        self._report_progress("render", "Rendering markdown", slug)

        try:
            blocks = await self.notion.fetch_block_tree(state["page_id"])
            body = (await self.renderer.render(blocks)).strip()
        except Exception as e:
            return {
                "current_stage": PublishStage.ERROR,
                "errors": [{"stage": "render", "error": str(e)}],
            }

        return {"source_body": body, "current_stage": PublishStage.WRITE_SOURCE}

    async def _node_write_source(self, state: PublishState) -> dict[str, Any]:
        """Write the source-language artifact before any translation."""
        slug = state["slug"]
        self._report_progress("write_source", "Writing source artifact", slug)

        try:
            result = self.exporter.export(self._source_document(state))
        except Exception as e:
            return {
                "current_stage": PublishStage.ERROR,
                "errors": [
                    {"stage": "write_source", "language": state["source_lang"], "error": str(e)}
                ],
            }

        self._record_publication(state, state["source_lang"], str(result.output_path))
        self._log(
            "INFO",
            "write_source",
            f"Saved {state['source_lang']} artifact: {result.output_path}",
            slug=slug,
        )
        return {"written": [str(result.output_path)], "current_stage": PublishStage.TRANSLATE}

    async def _node_translate(self, state: PublishState) -> dict[str, Any]:
        """Translate title and body into every target language."""
        slug = state["slug"]
        translations: dict[str, dict[str, Any]] = {}
        errors: list[dict[str, Any]] = []

        for language in state["target_langs"]:
            self._report_progress("translate", "Translating", slug, detail=language)
            try:
                title = await self.translator.translate_title(state["title"], language)
                body = await self.body_translator.translate_body(state["source_body"], language)
            except Exception as e:
                # Other languages are still translated and written
                errors.append({"stage": "translate", "language": language, "error": str(e)})
                continue

            translations[language] = {
                "title": title.text,
                "title_degraded": title.degraded,
                "body": body.body,
                "fragments_total": body.fragments_total,
                "fragments_degraded": body.fragments_degraded,
            }

            level = "WARNING" if body.fragments_degraded or title.degraded else "INFO"
            self._log(
                level,
                "translate",
                f"Translated to {language}: "
                f"{body.fragments_total - body.fragments_degraded}/{body.fragments_total} fragments"
                + (", title kept in source language" if title.degraded else ""),
                slug=slug,
                context={
                    "language": language,
                    "fragments_total": body.fragments_total,
                    "fragments_degraded": body.fragments_degraded,
                    "title_degraded": title.degraded,
                },
            )

        return {
            "translations": translations,
            "errors": errors,
            "current_stage": PublishStage.WRITE_TARGETS,
        }

    async def _node_write_targets(self, state: PublishState) -> dict[str, Any]:
        """Write each translated artifact independently."""
        slug = state["slug"]
        source = self._source_document(state)
        written: list[str] = []
        errors: list[dict[str, Any]] = []

        for language, data in state["translations"].items():
            self._report_progress("write_targets", "Writing translations", slug, detail=language)
            document = source.translated(data["title"], data["body"], language)
            try:
                result = self.exporter.export(document)
            except Exception as e:
                errors.append({"stage": "write_target", "language": language, "error": str(e)})
                continue

            written.append(str(result.output_path))
            self._record_publication(
                state,
                language,
                str(result.output_path),
                fragments_total=data["fragments_total"],
                fragments_degraded=data["fragments_degraded"],
            )
            self._log(
                "INFO",
                "write_target",
                f"Saved {language} artifact: {result.output_path}",
                slug=slug,
            )

        missing = [lang for lang in state["target_langs"] if lang not in state["translations"]]
        complete = not errors and not missing
        return {
            "written": written,
            "errors": errors,
            "current_stage": PublishStage.UPDATE_STATUS if complete else PublishStage.ERROR,
        }

    async def _node_update_status(self, state: PublishState) -> dict[str, Any]:
        """Mark the Notion page as published."""
        slug = state["slug"]

        if self.config.dry_run:
            self._log("INFO", "update_status", "Dry run, status left unchanged", slug=slug)
            return {"current_stage": PublishStage.COMPLETE}

        self._report_progress("update_status", "Updating Notion status", slug)
        try:
            await self.notion.mark_published(state["page_id"])
        except StatusUpdateError as e:
            return {
                "current_stage": PublishStage.ERROR,
                "errors": [{"stage": "update_status", "error": str(e)}],
            }

        self._log("INFO", "update_status", f'"{state["title"]}" marked as published', slug=slug)
        return {"status_updated": True, "current_stage": PublishStage.COMPLETE}

    async def _node_error(self, state: PublishState) -> dict[str, Any]:
        """Log the document's errors; nothing written is rolled back."""
        for error in state.get("errors", []):
            self._log(
                "ERROR",
                error.get("stage", "unknown"),
                error.get("error", "Unknown error"),
                slug=state["slug"],
                context={k: v for k, v in error.items() if k not in ("stage", "error")} or None,
            )
        return {"current_stage": PublishStage.ERROR}

    # ==================== Entry points ====================

    async def process_document(
        self,
        document: Document,
        progress_callback: ProgressCallback = None,
    ) -> PublishResult:
        """
        Publish one document.

        Args:
            document: Source-language document (body is rendered from Notion).
            progress_callback: Optional callback for progress updates.

        Returns:
            PublishResult; errors are reported in it rather than raised.
        """
        self._progress_callback = progress_callback
        initial_state: PublishState = {
            "page_id": document.page_id,
            "slug": document.slug,
            "title": document.title,
            "front_matter": dict(document.front_matter),
            "source_lang": self.config.source_lang,
            "target_langs": list(self.config.target_langs),
            "current_stage": PublishStage.INIT,
            "source_body": document.body,
            "translations": {},
            "written": [],
            "status_updated": False,
            "errors": [],
        }

        self._log("INFO", "init", f'Processing "{document.title}"', slug=document.slug)

        result = PublishResult(slug=document.slug, title=document.title, page_id=document.page_id)
        try:
            app = self._graph.compile(checkpointer=self._checkpointer)
            thread_id = f"{self.db.run_id}:{document.page_id or document.slug}"
            config = {"configurable": {"thread_id": thread_id}}
            final_state = await app.ainvoke(initial_state, config)
        except Exception as e:
            self._log(
                "ERROR",
                "pipeline",
                f'Failed to process "{document.title}": {e}',
                slug=document.slug,
            )
            result.stage = PublishStage.ERROR
            result.errors.append({"stage": "pipeline", "error": str(e)})
            return result

        result.stage = final_state["current_stage"]
        result.written = list(final_state.get("written", []))
        result.status_updated = final_state.get("status_updated", False)
        result.errors = list(final_state.get("errors", []))
        result.fragments_degraded = {
            language: data["fragments_degraded"]
            for language, data in final_state.get("translations", {}).items()
        }
        return result

    async def run(self, progress_callback: ProgressCallback = None) -> RunSummary:
        """
        Publish every ready page.

        Raises:
            FetchError: If the ready-page query fails; nothing is processed.
        """
        self.db.new_run()
        pages = await self.notion.query_ready_pages()
        summary = RunSummary(found=len(pages))
        self._log("INFO", "query", f"Found {len(pages)} ready pages")

        for page in pages:
            try:
                document = record_to_document(page, self.notion.config, self.config.source_lang)
            except RecordValidationError as e:
                summary.skipped += 1
                self._log("WARNING", "validate", str(e), context={"page_id": e.page_id})
                continue

            summary.results.append(await self.process_document(document, progress_callback))

        self._log(
            "INFO",
            "summary",
            f"Run finished: {summary.published} published, {summary.failed} failed, "
            f"{summary.skipped} skipped",
        )
        return summary
