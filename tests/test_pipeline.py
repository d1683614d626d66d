"""
Tests for the LangGraph publishing pipeline.
"""

import pytest
from conftest import FakeNotion, StubProvider, block, make_page

from publish_docs_ai.database import Database
from publish_docs_ai.document import Document, parse_markdown
from publish_docs_ai.errors import FetchError, WriteError
from publish_docs_ai.export import HugoExporter
from publish_docs_ai.notion import MarkdownRenderer
from publish_docs_ai.publish import PipelineConfig, PublishPipeline, PublishStage
from publish_docs_ai.translation import FragmentTranslator


class FailingExporter(HugoExporter):
    """Exporter that cannot write some languages."""

    def __init__(self, content_dir, fail_languages):
        super().__init__(content_dir)
        self.fail_languages = set(fail_languages)
        self.order: list[str] = []

    def export(self, document: Document):
        if document.language in self.fail_languages:
            raise WriteError(f"disk full writing {document.language}")
        self.order.append(document.language)
        return super().export(document)


def code_block(code: str, language: str = "python") -> dict:
    data = block("code", language=language)
    data["code"]["rich_text"] = [{"type": "text", "plain_text": code}]
    return data


@pytest.fixture
def fake_notion() -> FakeNotion:
    return FakeNotion(
        [
            make_page("p1", "첫 번째 글", "first-post", tags=("hugo",)),
            make_page("p2", "발행된 글", "published-post", status="Published"),
        ],
        {
            "p1": [
                block("paragraph", "안녕하세요."),
                code_block("print('hi')"),
                block("paragraph", "끝."),
            ],
            "p2": [block("paragraph", "이미 발행됨")],
        },
    )


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "publish.db")
    yield database
    database.close()


def make_pipeline(
    db,
    notion,
    content_dir,
    *,
    provider=None,
    exporter=None,
    target_langs=("ja",),
    dry_run=False,
) -> PublishPipeline:
    return PublishPipeline(
        db=db,
        notion=notion,
        renderer=MarkdownRenderer(),
        exporter=exporter or HugoExporter(content_dir),
        translator=FragmentTranslator(provider or StubProvider()),
        config=PipelineConfig(source_lang="ko", target_langs=list(target_langs), dry_run=dry_run),
    )


class TestPublishRun:
    """Full runs against the fake Notion database."""

    async def test_publishes_ready_page(self, db, fake_notion, notion_config, tmp_path):
        content = tmp_path / "content"
        pipeline = make_pipeline(db, fake_notion.client(notion_config), content)

        summary = await pipeline.run()

        assert summary.found == 1
        assert summary.published == 1
        assert summary.failed == 0

        source = (content / "ko" / "posts" / "first-post.ko.md").read_text(encoding="utf-8")
        translated = (content / "ja" / "posts" / "first-post.ja.md").read_text(encoding="utf-8")
        assert source == (
            '---\ntitle: "첫 번째 글"\ndate: 2024-05-01\ntags: ["hugo"]\n---\n\n'
            "안녕하세요.\n\n```python\nprint('hi')\n```\n\n끝."
        )
        assert translated == (
            '---\ntitle: "첫 번째 글 [T]"\ndate: 2024-05-01\ntags: ["hugo"]\n---\n\n'
            "안녕하세요. [T]\n\n```python\nprint('hi')\n```\n\n끝. [T]"
        )
        assert fake_notion.updates == [("p1", {"Status": {"select": {"name": "Published"}}})]

    async def test_second_run_finds_nothing(self, db, fake_notion, notion_config, tmp_path):
        pipeline = make_pipeline(db, fake_notion.client(notion_config), tmp_path)

        await pipeline.run()
        summary = await pipeline.run()

        assert summary.found == 0
        assert len(fake_notion.updates) == 1

    async def test_multiple_target_languages(self, db, fake_notion, notion_config, tmp_path):
        pipeline = make_pipeline(
            db, fake_notion.client(notion_config), tmp_path, target_langs=("ja", "en")
        )

        summary = await pipeline.run()

        result = summary.results[0]
        assert result.stage is PublishStage.COMPLETE
        assert len(result.written) == 3
        assert (tmp_path / "en" / "posts" / "first-post.en.md").exists()

    async def test_fetch_error_propagates(self, db, fake_notion, notion_config, tmp_path):
        fake_notion.fail_query = True
        pipeline = make_pipeline(db, fake_notion.client(notion_config), tmp_path)

        with pytest.raises(FetchError):
            await pipeline.run()

    async def test_invalid_record_skipped(self, db, notion_config, tmp_path):
        fake = FakeNotion(
            [make_page("bad", "", "no-title"), make_page("good", "제목", "good-post")],
            {"good": [block("paragraph", "본문")]},
        )
        pipeline = make_pipeline(db, fake.client(notion_config), tmp_path)

        summary = await pipeline.run()

        assert summary.skipped == 1
        assert [r.slug for r in summary.results] == ["good-post"]
        warnings = db.get_logs(level="WARNING")
        assert any("no title or slug" in entry["message"] for entry in warnings)

    async def test_dry_run_leaves_status(self, db, fake_notion, notion_config, tmp_path):
        pipeline = make_pipeline(db, fake_notion.client(notion_config), tmp_path, dry_run=True)

        summary = await pipeline.run()

        assert summary.results[0].succeeded
        assert summary.published == 0
        assert fake_notion.updates == []
        assert (tmp_path / "ja" / "posts" / "first-post.ja.md").exists()


class TestFailureHandling:
    """Errors stay inside one document."""

    async def test_translation_failure_still_publishes(
        self, db, fake_notion, notion_config, tmp_path
    ):
        pipeline = make_pipeline(
            db, fake_notion.client(notion_config), tmp_path, provider=StubProvider(fail=True)
        )

        summary = await pipeline.run()

        result = summary.results[0]
        assert result.status_updated
        assert result.fragments_degraded == {"ja": 2}
        translated = parse_markdown(
            (tmp_path / "ja" / "posts" / "first-post.ja.md").read_text(encoding="utf-8"),
            slug="first-post",
            language="ja",
        )
        assert translated.title == "첫 번째 글"
        assert translated.body == "안녕하세요.\n\n```python\nprint('hi')\n```\n\n끝."

    async def test_target_write_failure_blocks_status(
        self, db, fake_notion, notion_config, tmp_path
    ):
        exporter = FailingExporter(tmp_path, fail_languages={"ja"})
        pipeline = make_pipeline(
            db,
            fake_notion.client(notion_config),
            tmp_path,
            exporter=exporter,
            target_langs=("ja", "en"),
        )

        summary = await pipeline.run()

        result = summary.results[0]
        assert result.stage is PublishStage.ERROR
        assert not result.status_updated
        assert fake_notion.updates == []
        # the other language is still written
        assert exporter.order == ["ko", "en"]
        assert result.errors[0]["language"] == "ja"
        assert any("disk full" in e["message"] for e in db.get_logs(level="ERROR"))

    async def test_source_write_failure_skips_translation(
        self, db, fake_notion, notion_config, tmp_path
    ):
        provider = StubProvider()
        exporter = FailingExporter(tmp_path, fail_languages={"ko"})
        pipeline = make_pipeline(
            db, fake_notion.client(notion_config), tmp_path, provider=provider, exporter=exporter
        )

        summary = await pipeline.run()

        assert summary.failed == 1
        assert provider.calls == []
        assert exporter.order == []
        assert fake_notion.updates == []

    async def test_render_failure_moves_to_next_document(self, db, notion_config, tmp_path):
        fake = FakeNotion(
            [make_page("missing", "깨진 글", "broken"), make_page("ok", "정상 글", "fine")],
            {"ok": [block("paragraph", "본문")]},
        )
        pipeline = make_pipeline(db, fake.client(notion_config), tmp_path)

        summary = await pipeline.run()

        assert [r.succeeded for r in summary.results] == [False, True]
        assert [page_id for page_id, _ in fake.updates] == ["ok"]
        assert not (tmp_path / "ko" / "posts" / "broken.ko.md").exists()

    async def test_status_update_failure_is_logged(
        self, db, fake_notion, notion_config, tmp_path
    ):
        fake_notion.fail_update.add("p1")
        pipeline = make_pipeline(db, fake_notion.client(notion_config), tmp_path)

        summary = await pipeline.run()

        result = summary.results[0]
        assert not result.status_updated
        assert result.errors[0]["stage"] == "update_status"
        # artifacts stay in place
        assert len(result.written) == 2
        assert (tmp_path / "ja" / "posts" / "first-post.ja.md").exists()


class TestRunLog:
    """Stage messages and artifacts land in DuckDB."""

    async def test_publications_recorded(self, db, fake_notion, notion_config, tmp_path):
        pipeline = make_pipeline(db, fake_notion.client(notion_config), tmp_path)

        await pipeline.run()

        publications = db.get_publications(slug="first-post")
        assert sorted(p.language for p in publications) == ["ja", "ko"]
        ja = next(p for p in publications if p.language == "ja")
        assert ja.fragments_total == 2
        assert ja.fragments_degraded == 0
        assert db.get_statistics()["artifacts"] == 2

    async def test_progress_callback(self, db, fake_notion, notion_config, tmp_path):
        pipeline = make_pipeline(db, fake_notion.client(notion_config), tmp_path)
        stages = []

        await pipeline.run(progress_callback=lambda info: stages.append(info.stage))

        assert stages == ["render", "write_source", "translate", "write_targets", "update_status"]
