"""
Tests for the DuckDB run log.
"""

import pytest

from publish_docs_ai.database import Database, Publication


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "nested" / "run.db")
    yield database
    database.close()


class TestProcessingLog:
    """Stage messages."""

    def test_log_and_filter(self, db):
        db.log("INFO", "render", "rendered", slug="a")
        db.log("ERROR", "write_target", "disk full", slug="a", context={"language": "ja"})
        db.log("WARNING", "validate", "skipped")

        errors = db.get_logs(level="error")
        assert len(errors) == 1
        assert errors[0]["message"] == "disk full"
        assert errors[0]["context"] == {"language": "ja"}

        assert [e["stage"] for e in db.get_logs(slug="a")] == ["write_target", "render"]
        assert len(db.get_logs(limit=1)) == 1

    def test_runs_are_separated(self, db):
        first = db.run_id
        db.log("INFO", "query", "first run")
        second = db.new_run()
        db.log("INFO", "query", "second run")

        assert first != second
        assert [e["message"] for e in db.get_logs(run_id=first)] == ["first run"]
        assert [e["message"] for e in db.get_logs(run_id=second)] == ["second run"]


class TestPublications:
    """Written artifacts."""

    def test_add_and_list(self, db):
        db.add_publication(
            Publication(
                run_id=db.run_id,
                page_id="p1",
                slug="post",
                language="ko",
                output_path="/c/ko/posts/post.ko.md",
            )
        )
        db.add_publication(
            Publication(
                run_id=db.run_id,
                page_id="p1",
                slug="post",
                language="ja",
                output_path="/c/ja/posts/post.ja.md",
                fragments_total=4,
                fragments_degraded=1,
            )
        )
        db.log("ERROR", "update_status", "conflict", slug="post")

        publications = db.get_publications(slug="post")
        assert [p.language for p in publications] == ["ja", "ko"]
        assert publications[0].fragments_degraded == 1
        assert publications[0].created_at is not None
        assert db.get_publications(slug="other") == []

        assert db.get_statistics() == {
            "runs": 1,
            "artifacts": 2,
            "partially_translated": 1,
            "errors": 1,
        }

    def test_empty_statistics(self, db):
        assert db.get_statistics() == {
            "runs": 0,
            "artifacts": 0,
            "partially_translated": 0,
            "errors": 0,
        }
