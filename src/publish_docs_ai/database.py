"""
DuckDB run log for publish-docs-ai.

Records stage messages and written artifacts for later inspection. Notion's
status property stays the only publication gate; nothing here decides what
gets published.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb


@dataclass
class Publication:
    """An artifact written during a run."""

    run_id: str
    page_id: str
    slug: str
    language: str
    output_path: str
    fragments_total: int = 0
    fragments_degraded: int = 0
    created_at: datetime | None = None


class Database:
    """DuckDB database wrapper for the publish run log."""

    _SCHEMA = """
    -- Processing log for audit trail
    CREATE TABLE IF NOT EXISTS processing_log (
        id INTEGER PRIMARY KEY,
        run_id VARCHAR NOT NULL,
        slug VARCHAR,
        stage VARCHAR NOT NULL,
        level VARCHAR NOT NULL,
        message TEXT NOT NULL,
        context JSON,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE SEQUENCE IF NOT EXISTS processing_log_id_seq START 1;

    -- Artifacts written per run and language
    CREATE TABLE IF NOT EXISTS publications (
        id INTEGER PRIMARY KEY,
        run_id VARCHAR NOT NULL,
        page_id VARCHAR,
        slug VARCHAR NOT NULL,
        language VARCHAR NOT NULL,
        output_path VARCHAR NOT NULL,
        fragments_total INTEGER DEFAULT 0,
        fragments_degraded INTEGER DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE SEQUENCE IF NOT EXISTS publications_id_seq START 1;

    CREATE INDEX IF NOT EXISTS idx_log_lookup ON processing_log(run_id, stage, level);
    CREATE INDEX IF NOT EXISTS idx_publications_slug ON publications(slug);
    """

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._run_id = str(uuid.uuid4())

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = duckdb.connect(str(self.db_path))
            self._conn.execute(self._SCHEMA)
        return self._conn

    @property
    def run_id(self) -> str:
        """Get current run ID."""
        return self._run_id

    def new_run(self) -> str:
        """Start a new run and return its ID."""
        self._run_id = str(uuid.uuid4())
        return self._run_id

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ==================== Logging ====================

    def log(
        self,
        level: str,
        stage: str,
        message: str,
        slug: str | None = None,
        context: dict | None = None,
    ) -> None:
        """Insert a log entry."""
        context_json = json.dumps(context, ensure_ascii=False, default=str) if context else None
        self.conn.execute(
            """
            INSERT INTO processing_log
            (id, run_id, slug, stage, level, message, context)
            VALUES (nextval('processing_log_id_seq'), ?, ?, ?, ?, ?, ?)
            """,
            [self._run_id, slug, stage, level, message, context_json],
        )

    def get_logs(
        self,
        run_id: str | None = None,
        level: str | None = None,
        slug: str | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Get log entries, newest first."""
        conditions = []
        params: list[Any] = []

        if run_id:
            conditions.append("run_id = ?")
            params.append(run_id)
        if level:
            conditions.append("level = ?")
            params.append(level.upper())
        if slug:
            conditions.append("slug = ?")
            params.append(slug)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        rows = self.conn.execute(
            f"""
            SELECT run_id, slug, stage, level, message, context, created_at
            FROM processing_log
            {where_clause}
            ORDER BY id DESC
            LIMIT ?
            """,
            [*params, limit],
        ).fetchall()

        return [
            {
                "run_id": row[0],
                "slug": row[1],
                "stage": row[2],
                "level": row[3],
                "message": row[4],
                "context": json.loads(row[5]) if row[5] else None,
                "created_at": row[6],
            }
            for row in rows
        ]

    # ==================== Publications ====================

    def add_publication(self, publication: Publication) -> int:
        """Record a written artifact."""
        result = self.conn.execute(
            """
            INSERT INTO publications
            (id, run_id, page_id, slug, language, output_path, fragments_total, fragments_degraded)
            VALUES (nextval('publications_id_seq'), ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            [
                publication.run_id or self._run_id,
                publication.page_id,
                publication.slug,
                publication.language,
                publication.output_path,
                publication.fragments_total,
                publication.fragments_degraded,
            ],
        ).fetchone()
        return result[0] if result else 0

    def get_publications(self, slug: str | None = None, limit: int = 50) -> list[Publication]:
        """Recorded artifacts, newest first."""
        where_clause = "WHERE slug = ?" if slug else ""
        params: list[Any] = [slug] if slug else []
        rows = self.conn.execute(
            f"""
            SELECT run_id, page_id, slug, language, output_path,
                   fragments_total, fragments_degraded, created_at
            FROM publications
            {where_clause}
            ORDER BY id DESC
            LIMIT ?
            """,
            [*params, limit],
        ).fetchall()
        return [
            Publication(
                run_id=row[0],
                page_id=row[1] or "",
                slug=row[2],
                language=row[3],
                output_path=row[4],
                fragments_total=row[5] or 0,
                fragments_degraded=row[6] or 0,
                created_at=row[7],
            )
            for row in rows
        ]

    def get_statistics(self) -> dict:
        """Totals for the CLI."""
        runs = self.conn.execute("SELECT COUNT(DISTINCT run_id) FROM publications").fetchone()
        artifacts = self.conn.execute("SELECT COUNT(*) FROM publications").fetchone()
        degraded = self.conn.execute(
            "SELECT COUNT(*) FROM publications WHERE fragments_degraded > 0"
        ).fetchone()
        errors = self.conn.execute(
            "SELECT COUNT(*) FROM processing_log WHERE level = 'ERROR'"
        ).fetchone()
        return {
            "runs": runs[0] if runs else 0,
            "artifacts": artifacts[0] if artifacts else 0,
            "partially_translated": degraded[0] if degraded else 0,
            "errors": errors[0] if errors else 0,
        }
