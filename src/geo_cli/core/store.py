"""Persistence for citation intelligence, recommendations and content signals.

``MemoryStore`` backs tests and one-off runs; ``SQLiteStore`` keeps a local
database (``~/.geo-cli/intel.db`` by default). Both implement the natural-key
upsert and the delete-then-insert recommendation replacement.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Protocol

import structlog

from geo_cli.core.config import DEFAULT_DB_PATH
from geo_cli.core.errors import PersistenceFailure
from geo_cli.core.models import CitationIntelligence, Recommendation, Signal

logger = structlog.get_logger(__name__)


class CitationStore(Protocol):
    def upsert_intelligence(self, record: CitationIntelligence) -> CitationIntelligence: ...

    def replace_recommendation(
        self, intelligence_id: str, recommendation: Recommendation | None
    ) -> None: ...

    def get_intelligence(self, intelligence_id: str) -> CitationIntelligence | None: ...

    def list_intelligence(self, client_id: str | None = None) -> list[CitationIntelligence]: ...

    def list_recommendations(self, client_id: str | None = None) -> list[Recommendation]: ...

    def insert_signal_if_absent(self, signal: Signal) -> bool: ...

    def list_signals(self, client_id: str | None = None) -> list[Signal]: ...


def _url_key(record: CitationIntelligence) -> tuple[str, str]:
    return (record.source_answer_id or "", record.url)


# ── In-memory ─────────────────────────────────────────────────────────────────


class MemoryStore:
    """Dict-backed store with the same matching rules as :class:`SQLiteStore`."""

    def __init__(self) -> None:
        self.intelligence: dict[str, CitationIntelligence] = {}
        self.recommendations: dict[str, Recommendation] = {}
        self.signals: dict[tuple[str, str], Signal] = {}
        self._lock = threading.Lock()

    def _find(self, record: CitationIntelligence) -> CitationIntelligence | None:
        if record.citation_id:
            for existing in self.intelligence.values():
                if existing.citation_id == record.citation_id:
                    return existing
        key = _url_key(record)
        for existing in self.intelligence.values():
            if existing.citation_id is None and _url_key(existing) == key:
                return existing
        return None

    def upsert_intelligence(self, record: CitationIntelligence) -> CitationIntelligence:
        with self._lock:
            existing = self._find(record)
            if existing is not None:
                record = record.model_copy(update={"id": existing.id})
            self.intelligence[record.id] = record
            return record

    def replace_recommendation(
        self, intelligence_id: str, recommendation: Recommendation | None
    ) -> None:
        with self._lock:
            self.recommendations.pop(intelligence_id, None)
            if recommendation is not None:
                self.recommendations[intelligence_id] = recommendation.model_copy(
                    update={"intelligence_id": intelligence_id}
                )

    def get_intelligence(self, intelligence_id: str) -> CitationIntelligence | None:
        return self.intelligence.get(intelligence_id)

    def list_intelligence(self, client_id: str | None = None) -> list[CitationIntelligence]:
        with self._lock:
            records = list(self.intelligence.values())
        return [r for r in records if client_id is None or r.client_id == client_id]

    def list_recommendations(self, client_id: str | None = None) -> list[Recommendation]:
        with self._lock:
            recommendations = list(self.recommendations.values())
        return [r for r in recommendations if client_id is None or r.client_id == client_id]

    def insert_signal_if_absent(self, signal: Signal) -> bool:
        key = (signal.client_id, signal.normalized_url)
        with self._lock:
            if key in self.signals:
                return False
            self.signals[key] = signal
            return True

    def list_signals(self, client_id: str | None = None) -> list[Signal]:
        with self._lock:
            signals = list(self.signals.values())
        return [s for s in signals if client_id is None or s.client_id == client_id]


# ── SQLite ────────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS citation_intelligence (
    id TEXT PRIMARY KEY,
    citation_id TEXT,
    source_answer_id TEXT,
    client_id TEXT,
    url TEXT NOT NULL,
    payload TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_intel_citation
    ON citation_intelligence(citation_id) WHERE citation_id IS NOT NULL;
CREATE UNIQUE INDEX IF NOT EXISTS idx_intel_url_key
    ON citation_intelligence(COALESCE(source_answer_id, ''), url) WHERE citation_id IS NULL;
CREATE INDEX IF NOT EXISTS idx_intel_client ON citation_intelligence(client_id);

CREATE TABLE IF NOT EXISTS recommendations (
    id TEXT PRIMARY KEY,
    intelligence_id TEXT NOT NULL UNIQUE,
    client_id TEXT,
    payload TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS content_signals (
    id TEXT PRIMARY KEY,
    client_id TEXT NOT NULL,
    normalized_url TEXT NOT NULL,
    payload TEXT NOT NULL,
    UNIQUE (client_id, normalized_url)
);
"""


class SQLiteStore:
    """Local SQLite store. Every write runs in its own transaction."""

    def __init__(self, path: Path | str = DEFAULT_DB_PATH) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceFailure(f"Cannot open store at {self.path}: {exc}") from exc

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        with closing(sqlite3.connect(self.path)) as conn:
            with conn:
                yield conn

    def _find_id(self, conn: sqlite3.Connection, record: CitationIntelligence) -> str | None:
        if record.citation_id:
            row = conn.execute(
                "SELECT id FROM citation_intelligence WHERE citation_id = ?",
                (record.citation_id,),
            ).fetchone()
            if row:
                return row[0]
        source_answer_id, url = _url_key(record)
        row = conn.execute(
            "SELECT id FROM citation_intelligence "
            "WHERE citation_id IS NULL AND COALESCE(source_answer_id, '') = ? AND url = ?",
            (source_answer_id, url),
        ).fetchone()
        return row[0] if row else None

    def upsert_intelligence(self, record: CitationIntelligence) -> CitationIntelligence:
        try:
            with self._connect() as conn:
                existing_id = self._find_id(conn, record)
                if existing_id is not None:
                    record = record.model_copy(update={"id": existing_id})
                conn.execute(
                    "INSERT OR REPLACE INTO citation_intelligence "
                    "(id, citation_id, source_answer_id, client_id, url, payload) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        record.citation_id,
                        record.source_answer_id,
                        record.client_id,
                        record.url,
                        record.model_dump_json(),
                    ),
                )
        except sqlite3.Error as exc:
            logger.error("store_write_failed", table="citation_intelligence", error=str(exc))
            msg = f"Failed to save intelligence for {record.url}: {exc}"
            raise PersistenceFailure(msg) from exc
        return record

    def replace_recommendation(
        self, intelligence_id: str, recommendation: Recommendation | None
    ) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    "DELETE FROM recommendations WHERE intelligence_id = ?", (intelligence_id,)
                )
                if recommendation is not None:
                    rec = recommendation.model_copy(update={"intelligence_id": intelligence_id})
                    conn.execute(
                        "INSERT INTO recommendations (id, intelligence_id, client_id, payload) "
                        "VALUES (?, ?, ?, ?)",
                        (rec.id, intelligence_id, rec.client_id, rec.model_dump_json()),
                    )
        except sqlite3.Error as exc:
            logger.error("store_write_failed", table="recommendations", error=str(exc))
            raise PersistenceFailure(f"Failed to replace recommendation: {exc}") from exc

    def get_intelligence(self, intelligence_id: str) -> CitationIntelligence | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload FROM citation_intelligence WHERE id = ?", (intelligence_id,)
            ).fetchone()
        return CitationIntelligence.model_validate_json(row[0]) if row else None

    def list_intelligence(self, client_id: str | None = None) -> list[CitationIntelligence]:
        rows = self._select("citation_intelligence", client_id)
        return [CitationIntelligence.model_validate_json(r) for r in rows]

    def list_recommendations(self, client_id: str | None = None) -> list[Recommendation]:
        rows = self._select("recommendations", client_id)
        return [Recommendation.model_validate_json(r) for r in rows]

    def insert_signal_if_absent(self, signal: Signal) -> bool:
        try:
            with self._connect() as conn:
                cur = conn.execute(
                    "INSERT OR IGNORE INTO content_signals "
                    "(id, client_id, normalized_url, payload) VALUES (?, ?, ?, ?)",
                    (
                        signal.id,
                        signal.client_id,
                        signal.normalized_url,
                        signal.model_dump_json(exclude={"influence"}),
                    ),
                )
                return cur.rowcount == 1
        except sqlite3.Error as exc:
            logger.error("store_write_failed", table="content_signals", error=str(exc))
            raise PersistenceFailure(f"Failed to save signal {signal.url}: {exc}") from exc

    def list_signals(self, client_id: str | None = None) -> list[Signal]:
        rows = self._select("content_signals", client_id)
        return [Signal.model_validate_json(r) for r in rows]

    def _select(self, table: str, client_id: str | None) -> list[str]:
        # table names are module constants, never user input
        sql = f"SELECT payload FROM {table}"
        params: tuple[str, ...] = ()
        if client_id is not None:
            sql += " WHERE client_id = ?"
            params = (client_id,)
        with self._connect() as conn:
            return [row[0] for row in conn.execute(sql + " ORDER BY rowid", params)]
