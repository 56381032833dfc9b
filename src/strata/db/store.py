"""Vector store for one project: per-table add/search/delete/count.

Single interface for every vector table of a project. Operations are
individually atomic; nothing here spans a multi-call transaction.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path

from strata.db.connection import Database
from strata.db.migrations import run_migrations
from strata.db.models import SearchResult, VectorRecord
from strata.db.vectors import (
    LEGACY_TABLE,
    drop_vector_table,
    ensure_vector_table,
    get_dimensions,
    records_table_name,
    table_to_slug,
    vec_table_name,
)

ALL_CONTENT_TYPES = "all"


class VectorStore:
    """Data access layer over the per-project sqlite-vec database.

    Wraps an open sqlite3.Connection. Access is serialised with a lock so the
    parallel query fan-out can share one store.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open connection that has migrations applied."""
        self._conn = conn
        self._lock = threading.RLock()

    @classmethod
    def open(cls, db_path: Path | str) -> VectorStore:
        """Open (or create) the index database at *db_path* and run migrations."""
        conn = Database(db_path).connect()
        run_migrations(conn)
        return cls(conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table_ids(self) -> list[str]:
        """Return all logical table ids that currently hold (or held) vectors."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT table_id FROM vector_tables ORDER BY table_id"
            ).fetchall()
        return [r[0] for r in rows]

    def has_table(self, table_id: str) -> bool:
        with self._lock:
            return get_dimensions(self._conn, table_id) is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_vectors(self, records: list[VectorRecord], table_id: str = LEGACY_TABLE) -> None:
        """Insert *records* into *table_id*, creating the table on first write.

        A record whose id already exists replaces the stored row; this only
        happens when a previous run crashed between writing vectors and
        saving the manifest.
        """
        if not records:
            return

        with self._lock:
            slug = ensure_vector_table(self._conn, table_id, len(records[0].vector))
            records_table = records_table_name(slug)
            vec_table = vec_table_name(slug)

            for record in records:
                stale = self._conn.execute(
                    f"SELECT rowid FROM {records_table} WHERE id = ?", (record.id,)
                ).fetchone()
                if stale is not None:
                    self._conn.execute(f"DELETE FROM {vec_table} WHERE rowid = ?", (stale[0],))
                    self._conn.execute(f"DELETE FROM {records_table} WHERE rowid = ?", (stale[0],))

                cur = self._conn.execute(
                    f"""
                    INSERT INTO {records_table}
                        (id, document_path, text, chunk_index, content_type, metadata)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.document_path,
                        record.text,
                        record.chunk_index,
                        record.content_type,
                        json.dumps(record.metadata or {}),
                    ),
                )
                self._conn.execute(
                    f"INSERT INTO {vec_table}(rowid, embedding, content_type) VALUES (?, ?, ?)",
                    (cur.lastrowid, json.dumps(record.vector), record.content_type),
                )
            self._conn.commit()

    def delete_by_document(self, document_path: str, table_id: str = LEGACY_TABLE) -> int:
        """Delete every vector of *document_path* from *table_id*. Returns rows deleted."""
        with self._lock:
            if get_dimensions(self._conn, table_id) is None:
                return 0
            slug = table_to_slug(table_id)
            records_table = records_table_name(slug)
            rowids = [
                r[0]
                for r in self._conn.execute(
                    f"SELECT rowid FROM {records_table} WHERE document_path = ?",
                    (document_path,),
                ).fetchall()
            ]
            if not rowids:
                return 0
            placeholders = ",".join("?" * len(rowids))
            self._conn.execute(
                f"DELETE FROM {vec_table_name(slug)} WHERE rowid IN ({placeholders})", rowids
            )
            self._conn.execute(
                f"DELETE FROM {records_table} WHERE rowid IN ({placeholders})", rowids
            )
            self._conn.commit()
            return len(rowids)

    def clear_table(self, table_id: str = LEGACY_TABLE) -> None:
        """Drop *table_id* entirely; the next write recreates it."""
        with self._lock:
            drop_vector_table(self._conn, table_id)

    def clear_all(self) -> None:
        """Drop every vector table of the project (legacy and per-strategy)."""
        for table_id in self.table_ids():
            self.clear_table(table_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def search_by_vector(
        self,
        vector: list[float],
        table_id: str = LEGACY_TABLE,
        top_k: int = 10,
        min_score: float = 0.0,
        content_type: str = ALL_CONTENT_TYPES,
    ) -> list[SearchResult]:
        """Nearest-neighbour search in *table_id*, best match first.

        Score is cosine similarity clamped to [0, 1] (``1 - cosine distance``).
        Results under *min_score* are dropped after the k-NN step, so fewer
        than *top_k* results may come back.
        """
        with self._lock:
            if get_dimensions(self._conn, table_id) is None or top_k < 1:
                return []
            slug = table_to_slug(table_id)
            records_table = records_table_name(slug)

            sql = f"SELECT rowid, distance FROM {vec_table_name(slug)} WHERE embedding MATCH ? AND k = ?"
            params: list[object] = [json.dumps(vector), top_k]
            if content_type and content_type != ALL_CONTENT_TYPES:
                sql += " AND content_type = ?"
                params.append(content_type)
            sql += " ORDER BY distance"

            vec_rows = self._conn.execute(sql, params).fetchall()

            results: list[SearchResult] = []
            for vec_row in vec_rows:
                row = self._conn.execute(
                    f"""
                    SELECT id, document_path, text, chunk_index, content_type, metadata
                    FROM {records_table} WHERE rowid = ?
                    """,
                    (vec_row["rowid"],),
                ).fetchone()
                if row is None:
                    continue
                score = max(0.0, 1.0 - float(vec_row["distance"]))
                if score < min_score:
                    continue
                results.append(_row_to_result(row, score))
        return results

    def get_vector_count(self, table_id: str = LEGACY_TABLE) -> int:
        """Return the number of vectors stored in *table_id* (0 if it doesn't exist)."""
        with self._lock:
            if get_dimensions(self._conn, table_id) is None:
                return 0
            slug = table_to_slug(table_id)
            return self._conn.execute(
                f"SELECT COUNT(*) FROM {records_table_name(slug)}"
            ).fetchone()[0]

    def get_total_vector_count(self) -> int:
        """Return the number of vectors across every table of the project."""
        return sum(self.get_vector_count(t) for t in self.table_ids())


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_result(row: sqlite3.Row, score: float) -> SearchResult:
    return SearchResult(
        id=row["id"],
        document_path=row["document_path"],
        text=row["text"],
        score=score,
        chunk_index=row["chunk_index"],
        content_type=row["content_type"],
        metadata=json.loads(row["metadata"]) if row["metadata"] else {},
    )
