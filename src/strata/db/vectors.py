"""Per-table sqlite-vec storage management.

Each logical vector table (``vectors`` for legacy single-strategy projects,
``vectors_<strategy>`` otherwise) is backed by two SQLite tables:

  records_<slug>  — row data (record id, document path, original text, ...)
  vec_<slug>      — vec0 virtual table keyed by the same rowid
"""

from __future__ import annotations

import re
import sqlite3

LEGACY_TABLE = "vectors"


def strategy_table_id(strategy_id: str | None = None) -> str:
    """Return the logical table id for *strategy_id* (legacy table when None)."""
    if not strategy_id:
        return LEGACY_TABLE
    return f"{LEGACY_TABLE}_{strategy_id}"


def table_to_slug(table_id: str) -> str:
    """Convert a logical table id to a valid SQL identifier suffix.

    Examples:
        "vectors"         -> "vectors"
        "vectors_keyword" -> "vectors_keyword"
        "vectors_My-Strat" -> "vectors_my_strat"
    """
    return re.sub(r"[^a-z0-9]", "_", table_id.lower())


def records_table_name(slug: str) -> str:
    return f"records_{slug}"


def vec_table_name(slug: str) -> str:
    return f"vec_{slug}"


def get_dimensions(conn: sqlite3.Connection, table_id: str) -> int | None:
    """Return the registered dimensions of *table_id*, or None if it does not exist."""
    row = conn.execute(
        "SELECT dimensions FROM vector_tables WHERE table_id = ?", (table_id,)
    ).fetchone()
    return row[0] if row else None


def ensure_vector_table(conn: sqlite3.Connection, table_id: str, dimensions: int) -> str:
    """Create the record + vec0 tables for *table_id* if they don't exist yet.

    Args:
        conn: Active database connection (sqlite-vec loaded, migrations run).
        table_id: Logical table id (see strategy_table_id()).
        dimensions: Embedding vector dimensions.

    Returns:
        The sanitized slug used for the physical table names.

    Raises:
        ValueError: If *dimensions* is invalid or differs from the dimensions
            the table was created with.
    """
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    slug = table_to_slug(table_id)
    existing = get_dimensions(conn, table_id)
    if existing is not None:
        if existing != dimensions:
            raise ValueError(
                f"Table '{table_id}' stores {existing}-dimensional vectors, got {dimensions}. "
                "Re-index with --force after changing the embedding model."
            )
        return slug

    records = records_table_name(slug)
    vec = vec_table_name(slug)
    conn.executescript(
        f"""
        CREATE TABLE IF NOT EXISTS {records} (
            rowid         INTEGER PRIMARY KEY,
            id            TEXT NOT NULL UNIQUE,
            document_path TEXT NOT NULL,
            text          TEXT NOT NULL,
            chunk_index   INTEGER NOT NULL,
            content_type  TEXT NOT NULL DEFAULT 'text',
            metadata      TEXT NOT NULL DEFAULT '{{}}'
        );
        CREATE INDEX IF NOT EXISTS idx_{records}_document ON {records}(document_path);
        CREATE VIRTUAL TABLE IF NOT EXISTS {vec} USING vec0(
            embedding float[{dimensions}] distance_metric=cosine,
            content_type text
        );
        """
    )
    conn.execute(
        "INSERT INTO vector_tables (table_id, dimensions) VALUES (?, ?)",
        (table_id, dimensions),
    )
    conn.commit()
    return slug


def drop_vector_table(conn: sqlite3.Connection, table_id: str) -> None:
    """Drop the physical tables behind *table_id* and unregister it."""
    slug = table_to_slug(table_id)
    conn.execute(f"DROP TABLE IF EXISTS {vec_table_name(slug)}")
    conn.execute(f"DROP TABLE IF EXISTS {records_table_name(slug)}")
    conn.execute("DELETE FROM vector_tables WHERE table_id = ?", (table_id,))
    conn.commit()
