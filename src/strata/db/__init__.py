"""Strata vector storage layer."""

from strata.db.connection import Database
from strata.db.migrations import MIGRATIONS, run_migrations
from strata.db.models import DocumentChunk, SearchResult, VectorRecord, vector_record_id
from strata.db.store import VectorStore
from strata.db.vectors import LEGACY_TABLE, ensure_vector_table, strategy_table_id

__all__ = [
    "Database",
    "DocumentChunk",
    "LEGACY_TABLE",
    "MIGRATIONS",
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "ensure_vector_table",
    "run_migrations",
    "strategy_table_id",
    "vector_record_id",
]
