"""Strata — incremental multi-strategy RAG indexing and query engine."""

__version__ = "0.1.0"
