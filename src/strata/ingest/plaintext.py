"""Plain text chunker — fixed window with overlap."""

from __future__ import annotations

from strata.db.models import DocumentChunk
from strata.ingest.base import BaseChunker


class PlainTextChunker(BaseChunker):
    """Split plain text into fixed-size windows with overlap.

    Delegates entirely to ``BaseChunker._split_fixed_window()``.
    """

    def chunk(self, document_path: str, content: str, path: str = "") -> list[DocumentChunk]:
        if not content.strip():
            return []
        segments = self._split_fixed_window(content)
        return self._make_chunks(document_path, segments)
