"""PDF chunker — page-based extraction via pypdf."""

from __future__ import annotations

import pypdf

from strata.db.models import DocumentChunk
from strata.ingest.base import BaseChunker


class PdfChunker(BaseChunker):
    """Extract text page-by-page with ``pypdf.PdfReader`` and window it.

    Pages that yield no text (scanned images, etc.) are skipped. The page
    count is recorded in every chunk's metadata.
    """

    def chunk(self, document_path: str, content: str, path: str = "") -> list[DocumentChunk]:
        """*content* is ignored; the PDF is read directly from *path*."""
        text, page_count = self._extract_text(path)
        if not text.strip():
            return []
        segments = self._split_fixed_window(text)
        return self._make_chunks(document_path, segments, metadata={"pageCount": page_count})

    @staticmethod
    def _extract_text(path: str) -> tuple[str, int]:
        reader = pypdf.PdfReader(path)
        parts: list[str] = []
        for page in reader.pages:
            stripped = (page.extract_text() or "").strip()
            if stripped:
                parts.append(stripped)
        return "\n\n".join(parts), len(reader.pages)
