"""Base chunker interface for all supported document types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from strata.db.models import DocumentChunk


class BaseChunker(ABC):
    """Abstract base for all chunkers.

    Subclasses implement ``chunk()`` and may use ``_split_fixed_window()``
    and ``_make_chunks()`` for the fixed-window fallback path.

    Token counting uses a 4-chars-per-token approximation; no external
    tokenizer dependency is required.
    """

    content_type = "text"

    def __init__(self, chunk_size: int = 512, overlap: float = 0.10) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not 0.0 <= overlap < 1.0:
            raise ValueError("overlap must be in [0.0, 1.0)")
        self.chunk_size = chunk_size
        self.overlap = overlap

    @abstractmethod
    def chunk(self, document_path: str, content: str, path: str = "") -> list[DocumentChunk]:
        """Split *content* into DocumentChunk objects for *document_path*.

        Args:
            document_path: Path of the document relative to the project's
                documents folder.
            content: Full decoded text of the document (ignored by chunkers
                that read binary formats from *path*).
            path: Absolute file path (used by binary readers / error messages).

        Returns:
            Ordered list of chunks with sequential ``chunk_index`` from 0.
        """

    @staticmethod
    def count_tokens(text: str) -> int:
        """Approximate token count: 4 characters ≈ 1 token."""
        return max(1, len(text) // 4)

    def _split_fixed_window(self, text: str) -> list[str]:
        """Split *text* into fixed-window segments with overlap.

        Window size = ``self.chunk_size * 4`` characters.
        Overlap     = ``self.overlap`` fraction of window size.
        Segments are stripped; empty segments are omitted.
        """
        if not text.strip():
            return []

        char_size = self.chunk_size * 4
        overlap_chars = int(char_size * self.overlap)
        step = max(1, char_size - overlap_chars)

        segments: list[str] = []
        pos = 0
        length = len(text)

        while pos < length:
            end = min(pos + char_size, length)
            segment = text[pos:end].strip()
            if segment:
                segments.append(segment)
            if end >= length:
                break
            pos += step

        return segments

    def _make_chunks(
        self,
        document_path: str,
        texts: list[str],
        metadata: dict[str, Any] | None = None,
    ) -> list[DocumentChunk]:
        """Convert a list of text strings into sequentially indexed chunks."""
        return [
            DocumentChunk(
                document_path=document_path,
                chunk_index=i,
                text=t,
                content_type=self.content_type,
                metadata=dict(metadata or {}),
            )
            for i, t in enumerate(texts)
        ]
