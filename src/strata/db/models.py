"""Domain models shared by the chunkers, the vector store and the query path."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DocumentChunk:
    document_path: str
    chunk_index: int
    text: str
    content_type: str = "text"
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorRecord:
    """One embedded chunk as written to a vector table.

    ``text`` always carries the original chunk text, whatever text the
    owning strategy actually embedded.
    """

    id: str
    document_path: str
    text: str
    vector: list[float]
    chunk_index: int
    content_type: str = "text"
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    id: str
    document_path: str
    text: str
    score: float
    chunk_index: int
    content_type: str = "text"
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "documentPath": self.document_path,
            "text": self.text,
            "score": self.score,
            "chunkIndex": self.chunk_index,
            "contentType": self.content_type,
            "metadata": self.metadata,
        }


def vector_record_id(project_id: str, relative_path: str, chunk_index: int) -> str:
    """Deterministic record id: ``{project_id}:{relative_path}:{chunk_index}``."""
    return f"{project_id}:{relative_path}:{chunk_index}"
