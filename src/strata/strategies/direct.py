"""Direct embedding strategy: embed chunk and query text unchanged."""

from __future__ import annotations

from strata.db.models import DocumentChunk
from strata.strategies.base import PreprocessedChunkMap, RetrievalStrategy


class DirectEmbeddingStrategy(RetrievalStrategy):
    id = "direct"
    name = "Direct Embedding"
    description = "Embeds the raw chunk text directly. Best for literal and semantic matching."

    def prepare_chunk_text(
        self, chunk: DocumentChunk, preprocessed: PreprocessedChunkMap | None = None
    ) -> str:
        return chunk.text

    def prepare_query_text(self, query: str) -> str:
        return query
