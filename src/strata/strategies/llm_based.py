"""Base class for strategies that embed an LLM transformation of the chunk.

Subclasses provide a distinctive ``label`` and three prompts. The label is
how the strategy finds its line (``LABEL: value``) in the combined response
of the shared preprocessing call.
"""

from __future__ import annotations

import logging

from strata.db.models import DocumentChunk
from strata.rag.llm_client import Summarizer
from strata.strategies.base import (
    PreprocessedChunkMap,
    PreprocessingContributor,
    RetrievalStrategy,
)

logger = logging.getLogger(__name__)


class LabeledLLMStrategy(RetrievalStrategy, PreprocessingContributor):
    """Shared plumbing for keyword/summary style strategies.

    Falls back to the raw chunk (or query) text whenever the LLM fails, so a
    flaky provider degrades retrieval quality but never breaks indexing.
    """

    requires_llm = True

    label: str
    # Queries with at most this many words are embedded verbatim.
    query_word_threshold: int
    directive_prompt: str
    standalone_prompt: str
    query_prompt: str

    def __init__(self, summarizer: Summarizer, query_word_threshold: int | None = None) -> None:
        self._summarizer = summarizer
        if query_word_threshold is not None:
            self.query_word_threshold = int(query_word_threshold)

    # ------------------------------------------------------------------
    # Shared preprocessing contribution
    # ------------------------------------------------------------------

    def preprocessing_directive(self) -> str | None:
        return (
            f"{self.label}: {self.directive_prompt} "
            f'Output format: "{self.label}: <your output on a single line>"'
        )

    def extract_preprocessed_result(self, raw_response: str) -> str | None:
        prefix = f"{self.label}:"
        for line in raw_response.splitlines():
            stripped = line.strip()
            if stripped.upper().startswith(prefix):
                value = stripped[len(prefix):].strip()
                if value:
                    return value
        return None

    # ------------------------------------------------------------------
    # Strategy methods
    # ------------------------------------------------------------------

    def prepare_chunk_text(
        self, chunk: DocumentChunk, preprocessed: PreprocessedChunkMap | None = None
    ) -> str:
        if preprocessed and preprocessed.get(self.id):
            return preprocessed[self.id]

        try:
            transformed = self._summarizer.summarize(chunk.text, self.standalone_prompt).strip()
        except Exception as exc:
            logger.warning(
                "%s: chunk transformation failed for %s#%d, using raw text: %s",
                self.name, chunk.document_path, chunk.chunk_index, exc,
            )
            return chunk.text
        return transformed or chunk.text

    def prepare_query_text(self, query: str) -> str:
        if len(query.split()) <= self.query_word_threshold:
            return query

        try:
            transformed = self._summarizer.summarize(query, self.query_prompt).strip()
        except Exception as exc:
            logger.warning("%s: query transformation failed, using raw query: %s", self.name, exc)
            return query
        return transformed or query
