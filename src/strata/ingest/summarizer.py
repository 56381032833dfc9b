"""Document and collection summaries generated through the Summarizer.

Both summaries are best-effort: a failed call is logged and ``None`` is
returned so indexing carries on without the summary.
"""

from __future__ import annotations

import logging

from strata.db.models import DocumentChunk
from strata.errors import SummaryGenerationError
from strata.rag.llm_client import Summarizer

logger = logging.getLogger(__name__)

_DOCUMENT_PROMPT = (
    "Summarize this document content in 1-2 sentences. "
    "Focus on the main topics and key information."
)
_COLLECTION_PROMPT = (
    "Write a 1-sentence summary (max 50 words) of what this document collection covers. "
    "Be concise and specific."
)

# Only the opening of a document goes into its summary
SUMMARY_CHUNK_LIMIT = 10


class DocumentSummarizer:
    """Generate per-document and per-collection summaries.

    Args:
        summarizer: LLM collaborator used for both summary kinds.
    """

    def __init__(self, summarizer: Summarizer) -> None:
        self._summarizer = summarizer

    def summarize_document(self, relative_path: str, chunks: list[DocumentChunk]) -> str | None:
        """Summarize the first chunks of a document. Returns None on failure."""
        if not chunks:
            return None
        text = "\n\n".join(c.text for c in chunks[:SUMMARY_CHUNK_LIMIT])
        try:
            return self._generate(text, _DOCUMENT_PROMPT)
        except SummaryGenerationError as exc:
            logger.warning("Failed to summarize %s: %s", relative_path, exc)
            return None

    def summarize_collection(self, summaries: dict[str, str]) -> str | None:
        """Summarize a collection from ``{document name: summary}``. Returns None on failure."""
        lines = [f"**{name}**: {summary}" for name, summary in summaries.items() if summary]
        if not lines:
            return None
        try:
            return self._generate("\n".join(lines), _COLLECTION_PROMPT)
        except SummaryGenerationError as exc:
            logger.warning("Failed to generate collection summary: %s", exc)
            return None

    def _generate(self, text: str, instruction: str) -> str | None:
        try:
            summary = self._summarizer.summarize(text, instruction).strip()
        except Exception as exc:
            raise SummaryGenerationError(str(exc)) from exc
        return summary or None
