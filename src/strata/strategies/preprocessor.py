"""Shared per-chunk LLM preprocessing.

When several strategies each want an LLM transformation of the same chunk,
their directives are merged into one instruction and the chunk is sent to
the summarizer once. Each contributing strategy then extracts its own part
of the combined response.
"""

from __future__ import annotations

import logging

from strata.errors import PreprocessingError
from strata.rag.llm_client import Summarizer
from strata.strategies.base import (
    PreprocessedChunkMap,
    PreprocessingContributor,
    RetrievalStrategy,
)

logger = logging.getLogger(__name__)

_HEADER = "Analyze the following text and produce the outputs described below."
_FOOTER = (
    "Respond with each output on its own line, exactly in the format given, "
    "and nothing else."
)


class ChunkPreprocessor:
    """One LLM call per distinct chunk text, shared by all contributing strategies.

    Results are cached by exact chunk text. Call ``clear_cache()`` between
    documents to keep memory bounded on large corpora.
    """

    def __init__(self, strategies: list[RetrievalStrategy], summarizer: Summarizer | None) -> None:
        self._summarizer = summarizer
        self._contributors: list[tuple[str, PreprocessingContributor]] = []
        directives: list[str] = []

        if summarizer is not None:
            for strategy in strategies:
                if not isinstance(strategy, PreprocessingContributor):
                    continue
                directive = strategy.preprocessing_directive()
                if directive:
                    self._contributors.append((strategy.id, strategy))
                    directives.append(directive)

        self._instruction = (
            "\n\n".join([_HEADER, *(f"- {d}" for d in directives), _FOOTER]) if directives else ""
        )
        self._cache: dict[str, PreprocessedChunkMap] = {}
        self.llm_calls = 0

    @property
    def is_active(self) -> bool:
        return bool(self._contributors)

    @property
    def contributor_ids(self) -> list[str]:
        return [strategy_id for strategy_id, _ in self._contributors]

    @property
    def instruction(self) -> str:
        return self._instruction

    def process(self, chunk_text: str) -> PreprocessedChunkMap:
        """Return the per-strategy preprocessing outputs for *chunk_text*."""
        if not self._contributors:
            return {}

        cached = self._cache.get(chunk_text)
        if cached is not None:
            return dict(cached)

        result: PreprocessedChunkMap = {}
        try:
            raw = self._call(chunk_text)
        except PreprocessingError as exc:
            logger.warning("%s; strategies fall back to their own text", exc)
        else:
            for strategy_id, contributor in self._contributors:
                value = contributor.extract_preprocessed_result(raw)
                if value is not None:
                    result[strategy_id] = value

        self._cache[chunk_text] = result
        return dict(result)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _call(self, chunk_text: str) -> str:
        assert self._summarizer is not None
        self.llm_calls += 1
        try:
            return self._summarizer.summarize(chunk_text, self._instruction)
        except Exception as exc:
            raise PreprocessingError(f"Shared preprocessing call failed: {exc}") from exc
