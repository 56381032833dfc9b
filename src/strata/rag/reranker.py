"""Post-fusion LLM re-ranking.

The LLM sees the query and the candidate texts and scores each candidate
0-10. Candidates are re-ordered by that score, which also becomes the new
``score`` (normalised to 0-1).
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import replace

from strata.db.models import SearchResult
from strata.rag.llm_client import Summarizer

logger = logging.getLogger(__name__)

RERANKER_METHODS = ("none", "llm")

_SCORE_LINE_RE = re.compile(r"^\[(\d+)\]\s+(\d+(?:\.\d+)?)")


class Reranker(ABC):
    @abstractmethod
    def rerank(self, query: str, results: list[SearchResult], top_k: int) -> list[SearchResult]:
        """Return at most *top_k* of *results* in a new order."""


class LLMReranker(Reranker):
    def __init__(self, summarizer: Summarizer) -> None:
        self._summarizer = summarizer

    def rerank(self, query: str, results: list[SearchResult], top_k: int) -> list[SearchResult]:
        if not results:
            return []

        candidates = "\n\n".join(f"[{i}] {r.text}" for i, r in enumerate(results))
        instruction = (
            "You are a relevance judge. Given a search query and candidate text chunks, "
            "score each chunk's relevance to the query on a scale of 0-10.\n\n"
            "Respond with ONLY one line per chunk in this exact format:\n"
            "[index] score\n\n"
            "Example response:\n"
            "[0] 8\n[1] 3\n[2] 9\n\n"
            f'Query: "{query}"'
        )

        try:
            response = self._summarizer.summarize(candidates, instruction)
        except Exception as exc:
            logger.warning("Re-ranking failed, keeping fusion order: %s", exc)
            return results[:top_k]

        scores = parse_scores(response, len(results))
        order = sorted(range(len(results)), key=lambda i: scores.get(i, 0.0), reverse=True)

        reranked: list[SearchResult] = []
        for i in order[:top_k]:
            result = results[i]
            normalised = scores.get(i, 0.0) / 10
            metadata = dict(result.metadata)
            metadata["rerankerScore"] = normalised
            metadata["preFusionScore"] = result.score
            reranked.append(replace(result, score=normalised, metadata=metadata))
        return reranked


def parse_scores(response: str, count: int) -> dict[int, float]:
    """Parse ``[index] score`` lines; scores are clamped to 0-10, bad indexes dropped."""
    scores: dict[int, float] = {}
    for line in response.splitlines():
        match = _SCORE_LINE_RE.match(line.strip())
        if not match:
            continue
        index = int(match.group(1))
        if 0 <= index < count:
            scores[index] = min(10.0, max(0.0, float(match.group(2))))
    return scores


def create_reranker(method: str | None, summarizer: Summarizer | None) -> Reranker | None:
    """Return the re-ranker for *method*, or None for ``"none"``.

    Raises:
        ValueError: If *method* is not a known re-ranker.
    """
    if method in (None, "none"):
        return None
    if method == "llm":
        if summarizer is None:
            logger.warning("LLM re-ranker requested but no summarizer is configured; skipping")
            return None
        return LLMReranker(summarizer)
    raise ValueError(f"Unknown reranker '{method}'. Use one of: {', '.join(RERANKER_METHODS)}")
