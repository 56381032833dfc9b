"""Result fusion: merge per-strategy ranked lists into one ranking.

Two methods are supported:

  rrf             score(d) = Σ weight_s / (k + rank_s(d))      k = 60
  weighted_score  score(d) = Σ weight_s * similarity_s(d)

Results are matched across strategies by vector-record id. Ties keep the
order in which results were first encountered (strategy order, then rank).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from strata.db.models import SearchResult

RRF_K = 60
FUSION_METHODS = ("rrf", "weighted_score")


@dataclass
class StrategySearchResult:
    """Ranked results from one strategy (best first)."""

    strategy_id: str
    results: list[SearchResult]


@dataclass
class _Accumulator:
    result: SearchResult
    fused_score: float = 0.0
    strategy_scores: list[dict[str, Any]] = field(default_factory=list)


def fuse_results(
    strategy_results: list[StrategySearchResult],
    weights: dict[str, float] | None = None,
    method: str = "rrf",
    top_k: int = 10,
    k: int = RRF_K,
) -> list[SearchResult]:
    """Fuse *strategy_results* into one list of at most *top_k* results.

    Args:
        strategy_results: One entry per strategy, each list sorted best first.
        weights: Strategy id → weight. Strategies without an entry weigh 1.0.
        method: ``"rrf"`` or ``"weighted_score"``.
        top_k: Maximum number of results returned.
        k: RRF damping constant.

    Returns:
        Results sorted by fused score, descending. Each result's ``score`` is
        its fused score; its metadata gains ``fusedScore`` and
        ``strategyScores`` (``[{strategyId, rank, score}]``, raw scores).

    Raises:
        ValueError: If *method* is not a supported fusion method.
    """
    if method not in FUSION_METHODS:
        raise ValueError(f"Unknown fusion method '{method}'. Use one of: {', '.join(FUSION_METHODS)}")
    if not strategy_results or top_k < 1:
        return []

    weights = weights or {}

    # One list: nothing to merge, the raw score is the fused score
    if len(strategy_results) == 1:
        only = strategy_results[0]
        return [
            _annotate(
                result,
                result.score,
                [{"strategyId": only.strategy_id, "rank": rank, "score": result.score}],
            )
            for rank, result in enumerate(only.results[:top_k], start=1)
        ]

    merged: dict[str, _Accumulator] = {}
    for entry in strategy_results:
        weight = weights.get(entry.strategy_id, 1.0)
        for rank, result in enumerate(entry.results, start=1):
            if method == "rrf":
                contribution = weight / (k + rank)
            else:
                contribution = weight * result.score

            acc = merged.get(result.id)
            if acc is None:
                acc = merged[result.id] = _Accumulator(result=result)
            acc.fused_score += contribution
            acc.strategy_scores.append(
                {"strategyId": entry.strategy_id, "rank": rank, "score": result.score}
            )

    # sorted() is stable: equal scores keep encounter order
    ranked = sorted(merged.values(), key=lambda a: a.fused_score, reverse=True)
    return [_annotate(a.result, a.fused_score, a.strategy_scores) for a in ranked[:top_k]]


def _annotate(
    result: SearchResult, fused_score: float, strategy_scores: list[dict[str, Any]]
) -> SearchResult:
    metadata = dict(result.metadata)
    metadata["fusedScore"] = fused_score
    metadata["strategyScores"] = strategy_scores
    return replace(result, score=fused_score, metadata=metadata)
