"""Project queries: legacy single-table search or parallel multi-strategy fan-out + fusion."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from strata.db.models import SearchResult
from strata.db.store import ALL_CONTENT_TYPES, VectorStore
from strata.db.vectors import LEGACY_TABLE, strategy_table_id
from strata.errors import StrategyQueryError
from strata.rag.fusion import FUSION_METHODS, RRF_K, StrategySearchResult, fuse_results
from strata.rag.llm_client import Embedder, Summarizer
from strata.rag.reranker import create_reranker
from strata.strategies.base import RetrievalStrategy
from strata.strategies.registry import resolve_strategies, strategy_weights
from strata.workspace import Workspace

logger = logging.getLogger(__name__)

# Each strategy returns this many times top_k so fusion can reorder across strategies
CANDIDATE_MULTIPLIER = 2


@dataclass
class QueryRequest:
    query: str
    top_k: int | None = None
    min_score: float | None = None
    content_type: str | None = None
    fusion_method: str | None = None
    reranker: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueryRequest:
        if "query" not in data:
            raise ValueError("query is required")
        return cls(
            query=data["query"],
            top_k=data.get("topK"),
            min_score=data.get("minScore"),
            content_type=data.get("contentType"),
            fusion_method=data.get("fusionMethod"),
            reranker=data.get("reranker"),
        )


@dataclass
class QueryResponse:
    results: list[SearchResult] = field(default_factory=list)
    query_time_ms: float = 0.0
    strategies_used: list[str] | None = None
    fusion_method: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "results": [r.to_dict() for r in self.results],
            "queryTimeMs": self.query_time_ms,
        }
        if self.strategies_used is not None:
            data["strategiesUsed"] = self.strategies_used
        if self.fusion_method is not None:
            data["fusionMethod"] = self.fusion_method
        return data


class QueryEngine:
    """Answer similarity queries against indexed projects.

    Args:
        workspace: Projects root.
        embedder: Must be the embedder the project was indexed with.
        summarizer: Used by LLM strategies for query rewriting and by the
            ``llm`` re-ranker. Optional.
        default_top_k: Result count when a request sets none.
        default_fusion: Fusion method when neither request nor project sets one.
        rrf_k: RRF damping constant.
        max_workers: Upper bound on concurrent strategy searches.
    """

    def __init__(
        self,
        workspace: Workspace,
        embedder: Embedder,
        summarizer: Summarizer | None = None,
        *,
        default_top_k: int = 10,
        default_fusion: str = "rrf",
        rrf_k: int = RRF_K,
        max_workers: int = 4,
    ) -> None:
        self.workspace = workspace
        self.embedder = embedder
        self.summarizer = summarizer
        self._default_top_k = default_top_k
        self._default_fusion = default_fusion
        self._rrf_k = rrf_k
        self._max_workers = max(1, max_workers)

    def query_project(self, project_id: str, request: QueryRequest) -> QueryResponse:
        """Run *request* against *project_id*.

        Raises:
            ProjectNotFoundError: If the project directory does not exist.
            StrategyQueryError: If any strategy's search fails (multi-strategy mode).
            ValueError: On an empty query or an unknown fusion/re-ranker method.
        """
        self.workspace.require_project(project_id)
        if not request.query or not request.query.strip():
            raise ValueError("query must not be empty")

        started = time.perf_counter()
        top_k = self._default_top_k if request.top_k is None else request.top_k
        if top_k < 1:
            raise ValueError(f"topK must be at least 1, got {top_k}")
        min_score = 0.0 if request.min_score is None else request.min_score
        content_type = request.content_type or ALL_CONTENT_TYPES
        reranker = create_reranker(request.reranker, self.summarizer)
        # Re-ranking gets a wider pool to choose from
        pool_size = top_k * CANDIDATE_MULTIPLIER if reranker is not None else top_k

        manifest = self.workspace.manifests.load(project_id)
        store = self.workspace.store(project_id)
        strategies = resolve_strategies(manifest.settings.strategies, self.summarizer)

        response = QueryResponse()
        if strategies:
            fusion_method = (
                request.fusion_method or manifest.settings.fusion_method or self._default_fusion
            )
            if fusion_method not in FUSION_METHODS:
                raise ValueError(
                    f"Unknown fusion method '{fusion_method}'. Use one of: {', '.join(FUSION_METHODS)}"
                )
            strategy_results = self._search_strategies(
                store, strategies, request.query, top_k * CANDIDATE_MULTIPLIER, min_score, content_type
            )
            response.results = fuse_results(
                strategy_results,
                strategy_weights(manifest.settings.strategies),
                method=fusion_method,
                top_k=pool_size,
                k=self._rrf_k,
            )
            response.strategies_used = [s.id for s in strategies]
            response.fusion_method = fusion_method
        else:
            vector = self.embedder.embed(request.query)
            response.results = store.search_by_vector(
                vector, LEGACY_TABLE, top_k=pool_size, min_score=min_score, content_type=content_type
            )

        if reranker is not None:
            response.results = reranker.rerank(request.query, response.results, top_k)
        else:
            response.results = response.results[:top_k]

        response.query_time_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "%s: %d results in %.1f ms (%s)",
            project_id,
            len(response.results),
            response.query_time_ms,
            response.fusion_method or "legacy",
        )
        return response

    # ------------------------------------------------------------------
    # Multi-strategy fan-out
    # ------------------------------------------------------------------

    def _search_strategies(
        self,
        store: VectorStore,
        strategies: list[RetrievalStrategy],
        query: str,
        candidates: int,
        min_score: float,
        content_type: str,
    ) -> list[StrategySearchResult]:
        """Search every strategy concurrently and wait for all of them.

        Results come back in strategy order. The first failing strategy (in
        that order) fails the whole query.
        """
        workers = min(self._max_workers, len(strategies))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="strata-query") as pool:
            futures = [
                pool.submit(
                    self._search_strategy, store, strategy, query, candidates, min_score, content_type
                )
                for strategy in strategies
            ]

        results: list[StrategySearchResult] = []
        for strategy, future in zip(strategies, futures):
            exc = future.exception()
            if exc is not None:
                raise StrategyQueryError(strategy.id, exc) from exc
            results.append(future.result())
        return results

    def _search_strategy(
        self,
        store: VectorStore,
        strategy: RetrievalStrategy,
        query: str,
        candidates: int,
        min_score: float,
        content_type: str,
    ) -> StrategySearchResult:
        prepared = strategy.prepare_query_text(query)
        vector = self.embedder.embed(prepared)
        results = store.search_by_vector(
            vector,
            strategy_table_id(strategy.id),
            top_k=candidates,
            min_score=min_score,
            content_type=content_type,
        )
        return StrategySearchResult(strategy_id=strategy.id, results=results)
