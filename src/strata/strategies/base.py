"""Retrieval strategy interfaces.

A strategy decides which text gets embedded for a chunk and for a query.
All strategies share the same embedder; they differ only in the text
transformation. Strategies that want a slice of the shared per-chunk LLM
call additionally implement ``PreprocessingContributor``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from strata.db.models import DocumentChunk

# strategy id → that strategy's output from the shared preprocessing call
PreprocessedChunkMap = dict[str, str]


class RetrievalStrategy(ABC):
    """Controls how chunks are embedded for indexing and how queries are embedded for search."""

    id: str
    name: str
    description: str
    requires_llm: bool = False

    @abstractmethod
    def prepare_chunk_text(
        self, chunk: DocumentChunk, preprocessed: PreprocessedChunkMap | None = None
    ) -> str:
        """Return the text to embed for *chunk*.

        When *preprocessed* holds an entry under this strategy's id, that
        entry came from the shared LLM call and should be used as-is.
        """

    @abstractmethod
    def prepare_query_text(self, query: str) -> str:
        """Return the text to embed for *query*."""


class PreprocessingContributor(ABC):
    """Capability interface for strategies that fold work into the shared LLM call."""

    @abstractmethod
    def preprocessing_directive(self) -> str | None:
        """Instruction to include in the combined prompt, or None to opt out.

        The directive must define an output format the strategy can find again
        in the combined response. Formats of different strategies must not
        collide.
        """

    @abstractmethod
    def extract_preprocessed_result(self, raw_response: str) -> str | None:
        """Pull this strategy's output out of the combined response."""


@dataclass
class StrategyConfig:
    """One entry of a project's ``settings.strategies`` list.

    Attributes:
        id: Strategy identifier (``direct``, ``keyword``, ``summary``).
        enabled: Disabled entries are kept in the manifest but never built.
        weight: Contribution of this strategy during fusion.
        params: Strategy-specific parameters, passed to the constructor.
    """

    id: str
    enabled: bool = True
    weight: float = 1.0
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "enabled": self.enabled, "weight": self.weight}
        if self.params:
            data["params"] = dict(self.params)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StrategyConfig:
        # Older manifests name the strategy under "type"
        strategy_id = data.get("id") or data.get("type")
        if not strategy_id:
            raise ValueError(f"strategy config has no id: {data!r}")
        return cls(
            id=str(strategy_id),
            enabled=bool(data.get("enabled", True)),
            weight=float(data.get("weight", 1.0)),
            params=dict(data.get("params") or {}),
        )
