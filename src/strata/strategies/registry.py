"""Strategy registry: strategy ids → classes, plus the built-in presets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from strata.errors import StrategyConfigError
from strata.rag.llm_client import Summarizer
from strata.strategies.base import RetrievalStrategy, StrategyConfig
from strata.strategies.direct import DirectEmbeddingStrategy
from strata.strategies.keyword import KeywordEmbeddingStrategy
from strata.strategies.summary import SummaryEmbeddingStrategy

logger = logging.getLogger(__name__)

_REGISTRY: dict[str, type[RetrievalStrategy]] = {
    DirectEmbeddingStrategy.id: DirectEmbeddingStrategy,
    KeywordEmbeddingStrategy.id: KeywordEmbeddingStrategy,
    SummaryEmbeddingStrategy.id: SummaryEmbeddingStrategy,
}


# Direct embedding only; same retrieval as legacy mode but in a strategy table
DEFAULT_STRATEGIES: tuple[StrategyConfig, ...] = (StrategyConfig(id="direct", weight=1.0),)

MULTI_STRATEGY_PRESET: tuple[StrategyConfig, ...] = (
    StrategyConfig(id="direct", weight=1.0),
    StrategyConfig(id="keyword", weight=0.7),
    StrategyConfig(id="summary", weight=0.5),
)

PRESETS: dict[str, tuple[StrategyConfig, ...]] = {
    "direct": DEFAULT_STRATEGIES,
    "multi": MULTI_STRATEGY_PRESET,
}


def preset_configs(name: str) -> list[StrategyConfig]:
    """Return fresh copies of the configs in preset *name*.

    Raises:
        StrategyConfigError: If *name* is not a known preset.
    """
    if name not in PRESETS:
        raise StrategyConfigError(
            f"Unknown strategy preset '{name}'. Available: {', '.join(sorted(PRESETS))}"
        )
    return [replace(c, params=dict(c.params)) for c in PRESETS[name]]


@dataclass(frozen=True)
class StrategyInfo:
    id: str
    name: str
    description: str
    requires_llm: bool


def available_strategies() -> list[StrategyInfo]:
    return [
        StrategyInfo(
            id=cls.id,
            name=cls.name,
            description=cls.description,
            requires_llm=cls.requires_llm,
        )
        for cls in _REGISTRY.values()
    ]


def create_strategy(config: StrategyConfig, summarizer: Summarizer | None = None) -> RetrievalStrategy:
    """Instantiate the strategy named by *config*.

    ``config.params`` are passed to the strategy constructor as keyword
    arguments.

    Raises:
        StrategyConfigError: If the id is unknown, the strategy needs an LLM
            and *summarizer* is None, or the params are not accepted.
    """
    cls = _REGISTRY.get(config.id)
    if cls is None:
        raise StrategyConfigError(
            f"Unknown strategy '{config.id}'. Available: {', '.join(sorted(_REGISTRY))}"
        )

    try:
        if cls.requires_llm:
            if summarizer is None:
                raise StrategyConfigError(f"Strategy '{config.id}' requires an LLM summarizer")
            return cls(summarizer, **config.params)  # type: ignore[call-arg]
        return cls(**config.params)
    except TypeError as exc:
        raise StrategyConfigError(f"Invalid params for strategy '{config.id}': {exc}") from exc


def create_strategies(
    configs: list[StrategyConfig] | None, summarizer: Summarizer | None = None
) -> list[RetrievalStrategy]:
    """Build every enabled strategy in *configs*, in order.

    Configs that cannot be built are logged and skipped so one bad entry does
    not take the whole project offline.
    """
    strategies: list[RetrievalStrategy] = []
    for config in configs or []:
        if not config.enabled:
            continue
        try:
            strategies.append(create_strategy(config, summarizer))
        except StrategyConfigError as exc:
            logger.warning("Skipping strategy '%s': %s", config.id, exc)
    return strategies


def strategy_weights(configs: list[StrategyConfig] | None) -> dict[str, float]:
    """Map enabled strategy ids to their fusion weight."""
    return {c.id: c.weight for c in configs or [] if c.enabled}


def resolve_strategies(
    configs: list[StrategyConfig] | None, summarizer: Summarizer | None = None
) -> list[RetrievalStrategy] | None:
    """Return the active strategies of a project, or None for legacy single-table mode.

    Legacy mode applies when no config is enabled, or when none of the
    enabled configs could be built.
    """
    if not any(c.enabled for c in configs or []):
        return None
    strategies = create_strategies(configs, summarizer)
    if not strategies:
        logger.warning("No configured strategy could be built; using legacy single-table mode")
        return None
    return strategies
