"""Retrieval strategies and the shared chunk preprocessor."""

from strata.strategies.base import (
    PreprocessedChunkMap,
    PreprocessingContributor,
    RetrievalStrategy,
    StrategyConfig,
)
from strata.strategies.direct import DirectEmbeddingStrategy
from strata.strategies.keyword import KeywordEmbeddingStrategy
from strata.strategies.llm_based import LabeledLLMStrategy
from strata.strategies.preprocessor import ChunkPreprocessor
from strata.strategies.registry import (
    DEFAULT_STRATEGIES,
    MULTI_STRATEGY_PRESET,
    PRESETS,
    StrategyInfo,
    available_strategies,
    create_strategies,
    create_strategy,
    preset_configs,
    resolve_strategies,
    strategy_weights,
)
from strata.strategies.summary import SummaryEmbeddingStrategy

__all__ = [
    "ChunkPreprocessor",
    "DEFAULT_STRATEGIES",
    "DirectEmbeddingStrategy",
    "KeywordEmbeddingStrategy",
    "LabeledLLMStrategy",
    "MULTI_STRATEGY_PRESET",
    "PRESETS",
    "PreprocessedChunkMap",
    "PreprocessingContributor",
    "RetrievalStrategy",
    "StrategyConfig",
    "StrategyInfo",
    "SummaryEmbeddingStrategy",
    "available_strategies",
    "create_strategies",
    "create_strategy",
    "preset_configs",
    "resolve_strategies",
    "strategy_weights",
]
