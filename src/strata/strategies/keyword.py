"""Keyword embedding strategy: embed an LLM-extracted keyword list."""

from __future__ import annotations

from strata.strategies.llm_based import LabeledLLMStrategy


class KeywordEmbeddingStrategy(LabeledLLMStrategy):
    id = "keyword"
    name = "Keyword Embedding"
    description = "Extracts keywords via LLM before embedding. Improves recall for concept-based queries."

    label = "KEYWORDS"
    query_word_threshold = 5
    directive_prompt = (
        "Extract 10-20 important keywords and key phrases. "
        "Focus on specific terms, named entities, technical concepts, and core topics. "
        "Separate them with commas."
    )
    standalone_prompt = (
        "Extract 10-20 important keywords and key phrases from this text. "
        "Return ONLY a comma-separated list of keywords, nothing else. "
        "Focus on: specific terms, named entities, technical concepts, and core topics."
    )
    query_prompt = (
        "Extract the key search terms from this query. "
        "Return ONLY a comma-separated list of keywords, nothing else."
    )
