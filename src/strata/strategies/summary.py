"""Summary embedding strategy: embed a 1-2 sentence LLM summary of the chunk."""

from __future__ import annotations

from strata.strategies.llm_based import LabeledLLMStrategy


class SummaryEmbeddingStrategy(LabeledLLMStrategy):
    id = "summary"
    name = "Summary Embedding"
    description = "Summarizes chunks via LLM before embedding. Improves results for broad conceptual queries."

    label = "SUMMARY"
    query_word_threshold = 8
    directive_prompt = "Write a concise 1-2 sentence summary capturing the main point and key details."
    standalone_prompt = (
        "Write a concise 1-2 sentence summary of this text. "
        "Capture the main point and key details. Return ONLY the summary, nothing else."
    )
    query_prompt = (
        "Rephrase this search query as a concise statement describing the information being sought. "
        "Return ONLY the rephrased statement, nothing else."
    )
