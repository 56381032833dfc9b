"""Embedding and LLM collaborators backed by LiteLLM.

All LLM + embedding calls made by the indexer, the strategies and the query
path go through the ``Embedder`` / ``Summarizer`` interfaces defined here.
LiteLLM's built-in retry is used (num_retries=3, exponential backoff).
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Collaborator interfaces
# ------------------------------------------------------------------


class Embedder(ABC):
    """Turns text into a fixed-dimension vector. Failures propagate."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        ...


class Summarizer(ABC):
    """Runs one instruction against one text and returns the model output."""

    @abstractmethod
    def summarize(self, text: str, instruction: str) -> str:
        ...


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "google": "GOOGLE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


# ------------------------------------------------------------------
# Raw calls
# ------------------------------------------------------------------


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.0,
    num_retries: int = 3,
) -> str:
    """Call litellm.completion() with retry/backoff. Returns content string.

    Raises:
        litellm.exceptions.APIError: On persistent API failure after retries.
    """
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return response.choices[0].message.content or ""


def embed(model: str, text: str, num_retries: int = 3) -> list[float]:
    """Call litellm.embedding() with retry/backoff. Returns embedding vector."""
    response = litellm.embedding(
        model=model,
        input=[text],
        num_retries=num_retries,
    )
    return response.data[0]["embedding"]


# ------------------------------------------------------------------
# LiteLLM-backed collaborators
# ------------------------------------------------------------------


class LiteLLMEmbedder(Embedder):
    """Embedder for any LiteLLM embedding model (``provider/model``)."""

    def __init__(self, model: str = "openai/text-embedding-3-small", num_retries: int = 3) -> None:
        self.model = model
        self.num_retries = num_retries

    def embed(self, text: str) -> list[float]:
        return embed(self.model, text, num_retries=self.num_retries)


class LiteLLMSummarizer(Summarizer):
    """Summarizer that sends *instruction* as the system prompt and *text* as the user turn."""

    def __init__(
        self,
        model: str = "openai/gpt-4o-mini",
        max_tokens: int = 1024,
        num_retries: int = 3,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.num_retries = num_retries

    def summarize(self, text: str, instruction: str) -> str:
        return complete(
            self.model,
            [
                {"role": "system", "content": instruction},
                {"role": "user", "content": text},
            ],
            max_tokens=self.max_tokens,
            num_retries=self.num_retries,
        ).strip()
