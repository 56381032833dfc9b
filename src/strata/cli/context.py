"""Shared CLI plumbing: config loading and collaborator construction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console

from strata.cli.errors import err_config, err_no_api_key, warn_no_summarizer
from strata.config import ConfigError, StrataConfig, load_config
from strata.log import configure_logging
from strata.manifest import ProjectSettings
from strata.rag.llm_client import (
    Embedder,
    LiteLLMEmbedder,
    LiteLLMSummarizer,
    Summarizer,
    provider_of,
    validate_api_key,
)
from strata.workspace import Workspace

console = Console()


@dataclass
class CliState:
    """Global options collected by the app callback."""

    root: Path | None = None
    log_level: str | None = None


def load_cli_config(ctx: typer.Context) -> StrataConfig:
    """Load config for the current invocation and configure logging from it."""
    state: CliState = ctx.obj or CliState()
    try:
        cfg = load_config(state.root)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc
    if state.log_level:
        cfg.logging.level = state.log_level.upper()
    configure_logging(cfg.logging.level)
    return cfg


def open_workspace(cfg: StrataConfig) -> Workspace:
    return Workspace(
        cfg.root,
        ProjectSettings(
            chunk_size=cfg.indexing.chunk_size,
            chunk_overlap=cfg.indexing.chunk_overlap,
        ),
    )


def build_embedder(cfg: StrataConfig) -> Embedder:
    """Return the embedder for ``cfg.embedding.model``; exits when its API key is missing."""
    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError as exc:
        console.print(err_no_api_key(provider_of(cfg.embedding.model)))
        raise typer.Exit(1) from exc
    return LiteLLMEmbedder(cfg.embedding.model)


def build_summarizer(cfg: StrataConfig) -> Summarizer | None:
    """Return the summarizer, or None (with a warning) when its API key is missing."""
    try:
        validate_api_key(cfg.generation.model)
    except EnvironmentError:
        console.print(warn_no_summarizer(cfg.generation.model))
        return None
    return LiteLLMSummarizer(cfg.generation.model)
