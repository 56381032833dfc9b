"""Shared pytest fixtures."""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from strata.db.connection import Database
from strata.db.migrations import run_migrations
from strata.db.store import VectorStore
from strata.rag.llm_client import Embedder, Summarizer
from strata.strategies.base import StrategyConfig
from strata.workspace import Workspace

EMBED_DIM = 16


class FakeEmbedder(Embedder):
    """Deterministic bag-of-words embedder.

    Every word is hashed into one of the first ``EMBED_DIM - 1`` slots; the
    last slot is a constant so no vector is ever all zeros. Texts that share
    words therefore score higher than unrelated ones.
    """

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def embed(self, text: str) -> list[float]:
        with self._lock:
            self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise RuntimeError(f"embedding failed for text containing {self.fail_on!r}")
        vector = [0.0] * EMBED_DIM
        vector[-1] = 0.1
        for word in text.lower().split():
            slot = int(hashlib.md5(word.encode()).hexdigest(), 16) % (EMBED_DIM - 1)
            vector[slot] += 1.0
        return vector


class FakeSummarizer(Summarizer):
    """Summarizer that records calls and answers from *respond* (or fails)."""

    def __init__(
        self,
        respond: Callable[[str, str], str] | str = "A short summary.",
        fail: bool = False,
    ) -> None:
        self.respond = respond
        self.fail = fail
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def summarize(self, text: str, instruction: str) -> str:
        with self._lock:
            self.calls.append((text, instruction))
        if self.fail:
            raise RuntimeError("LLM unavailable")
        if callable(self.respond):
            return self.respond(text, instruction)
        return self.respond


def combined_response(text: str, instruction: str) -> str:
    """Answer the shared preprocessing prompt with both labelled lines."""
    if "KEYWORDS:" in instruction or "SUMMARY:" in instruction:
        words = " ".join(text.split()[:3])
        return f"KEYWORDS: {words}\nSUMMARY: About {words}."
    return "A short summary."


def touch_future(path: Path, seconds: int = 60) -> None:
    """Set *path*'s mtime *seconds* into the future."""
    ts = (datetime.now(timezone.utc) + timedelta(seconds=seconds)).timestamp()
    os.utime(path, (ts, ts))


@pytest.fixture(autouse=True)
def _reset_strata_logger():
    """Undo configure_logging() so caplog sees strata records in every test."""
    yield
    logger = logging.getLogger("strata")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def tmp_store(tmp_path):
    """File-based VectorStore in tmp_path with migrations applied, closed after test."""
    conn = Database(tmp_path / "index.db").connect()
    run_migrations(conn)
    store = VectorStore(conn)
    yield store
    store.close()


@pytest.fixture
def workspace(tmp_path):
    ws = Workspace(tmp_path / "projects")
    yield ws
    ws.close()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def summarizer():
    return FakeSummarizer(respond=combined_response)


@pytest.fixture
def make_project(workspace):
    """Create a project and write ``{relative_path: text}`` into its documents folder."""

    def _make(
        project_id: str = "docs",
        files: dict[str, str] | None = None,
        strategies: list[StrategyConfig] | None = None,
        fusion_method: str | None = None,
    ) -> Path:
        workspace.create_project(project_id, strategies=strategies, fusion_method=fusion_method)
        docs = workspace.documents_path(project_id)
        for rel, text in (files or {}).items():
            target = docs / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        return docs

    return _make


@pytest.fixture
def cli_root(tmp_path, monkeypatch):
    """Isolated CLI environment: private global config, fake collaborators.

    Returns the projects root to pass via ``--root``.
    """
    for var in ("STRATA_ROOT", "STRATA_EMBEDDING_MODEL", "STRATA_GENERATION_MODEL", "STRATA_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("strata.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml")
    monkeypatch.setattr("strata.cli.context.build_embedder", lambda cfg: FakeEmbedder())
    monkeypatch.setattr(
        "strata.cli.context.build_summarizer", lambda cfg: FakeSummarizer(respond=combined_response)
    )
    return tmp_path / "projects"
