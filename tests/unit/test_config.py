"""Tests for the strata config loader."""

from __future__ import annotations

import stat
import warnings
from pathlib import Path

import pytest
import yaml

from strata.config import (
    ConfigError,
    StrataConfig,
    ensure_global_config,
    load_config,
    resolve_root,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "STRATA_EMBEDDING_MODEL",
        "STRATA_GENERATION_MODEL",
        "STRATA_LOG_LEVEL",
        "STRATA_ROOT",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


# ---------------------------------------------------------------------------
# Defaults, no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    cfg = load_config(tmp_path, global_config_path=missing_global)

    assert cfg.root == tmp_path
    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.retrieval.top_k == 10
    assert cfg.retrieval.rrf_k == 60
    assert cfg.retrieval.fusion_method == "rrf"
    assert cfg.retrieval.query_workers == 4
    assert cfg.indexing.chunk_size == 512
    assert cfg.indexing.chunk_overlap == pytest.approx(0.10)
    assert cfg.indexing.summaries is True
    assert cfg.logging.level == "WARNING"


def test_default_dataclass_matches_loader_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")
    default = StrataConfig(root=tmp_path)
    assert cfg == default


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"model": "anthropic/claude-3-5-haiku-20241022"}})

    cfg = load_config(tmp_path, global_config_path=global_cfg)
    assert cfg.generation.model == "anthropic/claude-3-5-haiku-20241022"
    assert cfg.embedding.model == "openai/text-embedding-3-small"


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")

    cfg = load_config(tmp_path, global_config_path=global_cfg)
    assert cfg.generation.model == "openai/gpt-4o-mini"


def test_load_config_null_section_keeps_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("retrieval:\n", encoding="utf-8")

    cfg = load_config(tmp_path, global_config_path=global_cfg)
    assert cfg.retrieval.top_k == 10


# ---------------------------------------------------------------------------
# Workspace config (<root>/strata.yaml)
# ---------------------------------------------------------------------------


def test_workspace_config_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"generation": {"model": "openai/gpt-4o-mini"}})
    _write_yaml(tmp_path / "strata.yaml", {"generation": {"model": "openai/gpt-4o"}})

    cfg = load_config(tmp_path, global_config_path=global_cfg)
    assert cfg.generation.model == "openai/gpt-4o"


def test_workspace_config_partial_override(tmp_path: Path) -> None:
    """Workspace can override one field; global values for other fields survive."""
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"retrieval": {"top_k": 20, "rrf_k": 30}})
    _write_yaml(tmp_path / "strata.yaml", {"retrieval": {"top_k": 5}})

    cfg = load_config(tmp_path, global_config_path=global_cfg)
    assert cfg.retrieval.top_k == 5
    assert cfg.retrieval.rrf_k == 30


def test_indexing_section(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "strata.yaml",
        {"indexing": {"chunk_size": 256, "chunk_overlap": 0.2, "summaries": False}},
    )

    cfg = load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.indexing.chunk_size == 256
    assert cfg.indexing.chunk_overlap == pytest.approx(0.2)
    assert cfg.indexing.summaries is False


def test_logging_level_is_upper_cased(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "strata.yaml", {"logging": {"level": "debug"}})

    cfg = load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.logging.level == "DEBUG"


def test_invalid_fusion_method_raises(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "strata.yaml", {"retrieval": {"fusion_method": "borda"}})

    with pytest.raises(ConfigError, match="fusion_method"):
        load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")


def test_weighted_score_fusion_accepted(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "strata.yaml", {"retrieval": {"fusion_method": "weighted_score"}})

    cfg = load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.retrieval.fusion_method == "weighted_score"


# ---------------------------------------------------------------------------
# API key validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "bad_key",
    ["api_key", "apikey", "OPENAI_API_KEY", "secret", "password", "token", "api-key"],
)
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(f"{bad_key}: sk-abc123\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(tmp_path, global_config_path=global_cfg)


def test_global_config_rejects_nested_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(tmp_path, global_config_path=global_cfg)


def test_legit_keys_not_flagged(tmp_path: Path) -> None:
    """top_k, rrf_k and chunk_size look nothing like secrets."""
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(
        global_cfg,
        {"retrieval": {"top_k": 3, "rrf_k": 10}, "indexing": {"chunk_size": 128}},
    )

    cfg = load_config(tmp_path, global_config_path=global_cfg)
    assert cfg.retrieval.top_k == 3


# ---------------------------------------------------------------------------
# Unknown key warnings
# ---------------------------------------------------------------------------


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"unknown_section": {"foo": "bar"}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        cfg = load_config(tmp_path, global_config_path=global_cfg)

    assert any("unknown_section" in str(w.message) for w in caught)
    assert cfg.generation.model == "openai/gpt-4o-mini"


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------


def test_env_var_generation_model_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(tmp_path / "strata.yaml", {"generation": {"model": "openai/gpt-4o-mini"}})
    monkeypatch.setenv("STRATA_GENERATION_MODEL", "anthropic/claude-3-5-haiku-20241022")

    cfg = load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.generation.model == "anthropic/claude-3-5-haiku-20241022"


def test_env_var_embedding_model_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRATA_EMBEDDING_MODEL", "openai/text-embedding-3-large")

    cfg = load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.embedding.model == "openai/text-embedding-3-large"


def test_env_var_log_level_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRATA_LOG_LEVEL", "info")

    cfg = load_config(tmp_path, global_config_path=tmp_path / "missing.yaml")
    assert cfg.logging.level == "INFO"


def test_env_var_root_used_when_no_root_given(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRATA_ROOT", str(tmp_path / "elsewhere"))

    assert resolve_root() == tmp_path / "elsewhere"
    cfg = load_config(global_config_path=tmp_path / "missing.yaml")
    assert cfg.root == tmp_path / "elsewhere"


def test_explicit_root_beats_env_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRATA_ROOT", str(tmp_path / "elsewhere"))
    assert resolve_root(tmp_path) == tmp_path


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file(tmp_path: Path) -> None:
    target = tmp_path / ".strata" / "config.yaml"
    result = ensure_global_config(global_config_path=target)

    assert result == target
    content = target.read_text(encoding="utf-8")
    parsed = yaml.safe_load(content)
    assert parsed["embedding"]["model"] == "openai/text-embedding-3-small"
    assert parsed["generation"]["model"] == "openai/gpt-4o-mini"


def test_ensure_global_config_output_passes_key_check(tmp_path: Path) -> None:
    """The generated file must load cleanly as a global config."""
    target = tmp_path / ".strata" / "config.yaml"
    ensure_global_config(global_config_path=target)

    cfg = load_config(tmp_path, global_config_path=target)
    assert cfg.generation.model == "openai/gpt-4o-mini"


def test_ensure_global_config_file_mode(tmp_path: Path) -> None:
    target = tmp_path / ".strata" / "config.yaml"
    ensure_global_config(global_config_path=target)

    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_ensure_global_config_idempotent(tmp_path: Path) -> None:
    target = tmp_path / ".strata" / "config.yaml"
    ensure_global_config(global_config_path=target)
    target.write_text("# custom\ngeneration:\n  model: openai/gpt-4o\n", encoding="utf-8")

    ensure_global_config(global_config_path=target)
    assert "openai/gpt-4o\n" in target.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# yaml.safe_load enforcement (regression guard)
# ---------------------------------------------------------------------------


def test_config_does_not_execute_yaml_load(tmp_path: Path) -> None:
    """Python object tags are rejected by safe_load instead of executed."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("!!python/object/apply:os.system ['echo pwned']\n", encoding="utf-8")

    with pytest.raises(yaml.YAMLError):
        load_config(tmp_path, global_config_path=global_cfg)
