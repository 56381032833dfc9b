"""Strata configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (STRATA_EMBEDDING_MODEL, STRATA_GENERATION_MODEL,
                             STRATA_LOG_LEVEL, STRATA_ROOT)
  3. Workspace strata.yaml  (in the projects root directory)
  4. Global ~/.strata/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".strata"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_WORKSPACE_CONFIG_NAME: str = "strata.yaml"
_DEFAULT_ROOT: Path = _GLOBAL_CONFIG_DIR / "projects"

# Fields that suggest an API key; forbidden in global config.
# Does NOT match legitimate config keys like top_k, rrf_k, chunk_size.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "generation", "retrieval", "indexing", "logging"]
)

FUSION_METHODS: frozenset[str] = frozenset(["rrf", "weighted_score"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (strata.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"


@dataclass
class GenerationCfg:
    """LLM used for summaries, shared preprocessing and re-ranking."""

    model: str = "openai/gpt-4o-mini"


@dataclass
class RetrievalCfg:
    """Query pipeline configuration (strata.yaml: retrieval:).

    Attributes:
        top_k: Results returned when a request does not set topK.
        rrf_k: Reciprocal Rank Fusion damping constant.
        fusion_method: Default fusion when neither request nor project sets one.
        query_workers: Thread pool size for the per-strategy query fan-out.
    """

    top_k: int = 10
    rrf_k: int = 60
    fusion_method: str = "rrf"
    query_workers: int = 4


@dataclass
class IndexingCfg:
    """Defaults applied to newly created project manifests."""

    chunk_size: int = 512
    chunk_overlap: float = 0.10
    summaries: bool = True


@dataclass
class LoggingCfg:
    level: str = "WARNING"


@dataclass
class StrataConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    root: Path = field(default_factory=lambda: _DEFAULT_ROOT)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    indexing: IndexingCfg = field(default_factory=IndexingCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _validate_fusion_method(method: str) -> None:
    if method not in FUSION_METHODS:
        raise ConfigError(
            f"retrieval.fusion_method must be one of {sorted(FUSION_METHODS)}, got '{method}'."
        )


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any], root: Path) -> StrataConfig:
    """Build a *StrataConfig* from a merged raw YAML dict."""
    cfg = StrataConfig(root=root)

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(model=str(e.get("model", cfg.embedding.model)))

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(model=str(g.get("model", cfg.generation.model)))

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(
            top_k=int(r.get("top_k", cfg.retrieval.top_k)),
            rrf_k=int(r.get("rrf_k", cfg.retrieval.rrf_k)),
            fusion_method=str(r.get("fusion_method", cfg.retrieval.fusion_method)),
            query_workers=int(r.get("query_workers", cfg.retrieval.query_workers)),
        )

    if "indexing" in data:
        i = data["indexing"] or {}
        cfg.indexing = IndexingCfg(
            chunk_size=int(i.get("chunk_size", cfg.indexing.chunk_size)),
            chunk_overlap=float(i.get("chunk_overlap", cfg.indexing.chunk_overlap)),
            summaries=bool(i.get("summaries", cfg.indexing.summaries)),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)).upper())

    return cfg


def _apply_env_overrides(cfg: StrataConfig) -> StrataConfig:
    """Apply STRATA_* environment variable overrides."""
    if model := os.environ.get("STRATA_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("STRATA_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if level := os.environ.get("STRATA_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


def resolve_root(root: Path | None = None) -> Path:
    """Return the projects root: explicit argument, then $STRATA_ROOT, then default."""
    if root is not None:
        return root
    if env_root := os.environ.get("STRATA_ROOT"):
        return Path(env_root).expanduser()
    return _DEFAULT_ROOT


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    root: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> StrataConfig:
    """Load and return a merged *StrataConfig*.

    Applies layers in order: global → workspace → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        root: Projects root directory; its *strata.yaml* is the workspace layer.
            Defaults to $STRATA_ROOT, then ``~/.strata/projects``.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or if
            ``retrieval.fusion_method`` is not a supported method.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    workspace = resolve_root(root)

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    workspace_cfg_path = workspace / _WORKSPACE_CONFIG_NAME
    if workspace_cfg_path.exists():
        raw_workspace = yaml.safe_load(workspace_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_workspace, workspace_cfg_path)
        merged = _deep_merge(merged, raw_workspace)

    cfg = _cfg_from_dict(merged, workspace)
    _validate_fusion_method(cfg.retrieval.fusion_method)

    return _apply_env_overrides(cfg)


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.strata/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Strata global configuration — model defaults only.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "embedding:\n"
            "  model: openai/text-embedding-3-small\n"
            "\n"
            "generation:\n"
            "  model: openai/gpt-4o-mini\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
