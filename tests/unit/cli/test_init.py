"""Tests for strata init."""

from __future__ import annotations

import json
import stat

from typer.testing import CliRunner

from strata.cli.main import app

runner = CliRunner()


def _init(root, *args):
    return runner.invoke(app, ["--root", str(root), "init", *args])


def _manifest(root, project="docs") -> dict:
    return json.loads((root / project / ".strata" / "manifest.json").read_text(encoding="utf-8"))


def test_init_creates_project_layout(cli_root) -> None:
    result = _init(cli_root, "docs")

    assert result.exit_code == 0, result.output
    assert (cli_root / "docs" / "documents").is_dir()
    data = _manifest(cli_root)
    assert data["id"] == "docs"
    assert "strategies" not in data["settings"]
    assert "initialized" in result.output
    assert "legacy" in result.output


def test_init_creates_global_config(cli_root, tmp_path) -> None:
    _init(cli_root, "docs")
    global_cfg = tmp_path / "global" / "config.yaml"
    assert global_cfg.exists()
    assert stat.S_IMODE(global_cfg.stat().st_mode) == 0o600


def test_init_multi_preset(cli_root) -> None:
    result = _init(cli_root, "docs", "--preset", "multi", "--fusion", "weighted_score")

    assert result.exit_code == 0, result.output
    settings = _manifest(cli_root)["settings"]
    assert [s["id"] for s in settings["strategies"]] == ["direct", "keyword", "summary"]
    assert [s["weight"] for s in settings["strategies"]] == [1.0, 0.7, 0.5]
    assert settings["fusionMethod"] == "weighted_score"


def test_init_unknown_preset(cli_root) -> None:
    result = _init(cli_root, "docs", "--preset", "everything")
    assert result.exit_code == 1
    assert "Unknown preset" in result.output
    assert not (cli_root / "docs").exists()


def test_init_unknown_fusion(cli_root) -> None:
    result = _init(cli_root, "docs", "--fusion", "borda")
    assert result.exit_code == 1
    assert "rrf" in result.output


def test_init_existing_project_is_left_alone(cli_root) -> None:
    _init(cli_root, "docs", "--preset", "multi")
    result = _init(cli_root, "docs")

    assert result.exit_code == 0
    assert "already exists" in result.output
    assert len(_manifest(cli_root)["settings"]["strategies"]) == 3


def test_init_invalid_project_name(cli_root) -> None:
    result = _init(cli_root, ".hidden")
    assert result.exit_code == 1
    assert "Invalid project name" in result.output


def test_init_invalid_workspace_config(cli_root) -> None:
    cli_root.mkdir(parents=True)
    (cli_root / "strata.yaml").write_text("retrieval:\n  fusion_method: borda\n", encoding="utf-8")
    result = _init(cli_root, "docs")
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
