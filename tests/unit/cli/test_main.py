"""Tests for the strata app entry point."""

from __future__ import annotations

from typer.testing import CliRunner

from strata.cli.main import app

runner = CliRunner()


def test_version_option() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("strata ")


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("strata ")


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("init", "index", "query", "status", "strategies"):
        assert command in result.output


def test_root_from_environment(cli_root, monkeypatch) -> None:
    monkeypatch.setenv("STRATA_ROOT", str(cli_root))
    assert runner.invoke(app, ["init", "docs"]).exit_code == 0
    assert (cli_root / "docs" / "documents").is_dir()
