"""Tests for strata status."""

from __future__ import annotations

from typer.testing import CliRunner

from strata.cli.main import app

runner = CliRunner()


def _run(root, *args):
    return runner.invoke(app, ["--root", str(root), *args])


# ---------------------------------------------------------------------------
# All projects
# ---------------------------------------------------------------------------


def test_status_no_projects(cli_root) -> None:
    result = _run(cli_root, "status")
    assert result.exit_code == 0
    assert "No projects found" in result.output


def test_status_lists_projects(cli_root) -> None:
    _run(cli_root, "init", "notes")
    _run(cli_root, "init", "beta", "--preset", "direct")

    result = _run(cli_root, "status")

    assert result.exit_code == 0, result.output
    assert "Projects in" in result.output
    assert "notes" in result.output
    assert "beta" in result.output
    assert "legacy" in result.output
    assert "never" in result.output


# ---------------------------------------------------------------------------
# One project
# ---------------------------------------------------------------------------


def test_status_project_details(cli_root) -> None:
    _run(cli_root, "init", "docs")
    docs = cli_root / "docs" / "documents"
    (docs / "a.md").write_text("alpha", encoding="utf-8")
    _run(cli_root, "index", "docs")
    (docs / "b.txt").write_text("beta", encoding="utf-8")

    result = _run(cli_root, "status", "docs")

    assert result.exit_code == 0, result.output
    assert "Docs" in result.output
    assert "a.md" in result.output
    assert "indexed" in result.output
    assert "b.txt" in result.output
    assert "pending" in result.output


def test_status_empty_project(cli_root) -> None:
    _run(cli_root, "init", "docs")
    result = _run(cli_root, "status", "docs")
    assert result.exit_code == 0
    assert "No documents yet" in result.output


def test_status_missing_project(cli_root) -> None:
    result = _run(cli_root, "status", "nope")
    assert result.exit_code == 1
    assert "not found" in result.output
