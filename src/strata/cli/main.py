"""Strata CLI entry point."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path
from typing import Annotated, Optional

import typer

from strata.cli.context import CliState
from strata.cli.index import index_cmd
from strata.cli.init import init_cmd
from strata.cli.query import query_cmd
from strata.cli.status import status_cmd
from strata.cli.strategies import strategies_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("strata")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"strata {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="strata",
    help=(
        "Strata — incremental multi-strategy RAG indexing.\n\n"
        "  strata index  Embed new and changed documents of a project.\n"
        "  strata query  Search a project, fusing results across strategies."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    root: Annotated[
        Optional[Path],
        typer.Option(
            "--root",
            envvar="STRATA_ROOT",
            help="Projects root directory (default: ~/.strata/projects).",
        ),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level: DEBUG, INFO, WARNING, ERROR."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Strata — incremental multi-strategy RAG indexing."""
    ctx.obj = CliState(root=root.expanduser() if root else None, log_level=log_level)


app.command("init")(init_cmd)
app.command("index")(index_cmd)
app.command("query")(query_cmd)
app.command("status")(status_cmd)
app.command("strategies")(strategies_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Strata version."""
    typer.echo(f"strata {_installed_version()}")


if __name__ == "__main__":
    app()
