"""strata status — project overview, or per-document state of one project."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from strata.cli import context
from strata.cli.errors import err_project_not_found
from strata.errors import ProjectNotFoundError
from strata.manifest import STATUS_FAILED, STATUS_INDEXED
from strata.workspace import ProjectDetails, ProjectInfo

console = Console()

_STATUS_STYLE = {
    STATUS_INDEXED: "[green]indexed[/]",
    STATUS_FAILED: "[red]failed[/]",
}


def status_cmd(
    ctx: typer.Context,
    project: Annotated[
        Optional[str],
        typer.Argument(help="Show document details for this project."),
    ] = None,
) -> None:
    """Show all projects, or the documents of one project."""
    cfg = context.load_cli_config(ctx)
    workspace = context.open_workspace(cfg)
    try:
        if project is None:
            _show_projects(workspace.list_projects(), str(cfg.root))
            return
        try:
            details = workspace.project_details(project)
        except ProjectNotFoundError as exc:
            console.print(err_project_not_found(project, str(cfg.root)))
            raise typer.Exit(1) from exc
        _show_details(details)
    finally:
        workspace.close()


def _show_projects(projects: list[ProjectInfo], root: str) -> None:
    if not projects:
        console.print(
            Panel(
                f"[yellow]No projects found under {root}.[/]\n"
                "  Run:  strata init <project>",
                title="[bold]Projects[/]",
                expand=False,
            )
        )
        return

    table = Table(title=f"Projects in {root}")
    table.add_column("Project", style="cyan")
    table.add_column("Name")
    table.add_column("Documents", justify="right")
    table.add_column("Indexed", justify="right")
    table.add_column("Vectors", justify="right")
    table.add_column("Strategies")
    table.add_column("Last indexed", style="dim")
    for p in projects:
        table.add_row(
            p.id,
            p.name,
            str(p.document_count),
            str(p.indexed_count),
            str(p.vector_count),
            _strategies_label(p),
            p.last_indexed_at or "never",
        )
    console.print(table)


def _show_details(details: ProjectDetails) -> None:
    lines = [
        f"  Path:          {details.path}",
        f"  Documents:     {details.document_count} ({details.indexed_count} indexed)",
        f"  Vectors:       {details.vector_count}",
        f"  Strategies:    {_strategies_label(details)}",
        f"  Chunking:      {details.settings.chunk_size} tokens, "
        f"{details.settings.chunk_overlap:.0%} overlap",
        f"  Last indexed:  {details.last_indexed_at or 'never'}",
    ]
    if details.summary:
        lines.append(f"  Summary:       {details.summary}")
    console.print(Panel("\n".join(lines), title=f"[bold]{details.name}[/]", expand=False))

    if not details.documents:
        console.print(f"[dim]No documents yet. Copy files into {details.path / 'documents'}[/]")
        return

    table = Table()
    table.add_column("Document", style="cyan")
    table.add_column("Status")
    table.add_column("Chunks", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Indexed at", style="dim")
    for doc in details.documents:
        status = _STATUS_STYLE.get(doc.status, f"[yellow]{doc.status}[/]")
        if doc.error:
            status += f"\n[dim]{doc.error}[/]"
        table.add_row(
            doc.path,
            status,
            str(doc.chunk_count),
            f"{doc.size:,}",
            doc.indexed_at or "",
        )
    console.print(table)


def _strategies_label(project: ProjectInfo) -> str:
    enabled = project.settings.enabled_strategies
    if not enabled:
        return "legacy"
    return ", ".join(f"{s.id} ({s.weight:g})" for s in enabled)
