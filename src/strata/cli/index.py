"""strata index — bring a project's vector index up to date."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from strata.cli import context
from strata.cli.errors import err_already_indexing, err_project_not_found, warn_failed_documents
from strata.errors import AlreadyIndexingError, ProjectNotFoundError
from strata.indexer import Indexer
from strata.progress import COMPLETED, ERROR, PROCESSING, STARTED, IndexingProgress

console = Console()


def index_cmd(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Project to index.")],
    force: Annotated[
        bool,
        typer.Option("--force", help="Drop all vectors and re-index every document."),
    ] = False,
) -> None:
    """Index new and changed documents; purge removed ones."""
    cfg = context.load_cli_config(ctx)
    workspace = context.open_workspace(cfg)
    try:
        workspace.require_project(project)
    except ProjectNotFoundError as exc:
        console.print(err_project_not_found(project, str(cfg.root)))
        raise typer.Exit(1) from exc

    embedder = context.build_embedder(cfg)
    summarizer = context.build_summarizer(cfg)
    indexer = Indexer(
        workspace,
        embedder,
        summarizer,
        generate_summaries=cfg.indexing.summaries,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(f"Indexing {project}", total=None)

        def _on_progress(event: IndexingProgress) -> None:
            if event.status == STARTED:
                progress.update(task, total=max(event.total_documents, 1), completed=0)
            elif event.status == PROCESSING:
                progress.update(
                    task,
                    completed=event.processed_documents,
                    description=f"[cyan]{event.current_document}[/]",
                )
            elif event.status in (COMPLETED, ERROR):
                progress.update(task, completed=max(event.total_documents, 1))

        indexer.emitter.subscribe(_on_progress)
        try:
            report = indexer.index_project(project, force=force)
        except AlreadyIndexingError as exc:
            console.print(err_already_indexing(project))
            raise typer.Exit(1) from exc
        finally:
            workspace.close()

    if report.new + report.changed + report.removed == 0:
        console.print(
            f"[dim]↷ Up to date: {report.unchanged} unchanged, {report.vector_count} vectors[/]"
        )
        return

    mode = ", ".join(report.strategies) if report.multi_strategy else "legacy"
    console.print(
        f"[green]✓[/] {project}: {report.indexed} indexed, {report.removed} removed, "
        f"{report.unchanged} unchanged, {report.vector_count} vectors ({mode})"
    )
    if report.failed:
        console.print(warn_failed_documents(report.failed))
