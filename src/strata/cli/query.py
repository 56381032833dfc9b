"""strata query — similarity search over an indexed project."""

from __future__ import annotations

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from strata.cli import context
from strata.cli.errors import err_project_not_found, err_strategy_query, err_unknown_option
from strata.errors import ProjectNotFoundError, StrategyQueryError
from strata.query import QueryEngine, QueryRequest, QueryResponse
from strata.rag.fusion import FUSION_METHODS
from strata.rag.reranker import RERANKER_METHODS

console = Console()

_PREVIEW_CHARS = 160


def query_cmd(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Project to search.")],
    text: Annotated[str, typer.Argument(help="Query text.")],
    top_k: Annotated[
        Optional[int],
        typer.Option("--top-k", "-k", min=1, help="Number of results (default: retrieval.top_k)."),
    ] = None,
    min_score: Annotated[
        float,
        typer.Option("--min-score", min=0.0, max=1.0, help="Drop results below this similarity."),
    ] = 0.0,
    content_type: Annotated[
        str,
        typer.Option("--content-type", help="Only return chunks of this content type."),
    ] = "all",
    fusion: Annotated[
        Optional[str],
        typer.Option("--fusion", help="Fusion method override: 'rrf' or 'weighted_score'."),
    ] = None,
    rerank: Annotated[
        str,
        typer.Option("--rerank", help="Re-ranker: 'none' or 'llm'."),
    ] = "none",
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the raw response as JSON."),
    ] = False,
) -> None:
    """Search a project and print the best matching chunks."""
    if fusion is not None and fusion not in FUSION_METHODS:
        console.print(err_unknown_option("fusion method", fusion, list(FUSION_METHODS)))
        raise typer.Exit(1)
    if rerank not in RERANKER_METHODS:
        console.print(err_unknown_option("re-ranker", rerank, list(RERANKER_METHODS)))
        raise typer.Exit(1)

    cfg = context.load_cli_config(ctx)
    workspace = context.open_workspace(cfg)
    try:
        workspace.require_project(project)
    except ProjectNotFoundError as exc:
        console.print(err_project_not_found(project, str(cfg.root)))
        raise typer.Exit(1) from exc

    embedder = context.build_embedder(cfg)
    summarizer = context.build_summarizer(cfg)
    engine = QueryEngine(
        workspace,
        embedder,
        summarizer,
        default_top_k=cfg.retrieval.top_k,
        default_fusion=cfg.retrieval.fusion_method,
        rrf_k=cfg.retrieval.rrf_k,
        max_workers=cfg.retrieval.query_workers,
    )
    request = QueryRequest(
        query=text,
        top_k=top_k,
        min_score=min_score,
        content_type=content_type,
        fusion_method=fusion,
        reranker=rerank,
    )

    try:
        response = engine.query_project(project, request)
    except StrategyQueryError as exc:
        console.print(err_strategy_query(exc.strategy_id, str(exc.__cause__ or exc)))
        raise typer.Exit(1) from exc
    finally:
        workspace.close()

    if as_json:
        typer.echo(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        return
    _print_results(text, response)


def _print_results(query: str, response: QueryResponse) -> None:
    if not response.results:
        console.print(f"[yellow]No results for[/] '{query}'.")
        return

    caption = f"{len(response.results)} results in {response.query_time_ms:.0f} ms"
    if response.strategies_used:
        caption += f"  ·  {', '.join(response.strategies_used)} ({response.fusion_method})"

    table = Table(title=f"Results for '{query}'", caption=caption, show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Document", style="cyan")
    table.add_column("Text")

    for i, result in enumerate(response.results, start=1):
        preview = " ".join(result.text.split())
        if len(preview) > _PREVIEW_CHARS:
            preview = preview[:_PREVIEW_CHARS].rstrip() + "…"
        table.add_row(
            str(i),
            f"{result.score:.4f}",
            f"{result.document_path}#{result.chunk_index}",
            preview,
        )
    console.print(table)
