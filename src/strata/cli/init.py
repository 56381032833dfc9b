"""strata init — create a project folder with its manifest.

Creates:
  <root>/<project>/documents/              drop source files here
  <root>/<project>/.strata/manifest.json   indexing state + settings
  ~/.strata/config.yaml                    global model config (created once, mode 0o600)
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console

from strata.cli.context import load_cli_config, open_workspace
from strata.cli.errors import err_invalid_project_id, err_project_exists, err_unknown_option
from strata.config import FUSION_METHODS, ensure_global_config
from strata.errors import ProjectExistsError, StrategyConfigError
from strata.strategies.registry import PRESETS, preset_configs

console = Console()


def init_cmd(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Project name (directory under the root).")],
    preset: Annotated[
        Optional[str],
        typer.Option(
            "--preset",
            help="Strategy preset: 'direct' or 'multi'. Omit for legacy single-table indexing.",
        ),
    ] = None,
    fusion: Annotated[
        Optional[str],
        typer.Option("--fusion", help="Default fusion method: 'rrf' or 'weighted_score'."),
    ] = None,
) -> None:
    """Create a new project."""
    cfg = load_cli_config(ctx)

    strategies = None
    if preset is not None:
        try:
            strategies = preset_configs(preset)
        except StrategyConfigError as exc:
            console.print(err_unknown_option("preset", preset, sorted(PRESETS)))
            raise typer.Exit(1) from exc
    if fusion is not None and fusion not in FUSION_METHODS:
        console.print(err_unknown_option("fusion method", fusion, sorted(FUSION_METHODS)))
        raise typer.Exit(1)

    workspace = open_workspace(cfg)
    try:
        workspace.create_project(project, strategies=strategies, fusion_method=fusion)
    except ProjectExistsError:
        console.print(err_project_exists(project))
        raise typer.Exit(0)
    except ValueError as exc:
        console.print(err_invalid_project_id(project, str(exc)))
        raise typer.Exit(1) from exc
    finally:
        workspace.close()

    docs = workspace.documents_path(project)
    console.print(f"  [green]✓[/] {docs}")
    console.print(f"  [green]✓[/] {workspace.manifests.path_for(project)}")
    cfg_path = ensure_global_config()
    console.print(f"  [green]✓[/] {cfg_path} (global config)")

    mode = ", ".join(s.id for s in strategies) if strategies else "legacy (single table)"
    console.print(f"\n[bold green]✓ Project '{project}' initialized.[/]  Strategies: {mode}")
    console.print("\nNext steps:")
    console.print(f"  1. Copy documents into {docs}")
    console.print(f"  2. strata index {project}")
    console.print(f'  3. strata query {project} "your question"')
