"""strata strategies — list the built-in retrieval strategies and presets."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from strata.strategies.registry import PRESETS, available_strategies

console = Console()


def strategies_cmd() -> None:
    """List available retrieval strategies and strategy presets."""
    table = Table(title="Retrieval strategies")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("LLM", justify="center")
    table.add_column("Description")
    for info in available_strategies():
        table.add_row(info.id, info.name, "✓" if info.requires_llm else "", info.description)
    console.print(table)

    presets = Table(title="Presets  (strata init <project> --preset <name>)")
    presets.add_column("Preset", style="cyan")
    presets.add_column("Strategies (weight)")
    for name, configs in PRESETS.items():
        presets.add_row(name, ", ".join(f"{c.id} ({c.weight:g})" for c in configs))
    console.print(presets)
