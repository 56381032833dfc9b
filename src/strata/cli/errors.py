"""Strata rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from strata.cli.errors import err_project_not_found
    console.print(err_project_not_found("my-docs"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from strata.rag.llm_client import provider_of

_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "azure": "AZURE_API_KEY",
}


def _env_var(provider: str) -> str:
    return _ENV_VARS.get(provider.lower(), f"{provider.upper()}_API_KEY")


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {_env_var(provider)}=sk-..."
    )


def err_project_not_found(project_id: str, root: str) -> str:
    return (
        f"[red]Error:[/] Project '{project_id}' not found under '{root}'.\n"
        f"  Run:  strata init {project_id}"
    )


def err_project_exists(project_id: str) -> str:
    return (
        f"[yellow]⚠[/]  Project '{project_id}' already exists.\n"
        f"  Run:  strata index {project_id}   (to refresh its index)"
    )


def err_invalid_project_id(project_id: str, reason: str) -> str:
    return (
        f"[red]Error:[/] Invalid project name '{project_id}': {reason}\n"
        "  Use a plain directory name, e.g.  strata init my-docs"
    )


def err_already_indexing(project_id: str) -> str:
    return (
        f"[red]Error:[/] Project '{project_id}' is already being indexed.\n"
        "  Wait for the running index to finish, then retry."
    )


def err_config(message: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Check <root>/strata.yaml and ~/.strata/config.yaml, then retry."
    )


def err_strategy_query(strategy_id: str, cause: str) -> str:
    return (
        f"[red]Error:[/] Strategy '{strategy_id}' failed during the query: {cause}\n"
        "  Check the provider settings, or disable the strategy in the project manifest."
    )


def err_unknown_option(option: str, value: str, allowed: list[str]) -> str:
    return (
        f"[red]Error:[/] Unknown {option} '{value}'.\n"
        f"  Use one of: {', '.join(allowed)}"
    )


def warn_no_summarizer(model: str) -> str:
    """Generation model has no API key: summaries and LLM strategies are skipped."""
    return (
        f"[yellow]⚠[/] No API key for generation model '{model}'.\n"
        "  Summaries and LLM strategies (keyword, summary) are skipped this run.\n"
        f"  Set:  export {_env_var(provider_of(model))}=... to enable them."
    )


def warn_failed_documents(paths: list[str]) -> str:
    listing = "\n".join(f"    ✗ {p}" for p in paths)
    return (
        f"[yellow]⚠[/] {len(paths)} document(s) failed to index:\n"
        f"{listing}\n"
        "  They are retried on the next  strata index  run."
    )
