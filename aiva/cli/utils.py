from __future__ import annotations

import json
from typing import Any, List, Sequence

import questionary
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from aiva.ai.curl import mask_secret
from aiva.ai.types import AttemptRecord, InvocationFailure, InvocationResult
from aiva.core.models import ModelConfig

console = Console()


# ----------------------------------------------------------------------
# small UI helpers
def picker(title: str, options: List[str]) -> str:
    return questionary.select(title, choices=options).ask()


def ask(prompt: str) -> str:
    return questionary.text(prompt).ask() or ""


def models_table(models: Sequence[ModelConfig]) -> Table:
    table = Table(title="LLM models")
    for col in ("#", "name", "provider", "enabled", "api_url", "api_key"):
        table.add_column(col)
    for m in models:
        table.add_row(
            str(m.priority),
            m.name,
            m.provider,
            "[green]yes[/green]" if m.enabled else "[red]no[/red]",
            m.api_url,
            mask_secret(m.api_key) if m.api_key else "[yellow]unset[/yellow]",
        )
    return table


def attempts_table(attempts: Sequence[AttemptRecord], *, title: str = "Failed attempts") -> Table:
    table = Table(title=title)
    for col in ("#", "model", "api_url", "error", "timestamp"):
        table.add_column(col)
    for i, a in enumerate(attempts, 1):
        table.add_row(str(i), a.model, a.api_url, a.error or "-", a.timestamp)
    return table


# ----------------------------------------------------------------------
# result rendering
def render_result(result: InvocationResult, *, as_json: bool = False) -> None:
    if as_json:
        console.print_json(json.dumps(result.to_payload(), default=_fallback))
        return

    if isinstance(result, InvocationFailure):
        console.print(f"[bold red]{result.error}[/bold red]")
        if result.debug_info is not None:
            console.print(
                f"models attempted: {result.models_attempted}  "
                f"at {result.debug_info.timestamp}"
            )
            console.print(attempts_table(result.failed_attempts))
        return

    console.print(Panel(result.technique.description or "-", title=result.technique.title))
    console.print(f"[green]answered by {result.model_used}[/green]")
    if result.failed_attempts:
        console.print(attempts_table(result.failed_attempts, title="Attempts before success"))


def _fallback(obj: Any) -> str:
    return str(obj)
