"""
aiva.cli.app
============

    $ aiva models
    $ aiva curl "What is ADHD?" --model mistral-7b
    $ aiva invoke "Suggest one focus technique" --json
    $ aiva recommend profile.yaml
    $ aiva test-model "What is ADHD?"
    $ aiva chat
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import typer
import yaml

from aiva.ai.curl import build_curl_command
from aiva.ai.orchestrator import invoke_sync
from aiva.ai.parser import extract_generated_text, strip_assistant_prefix
from aiva.ai.providers import default_providers, provider_for
from aiva.ai.types import InvocationResult
from aiva.core.config.settings import Settings
from aiva.core.exceptions import ConfigurationError, InvocationCancelled, ParsingError
from aiva.core.services.prompts import build_chat_prompt, build_recommendation_prompt
from aiva.core.utils.logging import configure

from .utils import ask, console, models_table, picker, render_result

app = typer.Typer(help="AIva multi-model LLM invocation CLI")


@app.callback()
def _root(
    ctx: typer.Context,
    models_file: Optional[Path] = typer.Option(None, "--models-file", "-m", help="Model store YAML"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING…"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Also log HTTP client internals"),
) -> None:
    try:
        settings = Settings.load(models_file=models_file, log_level=log_level)
    except ConfigurationError as exc:
        _config_error(exc)
    configure(settings.log_level, verbose=verbose)
    ctx.obj = settings


# ------------------------------------------------------------------ commands
@app.command("models")
def models_cmd(ctx: typer.Context) -> None:
    """List every configured model, disabled ones included."""
    settings: Settings = ctx.obj
    try:
        models = settings.registry().list_models()
    except ConfigurationError as exc:
        _config_error(exc)
    if not models:
        console.print("[yellow]No LLM models configured[/yellow]")
        return
    console.print(models_table(models))


@app.command("curl")
def curl_cmd(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: Optional[str] = typer.Option(None, "--model", help="Model name or id (default: first enabled)"),
    show_key: bool = typer.Option(False, "--show-key", help="Print the credential unmasked"),
) -> None:
    """Print a curl command reproducing the call for one model."""
    settings: Settings = ctx.obj
    context = {"models": [model]} if model else None
    try:
        target = settings.registry().list_enabled_models(context)[0]
        payload = provider_for(target, default_providers()).build_payload(target, prompt)
    except ConfigurationError as exc:
        _config_error(exc)
    typer.echo(build_curl_command(target, payload, show_key=show_key))


@app.command("invoke")
def invoke_cmd(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: Optional[List[str]] = typer.Option(None, "--model", help="Restrict to these models"),
    deadline: Optional[float] = typer.Option(None, "--deadline", help="Overall deadline in seconds"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result payload"),
) -> None:
    """Run the full retry + fallback pipeline for PROMPT."""
    _run(ctx.obj, prompt, {"models": model} if model else None, deadline, as_json)


@app.command("recommend")
def recommend_cmd(
    ctx: typer.Context,
    profile: Path = typer.Argument(..., exists=True, dir_okay=False, help="User-data YAML export"),
    deadline: Optional[float] = typer.Option(None, "--deadline"),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Generate a personalized technique recommendation from a user profile."""
    with open(profile, "r") as fp:
        data = yaml.safe_load(fp) or {}
    _run(ctx.obj, build_recommendation_prompt(data), None, deadline, as_json)


@app.command("test-model")
def test_model_cmd(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: Optional[str] = typer.Option(None, "--model", help="Model name or id (picker if omitted)"),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Call a single model, bypassing fallback, to debug its endpoint."""
    settings: Settings = ctx.obj
    if model is None:
        try:
            names = [m.name for m in settings.registry().list_models() if m.enabled]
        except ConfigurationError as exc:
            _config_error(exc)
        if not names:
            _config_error(ConfigurationError("no models available"))
        model = picker("Pick a model", names)
        if model is None:
            raise typer.Exit()
    _run(settings, prompt, {"models": [model]}, None, as_json)


@app.command("chat")
def chat_cmd(
    ctx: typer.Context,
    deadline: Optional[float] = typer.Option(None, "--deadline", help="Per-message deadline in seconds"),
) -> None:
    """Chat through the fallback pipeline; an empty message ends the session."""
    settings: Settings = ctx.obj
    history: List[Dict[str, str]] = []
    while True:
        message = ask("You:").strip()
        if not message:
            break
        result = _invoke(settings, build_chat_prompt(history, message), None, deadline)
        if not result.ok:
            render_result(result)
            continue
        try:
            reply = strip_assistant_prefix(extract_generated_text(result.raw_response))
        except ParsingError:
            reply = str(result.technique)
        console.print(f"[cyan]AIva[/cyan] ({result.model_used}): {reply}")
        history += [{"role": "user", "content": message}, {"role": "assistant", "content": reply}]


# ------------------------------------------------------------------ helpers
def _run(settings: Settings, prompt: str, context, deadline: Optional[float], as_json: bool) -> None:
    result = _invoke(settings, prompt, context, deadline)
    render_result(result, as_json=as_json)
    if not result.ok:
        raise typer.Exit(code=2 if result.debug_info is None else 1)


def _invoke(settings: Settings, prompt: str, context, deadline: Optional[float]) -> InvocationResult:
    try:
        return invoke_sync(
            prompt,
            context,
            registry=settings.registry(),
            deadline=deadline if deadline is not None else settings.deadline,
            default_policy=settings.retry,
        )
    except InvocationCancelled as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=3)


def _config_error(exc: ConfigurationError) -> None:
    console.print(f"[bold red]Configuration error:[/bold red] {exc}")
    raise typer.Exit(code=2)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
