"""Agent CLI commands.

This module provides CLI commands for collaborator-driven generation:
- generate: Run one admission session against Claude

Per project patterns:
- ANTHROPIC_API_KEY is read by the Anthropic client itself
- Settings come from TOOLSMITH_* environment variables, options override
"""

import asyncio
import json
from pathlib import Path

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.panel import Panel

from toolsmith.agent.claude import AnthropicCollaborator
from toolsmith.agent.collaborator import ChatTurn
from toolsmith.agent.orchestrator import AdmissionOrchestrator
from toolsmith.agent.outcomes import (
    FailedOutcome,
    ReadyOutcome,
    RedirectOutcome,
    RejectedOutcome,
    SessionOutcome,
    TimeoutOutcome,
)
from toolsmith.cli.catalog import load_catalog_or_exit
from toolsmith.cli.tool import print_outcome
from toolsmith.config import get_settings

agent_app = typer.Typer(help="Generate tools with Claude")

_HISTORY = TypeAdapter(list[ChatTurn])


def read_history(console: Console, path: Path | None) -> list[ChatTurn]:
    """Read prior turns from a JSON list of {role, content} objects."""
    if path is None:
        return []
    try:
        return _HISTORY.validate_json(path.read_bytes())
    except OSError as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)
    except ValidationError as e:
        console.print(f"[red]Invalid history file {path}: {e.error_count()} error(s)[/red]")
        raise typer.Exit(1)


def print_session_outcome(console: Console, outcome: SessionOutcome) -> None:
    """Render a session outcome for the terminal."""
    if isinstance(outcome, RedirectOutcome):
        console.print(
            Panel(
                f"Use the existing tool [cyan]{outcome.slug}[/cyan]\n{outcome.reason}",
                title="[green]Redirect[/green]",
            )
        )
    elif isinstance(outcome, ReadyOutcome):
        definition = outcome.definition
        lines = [
            f"[cyan]{definition.slug}[/cyan]  {definition.name}",
            definition.description,
            f"Attempts: {outcome.attempts}",
        ]
        for concern in outcome.security_concerns_seen:
            lines.append(f"[magenta]Earlier concern:[/magenta] {concern}")
        console.print(Panel("\n".join(lines), title="[green]Ready[/green]"))
        if outcome.preview is not None:
            console.print("[dim]Smoke test output:[/dim]")
            print_outcome(console, outcome.preview)
    elif isinstance(outcome, FailedOutcome):
        lines = [f"Gave up after {outcome.attempts} attempt(s)"]
        lines.extend(f"[red]issue[/red]     {issue}" for issue in outcome.issues)
        lines.extend(
            f"[magenta]security[/magenta]  {concern}"
            for concern in outcome.security_concerns
        )
        if outcome.runtime_error:
            lines.append(f"[red]runtime[/red]   {outcome.runtime_error}")
        console.print(Panel("\n".join(lines), title="[red]Failed[/red]"))
    elif isinstance(outcome, RejectedOutcome):
        console.print(Panel(outcome.reason, title="[red]Rejected[/red]"))
    elif isinstance(outcome, TimeoutOutcome):
        console.print(
            Panel(
                f"Session deadline expired after {outcome.attempts} attempt(s)",
                title="[red]Timed out[/red]",
            )
        )


@agent_app.command("generate")
def generate(
    request: str = typer.Argument(..., help="Describe the tool you need"),
    model: str = typer.Option(None, "--model", "-m", help="Claude model to use"),
    catalog_path: Path = typer.Option(None, "--catalog", help="Catalog JSON file"),
    history_path: Path = typer.Option(
        None, "--history", help="JSON list of prior {role, content} turns"
    ),
    out: Path = typer.Option(
        None, "--out", "-o", help="Write the ready definition to this file"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the outcome as JSON"),
) -> None:
    """
    Run one admission session: search, generate, validate, smoke test.

    Exits 0 for a ready tool or a redirect, 1 otherwise.

    Environment variables:
        ANTHROPIC_API_KEY: API key for Claude
        TOOLSMITH_*: Pipeline settings (attempt ceiling, deadlines, ...)
    """
    console = Console()
    settings = get_settings()
    catalog = load_catalog_or_exit(console, catalog_path)
    history = read_history(console, history_path)

    collaborator = AnthropicCollaborator(
        model=model or settings.model, max_tokens=settings.max_tokens
    )
    orchestrator = AdmissionOrchestrator(collaborator, catalog, settings=settings)
    outcome = asyncio.run(orchestrator.run(request, history))

    if as_json:
        console.print_json(json.dumps(outcome.to_dict(), default=str))
    else:
        print_session_outcome(console, outcome)

    if isinstance(outcome, ReadyOutcome) and out is not None:
        out.write_text(outcome.definition.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"Wrote {out}")

    if not isinstance(outcome, (ReadyOutcome, RedirectOutcome)):
        raise typer.Exit(1)
