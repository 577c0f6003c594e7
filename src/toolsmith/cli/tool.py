"""Tool definition CLI commands.

This module provides CLI commands for candidate definitions stored as
JSON files:
- validate: Static analysis only, nothing is executed
- run: Execute the transform (after validation) on one input or on the
  definition's examples
"""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from toolsmith.agent.orchestrator import add_suggestions
from toolsmith.config import get_settings
from toolsmith.scripts.executor import ScriptExecutor, representative_input
from toolsmith.scripts.outcomes import ErrorOutcome, TextOutcome, TransformOutcome
from toolsmith.scripts.validation import StaticAnalyzer
from toolsmith.types import (
    CandidateToolDefinition,
    InputKind,
    OptionType,
    ValidationVerdict,
)

tool_app = typer.Typer(help="Validate and run tool definitions")

TRUE_VALUES = {"1", "true", "yes", "on"}


def read_definition(console: Console, path: Path) -> CandidateToolDefinition:
    """Read a definition file, printing problems and exiting on failure."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)

    try:
        return CandidateToolDefinition.model_validate(data)
    except ValidationError as e:
        console.print(f"[red]{path} is not a tool definition:[/red]")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            console.print(f"  - {location}: {error['msg']}")
        raise typer.Exit(1)


def parse_option_values(
    definition: CandidateToolDefinition, pairs: list[str]
) -> dict[str, Any]:
    """Parse key=value pairs, coercing values by option type.

    Raises:
        typer.BadParameter: On malformed pairs or unknown option ids
    """
    by_id = {opt.id: opt for opt in definition.options}
    values: dict[str, Any] = {}

    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'")
        opt = by_id.get(key)
        if opt is None:
            raise typer.BadParameter(f"Unknown option '{key}'")

        if opt.type == OptionType.TOGGLE.value:
            values[key] = raw.lower() in TRUE_VALUES
        elif opt.type == OptionType.NUMBER.value:
            try:
                number = float(raw)
            except ValueError:
                raise typer.BadParameter(f"Option '{key}' expects a number, got '{raw}'")
            values[key] = int(number) if number.is_integer() else number
        else:
            values[key] = raw

    return values


def print_verdict(console: Console, verdict: ValidationVerdict) -> None:
    if verdict.valid:
        console.print(Panel("No issues found", title="[green]Valid[/green]"))
        return

    lines = []
    for issue in verdict.issues:
        lines.append(f"[red]issue[/red]     {issue}")
    for concern in verdict.security_concerns or []:
        lines.append(f"[magenta]security[/magenta]  {concern}")
    for suggestion in verdict.suggestions or []:
        lines.append(f"[cyan]suggest[/cyan]   {suggestion}")
    console.print(Panel("\n".join(lines), title="[red]Invalid[/red]"))


def print_outcome(console: Console, outcome: TransformOutcome) -> None:
    if isinstance(outcome, ErrorOutcome):
        console.print(f"[red]Error:[/red] {outcome.message}")
    elif isinstance(outcome, TextOutcome):
        console.print(outcome.text, markup=False, highlight=False)
    else:
        console.print(f"[cyan]{outcome.type} result[/cyan]")
        console.print_json(json.dumps(outcome.to_dict(), default=str))


@tool_app.command("validate")
def validate(
    file: Path = typer.Argument(..., help="Tool definition JSON file"),
) -> None:
    """Run static analysis on a tool definition."""
    console = Console()
    definition = read_definition(console, file)

    verdict = add_suggestions(StaticAnalyzer().analyze(definition))
    print_verdict(console, verdict)
    if not verdict.valid:
        raise typer.Exit(1)


@tool_app.command("run")
def run(
    file: Path = typer.Argument(..., help="Tool definition JSON file"),
    input_text: str = typer.Option(None, "--input", "-i", help="Input text"),
    input_file: Path = typer.Option(
        None, "--input-file", help="Read input from a file (bytes for file tools)"
    ),
    option: list[str] = typer.Option(
        None, "--option", "-o", help="Option override as key=value (repeatable)"
    ),
    examples: bool = typer.Option(
        False, "--examples", help="Run the definition's examples instead"
    ),
    timeout: float = typer.Option(None, "--timeout", help="Execution budget in seconds"),
) -> None:
    """
    Execute a tool definition's transform.

    The definition is validated first; invalid definitions are never run.
    """
    console = Console()
    definition = read_definition(console, file)

    verdict = add_suggestions(StaticAnalyzer().analyze(definition))
    if not verdict.valid:
        print_verdict(console, verdict)
        raise typer.Exit(1)

    if timeout is None:
        timeout = get_settings().execution_timeout_seconds
    executor = ScriptExecutor(timeout=timeout)

    if examples:
        results = asyncio.run(executor.run_examples(definition))
        if not results:
            console.print("[yellow]Definition has no examples[/yellow]")
            return

        table = Table(title=f"Examples for {definition.slug}")
        table.add_column("Input")
        table.add_column("Expected")
        table.add_column("Got")
        table.add_column("Result")
        for result in results:
            got = result.outcome.to_dict()
            got_text = got.get("text", got.get("message", json.dumps(got, default=str)))
            table.add_row(
                result.example.input,
                result.example.output if result.example.output is not None else "-",
                str(got_text),
                "[green]pass[/green]" if result.passed else "[red]fail[/red]",
            )
        console.print(table)
        if not all(result.passed for result in results):
            raise typer.Exit(1)
        return

    options = definition.option_defaults()
    options.update(parse_option_values(definition, option or []))

    if input_file is not None:
        if definition.input_type == InputKind.FILE.value:
            value: str | bytes = input_file.read_bytes()
        else:
            value = input_file.read_text(encoding="utf-8")
    else:
        value = representative_input(definition, input_text)

    outcome = asyncio.run(executor.execute(definition.transform_code, value, options))
    print_outcome(console, outcome)
    if isinstance(outcome, ErrorOutcome):
        raise typer.Exit(1)
