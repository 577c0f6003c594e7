"""Catalog CLI commands.

This module provides CLI commands for the tool catalog:
- list: Display catalog entries, optionally for one section
- search: Rank catalog entries against a query
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from toolsmith.catalog.loader import Catalog, load_catalog
from toolsmith.catalog.matcher import classify_band, score
from toolsmith.config import get_settings
from toolsmith.exceptions import CatalogError

catalog_app = typer.Typer(help="Browse and search the tool catalog")

BAND_STYLES = {"close": "green", "similar": "yellow", "unrelated": "dim"}


def load_catalog_or_exit(console: Console, catalog_path: Path | None) -> Catalog:
    """Load the catalog, printing problems and exiting on failure."""
    try:
        return load_catalog(catalog_path or get_settings().catalog_path)
    except CatalogError as e:
        console.print(f"[red]Invalid catalog {e.source}[/red]")
        for problem in e.problems:
            console.print(f"  - {problem}")
        raise typer.Exit(1)


@catalog_app.command("list")
def list_tools(
    section: str = typer.Option(None, "--section", "-s", help="Only show one section"),
    catalog_path: Path = typer.Option(None, "--catalog", help="Catalog JSON file"),
) -> None:
    """List catalog entries."""
    console = Console()
    catalog = load_catalog_or_exit(console, catalog_path)

    tools = [tool for tool in catalog if section is None or tool.section == section]
    if not tools:
        console.print("[yellow]No tools found[/yellow]")
        return

    table = Table(title="Tool Catalog")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Section", style="dim")
    table.add_column("Input")
    table.add_column("Output")

    for tool in tools:
        name = tool.name
        if tool.canonical_slug:
            name = f"{name} [dim](alias of {tool.canonical_slug})[/dim]"
        table.add_row(
            tool.slug,
            name,
            tool.section,
            tool.input_type.value,
            tool.output_type.value,
        )

    console.print(table)


@catalog_app.command("search")
def search(
    query: str = typer.Argument(..., help="Free-text description of the tool"),
    limit: int = typer.Option(None, "--limit", "-n", help="Maximum matches to show"),
    catalog_path: Path = typer.Option(None, "--catalog", help="Catalog JSON file"),
) -> None:
    """Rank catalog entries against a query."""
    console = Console()
    settings = get_settings()
    catalog = load_catalog_or_exit(console, catalog_path)

    if limit is None:
        limit = settings.match_limit
    matches = score(query, catalog, limit=limit)
    if not matches:
        console.print(f"[yellow]No tools match '{query}'[/yellow]")
        return

    table = Table(title=f"Matches for '{query}'")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Score", justify="right")
    table.add_column("Band")
    table.add_column("Description")

    for match in matches:
        band = classify_band(
            match.match_score, settings.redirect_threshold, settings.reference_threshold
        ).value
        style = BAND_STYLES[band]
        table.add_row(
            match.slug,
            match.tool.name,
            str(match.match_score),
            f"[{style}]{band}[/{style}]",
            match.tool.description,
        )

    console.print(table)
