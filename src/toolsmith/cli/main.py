"""Toolsmith CLI - admission pipeline for generated transform tools."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from toolsmith.cli.agent import agent_app
from toolsmith.cli.catalog import catalog_app
from toolsmith.cli.tool import tool_app

app = typer.Typer(
    name="toolsmith",
    help="Find, generate, validate and run data-transformation tools",
    no_args_is_help=True,
)

# Add command groups
app.add_typer(agent_app, name="agent")
app.add_typer(catalog_app, name="catalog")
app.add_typer(tool_app, name="tool")


def setup_logging(verbose: bool) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Find, generate, validate and run data-transformation tools."""
    setup_logging(verbose)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
