"""CLI entry point for termctl."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from termctl import __version__
from termctl.config import TermctlConfig
from termctl.errors import ConfigWriteFailure

app = typer.Typer(
    name="termctl",
    help="MCP server that gives an agent persistent interactive terminal sessions.",
    no_args_is_help=True,
)


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    # stdout carries the MCP transport, so logs go to stderr (basicConfig default)
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def serve(
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Path to a JSON config file."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Run the MCP server on stdio."""
    config = TermctlConfig.load(config_file)
    setup_logging(config.server.log_level, verbose)

    from termctl.server import serve as run_server

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        pass


@app.command()
def setup(
    config_path: Path | None = typer.Option(
        None, "--config-path", help="Client config file to edit (default: per platform)."
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Overwrite an existing entry without asking."
    ),
) -> None:
    """Register this server in the Claude Desktop config."""
    from termctl.installer import run_setup

    console = Console()
    try:
        run_setup(config_path=config_path, assume_yes=yes, console=console)
    except ConfigWriteFailure as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def tools() -> None:
    """List the tools this server exposes."""
    from termctl.pty.manager import PTYManager
    from termctl.server import build_registry

    config = TermctlConfig.load()
    registry = build_registry(PTYManager(config=config.pty), config)

    table = Table(title=f"termctl {__version__} tools")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Required")
    table.add_column("Description")
    for tool in registry.tools():
        required = ", ".join(tool.input_schema().get("required", [])) or "-"
        table.add_row(tool.name, required, tool.description)
    Console().print(table)


@app.command()
def version() -> None:
    """Print the version."""
    typer.echo(f"termctl v{__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
