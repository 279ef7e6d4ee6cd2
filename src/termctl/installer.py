"""Setup routine — register this server in the Claude Desktop config."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, Mapping

from rich.console import Console

from termctl.errors import ConfigWriteFailure

logger = logging.getLogger(__name__)

SERVER_KEY = "mcp-terminal-manager"
CONFIG_FILENAME = "claude_desktop_config.json"


def claude_config_path(
    platform: str | None = None,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Where the client keeps its config on this platform."""
    platform = platform or sys.platform
    home = home or Path.home()
    environ = os.environ if environ is None else environ

    if platform == "darwin":
        return home / "Library" / "Application Support" / "Claude" / CONFIG_FILENAME
    if platform == "win32":
        appdata = environ.get("APPDATA") or str(home / "AppData" / "Roaming")
        return Path(appdata) / "Claude" / CONFIG_FILENAME
    # No official Linux client; follow XDG
    return home / ".config" / "Claude" / CONFIG_FILENAME


def server_stanza() -> dict[str, Any]:
    """Launch entry for this server, pinned to the running interpreter."""
    return {"command": sys.executable, "args": ["-m", "termctl", "serve"]}


def load_existing(path: Path) -> tuple[dict[str, Any], bool]:
    """Read the current config.

    Returns (config, parsed).  A missing file gives an empty config; an
    unreadable or non-object one gives an empty config with parsed=False.
    """
    if not path.exists():
        return {"mcpServers": {}}, True
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Could not parse %s: %s", path, e)
        return {"mcpServers": {}}, False
    if not isinstance(data, dict):
        return {"mcpServers": {}}, False
    return data, True


def merge_stanza(config: dict[str, Any], stanza: dict[str, Any]) -> dict[str, Any]:
    servers = config.get("mcpServers")
    if not isinstance(servers, dict):
        servers = {}
    return {**config, "mcpServers": {**servers, SERVER_KEY: stanza}}


def write_config(path: Path, config: dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    except OSError as e:
        raise ConfigWriteFailure(f"Error writing configuration: {e}") from e


def run_setup(
    config_path: Path | None = None,
    assume_yes: bool = False,
    console: Console | None = None,
    confirm: Callable[[str], bool] | None = None,
) -> bool:
    """Merge this server into the client config.

    Returns True if the file was written, False if the user declined to
    overwrite an existing entry.

    Raises:
        ConfigWriteFailure: the directory or file could not be written.
    """
    console = console or Console()
    path = config_path or claude_config_path()

    console.print("[cyan]==========================================")
    console.print("   MCP Terminal Manager Setup Wizard")
    console.print("==========================================[/cyan]\n")
    console.print(f"Detected Platform: {sys.platform}")
    console.print(f"Target Config: {path}\n")

    config, parsed = load_existing(path)
    if not parsed:
        console.print(
            "[yellow]Warning: Existing config file found but could not be parsed. "
            "Starting fresh.[/yellow]"
        )
    elif not path.parent.exists():
        console.print(
            f"[yellow]Config directory does not exist. Creating: {path.parent}[/yellow]"
        )

    servers = config.get("mcpServers")
    if isinstance(servers, dict) and SERVER_KEY in servers and not assume_yes:
        console.print(f"[yellow]{SERVER_KEY} is already configured.[/yellow]")
        ask = confirm or (lambda q: console.input(q).strip().lower().startswith("y"))
        if not ask("Do you want to update the configuration? (y/N): "):
            console.print("Setup cancelled.")
            return False

    stanza = server_stanza()
    write_config(path, merge_stanza(config, stanza))

    console.print(f"[green]Successfully wrote configuration to {path}[/green]")
    console.print("\nAdded configuration:")
    console.print_json(json.dumps({SERVER_KEY: stanza}))
    console.print(
        "\n[cyan]Please restart your MCP client (GitHub Copilot, Claude Desktop, etc.) "
        "to apply changes.[/cyan]"
    )
    return True
