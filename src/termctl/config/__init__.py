"""Configuration — Pydantic models for termctl settings."""

from __future__ import annotations

import json
import os
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field


class PTYConfig(BaseModel):
    """How terminal sessions are spawned.

    ``shell`` and ``cwd`` are fallbacks used when a ``create_terminal`` call
    does not supply its own; left unset they resolve to the platform default
    shell and the user's home directory at spawn time.
    """

    shell: str | None = Field(default=None, description="Default shell program")
    cwd: str | None = Field(default=None, description="Default working directory")
    term: str = Field(default="xterm-color", description="TERM for spawned sessions")
    cols: int = Field(default=80, ge=1)
    rows: int = Field(default=30, ge=1)
    kill_grace: float = Field(
        default=2.0,
        ge=0,
        description="Seconds to wait after SIGHUP before escalating to SIGKILL",
    )
    sudo: str = Field(
        default="sudo", description="Privilege-escalation launcher for root sessions"
    )


class ServerConfig(BaseModel):
    """MCP server and collaborator settings."""

    name: str = Field(default="terminal-session-mcp")
    log_level: str = Field(default="INFO")
    max_output_bytes: int = Field(
        default=50 * 1024,
        description="Upper bound on file/log/command text returned in one result",
    )
    default_log_file: str = Field(default="/var/log/syslog")
    default_log_lines: int = Field(default=50, ge=1)
    command_timeout: float | None = Field(
        default=None,
        description="Timeout for one-shot root commands; None runs to completion",
    )


class TermctlConfig(BaseModel):
    """Top-level termctl configuration."""

    pty: PTYConfig = Field(default_factory=PTYConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def load(cls, config_path: str | None = None) -> TermctlConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            TERMCTL_SHELL             - Default shell for new sessions
            TERMCTL_CWD               - Default working directory for new sessions
            TERMCTL_TERM              - TERM value for spawned sessions
            TERMCTL_LOG_LEVEL         - Logging level (DEBUG, INFO, ...)
            TERMCTL_MAX_OUTPUT_BYTES  - Bound on collaborator output
            TERMCTL_LOG_FILE          - Default file for get_system_logs
        """
        load_dotenv(find_dotenv(usecwd=True))

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        pty_data = config_data.get("pty", {})
        server_data = config_data.get("server", {})

        env_shell = os.environ.get("TERMCTL_SHELL")
        if env_shell:
            pty_data["shell"] = env_shell

        env_cwd = os.environ.get("TERMCTL_CWD")
        if env_cwd:
            pty_data["cwd"] = env_cwd

        env_term = os.environ.get("TERMCTL_TERM")
        if env_term:
            pty_data["term"] = env_term

        env_log_level = os.environ.get("TERMCTL_LOG_LEVEL")
        if env_log_level:
            server_data["log_level"] = env_log_level.upper()

        env_max_output = os.environ.get("TERMCTL_MAX_OUTPUT_BYTES")
        if env_max_output:
            server_data["max_output_bytes"] = int(env_max_output)

        env_log_file = os.environ.get("TERMCTL_LOG_FILE")
        if env_log_file:
            server_data["default_log_file"] = env_log_file

        if pty_data:
            config_data["pty"] = pty_data
        if server_data:
            config_data["server"] = server_data

        return cls.model_validate(config_data)
