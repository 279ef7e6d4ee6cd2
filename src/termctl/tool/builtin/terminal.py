"""Terminal session tools — create, feed, read, kill and list PTY sessions.

These are thin adapters over ``PTYManager``; every one of them returns
immediately.  Output is collected in the background and picked up later
with ``read_output``.
"""

from __future__ import annotations

import json
from typing import ClassVar

from pydantic import BaseModel, Field

from termctl.pty.manager import PTYManager
from termctl.tool.base import BaseTool, T, ToolOk, ToolResult
from termctl.tool.truncation import Keep


class CreateTerminalParams(BaseModel):
    cwd: str | None = Field(default=None, description="Initial working directory")
    shell: str | None = Field(
        default=None, description="Shell to use (default: $SHELL or bash)"
    )
    root_password: str | None = Field(
        default=None,
        description="Optional. If provided, the terminal will attempt to start as a root session (sudo).",
    )


class RunCommandParams(BaseModel):
    session_id: str = Field(description="The session ID")
    command: str = Field(description="The command to run.")


class SessionParams(BaseModel):
    session_id: str = Field(description="The session ID")


class ListTerminalsParams(BaseModel):
    pass


class _SessionTool(BaseTool[T]):
    """Base for tools that operate on the session manager."""

    # Drained output reaches the client exactly as the terminal emitted it
    keep: ClassVar[Keep | None] = None

    def __init__(self, manager: PTYManager) -> None:
        self._manager = manager


class CreateTerminalTool(_SessionTool[CreateTerminalParams]):
    name: ClassVar[str] = "create_terminal"
    description: ClassVar[str] = (
        "Create a new terminal session. Returns the session ID. Safe to execute. "
        "Defaults to bash/zsh."
    )
    param_model: ClassVar[type[BaseModel]] = CreateTerminalParams

    async def execute(self, params: CreateTerminalParams) -> ToolResult:
        info = self._manager.create(
            cwd=params.cwd, shell=params.shell, root_password=params.root_password
        )
        return ToolOk(output=json.dumps(info))


class RunCommandTool(_SessionTool[RunCommandParams]):
    name: ClassVar[str] = "run_command"
    description: ClassVar[str] = (
        "Run a command in a specific terminal session. This writes to the "
        "terminal's stdin. It returns immediately."
    )
    param_model: ClassVar[type[BaseModel]] = RunCommandParams

    async def execute(self, params: RunCommandParams) -> ToolResult:
        self._manager.write(params.session_id, params.command)
        return ToolOk(output=f"Command sent to session {params.session_id}.")


class ReadOutputTool(_SessionTool[SessionParams]):
    name: ClassVar[str] = "read_output"
    description: ClassVar[str] = (
        "Read the unread output from a terminal session and clear the buffer."
    )
    param_model: ClassVar[type[BaseModel]] = SessionParams

    async def execute(self, params: SessionParams) -> ToolResult:
        return ToolOk(output=self._manager.drain(params.session_id))


class KillTerminalTool(_SessionTool[SessionParams]):
    name: ClassVar[str] = "kill_terminal"
    description: ClassVar[str] = "Kill a terminal session."
    param_model: ClassVar[type[BaseModel]] = SessionParams

    async def execute(self, params: SessionParams) -> ToolResult:
        self._manager.kill(params.session_id)
        return ToolOk(output=f"Session {params.session_id} killed.")


class ListTerminalsTool(_SessionTool[ListTerminalsParams]):
    name: ClassVar[str] = "list_terminals"
    description: ClassVar[str] = "List all active terminal sessions."
    param_model: ClassVar[type[BaseModel]] = ListTerminalsParams

    async def execute(self, params: ListTerminalsParams) -> ToolResult:
        return ToolOk(output=json.dumps(self._manager.list()))
