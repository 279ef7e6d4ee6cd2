"""Run a single command as root and return its output."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from termctl.external.privileged import run_root_command
from termctl.tool.base import BaseTool, ToolOk, ToolResult
from termctl.tool.truncation import MAX_BYTES


class RunRootCommandParams(BaseModel):
    command: str = Field(description="Command to execute")
    password: str = Field(description="Root/User password for sudo")
    cwd: str | None = Field(default=None, description="Working directory")


class RunRootCommandTool(BaseTool[RunRootCommandParams]):
    """One-shot ``sudo -S`` execution; no session is created."""

    name: ClassVar[str] = "run_root_command"
    description: ClassVar[str] = (
        "Execute a single command as root using sudo. Returns the output."
    )
    param_model: ClassVar[type[BaseModel]] = RunRootCommandParams

    def __init__(
        self,
        sudo: str = "sudo",
        timeout: float | None = None,
        max_output_bytes: int = MAX_BYTES,
    ) -> None:
        self._sudo = sudo
        self._timeout = timeout
        self.max_output_bytes = max_output_bytes

    async def execute(self, params: RunRootCommandParams) -> ToolResult:
        output = await run_root_command(
            params.command,
            params.password,
            cwd=params.cwd,
            sudo=self._sudo,
            timeout=self._timeout,
        )
        return ToolOk(output=output)

    def output_source(self, params: RunRootCommandParams) -> str:
        return f"sudo {params.command}"
