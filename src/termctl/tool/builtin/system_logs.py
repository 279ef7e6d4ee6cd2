"""Read recent system log lines."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from termctl.external.logs import DEFAULT_LINES, DEFAULT_LOG_FILE, get_system_logs
from termctl.tool.base import BaseTool, ToolOk, ToolResult
from termctl.tool.truncation import MAX_BYTES


class GetSystemLogsParams(BaseModel):
    log_file: str | None = Field(
        default=None,
        description="Path to log file (default: /var/log/syslog or generic linux logs)",
    )
    lines: int | None = Field(
        default=None,
        ge=0,
        description="Number of lines to read (default: 50; 0 also means the default)",
    )


class GetSystemLogsTool(BaseTool[GetSystemLogsParams]):
    name: ClassVar[str] = "get_system_logs"
    description: ClassVar[str] = (
        "Retrieve recent system logs (tail) or read specific log files."
    )
    param_model: ClassVar[type[BaseModel]] = GetSystemLogsParams

    def __init__(
        self,
        default_log_file: str = DEFAULT_LOG_FILE,
        default_lines: int = DEFAULT_LINES,
        max_output_bytes: int = MAX_BYTES,
    ) -> None:
        self._default_log_file = default_log_file
        self._default_lines = default_lines
        self.max_output_bytes = max_output_bytes

    async def execute(self, params: GetSystemLogsParams) -> ToolResult:
        output = await get_system_logs(
            self.output_source(params), params.lines or self._default_lines
        )
        return ToolOk(output=output)

    def output_source(self, params: GetSystemLogsParams) -> str:
        return params.log_file or self._default_log_file
