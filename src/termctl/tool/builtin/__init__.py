"""Built-in tools exposed by the server."""

from __future__ import annotations

from termctl.config import TermctlConfig
from termctl.pty.manager import PTYManager
from termctl.tool.base import BaseTool
from termctl.tool.builtin.root_command import RunRootCommandTool
from termctl.tool.builtin.special_file import ReadSpecialFileTool
from termctl.tool.builtin.system_logs import GetSystemLogsTool
from termctl.tool.builtin.terminal import (
    CreateTerminalTool,
    KillTerminalTool,
    ListTerminalsTool,
    ReadOutputTool,
    RunCommandTool,
)

__all__ = [
    "CreateTerminalTool",
    "RunCommandTool",
    "ReadOutputTool",
    "KillTerminalTool",
    "ListTerminalsTool",
    "RunRootCommandTool",
    "ReadSpecialFileTool",
    "GetSystemLogsTool",
    "create_builtin_tools",
]


def create_builtin_tools(manager: PTYManager, config: TermctlConfig) -> list[BaseTool]:
    """Instantiate every built-in tool, in the order they are advertised."""
    limit = config.server.max_output_bytes
    return [
        CreateTerminalTool(manager),
        RunCommandTool(manager),
        ReadOutputTool(manager),
        KillTerminalTool(manager),
        ListTerminalsTool(manager),
        RunRootCommandTool(
            sudo=config.pty.sudo,
            timeout=config.server.command_timeout,
            max_output_bytes=limit,
        ),
        ReadSpecialFileTool(max_output_bytes=limit),
        GetSystemLogsTool(
            default_log_file=config.server.default_log_file,
            default_lines=config.server.default_log_lines,
            max_output_bytes=limit,
        ),
    ]
