"""Tool system — base classes, registry, and output bounding."""

from termctl.tool.base import BaseTool, ToolResult, ToolOk, ToolError
from termctl.tool.registry import ToolRegistry
from termctl.tool.truncation import Keep, bound_output

__all__ = [
    "BaseTool",
    "ToolResult",
    "ToolOk",
    "ToolError",
    "ToolRegistry",
    "Keep",
    "bound_output",
]
