"""Base tool classes with Pydantic parameter validation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from termctl.errors import TermctlError
from termctl.tool.truncation import MAX_BYTES, Keep, bound_output

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass
class ToolResult:
    """Base result from a tool execution."""

    output: str = ""
    is_error: bool = False


@dataclass
class ToolOk(ToolResult):
    """Successful tool result."""

    is_error: bool = False


@dataclass
class ToolError(ToolResult):
    """Failed tool result."""

    is_error: bool = True


class BaseTool(ABC, Generic[T]):
    """Base class for all tools.

    Each tool declares its parameters as a Pydantic model (the type
    parameter T).  ``__call__`` is the one place where failures become
    results: whatever ``execute`` raises comes back as an error-flagged
    ``(text, True)`` pair instead of propagating to the transport.

    Usage:
        class MyParams(BaseModel):
            session_id: str

        class MyTool(BaseTool[MyParams]):
            name = "my_tool"
            description = "Does something useful"
            param_model = MyParams

            async def execute(self, params: MyParams) -> ToolResult:
                return ToolOk(output="done")
    """

    name: ClassVar[str]
    description: ClassVar[str]
    param_model: ClassVar[type[BaseModel]]
    # End of oversized output to keep; None passes output through whole
    keep: ClassVar[Keep | None] = Keep.TAIL
    max_output_bytes: int = MAX_BYTES

    async def __call__(self, arguments: dict[str, Any] | None) -> tuple[str, bool]:
        """Validate arguments, execute, bound output.

        Returns:
            (content, is_error) tuple suitable for tool result messages.
        """
        try:
            params = self.param_model.model_validate(arguments or {})
        except ValidationError as e:
            return f"Invalid parameters: {e}", True

        try:
            result = await self.execute(params)  # type: ignore[arg-type]
        except TermctlError as e:
            logger.warning("Tool %s failed: %s", self.name, e)
            return f"Error: {e}", True
        except Exception as e:
            logger.error("Tool %s execution error: %s", self.name, e, exc_info=True)
            return f"Error executing {self.name}: {e}", True

        output = result.output
        if self.keep is not None:
            output = bound_output(
                output, self.output_source(params), self.keep, self.max_output_bytes
            )
        return output, result.is_error

    @abstractmethod
    async def execute(self, params: T) -> ToolResult:
        """Execute the tool with validated parameters."""
        ...

    def output_source(self, params: T) -> str:
        """Name for the text this call produced, used in bounding notices."""
        return self.name

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the parameters, as advertised to clients."""
        schema = self.param_model.model_json_schema()
        # Strip the title and $defs that Pydantic adds
        schema.pop("title", None)
        schema.pop("$defs", None)
        return schema
