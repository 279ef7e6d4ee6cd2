"""Read PDFs, spreadsheets, images and text files as plain text."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from termctl.external.special_file import read_special_file
from termctl.tool.base import BaseTool, ToolOk, ToolResult
from termctl.tool.truncation import MAX_BYTES, Keep


class ReadSpecialFileParams(BaseModel):
    path: str = Field(description="Absolute path to the file")


class ReadSpecialFileTool(BaseTool[ReadSpecialFileParams]):
    name: ClassVar[str] = "read_special_file"
    description: ClassVar[str] = (
        "Read content from PDF, Excel, Image, or plain text files. "
        "Auto-detects based on extension."
    )
    param_model: ClassVar[type[BaseModel]] = ReadSpecialFileParams
    keep: ClassVar[Keep | None] = Keep.HEAD

    def __init__(self, max_output_bytes: int = MAX_BYTES) -> None:
        self.max_output_bytes = max_output_bytes

    async def execute(self, params: ReadSpecialFileParams) -> ToolResult:
        return ToolOk(output=await read_special_file(params.path))

    def output_source(self, params: ReadSpecialFileParams) -> str:
        return params.path
