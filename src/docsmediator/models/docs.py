from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class LibraryMatch(BaseModel):
    """Single result of a documentation search call."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    title: str = ""


class ToolResult(BaseModel):
    """``result`` member of a tools/call reply.

    Only the fields the mediator reads are declared; everything else the
    Docs Service sends is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    content: list[Any] = []
    structured_content: Any = None
    is_error: bool = False

    @classmethod
    def from_result(cls, result: Any) -> ToolResult:
        if not isinstance(result, dict):
            return cls()
        content = result.get("content")
        return cls(
            content=content if isinstance(content, list) else [],
            structured_content=result.get("structuredContent"),
            is_error=bool(result.get("isError", False)),
        )

    def text_blocks(self) -> list[str]:
        """Return the text of every content block, in order."""
        texts: list[str] = []
        for block in self.content:
            if isinstance(block, str):
                texts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                texts.append(block["text"])
        return texts
