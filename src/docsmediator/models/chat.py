from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    """Inbound chat request. Wire names are camelCase."""

    message: str
    project_context: str = ""
    libraries: list[str] = []
    topic: str | None = None
    system_instructions: str = ""
    auto_search: bool = False
    auto_search_query: str | None = None
    auto_search_top: int = Field(default=3, ge=1)
    debug_trace: bool = False

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("missing message")
        return v

    @field_validator("libraries")
    @classmethod
    def drop_blank_libraries(cls, v: list[str]) -> list[str]:
        return [lib.strip() for lib in v if lib and lib.strip()]

    @field_validator("topic", "auto_search_query")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class DebugTrace(_CamelModel):
    libraries_used: list[str] = []
    docs_snippet: str | None = None
    prompt_preview: str | None = None
    resolver_error: str | None = None


class ChatResponse(_CamelModel):
    reply: str
    debug: DebugTrace | None = None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
