"""Inbound OpenAI request shapes.

Only the fields the gateway reads are typed; everything else is kept as an
extra so the translators can decide what to forward.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, field_validator


class ChatMessage(BaseModel):
    """A chat message; ``content`` parts stay untyped so unknown kinds can be skipped."""

    model_config = ConfigDict(extra="allow")

    role: str
    content: str | list[Any] | None = None


class ChatCompletionRequest(BaseModel):
    """A request for a chat completion."""

    model_config = ConfigDict(extra="allow")

    model: str | None = None
    messages: list[ChatMessage]
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None
    response_format: dict[str, Any] | None = None
    use_grounding: StrictBool | None = None
    stream: bool | None = None

    def to_payload(self) -> dict[str, Any]:
        """Plain JSON view of the request as the caller sent it."""
        return self.model_dump(exclude_none=True)


class EmbeddingRequest(BaseModel):
    """A request for embeddings of one or more input strings."""

    model_config = ConfigDict(extra="allow")

    model: str | None = None
    input: str | list[str]
    dimensions: int | None = None

    @field_validator("input")
    @classmethod
    def validate_input(cls, v: str | list[str]) -> str | list[str]:
        if isinstance(v, list) and not v:
            raise ValueError("input must not be empty")
        return v

    @property
    def inputs(self) -> list[str]:
        return self.input if isinstance(self.input, list) else [self.input]
