# src/llm_client/types.py

"""Wire types for OpenAI-style chat completions.

Field names match the JSON keys on the wire (snake_case), so the same
models are used to encode requests and decode responses.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single message in the conversation. Immutable."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _null_content_is_empty(cls, value: Any) -> Any:
        # Some providers send "content": null on assistant messages
        return "" if value is None else value


class ResponseMessage(Message):
    """A message returned by the server.

    Known roles decode to Role; anything else (e.g. "tool" from some proxies)
    is kept as the raw string.
    """

    role: Role | str = Field(union_mode="left_to_right")


class ChatRequest(BaseModel):
    """Request body for POST /chat/completions.

    Sampling parameters left as None (or set to a zero value) are not sent.
    An empty ``model`` is replaced by the client's default model.
    """

    model_config = ConfigDict(frozen=True)

    model: str = ""
    messages: list[Message] = Field(default_factory=list)
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    stop: list[str] | None = None
    n: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    json_schema: dict[str, Any] | None = None


class Choice(BaseModel):
    """One candidate message returned by the model."""

    model_config = ConfigDict(frozen=True)

    message: ResponseMessage
    finish_reason: str | None = None


class Usage(BaseModel):
    """Token usage for a completion."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """Decoded chat completion response.

    Provider-specific extras (id, created, system_fingerprint, ...) are dropped.
    """

    model_config = ConfigDict(frozen=True)

    choices: list[Choice] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)

    @field_validator("usage", mode="before")
    @classmethod
    def _null_usage_is_zero(cls, value: Any) -> Any:
        # Some OpenAI-compatible servers send "usage": null
        return Usage() if value is None else value

    @property
    def content(self) -> str:
        """Content of the first choice, or "" when there are none."""
        if not self.choices:
            return ""
        return self.choices[0].message.content
