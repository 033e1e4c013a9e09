"""Wire models for the OpenAI-compatible chat completion API.

Every payload crossing the HTTP boundary is validated into one of these
models; nothing loosely typed travels further into the package.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
)

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """A single conversation turn."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Role of the message sender: 'system', 'user' or 'assistant'")
    content: str = Field(description="Content of the message")

    @field_validator("content", mode="before")
    @classmethod
    def _null_content_is_empty(cls, value: Any) -> Any:
        # Servers send content: null for tool-call only replies
        return "" if value is None else value


class ChatCompletionRequest(BaseModel):
    """Body of a chat completion request."""

    model: str = Field(default=DEFAULT_MODEL, description="Model identifier")
    messages: list[ChatMessage] = Field(description="Conversation sent to the model")
    stream: bool = Field(default=False, description="Request an SSE stream")
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    top_p: float = Field(default=DEFAULT_TOP_P, ge=0.0, le=1.0)
    stop: list[str] | None = Field(default=None, description="Optional stop sequences")

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body, omitting unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


class Usage(BaseModel):
    """Token accounting reported by the server."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Delta(BaseModel):
    role: Role | None = None
    content: str | None = None


class ChunkChoice(BaseModel):
    index: int = 0
    delta: Delta = Field(default_factory=Delta)
    finish_reason: str | None = None


class ChatCompletionChunk(BaseModel):
    """One `data:` event of a streamed completion."""

    id: str | None = None
    model: str | None = None
    choices: list[ChunkChoice] = Field(default_factory=list)
    usage: Usage | None = None

    @property
    def content(self) -> str:
        """Text delta carried by the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].delta.content or ""


class Choice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str | None = None


class ChatCompletionResponse(BaseModel):
    """Body of a non-streaming chat completion."""

    id: str | None = None
    model: str | None = None
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage | None = None

    @property
    def content(self) -> str:
        """Assistant text of the first choice, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class ModelInfo(BaseModel):
    """A model advertised by `GET /v1/models`."""

    id: str
    object: str = "model"
    created: int | None = None
    owned_by: str | None = None


class ModelList(BaseModel):
    data: list[ModelInfo] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value
