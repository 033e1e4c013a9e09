"""Data models for a chat session.

ChatState is the structured view of a conversation that UIs render;
ChatOptions carries the sampling parameters used to build each request.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..api.models import ChatMessage, Usage
from ..config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
)


class ChatPhase(str, Enum):
    """Where a session is in the send-message lifecycle."""

    IDLE = "idle"              # Ready to accept a new message
    STREAMING = "streaming"    # Reading the streamed reply
    FALLBACK = "fallback"      # Retrying without streaming
    COMMITTING = "committing"  # Appending the assistant reply


class ChatOptions(BaseModel):
    """Request parameters for a chat session."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(default=DEFAULT_MODEL, description="Model identifier")
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    top_p: float = Field(default=DEFAULT_TOP_P, ge=0.0, le=1.0)
    system_prompt: str | None = Field(
        default=None,
        description="Optional system message prepended to every request"
    )

    def merged(self, **overrides: Any) -> "ChatOptions":
        """Return a copy with `overrides` applied and validated.

        Raises:
            TypeError: If an override names an unknown option
            pydantic.ValidationError: If an override value is invalid
        """
        unknown = set(overrides) - set(type(self).model_fields)
        if unknown:
            raise TypeError(f"Unknown chat option(s): {', '.join(sorted(unknown))}")
        return type(self).model_validate({**self.model_dump(), **overrides})


class ChatState(BaseModel):
    """Observable state of a chat session.

    During streaming the newest assistant text lives in `streaming_message`;
    once committed it moves into `messages` and the accumulator is emptied.
    """

    messages: list[ChatMessage] = Field(default_factory=list)
    is_loading: bool = False
    is_streaming: bool = False
    error: str | None = None
    streaming_message: str = ""
    is_thinking: bool = Field(
        default=False,
        description="Streamed text has an open <thinking> block"
    )
    thinking_content: str = Field(default="", description="Text inside the open <thinking> block")
    phase: ChatPhase = ChatPhase.IDLE
    usage: Usage | None = Field(default=None, description="Token usage of the last reply")
