"""
OneEdge: an async chat-completion client with SSE streaming and graceful
fallback to non-streaming requests.

The api module hides transport and wire formats, the chat module hides
conversation state and the send-message lifecycle.
"""

__version__ = "0.1.0"

from .api import (
    ChatCompletionsAPI,
    ChatMessage,
    OneEdgeClient,
    OneEdgeError,
    create_chat_backend,
    create_credential_provider,
)
from .chat import ChatOptions, ChatPhase, ChatSession, ChatState

__all__ = [
    "ChatCompletionsAPI",
    "ChatMessage",
    "ChatOptions",
    "ChatPhase",
    "ChatSession",
    "ChatState",
    "OneEdgeClient",
    "OneEdgeError",
    "create_chat_backend",
    "create_credential_provider",
]
