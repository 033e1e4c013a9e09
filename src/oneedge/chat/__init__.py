"""Chat module for oneedge.

Holds conversation state and the streaming send-message lifecycle with
non-streaming fallback.
"""

from .models import ChatOptions, ChatPhase, ChatState
from .session import ChatSession, detect_thinking

__all__ = [
    "ChatOptions",
    "ChatPhase",
    "ChatSession",
    "ChatState",
    "detect_thinking",
]
