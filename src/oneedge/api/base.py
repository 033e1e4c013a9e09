from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from .cancellation import CancelToken
from .models import ChatCompletionChunk, ChatCompletionRequest, ChatCompletionResponse, ModelInfo


class ChatCompletionsAPI(ABC):
    """Abstract base class for chat completion backends.

    This module hides the design decision of how completions are fetched.
    Implementations must handle backend-specific details like:
    - Authentication and credential lookup
    - Request/response format conversion
    - Stream framing
    - Translating transport failures into OneEdgeError subclasses

    Supports async context manager protocol for proper resource cleanup:
        async with backend:
            response = await backend.create_chat_completion(request)
        # Automatically cleaned up
    """

    @abstractmethod
    async def create_chat_completion(
        self,
        request: ChatCompletionRequest,
        cancel_token: CancelToken | None = None,
    ) -> ChatCompletionResponse:
        """Generate a complete (non-streaming) chat completion.

        Args:
            request: The request; its `stream` flag is ignored and sent as false
            cancel_token: Optional token aborting the request when cancelled

        Returns:
            Validated ChatCompletionResponse

        Raises:
            OneEdgeError: Backend-specific failures
        """

    @abstractmethod
    def stream_chat_completion(
        self,
        request: ChatCompletionRequest,
        cancel_token: CancelToken | None = None,
    ) -> AsyncIterator[ChatCompletionChunk]:
        """Generate a streaming chat completion.

        Implementations are async generators, so nothing is sent until the
        first chunk is requested and `aclose()` releases the connection.

        Args:
            request: The request; its `stream` flag is ignored and sent as true
            cancel_token: Optional token aborting the stream when cancelled

        Returns:
            Async iterator of chunks in arrival order

        Raises:
            OneEdgeError: Backend-specific failures, raised during iteration
        """

    @abstractmethod
    async def list_models(self) -> list[ModelInfo]:
        """List the models the backend can serve."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True if the backend answers, False on any failure."""

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ChatCompletionsAPI":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
