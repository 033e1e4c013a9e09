"""Chat session: conversation state plus the send-message lifecycle.

A session streams the assistant reply token by token. If streaming fails
for any reason other than cancellation, the same request is retried once
without streaming before the failure is reported.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing
from typing import Any

from ..api.base import ChatCompletionsAPI
from ..api.cancellation import CancelToken
from ..api.errors import ChatBusyError, RequestCancelledError
from ..api.models import ChatCompletionRequest, ChatMessage
from ..config import (
    NO_RESPONSE_PLACEHOLDER,
    STREAM_FALLBACK_NOTICE,
    THINKING_CLOSE_TAG,
    THINKING_OPEN_TAG,
    UNKNOWN_ERROR_MESSAGE,
)
from .models import ChatOptions, ChatPhase, ChatState

logger = logging.getLogger(__name__)

StateListener = Callable[[ChatState], None]
ErrorCallback = Callable[[Exception], None]


def detect_thinking(text: str) -> tuple[bool, str]:
    """Return whether `text` ends inside a <thinking> block, and its content."""
    if THINKING_OPEN_TAG not in text or THINKING_CLOSE_TAG in text:
        return False, ""
    start = text.rfind(THINKING_OPEN_TAG)
    return True, text[start + len(THINKING_OPEN_TAG):]


class ChatSession:
    """Owns one conversation and drives requests against a backend.

    Only one message may be in flight at a time: send_message raises
    ChatBusyError unless the session is idle. State changes are published
    to subscribers as snapshots.

    Usage:
        session = ChatSession(client, ChatOptions(model="gpt-4o"))
        session.subscribe(lambda state: render(state.streaming_message))
        reply = await session.send_message("Hello")
    """

    def __init__(
        self,
        api: ChatCompletionsAPI,
        options: ChatOptions | None = None,
        on_error: ErrorCallback | None = None,
    ):
        """Initialize the session.

        Args:
            api: Backend used for streaming and fallback requests
            options: Default request options
            on_error: Called once with the exception when a send fails
        """
        self._api = api
        self._options = options or ChatOptions()
        self._on_error = on_error
        self._state = ChatState()
        self._cancel_token: CancelToken | None = None
        self._listeners: list[StateListener] = []

    @property
    def options(self) -> ChatOptions:
        return self._options

    @property
    def state(self) -> ChatState:
        """Snapshot of the current state."""
        return self._state.model_copy(update={"messages": list(self._state.messages)})

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._state.messages)

    @property
    def phase(self) -> ChatPhase:
        return self._state.phase

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for state snapshots.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self._state, name, value)
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    def _build_request(
        self,
        options: ChatOptions,
        history: list[ChatMessage],
        user_message: ChatMessage,
    ) -> ChatCompletionRequest:
        messages: list[ChatMessage] = []
        if options.system_prompt:
            messages.append(ChatMessage(role="system", content=options.system_prompt))
        messages.extend(history)
        messages.append(user_message)

        return ChatCompletionRequest(
            model=options.model,
            messages=messages,
            stream=True,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            top_p=options.top_p,
        )

    def _commit(self, content: str) -> ChatMessage:
        self._state.phase = ChatPhase.COMMITTING
        message = ChatMessage(role="assistant", content=content)
        self._update(
            messages=[*self._state.messages, message],
            is_loading=False,
            is_streaming=False,
            error=None,
            streaming_message="",
            is_thinking=False,
            thinking_content="",
        )
        return message

    async def _stream(
        self,
        request: ChatCompletionRequest,
        token: CancelToken,
    ) -> ChatMessage | None:
        accumulated = ""
        chunk_count = 0

        logger.debug("Starting stream request for model %s", request.model)
        async with aclosing(self._api.stream_chat_completion(request, token)) as chunks:
            async for chunk in chunks:
                if token.cancelled:
                    break

                chunk_count += 1
                if chunk.usage is not None:
                    self._state.usage = chunk.usage

                delta = chunk.content
                if delta:
                    accumulated += delta
                    is_thinking, thinking_content = detect_thinking(accumulated)
                    self._update(
                        streaming_message=accumulated,
                        is_thinking=is_thinking,
                        thinking_content=thinking_content,
                    )

        if token.cancelled:
            logger.debug("Stream stopped by user after %d chunks", chunk_count)
            return None

        logger.info("Stream complete: %d chunks, %d characters", chunk_count, len(accumulated))
        return self._commit(accumulated or NO_RESPONSE_PLACEHOLDER)

    async def _fallback(
        self,
        request: ChatCompletionRequest,
        token: CancelToken,
    ) -> ChatMessage | None:
        response = await self._api.create_chat_completion(
            request.model_copy(update={"stream": False}),
            token,
        )
        if token.cancelled:
            self._update(error=None)
            return None

        self._state.usage = response.usage
        return self._commit(response.content or NO_RESPONSE_PLACEHOLDER)

    async def send_message(
        self,
        content: str,
        *,
        on_error: ErrorCallback | None = None,
        **overrides: Any,
    ) -> ChatMessage | None:
        """Send a user message and wait for the assistant reply.

        Empty or whitespace-only content is ignored. Failures are never
        raised: they land in `state.error` and the error callback.

        Args:
            content: User message text
            on_error: Error callback for this call, replacing the session one
            **overrides: Per-call ChatOptions overrides (model, temperature, ...)

        Returns:
            The committed assistant message, or None if nothing was committed
            (empty input, cancellation or failure)

        Raises:
            ChatBusyError: If another message is still being processed
        """
        if not content.strip():
            return None
        if self._state.phase is not ChatPhase.IDLE:
            raise ChatBusyError(f"Session is busy ({self._state.phase.value})")

        error_callback = on_error or self._on_error
        user_message = ChatMessage(role="user", content=content)
        history = list(self._state.messages)

        token = CancelToken()
        self._cancel_token = token
        self._update(
            messages=[*history, user_message],
            is_loading=True,
            is_streaming=True,
            error=None,
            streaming_message="",
            phase=ChatPhase.STREAMING,
            usage=None,
        )

        try:
            request = self._build_request(self._options.merged(**overrides), history, user_message)

            try:
                return await self._stream(request, token)
            except Exception as stream_error:
                if token.cancelled or isinstance(stream_error, RequestCancelledError):
                    logger.debug("Stream cancelled: %s", stream_error)
                    return None

                logger.warning(
                    "Streaming failed, falling back to non-streaming request: %s",
                    stream_error,
                )
                self._update(error=STREAM_FALLBACK_NOTICE, phase=ChatPhase.FALLBACK)
                return await self._fallback(request, token)

        except RequestCancelledError:
            logger.debug("Fallback request cancelled")
            self._update(error=None)
            return None
        except asyncio.CancelledError:
            self._update(is_loading=False, is_streaming=False)
            raise
        except Exception as e:
            if token.cancelled:
                logger.debug("Fallback failed after cancellation: %s", e)
                self._update(error=None)
                return None

            message = str(e) or UNKNOWN_ERROR_MESSAGE
            logger.error("Chat request failed: %s", message)
            self._update(
                is_loading=False,
                is_streaming=False,
                error=message,
                streaming_message="",
                is_thinking=False,
                thinking_content="",
            )
            if error_callback is not None:
                error_callback(e)
            return None
        finally:
            if self._cancel_token is token:
                self._cancel_token = None
            self._update(phase=ChatPhase.IDLE)

    def stop_streaming(self) -> None:
        """Cancel the in-flight request without waiting for it to unwind."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()
        self._update(
            is_loading=False,
            is_streaming=False,
            is_thinking=False,
            thinking_content="",
        )

    def clear_messages(self) -> None:
        """Forget the conversation. Loading flags are left untouched."""
        self._update(messages=[], error=None, streaming_message="")

    def set_messages(self, messages: list[ChatMessage]) -> None:
        """Replace the conversation history, e.g. when restoring a saved chat."""
        self._update(messages=list(messages))
