"""Pytest configuration and shared fixtures."""
import json
import logging
from collections.abc import AsyncIterator, Iterable

import pytest


async def byte_stream(parts: Iterable[bytes]) -> AsyncIterator[bytes]:
    """Yield each part as one read of a response body."""
    for part in parts:
        yield part


def sse_event(content: str, **extra) -> bytes:
    """Encode one `data:` frame carrying a text delta."""
    payload = {"choices": [{"index": 0, "delta": {"content": content}}], **extra}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode()


@pytest.fixture(scope="module", autouse=True)
def restore_logging():
    """Undo logger changes made by configure_logging or the CLI callback."""
    loggers = [logging.getLogger(name) for name in ("oneedge", "httpx")]
    saved = [(lg, lg.level, lg.propagate, list(lg.handlers)) for lg in loggers]
    yield
    for lg, level, propagate, handlers in saved:
        lg.setLevel(level)
        lg.propagate = propagate
        lg.handlers[:] = handlers


@pytest.fixture
def done_frame():
    """Return the stream terminator frame."""
    return b"data: [DONE]\n\n"


@pytest.fixture
def completion_payload():
    """Return a non-streaming completion body."""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1677610602,
        "model": "gpt-4",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Hello!"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }
