"""Server-sent events parser for streamed chat completions.

Turns a raw byte stream into validated ChatCompletionChunk objects.
Hides the framing details: incremental UTF-8 decoding, line buffering
across reads, the `data:` prefix and the `[DONE]` sentinel.
"""

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator

from pydantic import ValidationError

from ..config import SSE_DATA_PREFIX, SSE_DONE_SENTINEL
from .cancellation import CancelToken, race
from .errors import ChunkParseError, StreamError
from .models import ChatCompletionChunk

logger = logging.getLogger(__name__)

# Marker returned by decode_event_line for the terminating sentinel
DONE = object()


def _stream_error_message(error: object) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error.get("type") or "upstream error")
    return str(error) or "upstream error"


def decode_event_line(line: str) -> ChatCompletionChunk | object | None:
    """Decode one complete SSE line.

    Args:
        line: A single line without its trailing newline

    Returns:
        A ChatCompletionChunk, the DONE marker, or None for lines that carry
        no data (comments, other fields, blank lines, empty payloads)

    Raises:
        ChunkParseError: If the payload is not a valid chunk object
        StreamError: If the payload is an error event
    """
    if not line.startswith(SSE_DATA_PREFIX):
        return None

    data = line[len(SSE_DATA_PREFIX):].strip()
    if not data:
        return None
    if data == SSE_DONE_SENTINEL:
        return DONE

    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise ChunkParseError(data, f"invalid JSON: {e.msg}") from e

    if not isinstance(payload, dict):
        raise ChunkParseError(data, "payload is not an object")

    if payload.get("error") is not None:
        raise StreamError(_stream_error_message(payload["error"]))

    try:
        return ChatCompletionChunk.model_validate(payload)
    except ValidationError as e:
        raise ChunkParseError(data, f"{e.error_count()} validation error(s)") from e


def _read_line(line: str) -> ChatCompletionChunk | object | None:
    try:
        return decode_event_line(line)
    except ChunkParseError as e:
        logger.warning("Skipping stream chunk: %s", e)
        return None


async def _next_bytes(reader: AsyncIterator[bytes]) -> bytes | None:
    try:
        return await reader.__anext__()
    except StopAsyncIteration:
        return None


async def parse_sse_stream(
    byte_stream: AsyncIterable[bytes],
    cancel_token: CancelToken | None = None,
) -> AsyncIterator[ChatCompletionChunk]:
    """Parse an SSE byte stream into chat completion chunks.

    The sequence ends when the byte stream is exhausted or a `data: [DONE]`
    line is seen; bytes after the sentinel are never read. A final line
    without a trailing newline is dropped when the stream ends.
    Malformed payloads are logged and skipped.

    The underlying iterator is closed on every exit path: exhaustion, the
    sentinel, an exception, or the consumer closing this generator.

    Args:
        byte_stream: Async iterable of raw response bytes
        cancel_token: Optional token; each read is abandoned once it fires

    Yields:
        Validated ChatCompletionChunk objects in arrival order

    Raises:
        StreamError: If the server sends an error event
        RequestCancelledError: If the cancel token fires during a read
    """
    reader = byte_stream.__aiter__()
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    chunk_count = 0

    try:
        while True:
            data = await race(_next_bytes(reader), cancel_token)
            if data is None:
                break

            buffer += decoder.decode(data)
            *lines, buffer = buffer.split("\n")

            for line in lines:
                event = _read_line(line)
                if event is DONE:
                    logger.debug("Stream finished with sentinel after %d chunks", chunk_count)
                    return
                if event is not None:
                    chunk_count += 1
                    yield event

        if buffer:
            logger.debug("Dropping unterminated trailing line: %r", buffer[:200])
        logger.debug("Stream closed by server after %d chunks", chunk_count)
    finally:
        aclose = getattr(reader, "aclose", None)
        if aclose is not None:
            await aclose()
