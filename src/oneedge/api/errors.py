"""Error taxonomy for the OneEdge API client.

Every failure surfaced by the client derives from OneEdgeError, so callers
can catch one type. httpx exceptions are translated at the client boundary.
"""


class OneEdgeError(Exception):
    """Base class for all client errors."""


class NotAuthenticatedError(OneEdgeError):
    """No credential is available for the requested model."""

    def __init__(self, message: str = "No virtual key configured") -> None:
        super().__init__(message)


class ApiError(OneEdgeError):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Request failed with status {status_code}: {detail}")


class NoStreamError(OneEdgeError):
    """Streaming was requested but the response has no body."""

    def __init__(self, message: str = "The server did not return a stream") -> None:
        super().__init__(message)


class InvalidResponseError(OneEdgeError):
    """A 2xx response body did not match the expected wire shape."""


class StreamError(OneEdgeError):
    """The server reported an error inside an open event stream."""


class ChunkParseError(OneEdgeError):
    """A `data:` payload could not be decoded into a chunk.

    The SSE parser logs and skips these; they never end a stream.
    """

    def __init__(self, line: str, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed stream chunk ({reason}): {line[:200]}")


class TransportError(OneEdgeError):
    """The request never produced an HTTP response (timeout, connection)."""


class RequestCancelledError(OneEdgeError):
    """The request was abandoned because its cancel token fired."""

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)


class ChatBusyError(OneEdgeError):
    """A message was sent while the chat session was still busy."""
