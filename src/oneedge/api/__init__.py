"""API module: transport, wire models and credentials for chat completions."""

from .base import ChatCompletionsAPI
from .cancellation import CancelToken
from .client import OneEdgeClient
from .credentials import (
    Credential,
    CredentialProvider,
    EnvCredentialProvider,
    FileCredentialProvider,
    StaticCredentialProvider,
)
from .errors import (
    ApiError,
    ChatBusyError,
    ChunkParseError,
    InvalidResponseError,
    NoStreamError,
    NotAuthenticatedError,
    OneEdgeError,
    RequestCancelledError,
    StreamError,
    TransportError,
)
from .factory import create_chat_backend, create_credential_provider
from .models import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ModelInfo,
    Usage,
)
from .sse import parse_sse_stream

__all__ = [
    "ApiError",
    "CancelToken",
    "ChatBusyError",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatCompletionsAPI",
    "ChatMessage",
    "ChunkParseError",
    "Credential",
    "CredentialProvider",
    "EnvCredentialProvider",
    "FileCredentialProvider",
    "InvalidResponseError",
    "ModelInfo",
    "NoStreamError",
    "NotAuthenticatedError",
    "OneEdgeClient",
    "OneEdgeError",
    "RequestCancelledError",
    "StaticCredentialProvider",
    "StreamError",
    "TransportError",
    "Usage",
    "create_chat_backend",
    "create_credential_provider",
    "parse_sse_stream",
]
