from typing import Any

from .base import ChatCompletionsAPI
from .credentials import (
    CredentialProvider,
    EnvCredentialProvider,
    FileCredentialProvider,
    StaticCredentialProvider,
)


def create_credential_provider(kind: str, **config: Any) -> CredentialProvider:
    """Create a credential provider.

    Args:
        kind: Provider type ('static', 'env', 'file')
        **config: Provider-specific configuration
            For static:
                - credentials: list[Credential] (default: [])
                - default: Credential | None
            For env:
                - prefix: str (default: 'ONEEDGE')
            For file:
                - path: str | Path (required)

    Returns:
        Initialized credential provider

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing
    """
    kind_lower = kind.lower()

    if kind_lower == "static":
        return StaticCredentialProvider(**config)

    if kind_lower == "env":
        return EnvCredentialProvider(**config)

    if kind_lower == "file":
        if "path" not in config:
            raise TypeError("File credential provider requires 'path' in config")
        return FileCredentialProvider(**config)

    raise ValueError(
        f"Unsupported credential provider: {kind}. "
        f"Supported providers: 'static', 'env', 'file'"
    )


def create_chat_backend(kind: str, **config: Any) -> ChatCompletionsAPI:
    """Create a chat completion backend.

    This factory function hides the instantiation logic for different backends.

    Args:
        kind: Backend type ('oneedge', 'openai')
        **config: Backend-specific configuration
            For oneedge:
                - credentials: CredentialProvider (required)
                - base_url: str (default: 'http://localhost:4000')
                - timeout: float (default: 60.0)
                - http_client: httpx.AsyncClient | None
            For openai:
                - api_key: str (required)
                - base_url: str | None
                - organization: str | None

    Returns:
        Initialized backend instance

    Raises:
        ValueError: If backend type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> backend = create_chat_backend(
        ...     "oneedge",
        ...     credentials=create_credential_provider("env"),
        ...     base_url="https://gateway.internal"
        ... )
    """
    kind_lower = kind.lower()

    if kind_lower == "oneedge":
        if "credentials" not in config:
            raise TypeError("OneEdge backend requires 'credentials' in config")
        from .client import OneEdgeClient
        return OneEdgeClient(**config)

    if kind_lower == "openai":
        if "api_key" not in config:
            raise TypeError("OpenAI backend requires 'api_key' in config")
        from .providers import OpenAIBackend
        return OpenAIBackend(**config)

    raise ValueError(
        f"Unsupported backend: {kind}. "
        f"Supported backends: 'oneedge', 'openai'"
    )
