"""Provider factory functions for CLI.

Centralizes creation of credential providers and chat backends from
environment variables. Hides configuration details from command
implementations.
"""

import os

import typer
from rich.console import Console

from ..api import ChatCompletionsAPI, CredentialProvider, create_chat_backend, create_credential_provider
from ..config import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    ENV_BACKEND,
    ENV_BASE_URL,
    ENV_CREDENTIALS_FILE,
    ENV_MODEL,
)

# Default console for output
_console = Console()


def get_credentials() -> CredentialProvider:
    """Create the credential provider from environment variables.

    Returns:
        File-backed provider if ONEEDGE_CREDENTIALS_FILE is set, otherwise
        an environment-backed provider

    Environment variables:
        ONEEDGE_CREDENTIALS_FILE: JSON credentials file (optional)
        ONEEDGE_API_KEY: Default API key (when no file is configured)
        ONEEDGE_BASE_URL: Default base URL override
        ONEEDGE_AUTH_HEADER: Header name for the bearer token (default: Authorization)
    """
    path = os.getenv(ENV_CREDENTIALS_FILE)
    if path:
        return create_credential_provider("file", path=path)
    return create_credential_provider("env")


def default_model() -> str:
    """Model from ONEEDGE_MODEL, or the gateway default."""
    return os.getenv(ENV_MODEL, DEFAULT_MODEL)


def get_backend(model: str | None = None, console: Console | None = None) -> ChatCompletionsAPI:
    """Create the chat backend from environment variables.

    Args:
        model: Model the backend will be used with (selects the credential)
        console: Optional Rich console for output

    Returns:
        Chat backend instance

    Raises:
        SystemExit: If the backend is unknown or no credential is configured

    Environment variables:
        ONEEDGE_BACKEND: Backend type (oneedge, openai; default: oneedge)
        ONEEDGE_BASE_URL: Gateway URL for the oneedge backend
        OPENAI_API_KEY: API key for the openai backend
        OPENAI_BASE_URL: Optional base URL for the openai backend
    """
    con = console or _console
    kind = os.getenv(ENV_BACKEND, "oneedge").lower()

    if kind == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            con.print("[red]Error: OPENAI_API_KEY not set in environment[/red]")
            raise typer.Exit(code=1)
        return create_chat_backend(
            "openai",
            api_key=api_key,
            base_url=os.getenv("OPENAI_BASE_URL") or None,
        )

    if kind == "oneedge":
        credentials = get_credentials()
        if credentials.resolve(model or default_model()) is None:
            con.print(
                "[red]Error: no API key configured. "
                "Set ONEEDGE_API_KEY or ONEEDGE_CREDENTIALS_FILE[/red]"
            )
            raise typer.Exit(code=1)
        return create_chat_backend(
            "oneedge",
            credentials=credentials,
            base_url=os.getenv(ENV_BASE_URL, DEFAULT_BASE_URL),
        )

    con.print(f"[red]Error: Unknown backend: {kind}[/red]")
    raise typer.Exit(code=1)
