"""Credential resolution for the API client.

The client never reads ambient storage itself; it asks an injected
CredentialProvider for the credential that matches the requested model.
Providers hide where credentials live (memory, environment, a JSON file).
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config import BEARER_PREFIX, DEFAULT_AUTH_HEADER, ENV_PREFIX
from .errors import OneEdgeError

logger = logging.getLogger(__name__)


class Credential(BaseModel):
    """An API key plus where and how to send it."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(min_length=1, description="Secret sent as a bearer token")
    base_url: str | None = Field(
        default=None,
        description="Endpoint base URL overriding the client default"
    )
    header_name: str = Field(
        default=DEFAULT_AUTH_HEADER,
        description="Header carrying the bearer token"
    )
    model: str | None = Field(default=None, description="Model this credential is bound to")

    def auth_headers(self) -> dict[str, str]:
        return {self.header_name: f"{BEARER_PREFIX} {self.api_key}"}


class CredentialProvider(ABC):
    """Abstract source of credentials, resolved once per request."""

    @abstractmethod
    def resolve(self, model: str | None = None) -> Credential | None:
        """Return the credential for `model`.

        Implementations prefer a credential bound to the exact model and fall
        back to their default credential. None means nothing is configured.
        """


class StaticCredentialProvider(CredentialProvider):
    """In-memory credentials keyed by model name."""

    def __init__(
        self,
        credentials: list[Credential] | None = None,
        default: Credential | None = None,
    ):
        self._by_model = {c.model: c for c in credentials or [] if c.model}
        self._default = default

    def resolve(self, model: str | None = None) -> Credential | None:
        if model and model in self._by_model:
            return self._by_model[model]
        return self._default


class EnvCredentialProvider(CredentialProvider):
    """Single default credential read from environment variables.

    Reads `<PREFIX>_API_KEY`, `<PREFIX>_BASE_URL` and `<PREFIX>_AUTH_HEADER`
    on every call.
    """

    def __init__(self, prefix: str = ENV_PREFIX):
        self._prefix = prefix

    def resolve(self, model: str | None = None) -> Credential | None:
        api_key = os.getenv(f"{self._prefix}_API_KEY")
        if not api_key:
            return None
        return Credential(
            api_key=api_key,
            base_url=os.getenv(f"{self._prefix}_BASE_URL") or None,
            header_name=os.getenv(f"{self._prefix}_AUTH_HEADER") or DEFAULT_AUTH_HEADER,
        )


class FileCredentialProvider(CredentialProvider):
    """Credentials stored in a JSON file, re-read on every resolve.

    File layout:
        {
            "default": {"api_key": "...", "base_url": "..."},
            "models": {"gpt-4o": {"api_key": "...", "header_name": "x-api-key"}}
        }

    Edits to the file are seen by the next request, never by one in flight.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise OneEdgeError(f"Credentials file {self._path} is not valid JSON: {e.msg}") from e
        if not isinstance(data, dict):
            raise OneEdgeError(f"Credentials file {self._path} must contain a JSON object")
        return data

    def resolve(self, model: str | None = None) -> Credential | None:
        data = self._load()
        models = data.get("models") or {}

        try:
            if model and model in models:
                return Credential.model_validate({**models[model], "model": model})
            if data.get("default"):
                return Credential.model_validate(data["default"])
        except ValidationError as e:
            raise OneEdgeError(f"Invalid credential record in {self._path}: {e}") from e

        logger.debug("No credential in %s for model %s", self._path, model)
        return None
