"""HTTP client for an OpenAI-compatible OneEdge gateway."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import (
    CHAT_COMPLETIONS_PATH,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    EVENT_STREAM_CONTENT_TYPE,
    HEALTH_PATH,
    JSON_CONTENT_TYPE,
    MODELS_PATH,
)
from .base import ChatCompletionsAPI
from .cancellation import CancelToken, race
from .credentials import Credential, CredentialProvider
from .errors import (
    ApiError,
    InvalidResponseError,
    NoStreamError,
    NotAuthenticatedError,
    TransportError,
)
from .models import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ModelInfo,
    ModelList,
)
from .sse import parse_sse_stream

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def sanitize_url(url: str) -> str:
    """Strip surrounding whitespace and trailing slashes from a base URL."""
    return url.strip().rstrip("/")


def extract_error_detail(body: bytes, fallback: str = "") -> str:
    """Pick the most useful error text out of a failed response body.

    Preference order: JSON `error` string, JSON `error.message`,
    JSON `message`, then the raw body text.
    """
    text = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if payload.get("message"):
            return str(payload["message"])

    return text.strip() or fallback or "Unknown error"


def _decode_body(response: httpx.Response) -> Any:
    if response.status_code == 204:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Response declared JSON but did not parse: {e}") from e
    if content_type.startswith("text/"):
        return response.text
    return response.content


def _validate(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidResponseError(
            f"Unexpected {model.__name__} payload: {e.error_count()} validation error(s)"
        ) from e


class OneEdgeClient(ChatCompletionsAPI):
    """Chat completion client speaking plain HTTP + SSE via httpx.

    Hidden design decisions:
    - Base URL resolution (per-credential override, absolute paths)
    - Header construction (bearer auth, content negotiation)
    - Error body normalization into ApiError
    - SSE framing of streamed completions
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            credentials: Provider consulted on every request
            base_url: Default base URL when a credential does not set one
            timeout: Request timeout in seconds (ignored with http_client)
            http_client: Optional preconfigured httpx client; the caller keeps
                ownership and must close it
        """
        self._credentials = credentials
        self._base_url = sanitize_url(base_url)
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _credential(self, model: str | None) -> Credential:
        credential = self._credentials.resolve(model)
        if credential is None:
            raise NotAuthenticatedError()
        return credential

    def _url(self, path: str, credential: Credential) -> str:
        if path.startswith(("http://", "https://")):
            return path
        base = sanitize_url(credential.base_url) if credential.base_url else self._base_url
        return f"{base}/{path.lstrip('/')}"

    @staticmethod
    def _headers(credential: Credential, accept: str = JSON_CONTENT_TYPE) -> dict[str, str]:
        return {
            **credential.auth_headers(),
            "Content-Type": JSON_CONTENT_TYPE,
            "Accept": accept,
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        model: str | None = None,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        cancel_token: CancelToken | None = None,
    ) -> Any:
        """Send an authenticated request and decode the response body.

        Args:
            method: HTTP method
            path: Path relative to the base URL, or an absolute URL
            model: Model used to pick the credential
            json_body: Optional JSON body
            params: Optional query parameters
            cancel_token: Optional token aborting the request

        Returns:
            None for 204, parsed JSON for JSON responses, text for text/*,
            bytes otherwise

        Raises:
            NotAuthenticatedError: If no credential is configured
            ApiError: On a non-2xx status
            TransportError: On timeouts and connection failures
            RequestCancelledError: If the token fires first
        """
        credential = self._credential(model)
        url = self._url(path, credential)
        logger.debug("%s %s model=%s", method, url, model)

        try:
            response = await race(
                self._http.request(
                    method,
                    url,
                    json=json_body,
                    params=params,
                    headers=self._headers(credential),
                ),
                cancel_token,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {url} timed out") from e
        except httpx.RequestError as e:
            raise TransportError(f"Could not reach {url}: {e}") from e

        if not response.is_success:
            detail = extract_error_detail(response.content, response.reason_phrase)
            raise ApiError(response.status_code, detail)

        return _decode_body(response)

    async def create_chat_completion(
        self,
        request: ChatCompletionRequest,
        cancel_token: CancelToken | None = None,
    ) -> ChatCompletionResponse:
        """Generate a non-streaming completion via POST /v1/chat/completions."""
        payload = request.model_copy(update={"stream": False}).to_payload()
        data = await self.request(
            "POST",
            CHAT_COMPLETIONS_PATH,
            model=request.model,
            json_body=payload,
            cancel_token=cancel_token,
        )
        return _validate(ChatCompletionResponse, data)

    async def stream_chat_completion(
        self,
        request: ChatCompletionRequest,
        cancel_token: CancelToken | None = None,
    ) -> AsyncIterator[ChatCompletionChunk]:
        """Stream a completion via POST /v1/chat/completions with stream=true.

        Yields:
            Chunks parsed from the event stream

        Raises:
            NotAuthenticatedError: If no credential is configured
            ApiError: On a non-2xx status
            NoStreamError: If the response has no body
            StreamError: If the server sends an error event
            TransportError: On timeouts and connection failures
            RequestCancelledError: If the token fires mid-request
        """
        credential = self._credential(request.model)
        url = self._url(CHAT_COMPLETIONS_PATH, credential)
        payload = request.model_copy(update={"stream": True}).to_payload()
        http_request = self._http.build_request(
            "POST",
            url,
            json=payload,
            headers=self._headers(credential, accept=EVENT_STREAM_CONTENT_TYPE),
        )
        logger.debug("POST %s model=%s stream=true", url, request.model)

        try:
            response = await race(self._http.send(http_request, stream=True), cancel_token)
            try:
                if not response.is_success:
                    body = await response.aread()
                    raise ApiError(
                        response.status_code,
                        extract_error_detail(body, response.reason_phrase),
                    )
                if response.status_code == 204 or response.headers.get("content-length") == "0":
                    raise NoStreamError()

                async with aclosing(parse_sse_stream(response.aiter_bytes(), cancel_token)) as chunks:
                    async for chunk in chunks:
                        yield chunk
            finally:
                await response.aclose()
        except httpx.TimeoutException as e:
            raise TransportError(f"Stream from {url} timed out") from e
        except httpx.RequestError as e:
            raise TransportError(f"Stream from {url} failed: {e}") from e

    async def list_models(self) -> list[ModelInfo]:
        """List models via GET /v1/models. A null list is returned as empty."""
        data = await self.request("GET", MODELS_PATH)
        if isinstance(data, list):
            data = {"data": data}
        return _validate(ModelList, data).data

    async def health_check(self) -> bool:
        """Return True if GET /health succeeds. Any failure is logged and reported as False."""
        try:
            await self.request("GET", HEALTH_PATH)
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            return False
        return True

    async def close(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()
