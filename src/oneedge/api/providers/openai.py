"""Chat completion backend on top of the official OpenAI SDK.

SDK objects are dumped and re-validated into the package wire models, so
callers see the same types and errors as with OneEdgeClient.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any, TypeVar

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from ..base import ChatCompletionsAPI
from ..cancellation import CancelToken, race
from ..errors import ApiError, InvalidResponseError, TransportError
from ..models import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ModelInfo,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


async def _next_or_none(iterator: AsyncIterator[Any]) -> Any:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None


def _to_model(model: type[M], sdk_object: Any) -> M:
    try:
        return model.model_validate(sdk_object.model_dump())
    except ValidationError as e:
        raise InvalidResponseError(
            f"Unexpected {model.__name__} from SDK: {e.error_count()} validation error(s)"
        ) from e


def _translate(error: openai.OpenAIError) -> Exception:
    if isinstance(error, openai.APIStatusError):
        return ApiError(error.status_code, error.message)
    if isinstance(error, openai.APITimeoutError):
        return TransportError("Request timed out")
    if isinstance(error, openai.APIConnectionError):
        return TransportError(f"Connection error: {error}")
    return InvalidResponseError(str(error))


class OpenAIBackend(ChatCompletionsAPI):
    """Chat completions through the official OpenAI SDK.

    Hidden design decisions:
    - AsyncOpenAI client initialization and authentication
    - Mapping SDK objects onto the package wire models
    - Translating SDK exceptions into OneEdgeError subclasses

    Useful against providers the SDK already knows how to talk to; the SSE
    framing is the SDK's concern here, not ours.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize the backend.

        Args:
            api_key: Provider API key
            base_url: Optional custom API base URL
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @staticmethod
    def _params(request: ChatCompletionRequest) -> dict[str, Any]:
        payload = request.to_payload()
        payload.pop("stream", None)
        return payload

    async def create_chat_completion(
        self,
        request: ChatCompletionRequest,
        cancel_token: CancelToken | None = None,
    ) -> ChatCompletionResponse:
        """Generate a chat completion using the SDK."""
        try:
            completion = await race(
                self._client.chat.completions.create(**self._params(request)),
                cancel_token,
            )
        except openai.OpenAIError as e:
            raise _translate(e) from e

        return _to_model(ChatCompletionResponse, completion)

    async def stream_chat_completion(
        self,
        request: ChatCompletionRequest,
        cancel_token: CancelToken | None = None,
    ) -> AsyncIterator[ChatCompletionChunk]:
        """Stream a chat completion using the SDK, capturing usage on the last chunk."""
        try:
            stream = await race(
                self._client.chat.completions.create(
                    **self._params(request),
                    stream=True,
                    stream_options={"include_usage": True},
                ),
                cancel_token,
            )
        except openai.OpenAIError as e:
            raise _translate(e) from e

        iterator = stream.__aiter__()
        try:
            while True:
                try:
                    chunk = await race(_next_or_none(iterator), cancel_token)
                except openai.OpenAIError as e:
                    raise _translate(e) from e
                if chunk is None:
                    break
                yield _to_model(ChatCompletionChunk, chunk)
        finally:
            await stream.close()

    async def list_models(self) -> list[ModelInfo]:
        try:
            page = await self._client.models.list()
        except openai.OpenAIError as e:
            raise _translate(e) from e
        return [
            ModelInfo(id=m.id, object=m.object, created=m.created, owned_by=m.owned_by)
            for m in page.data
        ]

    async def health_check(self) -> bool:
        """Return True if the model list can be fetched."""
        try:
            await self.list_models()
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            return False
        return True

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
