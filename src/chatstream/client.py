"""OpenAI-compatible HTTP clients (sync and async) built on httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from chatstream.config import ClientConfig
from chatstream.core.reader import AsyncEventStreamReader, EventStreamReader
from chatstream.core.stream import AsyncChatCompletionStream, ChatCompletionStream
from chatstream.errors import APIError
from chatstream.models.chat import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatCompletionStreamResponse,
)
from chatstream.models.moderation import ModerationRequest, ModerationResponse
from chatstream.validation import (
    CHAT_COMPLETIONS_PATH,
    MODERATIONS_PATH,
    check_chat_model,
    check_moderation_model,
    check_reasoning_request,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"

ChatRequestLike = ChatCompletionRequest | dict[str, Any]
ModerationRequestLike = ModerationRequest | dict[str, Any]


def _default_headers(api_key: str, organization: str) -> dict[str, str]:
    headers: dict[str, str] = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    if organization:
        headers["OpenAI-Organization"] = organization
    return headers


def _stream_request(request: ChatRequestLike) -> ChatCompletionRequest:
    chat = ChatCompletionRequest.model_validate(request)
    check_chat_model(chat.model)
    chat = chat.model_copy(update={"stream": True})
    check_reasoning_request(chat)
    return chat


def _unary_request(request: ChatRequestLike) -> ChatCompletionRequest:
    chat = ChatCompletionRequest.model_validate(request)
    check_chat_model(chat.model)
    chat = chat.model_copy(update={"stream": False, "stream_options": None})
    check_reasoning_request(chat)
    return chat


def _moderation_request(request: ModerationRequestLike) -> ModerationRequest:
    moderation = ModerationRequest.model_validate(request)
    check_moderation_model(moderation.model)
    return moderation


class Client:
    """Blocking client for /chat/completions and /moderations.

    Streams returned by :meth:`create_chat_completion_stream` own their HTTP
    response and must be closed (or used as a context manager).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        organization: str = "",
        timeout: float = 180.0,
        connect_timeout: float = 30.0,
        http2: bool = True,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers = _default_headers(api_key, organization)
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(
                timeout=httpx.Timeout(timeout, connect=connect_timeout),
                http2=http2,
                limits=httpx.Limits(
                    max_connections=max_connections,
                    max_keepalive_connections=max_keepalive_connections,
                ),
            )
        http_client.headers.update(headers)
        self._client = http_client

    @classmethod
    def from_config(cls, config: ClientConfig) -> "Client":
        return cls(
            base_url=config.endpoint.base_url,
            api_key=config.endpoint.api_key,
            organization=config.endpoint.organization,
            timeout=config.http.timeout,
            connect_timeout=config.http.connect_timeout,
            http2=config.http.http2,
            max_connections=config.http.max_connections,
            max_keepalive_connections=config.http.max_keepalive_connections,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def create_chat_completion_stream(
        self, request: ChatRequestLike
    ) -> ChatCompletionStream:
        """Start a streamed chat completion.

        Tokens arrive as data-only server-sent events, terminated by
        ``data: [DONE]``. HTTP error statuses raise :class:`APIError` before
        any stream is returned.
        """
        chat = _stream_request(request)
        logger.debug("POST %s model=%s stream=True", CHAT_COMPLETIONS_PATH, chat.model)
        http_request = self._client.build_request(
            "POST", self._url(CHAT_COMPLETIONS_PATH), json=chat.to_payload()
        )
        response = self._client.send(http_request, stream=True)
        if response.is_error:
            try:
                response.read()
            finally:
                response.close()
            raise APIError.from_response(response)
        reader = EventStreamReader.from_response(response, ChatCompletionStreamResponse)
        return ChatCompletionStream(reader)

    def create_chat_completion(self, request: ChatRequestLike) -> ChatCompletionResponse:
        chat = _unary_request(request)
        logger.debug("POST %s model=%s", CHAT_COMPLETIONS_PATH, chat.model)
        response = self._client.post(
            self._url(CHAT_COMPLETIONS_PATH), json=chat.to_payload()
        )
        if response.is_error:
            raise APIError.from_response(response)
        result = ChatCompletionResponse.model_validate_json(response.content)
        result.set_headers(response.headers)
        return result

    def moderations(self, request: ModerationRequestLike) -> ModerationResponse:
        """Classify text (or images) against the usage policies."""
        moderation = _moderation_request(request)
        logger.debug("POST %s model=%s", MODERATIONS_PATH, moderation.model)
        response = self._client.post(
            self._url(MODERATIONS_PATH), json=moderation.to_payload()
        )
        if response.is_error:
            raise APIError.from_response(response)
        result = ModerationResponse.model_validate_json(response.content)
        result.set_headers(response.headers)
        return result


class AsyncClient:
    """Async client for /chat/completions and /moderations."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str = "",
        organization: str = "",
        timeout: float = 180.0,
        connect_timeout: float = 30.0,
        http2: bool = True,
        max_connections: int = 500,
        max_keepalive_connections: int = 200,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers = _default_headers(api_key, organization)
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout, connect=connect_timeout),
                http2=http2,
                limits=httpx.Limits(
                    max_connections=max_connections,
                    max_keepalive_connections=max_keepalive_connections,
                ),
            )
        http_client.headers.update(headers)
        self._client = http_client

    @classmethod
    def from_config(cls, config: ClientConfig) -> "AsyncClient":
        return cls(
            base_url=config.endpoint.base_url,
            api_key=config.endpoint.api_key,
            organization=config.endpoint.organization,
            timeout=config.http.timeout,
            connect_timeout=config.http.connect_timeout,
            http2=config.http.http2,
            max_connections=config.http.max_connections,
            max_keepalive_connections=config.http.max_keepalive_connections,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def create_chat_completion_stream(
        self, request: ChatRequestLike
    ) -> AsyncChatCompletionStream:
        chat = _stream_request(request)
        logger.debug("POST %s model=%s stream=True", CHAT_COMPLETIONS_PATH, chat.model)
        http_request = self._client.build_request(
            "POST", self._url(CHAT_COMPLETIONS_PATH), json=chat.to_payload()
        )
        response = await self._client.send(http_request, stream=True)
        if response.is_error:
            try:
                await response.aread()
            finally:
                await response.aclose()
            raise APIError.from_response(response)
        reader = AsyncEventStreamReader.from_response(
            response, ChatCompletionStreamResponse
        )
        return AsyncChatCompletionStream(reader)

    async def create_chat_completion(
        self, request: ChatRequestLike
    ) -> ChatCompletionResponse:
        chat = _unary_request(request)
        logger.debug("POST %s model=%s", CHAT_COMPLETIONS_PATH, chat.model)
        response = await self._client.post(
            self._url(CHAT_COMPLETIONS_PATH), json=chat.to_payload()
        )
        if response.is_error:
            raise APIError.from_response(response)
        result = ChatCompletionResponse.model_validate_json(response.content)
        result.set_headers(response.headers)
        return result

    async def moderations(self, request: ModerationRequestLike) -> ModerationResponse:
        moderation = _moderation_request(request)
        logger.debug("POST %s model=%s", MODERATIONS_PATH, moderation.model)
        response = await self._client.post(
            self._url(MODERATIONS_PATH), json=moderation.to_payload()
        )
        if response.is_error:
            raise APIError.from_response(response)
        result = ModerationResponse.model_validate_json(response.content)
        result.set_headers(response.headers)
        return result
