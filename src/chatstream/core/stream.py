"""Chat completion stream handles returned by the clients."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from types import TracebackType

import httpx

from chatstream.core.reader import AsyncStreamReader, StreamReader
from chatstream.errors import EndOfStream
from chatstream.models.chat import ChatCompletionStreamResponse
from chatstream.ratelimit import RateLimitHeaders


class ChatCompletionStream:
    """A streamed chat completion.

    Wraps any :class:`StreamReader`, so tests can hand in a replay reader in
    place of a live HTTP response. Iterating yields records until the
    ``[DONE]`` sentinel; every other error propagates.
    """

    def __init__(self, reader: StreamReader[ChatCompletionStreamResponse]) -> None:
        self._reader = reader

    def receive(self) -> ChatCompletionStreamResponse:
        return self._reader.receive()

    def close(self) -> None:
        self._reader.close()

    def headers(self) -> httpx.Headers:
        return self._reader.headers()

    def rate_limits(self) -> RateLimitHeaders | None:
        return self._reader.rate_limits()

    def __iter__(self) -> Iterator[ChatCompletionStreamResponse]:
        while True:
            try:
                yield self._reader.receive()
            except EndOfStream:
                return

    def __enter__(self) -> "ChatCompletionStream":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncChatCompletionStream:
    def __init__(
        self, reader: AsyncStreamReader[ChatCompletionStreamResponse]
    ) -> None:
        self._reader = reader

    async def receive(self) -> ChatCompletionStreamResponse:
        return await self._reader.receive()

    async def aclose(self) -> None:
        await self._reader.aclose()

    def headers(self) -> httpx.Headers:
        return self._reader.headers()

    def rate_limits(self) -> RateLimitHeaders | None:
        return self._reader.rate_limits()

    async def __aiter__(self) -> AsyncIterator[ChatCompletionStreamResponse]:
        while True:
            try:
                yield await self._reader.receive()
            except EndOfStream:
                return

    async def __aenter__(self) -> "AsyncChatCompletionStream":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
