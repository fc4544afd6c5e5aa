"""Replay readers: in-memory stand-ins for a live stream (no network calls).

They follow the same contract as the HTTP-backed readers, so code written
against :class:`~chatstream.core.stream.ChatCompletionStream` can be exercised
with canned records, an injected failure, and optional pacing between records.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from chatstream.core.reader import StreamState
from chatstream.errors import ClosedStreamError, EndOfStream
from chatstream.models.chat import ChatCompletionStreamResponse
from chatstream.ratelimit import RateLimitHeaders

ReplayT = TypeVar("ReplayT", bound="_ReplayBase")


class _ReplayBase:
    def __init__(
        self,
        records: Iterable[BaseModel],
        headers: Mapping[str, str] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self._records = list(records)
        self._position = 0
        self._headers = httpx.Headers(headers or {})
        self._rate_limits = RateLimitHeaders.from_headers(self._headers)
        self._error = error
        self.delay = delay
        self.state = StreamState.OPEN

    @classmethod
    def from_chunks(
        cls: type[ReplayT],
        chunks: Iterable[dict[str, Any]],
        **kwargs: Any,
    ) -> ReplayT:
        """Build a replay of chat completion chunks given as plain dicts."""
        records = [ChatCompletionStreamResponse.model_validate(c) for c in chunks]
        return cls(records, **kwargs)

    def headers(self) -> httpx.Headers:
        return self._headers

    def rate_limits(self) -> RateLimitHeaders | None:
        return self._rate_limits

    def _next(self) -> Any:
        if self.state is StreamState.CLOSED:
            raise ClosedStreamError()
        if self.state is StreamState.DONE:
            raise EndOfStream()
        if self.state is StreamState.ERRORED:
            raise self._error
        if self._position < len(self._records):
            record = self._records[self._position]
            self._position += 1
            return record
        if self._error is not None:
            self.state = StreamState.ERRORED
            raise self._error
        self.state = StreamState.DONE
        raise EndOfStream()

    @property
    def _pending(self) -> bool:
        return self.state is StreamState.OPEN and self._position < len(self._records)


class ReplayStreamReader(_ReplayBase):
    """Blocking replay reader."""

    def receive(self) -> Any:
        if self.delay and self._pending:
            time.sleep(self.delay)
        return self._next()

    def close(self) -> None:
        self.state = StreamState.CLOSED


class AsyncReplayStreamReader(_ReplayBase):
    """Async replay reader."""

    async def receive(self) -> Any:
        if self.delay and self._pending:
            await asyncio.sleep(self.delay)
        return self._next()

    async def aclose(self) -> None:
        self.state = StreamState.CLOSED
