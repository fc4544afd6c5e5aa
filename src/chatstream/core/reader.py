"""Typed readers that turn SSE frames into pydantic records.

A reader owns one streaming HTTP response from construction until
``close()``. Calls are expected to be sequential: readers hold no locks, and
calling ``receive()`` concurrently from several threads on the same reader is
the caller's responsibility to avoid. Closing the reader closes the response,
which unblocks a ``receive()`` waiting on the network with
:class:`ClosedStreamError`.

State machine::

    OPEN --[DONE]--> DONE
    OPEN --bad frame / transport failure--> ERRORED
    OPEN | DONE | ERRORED --close()--> CLOSED

Once a reader leaves OPEN, ``receive()`` answers from its recorded state and
never touches the network again.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable, Mapping
from enum import Enum
from typing import Generic, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from chatstream.core.sse import AsyncFrameDecoder, FrameDecoder
from chatstream.errors import (
    ClosedStreamError,
    EndOfStream,
    StreamDecodeError,
    StreamTransportError,
)
from chatstream.ratelimit import RateLimitHeaders

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
RecordT_co = TypeVar("RecordT_co", bound=BaseModel, covariant=True)

# Failures raised by httpx or the socket while a response body is being read.
_READ_ERRORS = (httpx.HTTPError, httpx.StreamError, OSError)


class StreamState(str, Enum):
    OPEN = "open"
    DONE = "done"
    CLOSED = "closed"
    ERRORED = "errored"


class StreamReader(Protocol[RecordT_co]):
    """Contract shared by production readers and test doubles."""

    def receive(self) -> RecordT_co: ...

    def close(self) -> None: ...

    def headers(self) -> httpx.Headers: ...

    def rate_limits(self) -> RateLimitHeaders | None: ...


class AsyncStreamReader(Protocol[RecordT_co]):
    async def receive(self) -> RecordT_co: ...

    async def aclose(self) -> None: ...

    def headers(self) -> httpx.Headers: ...

    def rate_limits(self) -> RateLimitHeaders | None: ...


class _ReaderBase(Generic[RecordT]):
    """State bookkeeping and decoding shared by the sync and async readers."""

    def __init__(
        self,
        record_type: type[RecordT],
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._record_type = record_type
        self._headers = httpx.Headers(headers or {})
        # Captured once: the wire protocol carries no per-event quota data.
        self._rate_limits = RateLimitHeaders.from_headers(self._headers)
        self._state = StreamState.OPEN
        self._error: Exception | None = None

    @property
    def state(self) -> StreamState:
        return self._state

    def headers(self) -> httpx.Headers:
        """Headers of the response that opened the stream."""
        return self._headers

    def rate_limits(self) -> RateLimitHeaders | None:
        """Rate-limit snapshot from the initial headers, None if absent."""
        return self._rate_limits

    def _check_open(self) -> None:
        if self._state is StreamState.CLOSED:
            raise ClosedStreamError()
        if self._state is StreamState.DONE:
            raise EndOfStream()
        if self._error is not None:
            raise self._error

    def _transition(self, state: StreamState) -> None:
        logger.debug(
            "%s stream %s -> %s",
            self._record_type.__name__,
            self._state.value,
            state.value,
        )
        self._state = state

    def _finish(self) -> Exception:
        if self._state is StreamState.CLOSED:
            return ClosedStreamError()
        self._transition(StreamState.DONE)
        return EndOfStream()

    def _fail(self, error: Exception) -> Exception:
        self._error = error
        self._transition(StreamState.ERRORED)
        return error

    def _read_failed(self, exc: Exception) -> Exception:
        """Map an exception from the frame source to the error to raise."""
        if self._state is StreamState.CLOSED:
            # The response was closed underneath a blocked read.
            return ClosedStreamError()
        if isinstance(exc, StreamTransportError):
            return self._fail(exc)
        error = StreamTransportError(f"stream read failed: {exc!r}")
        error.__cause__ = exc
        return self._fail(error)

    def _decode(self, payload: str) -> RecordT:
        if self._state is StreamState.CLOSED:
            raise ClosedStreamError()
        try:
            return self._record_type.model_validate_json(payload)
        except ValidationError as exc:
            first = exc.errors()[0]
            logger.debug(
                "Undecodable %s frame (%d bytes): %s",
                self._record_type.__name__,
                len(payload),
                first["msg"],
            )
            error = StreamDecodeError(payload, reason=first["msg"])
            raise self._fail(error) from exc


class EventStreamReader(_ReaderBase[RecordT]):
    """Blocking reader over a line-delimited SSE body."""

    def __init__(
        self,
        lines: Iterable[str | bytes],
        record_type: type[RecordT],
        headers: Mapping[str, str] | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(record_type, headers)
        self._frames = FrameDecoder(lines)
        self._on_close = on_close

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        record_type: type[RecordT],
    ) -> "EventStreamReader[RecordT]":
        """Wrap a response opened with ``send(..., stream=True)``."""
        return cls(
            response.iter_lines(),
            record_type,
            headers=response.headers,
            on_close=response.close,
        )

    def receive(self) -> RecordT:
        """Return the next record.

        Raises EndOfStream at the ``[DONE]`` sentinel, StreamDecodeError for a
        frame that is not a valid record, StreamTransportError when the
        connection fails or ends early, and ClosedStreamError after close().
        """
        self._check_open()
        try:
            payload = next(self._frames)
        except StopIteration:
            raise self._finish() from None
        except (StreamTransportError, *_READ_ERRORS) as exc:
            raise self._read_failed(exc)
        return self._decode(payload)

    def close(self) -> None:
        """Release the connection. Safe to call repeatedly and in any state."""
        if self._state is StreamState.CLOSED:
            return
        self._transition(StreamState.CLOSED)
        if self._on_close is not None:
            self._on_close()


class AsyncEventStreamReader(_ReaderBase[RecordT]):
    """Async reader over a line-delimited SSE body."""

    def __init__(
        self,
        lines: AsyncIterable[str | bytes],
        record_type: type[RecordT],
        headers: Mapping[str, str] | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        super().__init__(record_type, headers)
        self._frames = AsyncFrameDecoder(lines)
        self._on_close = on_close

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        record_type: type[RecordT],
    ) -> "AsyncEventStreamReader[RecordT]":
        return cls(
            response.aiter_lines(),
            record_type,
            headers=response.headers,
            on_close=response.aclose,
        )

    async def receive(self) -> RecordT:
        self._check_open()
        try:
            payload = await self._frames.__anext__()
        except StopAsyncIteration:
            raise self._finish() from None
        except (StreamTransportError, *_READ_ERRORS) as exc:
            raise self._read_failed(exc)
        return self._decode(payload)

    async def aclose(self) -> None:
        if self._state is StreamState.CLOSED:
            return
        self._transition(StreamState.CLOSED)
        if self._on_close is not None:
            await self._on_close()
