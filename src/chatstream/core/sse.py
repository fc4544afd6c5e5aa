"""Server-sent-event framing for OpenAI-compatible streaming responses.

Only the subset the API uses is understood: each event is a single
``data: <json>`` line and the stream ends with ``data: [DONE]``. Blank
keep-alive lines, ``:`` comments and any other SSE field are skipped.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Iterable
from enum import Enum

from chatstream.errors import StreamTransportError

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class LineKind(str, Enum):
    DATA = "data"
    DONE = "done"
    SKIP = "skip"


def classify_line(line: str | bytes) -> tuple[LineKind, str]:
    """Classify one transport line and extract its payload."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return LineKind.SKIP, ""
    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return LineKind.DONE, ""
    return LineKind.DATA, payload


def _premature_close() -> StreamTransportError:
    return StreamTransportError("connection closed before [DONE] sentinel")


class FrameDecoder:
    """Iterator of raw frame payloads pulled from a line source.

    Iteration stops at the ``[DONE]`` sentinel. If the line source runs dry
    first, :class:`StreamTransportError` is raised. Errors raised by the line
    source itself propagate unchanged.
    """

    def __init__(self, lines: Iterable[str | bytes]) -> None:
        self._lines = iter(lines)
        self._done = False

    def __iter__(self) -> "FrameDecoder":
        return self

    def __next__(self) -> str:
        if self._done:
            raise StopIteration
        for line in self._lines:
            kind, payload = classify_line(line)
            if kind is LineKind.DATA:
                return payload
            if kind is LineKind.DONE:
                self._done = True
                raise StopIteration
        raise _premature_close()


class AsyncFrameDecoder:
    """Async counterpart of :class:`FrameDecoder`."""

    def __init__(self, lines: AsyncIterable[str | bytes]) -> None:
        self._lines = lines.__aiter__()
        self._done = False

    def __aiter__(self) -> "AsyncFrameDecoder":
        return self

    async def __anext__(self) -> str:
        if self._done:
            raise StopAsyncIteration
        async for line in self._lines:
            kind, payload = classify_line(line)
            if kind is LineKind.DATA:
                return payload
            if kind is LineKind.DONE:
                self._done = True
                raise StopAsyncIteration
        raise _premature_close()
