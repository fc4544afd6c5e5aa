"""chatstream: OpenAI-compatible chat streaming and moderation client."""

from chatstream.client import AsyncClient, Client
from chatstream.core.accumulator import ChatCompletionAccumulator
from chatstream.core.reader import (
    AsyncEventStreamReader,
    AsyncStreamReader,
    EventStreamReader,
    StreamReader,
    StreamState,
)
from chatstream.core.replay import AsyncReplayStreamReader, ReplayStreamReader
from chatstream.core.stream import AsyncChatCompletionStream, ChatCompletionStream
from chatstream.errors import (
    APIError,
    ChatStreamError,
    ClosedStreamError,
    EndOfStream,
    InvalidModelError,
    ReasoningModelError,
    StreamDecodeError,
    StreamTransportError,
)
from chatstream.ratelimit import RateLimitHeaders

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "AsyncChatCompletionStream",
    "AsyncClient",
    "AsyncEventStreamReader",
    "AsyncReplayStreamReader",
    "AsyncStreamReader",
    "ChatCompletionAccumulator",
    "ChatCompletionStream",
    "ChatStreamError",
    "Client",
    "ClosedStreamError",
    "EndOfStream",
    "EventStreamReader",
    "InvalidModelError",
    "RateLimitHeaders",
    "ReasoningModelError",
    "ReplayStreamReader",
    "StreamDecodeError",
    "StreamReader",
    "StreamState",
    "StreamTransportError",
]
