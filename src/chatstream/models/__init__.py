"""Pydantic wire types for the chat completion and moderation endpoints."""

from chatstream.models.chat import (
    ChatCompletionChoice,
    ChatCompletionMessage,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatCompletionStreamChoice,
    ChatCompletionStreamChoiceDelta,
    ChatCompletionStreamResponse,
    FunctionDefinition,
    StreamOptions,
    Tool,
)
from chatstream.models.common import FunctionCall, ToolCall, Usage
from chatstream.models.moderation import (
    ModerationItemType,
    ModerationRequest,
    ModerationRequestItem,
    ModerationResponse,
    ModerationResult,
)

__all__ = [
    "ChatCompletionChoice",
    "ChatCompletionMessage",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatCompletionStreamChoice",
    "ChatCompletionStreamChoiceDelta",
    "ChatCompletionStreamResponse",
    "FunctionCall",
    "FunctionDefinition",
    "ModerationItemType",
    "ModerationRequest",
    "ModerationRequestItem",
    "ModerationResponse",
    "ModerationResult",
    "StreamOptions",
    "Tool",
    "ToolCall",
    "Usage",
]
