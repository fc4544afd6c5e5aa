"""Chat completion request and response types."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from chatstream.models.common import (
    ChoiceLogprobs,
    ContentFilterResults,
    FunctionCall,
    HTTPHeaders,
    PromptAnnotation,
    PromptFilterResult,
    ToolCall,
    Usage,
)

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"


class ChatCompletionMessage(BaseModel):
    role: str
    content: str | list[dict[str, Any]] | None = None
    name: str | None = None
    refusal: str | None = None
    reasoning_content: str | None = None
    function_call: FunctionCall | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None


class FunctionDefinition(BaseModel):
    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None
    strict: bool | None = None


class Tool(BaseModel):
    type: str = "function"
    function: FunctionDefinition


class StreamOptions(BaseModel):
    # The final chunk carries usage for the whole request when set.
    include_usage: bool = False


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[ChatCompletionMessage]
    max_tokens: int | None = None
    max_completion_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    n: int | None = None
    stream: bool = False
    stream_options: StreamOptions | None = None
    stop: list[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    logit_bias: dict[str, int] | None = None
    logprobs: bool | None = None
    top_logprobs: int | None = None
    seed: int | None = None
    user: str | None = None
    tools: list[Tool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    parallel_tool_calls: bool | None = None
    response_format: dict[str, Any] | None = None
    reasoning_effort: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ChatCompletionStreamChoiceDelta(BaseModel):
    content: str | None = None
    # Only set on the first delta of a choice.
    role: str | None = None
    function_call: FunctionCall | None = None
    tool_calls: list[ToolCall] | None = None
    refusal: str | None = None
    # Non-standard: reasoning text streamed by deepseek-reasoner style models.
    reasoning_content: str | None = None


class ChatCompletionStreamChoice(BaseModel):
    index: int = 0
    delta: ChatCompletionStreamChoiceDelta = Field(
        default_factory=ChatCompletionStreamChoiceDelta
    )
    logprobs: ChoiceLogprobs | None = None
    finish_reason: str | None = None
    content_filter_results: ContentFilterResults | None = None


class ChatCompletionStreamResponse(BaseModel):
    """One ``chat.completion.chunk`` record from a streamed completion."""

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[ChatCompletionStreamChoice] = Field(default_factory=list)
    system_fingerprint: str | None = None
    prompt_annotations: list[PromptAnnotation] | None = None
    prompt_filter_results: list[PromptFilterResult] | None = None
    # Present (non-null) only on the last chunk, and only when the request set
    # stream_options.include_usage.
    usage: Usage | None = None


class ChatCompletionChoice(BaseModel):
    index: int = 0
    message: ChatCompletionMessage
    logprobs: ChoiceLogprobs | None = None
    finish_reason: str | None = None
    content_filter_results: ContentFilterResults | None = None


class ChatCompletionResponse(HTTPHeaders):
    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[ChatCompletionChoice] = Field(default_factory=list)
    system_fingerprint: str | None = None
    prompt_filter_results: list[PromptFilterResult] | None = None
    usage: Usage | None = None
