"""Wire types shared by chat and moderation payloads."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field, PrivateAttr

from chatstream.ratelimit import RateLimitHeaders


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    prompt_tokens_details: dict[str, Any] | None = None
    completion_tokens_details: dict[str, Any] | None = None


class FunctionCall(BaseModel):
    """Function name and JSON-encoded arguments.

    In stream deltas both fields arrive in fragments, so either may be None.
    """

    name: str | None = None
    arguments: str | None = None


class ToolCall(BaseModel):
    # Only present in stream deltas, where it identifies the call being built.
    index: int | None = None
    id: str | None = None
    type: str | None = None
    function: FunctionCall = Field(default_factory=FunctionCall)


class FilterResult(BaseModel):
    filtered: bool = False
    severity: str | None = None


class DetectionResult(BaseModel):
    filtered: bool = False
    detected: bool = False


class ContentFilterResults(BaseModel):
    """Azure-style content filter annotations."""

    hate: FilterResult | None = None
    self_harm: FilterResult | None = None
    sexual: FilterResult | None = None
    violence: FilterResult | None = None
    jailbreak: DetectionResult | None = None
    profanity: DetectionResult | None = None


class PromptAnnotation(BaseModel):
    prompt_index: int = 0
    content_filter_results: ContentFilterResults | None = None


class PromptFilterResult(BaseModel):
    index: int = 0
    content_filter_results: ContentFilterResults | None = None


class TopLogprob(BaseModel):
    token: str
    logprob: float = 0.0
    bytes: list[int] | None = None


class TokenLogprob(BaseModel):
    token: str
    logprob: float = 0.0
    bytes: list[int] | None = None
    top_logprobs: list[TopLogprob] = Field(default_factory=list)


class ChoiceLogprobs(BaseModel):
    content: list[TokenLogprob] | None = None
    refusal: list[TokenLogprob] | None = None


class HTTPHeaders(BaseModel):
    """Mixin giving unary responses access to their HTTP response headers."""

    _headers: httpx.Headers = PrivateAttr(default_factory=httpx.Headers)

    def set_headers(self, headers: httpx.Headers) -> None:
        self._headers = httpx.Headers(headers)

    def headers(self) -> httpx.Headers:
        return self._headers

    def rate_limits(self) -> RateLimitHeaders | None:
        return RateLimitHeaders.from_headers(self._headers)
