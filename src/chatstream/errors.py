"""Exception types raised by chatstream."""

from __future__ import annotations

from typing import Any

import httpx


class ChatStreamError(Exception):
    """Base class for library errors."""


class EndOfStream(ChatStreamError):
    """The server sent the ``[DONE]`` sentinel. Not a failure."""

    def __init__(self, message: str = "end of stream") -> None:
        super().__init__(message)


class StreamTransportError(ChatStreamError):
    """The connection failed or closed before the sentinel arrived."""


class StreamDecodeError(ChatStreamError):
    """A frame payload could not be decoded into a stream record.

    The offending payload is kept on ``payload``; the underlying parser error
    is available as ``__cause__``.
    """

    def __init__(self, payload: str, reason: str = "") -> None:
        self.payload = payload
        preview = payload if len(payload) <= 200 else payload[:200] + "..."
        message = f"failed to decode stream frame: {preview!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ClosedStreamError(ChatStreamError):
    """An operation was attempted on a stream after ``close()``."""

    def __init__(self, message: str = "stream is closed") -> None:
        super().__init__(message)


class InvalidModelError(ChatStreamError, ValueError):
    """The requested model is not served by the target endpoint."""

    def __init__(self, model: str, endpoint: str) -> None:
        self.model = model
        self.endpoint = endpoint
        super().__init__(f"model {model!r} is not supported by {endpoint}")


class ReasoningModelError(ChatStreamError, ValueError):
    """A reasoning model was sent a parameter it does not accept."""


class APIError(httpx.HTTPStatusError):
    """The API answered with an HTTP error status.

    Subclasses :class:`httpx.HTTPStatusError` so callers that already handle
    httpx status errors keep working.
    """

    def __init__(
        self,
        message: str,
        *,
        request: httpx.Request,
        response: httpx.Response,
        type: str | None = None,
        param: str | None = None,
        code: Any = None,
    ) -> None:
        super().__init__(
            f"HTTP {response.status_code}: {message}",
            request=request,
            response=response,
        )
        self.status_code = response.status_code
        self.message = message
        self.type = type
        self.param = param
        self.code = code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "APIError":
        """Build an error from a response whose body has been read."""
        text = response.text
        message = text[:500] or response.reason_phrase
        fields: dict[str, Any] = {}
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            err = body["error"]
            raw_message = err.get("message")
            if isinstance(raw_message, list):
                raw_message = ", ".join(str(m) for m in raw_message)
            if raw_message:
                message = str(raw_message)
            fields = {
                "type": err.get("type"),
                "param": err.get("param"),
                "code": err.get("code"),
            }
        return cls(message, request=response.request, response=response, **fields)
