"""Tests for the HTTP clients against a mocked endpoint."""

import json

import httpx
import pytest
import respx

from chatstream.client import AsyncClient, Client
from chatstream.config import load_config
from chatstream.core.accumulator import ChatCompletionAccumulator
from chatstream.errors import (
    APIError,
    EndOfStream,
    InvalidModelError,
    ReasoningModelError,
    StreamDecodeError,
    StreamTransportError,
)
from chatstream.models.chat import ChatCompletionRequest

from sse_helpers import RATE_LIMIT_HEADERS, make_chunk, sse_body

BASE_URL = "https://test.example.com/v1"
COMPLETIONS_URL = f"{BASE_URL}/chat/completions"


def _request(**params) -> dict:
    return {
        "model": "test-model",
        "messages": [{"role": "user", "content": "Hi"}],
        **params,
    }


def _sse_response(body: bytes, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(
        200,
        content=body,
        headers={"content-type": "text/event-stream", **(headers or {})},
    )


def test_stream_parses_sse_chunks():
    chunks = [
        make_chunk("Hello", role="assistant"),
        make_chunk(" world"),
        make_chunk(finish_reason="stop"),
    ]
    chunks[-1]["usage"] = {"prompt_tokens": 10, "completion_tokens": 2, "total_tokens": 12}

    with respx.mock:
        route = respx.post(COMPLETIONS_URL).mock(
            return_value=_sse_response(sse_body(chunks), RATE_LIMIT_HEADERS)
        )
        client = Client(base_url=BASE_URL, api_key="sk-test", timeout=10.0)
        with client.create_chat_completion_stream(
            _request(stream_options={"include_usage": True})
        ) as stream:
            received = list(stream)
            limits = stream.rate_limits()
        client.close()

        sent = route.calls.last.request
        payload = json.loads(sent.content)
        assert payload["stream"] is True
        assert payload["stream_options"] == {"include_usage": True}
        assert "max_tokens" not in payload
        assert sent.headers["authorization"] == "Bearer sk-test"

    assert len(received) == 3
    assert received[0].choices[0].delta.content == "Hello"
    assert received[1].choices[0].delta.content == " world"
    assert received[2].usage.completion_tokens == 2
    assert limits.remaining_requests == 499


def test_stream_handles_empty_lines_and_comments():
    body = (
        b"\n\n"
        b": keep-alive\n\n"
        b'data: {"choices":[{"delta":{"content":"ok"}}]}\n\n'
        b"\n"
        b"data: [DONE]\n\n"
    )
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(return_value=_sse_response(body))
        client = Client(base_url=BASE_URL, timeout=10.0)
        stream = client.create_chat_completion_stream(_request())
        assert stream.receive().choices[0].delta.content == "ok"
        with pytest.raises(EndOfStream):
            stream.receive()
        stream.close()
        client.close()


def test_stream_handles_http_error():
    error_body = {
        "error": {
            "message": "Invalid API key",
            "type": "invalid_request_error",
            "param": None,
            "code": "invalid_api_key",
        }
    }
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(return_value=httpx.Response(401, json=error_body))
        client = Client(base_url=BASE_URL, timeout=10.0)
        with pytest.raises(APIError) as exc_info:
            client.create_chat_completion_stream(_request())
        client.close()

    err = exc_info.value
    assert isinstance(err, httpx.HTTPStatusError)
    assert err.status_code == 401
    assert err.message == "Invalid API key"
    assert err.code == "invalid_api_key"
    assert err.type == "invalid_request_error"


def test_stream_handles_non_json_error_body():
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(
            return_value=httpx.Response(500, text="Internal Server Error")
        )
        client = Client(base_url=BASE_URL, timeout=10.0)
        with pytest.raises(APIError) as exc_info:
            client.create_chat_completion_stream(_request())
        client.close()

    assert exc_info.value.status_code == 500
    assert "Internal Server Error" in exc_info.value.message


def test_stream_without_sentinel_is_transport_error():
    # No [DONE] after the last record: the connection ended early.
    body = (
        b'data: {"choices":[{"delta":{"content":"hello"}}]}\n\n'
        b'data: {"choices":[{"delta":{},"finish_reason":"stop"}]}'
    )
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(return_value=_sse_response(body))
        client = Client(base_url=BASE_URL, timeout=10.0)
        stream = client.create_chat_completion_stream(_request())
        assert stream.receive().choices[0].delta.content == "hello"
        assert stream.receive().choices[0].finish_reason == "stop"
        with pytest.raises(StreamTransportError):
            stream.receive()
        stream.close()
        client.close()


def test_stream_malformed_json_stops_stream():
    body = (
        b'data: {"choices":[{"delta":{"content":"ok"}}]}\n\n'
        b"data: {not valid json}\n\n"
        b'data: {"choices":[{"delta":{"content":"!!"}}]}\n\n'
        b"data: [DONE]\n\n"
    )
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(return_value=_sse_response(body))
        client = Client(base_url=BASE_URL, timeout=10.0)
        stream = client.create_chat_completion_stream(_request())
        assert stream.receive().choices[0].delta.content == "ok"
        with pytest.raises(StreamDecodeError) as first:
            stream.receive()
        with pytest.raises(StreamDecodeError) as again:
            stream.receive()
        stream.close()
        client.close()

    assert first.value.payload == "{not valid json}"
    assert again.value is first.value


def test_invalid_model_rejected_before_request():
    with respx.mock(assert_all_called=False):
        route = respx.post(COMPLETIONS_URL)
        client = Client(base_url=BASE_URL, timeout=10.0)
        with pytest.raises(InvalidModelError):
            client.create_chat_completion_stream(_request(model="text-davinci-003"))
        with pytest.raises(ReasoningModelError):
            client.create_chat_completion_stream(_request(model="o1-mini", max_tokens=10))
        client.close()
    assert not route.called


def test_unary_chat_completion():
    body = {
        "id": "chatcmpl-2",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Hello!"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
    }
    with respx.mock:
        route = respx.post(COMPLETIONS_URL).mock(
            return_value=httpx.Response(200, json=body, headers=RATE_LIMIT_HEADERS)
        )
        with Client(base_url=BASE_URL, timeout=10.0) as client:
            result = client.create_chat_completion(
                ChatCompletionRequest.model_validate(_request(stream=True))
            )
        assert json.loads(route.calls.last.request.content)["stream"] is False

    assert result.choices[0].message.content == "Hello!"
    assert result.usage.total_tokens == 7
    assert result.rate_limits().limit_requests == 500


def test_injected_http_client_is_not_closed():
    http_client = httpx.Client()
    client = Client(base_url=BASE_URL, api_key="sk-x", http_client=http_client)
    client.close()
    assert not http_client.is_closed
    assert http_client.headers["authorization"] == "Bearer sk-x"
    http_client.close()


def test_from_config():
    config = load_config(
        None,
        {"endpoint": {"base_url": BASE_URL + "/", "api_key": "k", "organization": "org-1"}},
    )
    client = Client.from_config(config)
    assert client.base_url == BASE_URL
    assert client._client.headers["openai-organization"] == "org-1"
    client.close()


@pytest.mark.asyncio
async def test_async_stream_parses_sse_chunks(hello_chunks):
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(
            return_value=_sse_response(sse_body(hello_chunks), RATE_LIMIT_HEADERS)
        )
        client = AsyncClient(base_url=BASE_URL, timeout=10.0)
        acc = ChatCompletionAccumulator()
        async with await client.create_chat_completion_stream(_request()) as stream:
            async for record in stream:
                acc.add(record)
            assert stream.rate_limits().reset_tokens == "6m0s"
        await client.close()

    assert acc.text() == "Hi"
    assert acc.finish_reason() == "stop"


@pytest.mark.asyncio
async def test_async_stream_http_error():
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(
            return_value=httpx.Response(429, json={"error": {"message": "Slow down"}})
        )
        client = AsyncClient(base_url=BASE_URL, timeout=10.0)
        with pytest.raises(APIError) as exc_info:
            await client.create_chat_completion_stream(_request())
        await client.close()

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Slow down"


@pytest.mark.asyncio
async def test_async_stream_transport_error():
    with respx.mock:
        respx.post(COMPLETIONS_URL).mock(side_effect=httpx.ConnectError("refused"))
        client = AsyncClient(base_url=BASE_URL, timeout=10.0)
        with pytest.raises(httpx.ConnectError):
            await client.create_chat_completion_stream(_request())
        await client.close()
