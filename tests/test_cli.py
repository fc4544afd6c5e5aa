"""Tests for the click CLI."""

import json

import httpx
import respx
from click.testing import CliRunner

from chatstream import __version__
from chatstream.cli import build_chat_request, main
from chatstream.config import load_config
from chatstream.utils.logging import StreamPrinter

from sse_helpers import RATE_LIMIT_HEADERS, make_chunk, sse_body

BASE_URL = "https://cli.example.com/v1"


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_build_chat_request_uses_config_defaults():
    config = load_config(
        None,
        {"endpoint": {"model": "m"}, "request": {"max_tokens": 32, "include_usage": False}},
    )
    request = build_chat_request(config, "hello", system="be brief")
    assert request.model == "m"
    assert [m.role for m in request.messages] == ["system", "user"]
    assert request.max_tokens == 32
    assert request.stream_options is None


def test_chat_streams_to_console():
    final = make_chunk(finish_reason="stop")
    final["usage"] = {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
    body = sse_body([make_chunk("Hello", role="assistant"), make_chunk(" there"), final])

    with respx.mock:
        route = respx.post(f"{BASE_URL}/chat/completions").mock(
            return_value=httpx.Response(200, content=body, headers=RATE_LIMIT_HEADERS)
        )
        result = CliRunner().invoke(
            main,
            ["chat", "Hi", "--base-url", BASE_URL, "--api-key", "k", "--show-rate-limits"],
        )
        payload = json.loads(route.calls.last.request.content)

    assert result.exit_code == 0, result.output
    assert "Hello there" in result.output
    assert "stop" in result.output
    assert "Rate limits" in result.output
    assert payload["stream_options"] == {"include_usage": True}


def test_chat_reports_api_error():
    with respx.mock:
        respx.post(f"{BASE_URL}/chat/completions").mock(
            return_value=httpx.Response(401, json={"error": {"message": "bad key"}})
        )
        result = CliRunner().invoke(main, ["chat", "Hi", "--base-url", BASE_URL])

    assert result.exit_code == 1
    assert "bad key" in result.output


def test_chat_stops_printer_on_api_error(monkeypatch):
    stops = []
    monkeypatch.setattr(StreamPrinter, "stop", lambda self: stops.append(self))
    with respx.mock:
        respx.post(f"{BASE_URL}/chat/completions").mock(
            return_value=httpx.Response(429, json={"error": {"message": "slow down"}})
        )
        result = CliRunner().invoke(main, ["chat", "Hi", "--base-url", BASE_URL])

    assert result.exit_code == 1
    assert "HTTP 429" in result.output
    assert len(stops) == 1


def test_chat_reports_decode_error():
    body = b'data: {"choices":[{"delta":{"content":"x"}}]}\n\ndata: {oops\n\n'
    with respx.mock:
        respx.post(f"{BASE_URL}/chat/completions").mock(
            return_value=httpx.Response(200, content=body)
        )
        result = CliRunner().invoke(main, ["chat", "Hi", "--base-url", BASE_URL])

    assert result.exit_code == 1
    assert "failed to decode stream frame" in result.output


def test_moderate_prints_table():
    body = {
        "id": "modr-1",
        "model": "omni-moderation-latest",
        "results": [
            {"flagged": True, "categories": {"violence": True}, "category_scores": {}},
            {"flagged": False, "categories": {}, "category_scores": {}},
        ],
    }
    with respx.mock:
        route = respx.post(f"{BASE_URL}/moderations").mock(
            return_value=httpx.Response(200, json=body)
        )
        result = CliRunner().invoke(
            main, ["moderate", "first text", "second text", "--base-url", BASE_URL]
        )
        sent = json.loads(route.calls.last.request.content)

    assert result.exit_code == 0, result.output
    assert "violence" in result.output
    assert sent == {"input": ["first text", "second text"]}


def test_moderate_rejects_bad_model():
    result = CliRunner().invoke(
        main, ["moderate", "text", "--base-url", BASE_URL, "--model", "nope"]
    )
    assert result.exit_code == 1
    assert "not supported" in result.output
