"""Tests for reassembling streamed deltas."""

from chatstream.core.accumulator import ChatCompletionAccumulator
from chatstream.models.chat import ChatCompletionStreamResponse

from sse_helpers import make_chunk


def _records(chunks: list[dict]) -> list[ChatCompletionStreamResponse]:
    return [ChatCompletionStreamResponse.model_validate(c) for c in chunks]


def test_accumulates_content_and_finish_reason():
    acc = ChatCompletionAccumulator()
    acc.extend(
        _records(
            [
                make_chunk("Hello", role="assistant"),
                make_chunk(" world"),
                make_chunk(finish_reason="stop"),
            ]
        )
    )
    assert acc.text() == "Hello world"
    assert acc.finish_reason() == "stop"
    assert acc.records == 3
    assert acc.id == "chatcmpl-1"
    assert acc.model == "test-model"
    [message] = acc.messages()
    assert message.role == "assistant"
    assert message.content == "Hello world"
    assert message.tool_calls is None


def test_accumulates_reasoning_separately():
    acc = ChatCompletionAccumulator()
    acc.extend(
        _records(
            [
                make_chunk(reasoning_content="Let me think. "),
                make_chunk(reasoning_content="Done."),
                make_chunk("42"),
            ]
        )
    )
    assert acc.reasoning() == "Let me think. Done."
    assert acc.text() == "42"


def test_reassembles_fragmented_tool_calls():
    chunks = [
        make_chunk(
            tool_calls=[
                {
                    "index": 0,
                    "id": "call_1",
                    "type": "function",
                    "function": {"name": "get_weather", "arguments": ""},
                }
            ]
        ),
        make_chunk(tool_calls=[{"index": 0, "function": {"arguments": '{"location": '}}]),
        make_chunk(tool_calls=[{"index": 0, "function": {"arguments": '"Paris"}'}}]),
        make_chunk(
            tool_calls=[
                {"index": 1, "id": "call_2", "function": {"name": "get_time", "arguments": "{}"}}
            ]
        ),
        make_chunk(finish_reason="tool_calls"),
    ]
    acc = ChatCompletionAccumulator()
    acc.extend(_records(chunks))

    [message] = acc.messages()
    assert message.content is None
    calls = message.tool_calls
    assert [c.id for c in calls] == ["call_1", "call_2"]
    assert calls[0].function.name == "get_weather"
    assert calls[0].function.arguments == '{"location": "Paris"}'
    assert calls[1].function.name == "get_time"
    assert calls[1].type == "function"
    assert acc.finish_reason() == "tool_calls"


def test_usage_taken_from_final_record():
    final = make_chunk(finish_reason="stop")
    final["usage"] = {"prompt_tokens": 10, "completion_tokens": 2, "total_tokens": 12}
    acc = ChatCompletionAccumulator()
    acc.extend(_records([make_chunk("Hi"), final]))
    assert acc.usage.completion_tokens == 2
    assert acc.usage.total_tokens == 12


def test_multiple_choices_kept_apart():
    acc = ChatCompletionAccumulator()
    acc.extend(
        _records(
            [
                make_chunk("A", index=0),
                make_chunk("B", index=1),
                make_chunk("a", index=0),
                make_chunk(finish_reason="length", index=1),
            ]
        )
    )
    assert acc.text(0) == "Aa"
    assert acc.text(1) == "B"
    assert acc.finish_reason(1) == "length"
    assert acc.finish_reason(0) is None
    assert [m.content for m in acc.messages()] == ["Aa", "B"]


def test_empty_accumulator():
    acc = ChatCompletionAccumulator()
    assert acc.text() == ""
    assert acc.messages() == []
    assert acc.usage is None
