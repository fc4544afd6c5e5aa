"""Reassemble complete messages from streamed chat completion deltas."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from chatstream.models.chat import (
    ROLE_ASSISTANT,
    ChatCompletionMessage,
    ChatCompletionStreamResponse,
)
from chatstream.models.common import FunctionCall, ToolCall, Usage

logger = logging.getLogger(__name__)


@dataclass
class _ChoiceState:
    role: str = ""
    content: list[str] = field(default_factory=list)
    reasoning: list[str] = field(default_factory=list)
    refusal: list[str] = field(default_factory=list)
    tool_calls: dict[int, ToolCall] = field(default_factory=dict)
    finish_reason: str | None = None


class ChatCompletionAccumulator:
    """Fold stream records into one message per choice index.

    Tool calls arrive as fragments keyed by their ``index``: the first
    fragment carries the id and function name, later ones append to the
    arguments string.
    """

    def __init__(self) -> None:
        self._choices: dict[int, _ChoiceState] = {}
        self.id = ""
        self.model = ""
        self.created = 0
        self.usage: Usage | None = None
        self.records = 0

    def add(self, record: ChatCompletionStreamResponse) -> None:
        self.records += 1
        self.id = self.id or record.id
        self.model = self.model or record.model
        self.created = self.created or record.created
        if record.usage is not None:
            self.usage = record.usage

        for choice in record.choices:
            state = self._choices.setdefault(choice.index, _ChoiceState())
            delta = choice.delta
            if delta.role and not state.role:
                state.role = delta.role
            if delta.content:
                state.content.append(delta.content)
            if delta.reasoning_content:
                state.reasoning.append(delta.reasoning_content)
            if delta.refusal:
                state.refusal.append(delta.refusal)
            for fragment in delta.tool_calls or []:
                _merge_tool_call(state.tool_calls, fragment)
            if choice.finish_reason:
                state.finish_reason = choice.finish_reason

    def extend(self, records: Iterable[ChatCompletionStreamResponse]) -> None:
        for record in records:
            self.add(record)

    def finish_reason(self, index: int = 0) -> str | None:
        state = self._choices.get(index)
        return state.finish_reason if state else None

    def text(self, index: int = 0) -> str:
        state = self._choices.get(index)
        return "".join(state.content) if state else ""

    def reasoning(self, index: int = 0) -> str:
        state = self._choices.get(index)
        return "".join(state.reasoning) if state else ""

    def messages(self) -> list[ChatCompletionMessage]:
        """Assembled messages in choice-index order."""
        out: list[ChatCompletionMessage] = []
        for index in sorted(self._choices):
            state = self._choices[index]
            tool_calls = [state.tool_calls[i] for i in sorted(state.tool_calls)]
            out.append(
                ChatCompletionMessage(
                    role=state.role or ROLE_ASSISTANT,
                    content="".join(state.content) or None,
                    reasoning_content="".join(state.reasoning) or None,
                    refusal="".join(state.refusal) or None,
                    tool_calls=tool_calls or None,
                )
            )
        return out


def _merge_tool_call(calls: dict[int, ToolCall], fragment: ToolCall) -> None:
    idx = fragment.index if fragment.index is not None else 0
    call = calls.get(idx)
    if call is None:
        call = ToolCall(
            index=idx,
            id=fragment.id or "",
            type=fragment.type or "function",
            function=FunctionCall(name="", arguments=""),
        )
        calls[idx] = call
    if fragment.id:
        call.id = fragment.id
    if fragment.function.name:
        call.function.name = (call.function.name or "") + fragment.function.name
    if fragment.function.arguments:
        call.function.arguments = (
            call.function.arguments or ""
        ) + fragment.function.arguments
    logger.debug("Merged tool call fragment index=%d", idx)
