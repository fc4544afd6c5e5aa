"""Client-side checks run before a request is sent."""

from __future__ import annotations

from chatstream.errors import InvalidModelError, ReasoningModelError
from chatstream.models.chat import ChatCompletionRequest
from chatstream.models.moderation import VALID_MODERATION_MODELS

CHAT_COMPLETIONS_PATH = "/chat/completions"
MODERATIONS_PATH = "/moderations"

# Completion-only models the chat endpoint refuses.
_CHAT_DISABLED_MODELS = frozenset(
    {
        "gpt-3.5-turbo-instruct",
        "gpt-3.5-turbo-instruct-0914",
        "davinci-002",
        "babbage-002",
        "text-davinci-003",
        "text-davinci-002",
        "text-curie-001",
        "text-babbage-001",
        "text-ada-001",
        "davinci",
        "curie",
        "babbage",
        "ada",
    }
)

_REASONING_PREFIXES = ("o1", "o3", "o4", "gpt-5")


def check_chat_model(model: str) -> None:
    if model in _CHAT_DISABLED_MODELS:
        raise InvalidModelError(model, CHAT_COMPLETIONS_PATH)


def check_moderation_model(model: str | None) -> None:
    """An empty model lets the server pick its default."""
    if model and model not in VALID_MODERATION_MODELS:
        raise InvalidModelError(model, MODERATIONS_PATH)


def is_reasoning_model(model: str) -> bool:
    return model.startswith(_REASONING_PREFIXES)


def check_reasoning_request(request: ChatCompletionRequest) -> None:
    """Reject parameters that reasoning models (o1/o3/o4/gpt-5) do not take."""
    if not is_reasoning_model(request.model):
        return
    if request.max_tokens:
        raise ReasoningModelError(
            f"{request.model} does not accept max_tokens; "
            "use max_completion_tokens instead"
        )
    if request.logprobs:
        raise ReasoningModelError(f"{request.model} does not support logprobs")
    fixed_at_one = {
        "temperature": request.temperature,
        "top_p": request.top_p,
        "n": request.n,
    }
    for name, value in fixed_at_one.items():
        if value and value != 1:
            raise ReasoningModelError(f"{request.model} requires {name}=1, got {value}")
    for name, value in (
        ("presence_penalty", request.presence_penalty),
        ("frequency_penalty", request.frequency_penalty),
    ):
        if value:
            raise ReasoningModelError(f"{request.model} requires {name}=0, got {value}")
