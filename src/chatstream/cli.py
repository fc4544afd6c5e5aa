"""Click CLI definition for chatstream."""

from __future__ import annotations

import logging
import sys

import click
from rich.markup import escape

from chatstream import __version__
from chatstream.client import Client
from chatstream.config import ClientConfig, load_config
from chatstream.errors import APIError, ChatStreamError
from chatstream.models.chat import (
    ROLE_SYSTEM,
    ROLE_USER,
    ChatCompletionMessage,
    ChatCompletionRequest,
    StreamOptions,
)
from chatstream.models.moderation import ModerationRequest
from chatstream.utils.logging import (
    StreamPrinter,
    console,
    moderation_table,
    rate_limit_table,
    setup_logging,
)

logger = logging.getLogger(__name__)


def _endpoint_overrides(
    base_url: str | None,
    api_key: str | None,
    model: str | None = None,
) -> dict:
    overrides: dict = {}
    if base_url:
        overrides.setdefault("endpoint", {})["base_url"] = base_url
    if api_key:
        overrides.setdefault("endpoint", {})["api_key"] = api_key
    if model:
        overrides.setdefault("endpoint", {})["model"] = model
    return overrides


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(1)


def build_chat_request(
    config: ClientConfig,
    prompt: str,
    system: str | None = None,
) -> ChatCompletionRequest:
    messages = []
    if system:
        messages.append(ChatCompletionMessage(role=ROLE_SYSTEM, content=system))
    messages.append(ChatCompletionMessage(role=ROLE_USER, content=prompt))
    defaults = config.request
    return ChatCompletionRequest(
        model=config.endpoint.model,
        messages=messages,
        max_tokens=defaults.max_tokens,
        temperature=defaults.temperature,
        stream=True,
        stream_options=StreamOptions(include_usage=True) if defaults.include_usage else None,
    )


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """chatstream: OpenAI-compatible chat streaming and moderation client."""


@main.command()
@click.argument("prompt")
@click.option("--base-url", type=str, help="OpenAI-compatible base URL")
@click.option("--api-key", type=str, envvar="OPENAI_API_KEY", help="API key")
@click.option("--model", type=str, help="Model name")
@click.option("--system", type=str, help="System prompt")
@click.option("--max-tokens", type=int, help="Maximum tokens to generate")
@click.option("--temperature", type=float, help="Sampling temperature")
@click.option("--no-usage", is_flag=True, help="Do not request usage totals")
@click.option("--reasoning", is_flag=True, help="Echo reasoning_content deltas")
@click.option("--show-rate-limits", is_flag=True, help="Print rate-limit headers")
@click.option("--config", "config_path", type=str, help="Path to config YAML file")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def chat(
    prompt: str,
    base_url: str | None,
    api_key: str | None,
    model: str | None,
    system: str | None,
    max_tokens: int | None,
    temperature: float | None,
    no_usage: bool,
    reasoning: bool,
    show_rate_limits: bool,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Stream a chat completion for PROMPT."""
    setup_logging(verbose)

    overrides = _endpoint_overrides(base_url, api_key, model)
    if max_tokens:
        overrides.setdefault("request", {})["max_tokens"] = max_tokens
    if temperature is not None:
        overrides.setdefault("request", {})["temperature"] = temperature
    if no_usage:
        overrides.setdefault("request", {})["include_usage"] = False

    config = load_config(config_path, overrides)
    logger.debug("Streaming from %s model=%s", config.endpoint.base_url, config.endpoint.model)
    request = build_chat_request(config, prompt, system)
    printer = StreamPrinter(show_reasoning=reasoning)

    with Client.from_config(config) as client:
        try:
            printer.start()
            with client.create_chat_completion_stream(request) as stream:
                for record in stream:
                    printer.update(record)
                limits = stream.rate_limits()
            printer.stop()
        except APIError as e:
            printer.stop()
            _fail(f"HTTP {e.status_code}: {e.message}")
        except ChatStreamError as e:
            printer.stop()
            _fail(str(e))

    console.print(printer.summary())
    if show_rate_limits:
        console.print(rate_limit_table(limits))


@main.command()
@click.argument("texts", nargs=-1, required=True)
@click.option("--base-url", type=str, help="OpenAI-compatible base URL")
@click.option("--api-key", type=str, envvar="OPENAI_API_KEY", help="API key")
@click.option("--model", type=str, help="Moderation model (server default if unset)")
@click.option("--config", "config_path", type=str, help="Path to config YAML file")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def moderate(
    texts: tuple[str, ...],
    base_url: str | None,
    api_key: str | None,
    model: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Check TEXTS against the moderation endpoint."""
    setup_logging(verbose)

    config = load_config(config_path, _endpoint_overrides(base_url, api_key))
    inputs = list(texts)
    request = ModerationRequest(
        input=inputs[0] if len(inputs) == 1 else inputs,
        model=model,
    )

    with Client.from_config(config) as client:
        try:
            response = client.moderations(request)
        except APIError as e:
            _fail(f"HTTP {e.status_code}: {e.message}")
        except ChatStreamError as e:
            _fail(str(e))

    console.print(moderation_table(response, inputs))


if __name__ == "__main__":
    main()
