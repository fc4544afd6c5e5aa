"""Logging setup and rich rendering for the command line."""

from __future__ import annotations

import logging
import time

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chatstream.core.accumulator import ChatCompletionAccumulator
from chatstream.models.chat import ChatCompletionStreamResponse
from chatstream.models.moderation import ModerationResponse
from chatstream.ratelimit import RateLimitHeaders
from chatstream.utils.helpers import format_duration, format_timedelta

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy libs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)


class StreamPrinter:
    """Echo streamed content to the console as it arrives."""

    def __init__(self, show_reasoning: bool = False) -> None:
        self.show_reasoning = show_reasoning
        self.accumulator = ChatCompletionAccumulator()
        self.start_time = 0.0
        self.first_token_at: float | None = None
        self.finished_at: float | None = None

    def start(self) -> None:
        self.start_time = time.time()

    def update(self, record: ChatCompletionStreamResponse) -> None:
        self.accumulator.add(record)
        for choice in record.choices:
            if choice.index != 0:
                continue
            delta = choice.delta
            if self.show_reasoning and delta.reasoning_content:
                self._mark_first_token()
                console.print(
                    delta.reasoning_content, style="dim", end="", markup=False, highlight=False
                )
            if delta.content:
                self._mark_first_token()
                console.print(delta.content, end="", markup=False, highlight=False)

    def stop(self) -> None:
        self.finished_at = time.time()
        console.print()

    def _mark_first_token(self) -> None:
        if self.first_token_at is None:
            self.first_token_at = time.time()

    def summary(self) -> Panel:
        acc = self.accumulator
        end = self.finished_at or time.time()
        lines = [f" Model: {acc.model or '-'}  |  Records: {acc.records}"]
        if self.first_token_at is not None:
            lines.append(
                f" TTFT: {format_duration(self.first_token_at - self.start_time)}  |  "
                f"Total: {format_duration(end - self.start_time)}"
            )
        lines.append(f" Finish reason: {acc.finish_reason() or '-'}")
        if acc.usage is not None:
            lines.append(
                f" Tokens: {acc.usage.prompt_tokens:,} prompt + "
                f"{acc.usage.completion_tokens:,} completion = "
                f"{acc.usage.total_tokens:,}"
            )
        for message in acc.messages()[:1]:
            for call in message.tool_calls or []:
                lines.append(
                    f" Tool call: {escape(call.function.name or '')}"
                    f"({escape(call.function.arguments or '')})"
                )
        return Panel("\n".join(lines), title="[bold]chatstream[/bold]", border_style="cyan")


def rate_limit_table(limits: RateLimitHeaders | None) -> Table:
    table = Table(title="Rate limits")
    table.add_column("Quota")
    table.add_column("Limit", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Resets in", justify="right")
    if limits is None:
        table.add_row("-", "-", "-", "-")
        return table
    table.add_row(
        "requests",
        f"{limits.limit_requests:,}",
        f"{limits.remaining_requests:,}",
        format_timedelta(limits.reset_requests_after),
    )
    table.add_row(
        "tokens",
        f"{limits.limit_tokens:,}",
        f"{limits.remaining_tokens:,}",
        format_timedelta(limits.reset_tokens_after),
    )
    return table


def moderation_table(response: ModerationResponse, inputs: list[str]) -> Table:
    table = Table(title=f"Moderation ({response.model or 'default model'})")
    table.add_column("#", justify="right")
    table.add_column("Input")
    table.add_column("Flagged")
    table.add_column("Categories")
    for i, result in enumerate(response.results):
        text = inputs[i] if i < len(inputs) else ""
        if len(text) > 40:
            text = text[:37] + "..."
        table.add_row(
            str(i),
            escape(text),
            "[red]yes[/red]" if result.flagged else "[green]no[/green]",
            ", ".join(result.flagged_categories()) or "-",
        )
    return table
