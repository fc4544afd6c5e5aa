"""Rate-limit metadata carried in ``x-ratelimit-*`` response headers."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

LIMIT_REQUESTS = "x-ratelimit-limit-requests"
LIMIT_TOKENS = "x-ratelimit-limit-tokens"
REMAINING_REQUESTS = "x-ratelimit-remaining-requests"
REMAINING_TOKENS = "x-ratelimit-remaining-tokens"
RESET_REQUESTS = "x-ratelimit-reset-requests"
RESET_TOKENS = "x-ratelimit-reset-tokens"

RATE_LIMIT_HEADERS = (
    LIMIT_REQUESTS,
    LIMIT_TOKENS,
    REMAINING_REQUESTS,
    REMAINING_TOKENS,
    RESET_REQUESTS,
    RESET_TOKENS,
)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> timedelta | None:
    """Parse a reset interval such as ``"6m0s"``, ``"20ms"`` or ``"1h2m3.5s"``.

    Returns None when the text is not a duration.
    """
    text = value.strip()
    if not text:
        return None
    if text == "0":
        return timedelta(0)
    pos = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            return None
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        return None
    return timedelta(seconds=seconds)


def reset_at(value: str, now: datetime | None = None) -> datetime | None:
    """Absolute instant at which a reset interval ends, relative to ``now``."""
    delta = parse_duration(value)
    if delta is None:
        return None
    return (now or datetime.now(timezone.utc)) + delta


def _to_int(value: str | None) -> int:
    if value is None:
        return 0
    try:
        return int(value.strip())
    except ValueError:
        logger.debug("Ignoring non-integer rate-limit header value: %r", value)
        return 0


class RateLimitHeaders(BaseModel):
    """Snapshot of the rate-limit headers of one HTTP response."""

    model_config = ConfigDict(frozen=True)

    limit_requests: int = 0
    limit_tokens: int = 0
    remaining_requests: int = 0
    remaining_tokens: int = 0
    reset_requests: str = ""
    reset_tokens: str = ""

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitHeaders | None":
        """Parse the snapshot, or return None if no rate-limit header is set."""
        lowered = {k.lower(): v for k, v in headers.items()}
        if not any(name in lowered for name in RATE_LIMIT_HEADERS):
            return None
        return cls(
            limit_requests=_to_int(lowered.get(LIMIT_REQUESTS)),
            limit_tokens=_to_int(lowered.get(LIMIT_TOKENS)),
            remaining_requests=_to_int(lowered.get(REMAINING_REQUESTS)),
            remaining_tokens=_to_int(lowered.get(REMAINING_TOKENS)),
            reset_requests=lowered.get(RESET_REQUESTS, "").strip(),
            reset_tokens=lowered.get(RESET_TOKENS, "").strip(),
        )

    def as_header_dict(self) -> dict[str, Any]:
        """Values keyed by their header names."""
        return {
            LIMIT_REQUESTS: self.limit_requests,
            LIMIT_TOKENS: self.limit_tokens,
            REMAINING_REQUESTS: self.remaining_requests,
            REMAINING_TOKENS: self.remaining_tokens,
            RESET_REQUESTS: self.reset_requests,
            RESET_TOKENS: self.reset_tokens,
        }

    @property
    def reset_requests_after(self) -> timedelta | None:
        return parse_duration(self.reset_requests)

    @property
    def reset_tokens_after(self) -> timedelta | None:
        return parse_duration(self.reset_tokens)
