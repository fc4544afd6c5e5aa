"""Miscellaneous utilities."""

from __future__ import annotations

from datetime import timedelta


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    m, s = divmod(int(seconds), 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h}h {m}m {s}s"
    if m:
        return f"{m}m {s}s"
    return f"{seconds:.1f}s"


def format_timedelta(delta: timedelta | None) -> str:
    if delta is None:
        return "-"
    return format_duration(delta.total_seconds())
