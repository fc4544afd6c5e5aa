"""Shared fixtures."""

import pytest

from sse_helpers import make_chunk


@pytest.fixture
def hello_chunks() -> list[dict]:
    return [
        make_chunk("Hi", finish_reason="", role="assistant"),
        make_chunk(finish_reason="stop"),
    ]
