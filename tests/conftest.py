"""Shared fixtures: an in-memory sink and a Tracer writing to it."""

from typing import List

import pytest

from debugtrace.config import Config
from debugtrace.core import Tracer
from debugtrace.sink import Sink


class MemorySink(Sink):
    """Collects written lines in a list."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def write(self, line: str) -> None:
        self.lines.append(line)

    def clear(self) -> None:
        self.lines.clear()


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def tracer(config: Config, sink: MemorySink) -> Tracer:
    """A Tracer whose start-up and thread banners are already written."""
    tracer = Tracer(config=config, sink=sink)
    tracer.print("warm-up")
    sink.clear()
    return tracer
