"""examples/custom_sink_usage.py - Implement and plug in a custom sink.

Subclass Sink and implement ``write(line)``; the Tracer calls it once per
finished line, in order, while holding its lock.

Run:
    python examples/custom_sink_usage.py
"""

from typing import List

from debugtrace import Config, Sink, Tracer, trace


class MemorySink(Sink):
    """Keeps every trace line in memory, handy in tests.

    Example:
        >>> sink = MemorySink()
        >>> tracer = Tracer(config=Config(), sink=sink)
        >>> tracer.print("x", 1)
        1
        >>> sink.lines[-1].startswith("x = 1 ")
        True
    """

    def __init__(self) -> None:
        self.lines: List[str] = []

    def write(self, line: str) -> None:
        self.lines.append(line)


class PrefixSink(Sink):
    """Forwards lines to another sink with a fixed prefix."""

    def __init__(self, prefix: str, target: Sink) -> None:
        self._prefix = prefix
        self._target = target

    def write(self, line: str) -> None:
        self._target.write(self._prefix + line)

    def __str__(self) -> str:
        return f"{type(self).__name__} -> {self._target}"


memory = MemorySink()
tracer = Tracer(config=Config(indent_string="|   "), sink=PrefixSink("[demo] ", memory))


@trace(tracer=tracer)
def fibonacci(n: int) -> int:
    if n < 2:
        return n
    return fibonacci(n - 1) + fibonacci(n - 2)


if __name__ == "__main__":
    tracer.print("result", fibonacci(4))
    print("\n".join(memory.lines))
    print()
    print("last_print_string():", tracer.last_print_string())
