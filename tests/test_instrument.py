"""test_instrument.py - Unit and integration tests for the @trace decorator.

Covers:
    - @trace prints Enter/Leave lines around a call
    - Entered scope is the definition site, parent is the call site
    - Return values pass through unchanged
    - Nested @trace calls indent by call depth
    - Exceptions (including KeyboardInterrupt and task cancellation) print
      a !! line, leave the scope and re-raise
    - async def functions are traced across awaits
    - functools.wraps metadata is preserved
    - Bare @trace resolves the module-level tracer at call time
"""

import asyncio
import re

import pytest

import debugtrace
from debugtrace.config import Config
from debugtrace.instrument import trace


# ---------------------------------------------------------------------------
# Enter / Leave lines
# ---------------------------------------------------------------------------


class TestTraceLines:
    def test_trace_prints_enter_and_leave(self, tracer, sink):
        """A traced call produces one Enter and one Leave line."""

        @trace(tracer=tracer)
        def add(a, b):
            return a + b

        assert add(1, 2) == 3
        enter, leave = sink.lines
        assert re.fullmatch(
            r"Enter \S*add \(test_instrument\.py:\d+\) <- "
            r"\S*test_trace_prints_enter_and_leave \(test_instrument\.py:\d+\)",
            enter,
        )
        assert re.fullmatch(
            r"Leave \S*add \(test_instrument\.py:\d+\) duration: \d+\.\d{3} ms", leave
        )

    def test_body_output_is_indented(self, tracer, sink):
        @trace(tracer=tracer)
        def work():
            tracer.print("step")

        work()
        assert re.fullmatch(r"\| step \(test_instrument\.py:\d+\)", sink.lines[1])

    def test_nested_calls_indent(self, tracer, sink):
        """Inner traced calls are printed one level deeper."""

        @trace(tracer=tracer)
        def inner():
            return "i"

        @trace(tracer=tracer)
        def outer():
            return inner()

        assert outer() == "i"
        prefixes = [line.split(" ", 1)[0] for line in sink.lines]
        assert prefixes == ["Enter", "|", "|", "Leave"]
        assert sink.lines[1].startswith("| Enter ")
        assert sink.lines[2].startswith("| Leave ")
        assert tracer.current_state().nest_level == 0

    def test_method_is_traced(self, tracer, sink):
        class Cart:
            @trace(tracer=tracer)
            def total(self, prices):
                return sum(prices)

        assert Cart().total([1, 2]) == 3
        assert "Cart.total (test_instrument.py:" in sink.lines[0]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TestTraceExceptions:
    def test_exception_is_printed_and_reraised(self, tracer, sink):
        @trace(tracer=tracer)
        def fail():
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            fail()

        assert re.fullmatch(
            r"\| !! ValueError: bad input \(test_instrument\.py:\d+\)", sink.lines[1]
        )
        assert sink.lines[2].startswith("Leave ")
        assert tracer.current_state().nest_level == 0

    def test_nest_level_restored_after_nested_failure(self, tracer):
        @trace(tracer=tracer)
        def inner():
            raise KeyError("k")

        @trace(tracer=tracer)
        def outer():
            try:
                inner()
            except KeyError:
                return "handled"

        assert outer() == "handled"
        assert tracer.current_state().nest_level == 0

    def test_keyboard_interrupt_leaves_scope(self, tracer, sink):
        """BaseExceptions are printed and the scope is left before re-raising."""

        @trace(tracer=tracer)
        def work():
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            work()

        assert re.fullmatch(
            r"\| !! KeyboardInterrupt:  \(test_instrument\.py:\d+\)", sink.lines[1]
        )
        assert sink.lines[2].startswith("Leave ")
        assert tracer.current_state().nest_level == 0

    def test_system_exit_leaves_scope(self, tracer):
        @trace(tracer=tracer)
        def stop():
            raise SystemExit(3)

        with pytest.raises(SystemExit):
            stop()
        assert tracer.current_state().nest_level == 0


# ---------------------------------------------------------------------------
# async
# ---------------------------------------------------------------------------


class TestTraceAsync:
    def test_async_function(self, tracer, sink):
        @trace(tracer=tracer)
        async def fetch(x):
            await asyncio.sleep(0)
            tracer.print("x", x)
            return x * 2

        assert asyncio.run(fetch(21)) == 42
        lines = [line for line in sink.lines if line.startswith(("Enter", "Leave", "|"))]
        assert lines[0].startswith("Enter ") and "fetch" in lines[0]
        assert re.fullmatch(r"\| x = 21 \(test_instrument\.py:\d+\)", lines[1])
        assert lines[2].startswith("Leave ") and "fetch" in lines[2]

    def test_async_exception_reraised(self, tracer, sink):
        @trace(tracer=tracer)
        async def fail():
            raise RuntimeError("down")

        with pytest.raises(RuntimeError, match="down"):
            asyncio.run(fail())
        assert any("!! RuntimeError: down" in line for line in sink.lines)

    def test_cancelled_task_leaves_scope(self, tracer, sink):
        """Cancelling a task inside a traced coroutine restores its nest level."""
        levels = []

        async def main():
            started = asyncio.Event()

            @trace(tracer=tracer)
            async def slow():
                started.set()
                await asyncio.sleep(10)

            async def runner():
                try:
                    await slow()
                except asyncio.CancelledError:
                    levels.append(tracer.current_state().nest_level)

            task = asyncio.create_task(runner())
            await started.wait()
            task.cancel()
            await task

        asyncio.run(main())
        assert levels == [0]
        assert any("!! CancelledError" in line for line in sink.lines)
        assert any(line.startswith("Leave ") and "slow" in line for line in sink.lines)


# ---------------------------------------------------------------------------
# Decorator mechanics
# ---------------------------------------------------------------------------


class TestTraceMechanics:
    def test_wraps_preserves_metadata(self, tracer):
        def documented(a):
            """Docstring."""
            return a

        wrapped = trace(documented, tracer=tracer)
        assert wrapped.__name__ == "documented"
        assert wrapped.__doc__ == "Docstring."
        assert wrapped.__wrapped__ is documented

    def test_bare_decorator_uses_module_tracer(self, sink, monkeypatch):
        """The module-level tracer is looked up at call time."""
        monkeypatch.setattr(debugtrace, "_tracer", None)

        @trace
        def func():
            return 1

        debugtrace.configure(config=Config(), sink=sink)
        assert func() == 1
        assert any(line.startswith("Enter ") and "func" in line for line in sink.lines)
