"""test_api.py - Tests for the module-level API in debugtrace/__init__.py.

Covers:
    - get_tracer() is lazy and returns one shared Tracer
    - configure() replaces it
    - enter / leave / print report the caller's location, not the wrapper's
    - print / leave return their values
    - last_print_string()
"""

import re

import pytest

import debugtrace
from debugtrace.config import Config


@pytest.fixture
def api(sink, monkeypatch):
    """The debugtrace module with a fresh module-level Tracer writing to ``sink``."""
    monkeypatch.setattr(debugtrace, "_tracer", None)
    debugtrace.configure(config=Config(), sink=sink)
    debugtrace.print("warm-up")
    sink.clear()
    return debugtrace


class TestTracerLifecycle:
    def test_get_tracer_is_shared(self, monkeypatch):
        monkeypatch.setattr(debugtrace, "_tracer", None)
        assert debugtrace.get_tracer() is debugtrace.get_tracer()

    def test_configure_replaces_tracer(self, sink, monkeypatch):
        monkeypatch.setattr(debugtrace, "_tracer", None)
        first = debugtrace.get_tracer()
        second = debugtrace.configure(config=Config(), sink=sink)
        assert second is not first
        assert debugtrace.get_tracer() is second
        assert second.sink is sink

    def test_configure_from_path(self, tmp_path, sink, monkeypatch):
        monkeypatch.setattr(debugtrace, "_tracer", None)
        path = tmp_path / "debugtrace.yml"
        path.write_text("string_limit: 5\n", encoding="utf-8")
        tracer = debugtrace.configure(sink=sink, config_path=str(path))
        assert tracer.config.string_limit == 5


class TestModuleFunctions:
    def test_print_reports_caller(self, api, sink):
        assert api.print("x", 1) == 1
        assert re.fullmatch(r"x = 1 \(test_api\.py:\d+\)", sink.lines[0])

    def test_print_options_are_forwarded(self, api, sink):
        api.print("s", "abcdef", string_limit=2)
        assert sink.lines[0].startswith("s = 'ab...' ")

    def test_enter_and_leave_report_caller(self, api, sink):
        def func():
            api.enter()
            return api.leave("done")

        assert func() == "done"
        assert re.fullmatch(
            r"Enter \S*func \(test_api\.py:\d+\) <- \S*test_enter_and_leave_report_caller "
            r"\(test_api\.py:\d+\)",
            sink.lines[0],
        )
        assert re.fullmatch(
            r"Leave \S*func \(test_api\.py:\d+\) duration: \d+\.\d{3} ms", sink.lines[1]
        )

    def test_last_print_string(self, api):
        api.print("v", [1, 2])
        assert re.fullmatch(r"v = \[1, 2\] \(test_api\.py:\d+\)", api.last_print_string())

    def test_exports(self):
        assert debugtrace.__version__ == "0.1.0"
        for name in debugtrace.__all__:
            assert hasattr(debugtrace, name)
