"""debugtrace/__init__.py - Public API for the DebugTrace package.

DebugTrace prints the flow of a program and the values it handles: "Enter" and
"Leave" lines around function scopes, indented by call depth, and readable
renderings of any value (strings, byte buffers, collections, arbitrary objects
via reflection) in between. Each thread or asyncio task keeps its own depth.

Quick start:
    import debugtrace

    def func2(contacts):
        debugtrace.enter()
        debugtrace.print("contacts", contacts)
        debugtrace.leave()

    def func1():
        debugtrace.enter()
        debugtrace.print("Hello, World!")
        func2([Contact(1, "Akane"), Contact(2, "Yukari")])
        debugtrace.leave()

    # Or let the decorator do the enter/leave bookkeeping
    @debugtrace.trace
    def total(prices):
        return sum(prices)

Configuration is read from ``./debugtrace.yml`` (or the file named by the
``DEBUGTRACE_CONFIG`` environment variable) on the first call; see
``debugtrace.config.Config`` for the keys.

Exported names:
    enter:             Print an "Enter" line for the calling function.
    leave:             Print a "Leave" line; returns its argument unchanged.
    print:             Print a message, or a variable name and its value.
    last_print_string: The last rendering, as text (mainly for tests).
    trace:             Decorator doing enter/leave around a function.
    get_tracer:        The module-level Tracer used by the functions above.
    configure:         Replace the module-level Tracer.
    Tracer, Config, load_config, PrintOptions, Sink, StreamSink, FileSink,
    LoggingSink, DebugTraceHandler: building blocks for custom setups.
"""

import threading
from typing import Any, Optional

from .config import Config, load_config
from .core import NO_VALUE, Tracer, __version__
from .handler import DebugTraceHandler
from .instrument import trace
from .options import UNSET, PrintOptions
from .sink import FileSink, LoggingSink, Sink, StreamSink

__all__ = [
    "enter",
    "leave",
    "print",
    "last_print_string",
    "trace",
    "get_tracer",
    "configure",
    "Tracer",
    "Config",
    "load_config",
    "PrintOptions",
    "Sink",
    "StreamSink",
    "FileSink",
    "LoggingSink",
    "DebugTraceHandler",
]

_tracer: Optional[Tracer] = None
_tracer_lock = threading.Lock()


def get_tracer() -> Tracer:
    """Return the module-level Tracer, creating it on first access."""
    global _tracer
    with _tracer_lock:
        if _tracer is None:
            _tracer = Tracer()
        return _tracer


def configure(
    config: Optional[Config] = None,
    sink: Optional[Sink] = None,
    config_path: str = "",
) -> Tracer:
    """Replace the module-level Tracer.

    Args:
        config: Configuration to use instead of loading one from a file.
        sink: Sink to use instead of the one selected by the configuration.
        config_path: YAML file to load when ``config`` is None.

    Returns:
        The new module-level Tracer.
    """
    global _tracer
    with _tracer_lock:
        _tracer = Tracer(config=config, sink=sink, config_path=config_path)
        return _tracer


def enter() -> None:
    """Print an "Enter" line for the calling function and indent what follows."""
    get_tracer().enter(stacklevel=2)


def leave(return_value: Any = None) -> Any:
    """Print a "Leave" line with the elapsed time and return ``return_value``."""
    return get_tracer().leave(return_value, stacklevel=2)


def print(
    name: str,
    value: Any = NO_VALUE,
    *,
    reflection: bool = False,
    as_bytes: bool = False,
    minimum_output_size: int = UNSET,
    minimum_output_length: int = UNSET,
    collection_limit: int = UNSET,
    bytes_limit: int = UNSET,
    string_limit: int = UNSET,
    reflection_limit: int = UNSET,
) -> Any:
    """Print a message, or ``name = <rendering of value>``.

    See ``Tracer.print()`` for the options. Returns ``value`` unchanged, or
    None when only a message was given.
    """
    return get_tracer().print(
        name,
        value,
        reflection=reflection,
        as_bytes=as_bytes,
        minimum_output_size=minimum_output_size,
        minimum_output_length=minimum_output_length,
        collection_limit=collection_limit,
        bytes_limit=bytes_limit,
        string_limit=string_limit,
        reflection_limit=reflection_limit,
        stacklevel=2,
    )


def last_print_string() -> str:
    """Return the last rendering printed by the module-level Tracer."""
    return get_tracer().last_print_string()
