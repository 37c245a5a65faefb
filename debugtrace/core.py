"""core.py - The Tracer: enter/leave/print orchestration.

A Tracer owns everything that used to be process-wide state in a debug
tracer: the configuration, the sink, the per-thread nest levels, the
formatter with its cycle guard, and the last emitted buffer. All public
operations run under one reentrant lock, end to end and including sink
writes, so lines from different threads never interleave inside a single
rendering.

Output for a simple session looks like::

    ______________________________ MainThread #140245 ______________________________

    Enter main (app.py:12) <- <module> (app.py:30)
    | contacts = [
    |   Contact{id: 1, first_name: 'Akane'},
    |   Contact{id: 2, first_name: 'Yukari'}
    | ] (app.py:15)
    |
    Leave main (app.py:16) duration: 0.412 ms
"""

import platform
import threading
import time
from typing import Any, Optional

from .buffer import LineBuffer
from .config import Config, load_config
from .context import StateRegistry, TraceState, current_context
from .formatter import Formatter
from .location import Location, get_location
from .options import UNSET, PrintOptions
from .sink import Sink, create_sink

__version__ = "0.1.0"


class _NoValue:
    def __repr__(self) -> str:  # pragma: no cover
        return "<no value>"


NO_VALUE: Any = _NoValue()


class Tracer:
    """Prints call scopes and values with call-depth indentation.

    The configuration and sink are resolved on the first call, not at
    construction, so creating a Tracer is free even when it is never used.

    Attributes:
        _config (Optional[Config]): Configuration, loaded lazily if None.
        _sink (Optional[Sink]): Output destination, created lazily if None.
        _lock (threading.RLock): Serializes every public operation.
        _states (StateRegistry): TraceState per thread or task.
        _last_buffer (LineBuffer): The most recently emitted rendering.

    Example:
        >>> tracer = Tracer(config=Config(), sink=my_sink)
        >>> def handler(x):
        ...     tracer.enter()
        ...     tracer.print("x", x)
        ...     return tracer.leave(x * 2)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        sink: Optional[Sink] = None,
        config_path: str = "",
    ) -> None:
        self._config = config
        self._sink = sink
        self._config_path = config_path
        self._lock = threading.RLock()
        self._states = StateRegistry()
        self._initialized = False
        self._formatter: Optional[Formatter] = None
        self._last_buffer: Optional[LineBuffer] = None
        self._before_context: Any = None

    # ---------------------------------------------------------------------- #
    # Public interface
    # ---------------------------------------------------------------------- #

    @property
    def config(self) -> Config:
        """The configuration, loading it if it has not been loaded yet."""
        with self._lock:
            self._initialize()
            return self._config

    @property
    def sink(self) -> Sink:
        with self._lock:
            self._initialize()
            return self._sink

    def enter(
        self,
        location: Optional[Location] = None,
        parent: Optional[Location] = None,
        stacklevel: int = 1,
    ) -> None:
        """Print an "Enter" line and go one nest level deeper.

        Args:
            location: Location reported as the entered scope. Defaults to
                the caller of ``enter()`` (see ``stacklevel``).
            parent: Location reported as the caller of the scope. Defaults
                to the frame above ``location``'s.
            stacklevel: Frames to skip when looking up default locations;
                wrappers around ``enter()`` pass 2 or more.
        """
        if location is None:
            location = get_location(stacklevel)
            if parent is None:
                parent = get_location(stacklevel + 1)
        elif parent is None:
            parent = get_location(stacklevel)

        with self._lock:
            if not self._start():
                return
            config = self._config
            state = self._current_state()

            indent = self._indent(state.nest_level, 0)
            if state.nest_level < state.previous_nest_level or self._last_buffer.is_multi_line:
                self._sink.write(indent)

            message = config.enter_format.format(
                location.name, location.filename, location.lineno,
                parent.name, parent.filename, parent.lineno,
            )
            self._emit_message(indent, message)
            state.enter()

    def leave(
        self,
        return_value: Any = None,
        location: Optional[Location] = None,
        stacklevel: int = 1,
    ) -> Any:
        """Go one nest level up and print a "Leave" line with the duration.

        Args:
            return_value: Returned unchanged, so ``return tracer.leave(x)``
                traces without altering the result.
            location: Location reported in the message. Defaults to the
                caller of ``leave()``.
            stacklevel: Frames to skip when looking up the default location.

        Returns:
            ``return_value``.
        """
        if location is None:
            location = get_location(stacklevel)

        with self._lock:
            if not self._start():
                return return_value
            state = self._current_state()

            if self._last_buffer.is_multi_line:
                self._sink.write(self._indent(state.nest_level, 0))

            started = state.leave()
            duration = (time.monotonic() - started) * 1000.0

            message = self._config.leave_format.format(
                location.name, location.filename, location.lineno, duration
            )
            self._emit_message(self._indent(state.nest_level, 0), message)
        return return_value

    def print(
        self,
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
        location: Optional[Location] = None,
        stacklevel: int = 1,
    ) -> Any:
        """Print a message, or a name and the rendering of a value.

        Args:
            name: The variable name, or the whole message when ``value`` is
                omitted. Converted with ``str()``.
            value: The value to render. When omitted, ``name`` is printed
                verbatim.
            reflection: Render objects by reflection even if they define
                ``__str__``/``__repr__``.
            as_bytes: Render a ``str`` value as a hex dump of its UTF-8 bytes.
            minimum_output_size: Overrides ``Config.minimum_output_size``.
            minimum_output_length: Overrides ``Config.minimum_output_length``.
            collection_limit: Overrides ``Config.collection_limit``.
            bytes_limit: Overrides ``Config.bytes_limit``.
            string_limit: Overrides ``Config.string_limit``.
            reflection_limit: Overrides ``Config.reflection_limit``.
            location: Location for the message suffix. Defaults to the
                caller of ``print()``.
            stacklevel: Frames to skip when looking up the default location.

        Returns:
            ``value`` unchanged, or None when no value was given.
        """
        result = None if value is NO_VALUE else value
        name = str(name)
        if location is None:
            location = get_location(stacklevel)

        with self._lock:
            if not self._start():
                return result
            config = self._config
            state = self._current_state()
            last_multi_lines = self._last_buffer.is_multi_line

            if value is NO_VALUE:
                buff = self._new_buffer().no_break_append(name)
            else:
                options = PrintOptions(
                    reflection=reflection,
                    as_bytes=as_bytes,
                    minimum_output_size=minimum_output_size,
                    minimum_output_length=minimum_output_length,
                    collection_limit=collection_limit,
                    bytes_limit=bytes_limit,
                    string_limit=string_limit,
                    reflection_limit=reflection_limit,
                ).resolve(config)
                buff = self._render(name, value, options)

            buff.no_break_append(
                config.print_suffix_format.format(
                    location.name, location.filename, location.lineno
                )
            )
            buff.line_feed()

            if last_multi_lines or buff.is_multi_line:
                self._sink.write(self._indent(state.nest_level, 0))
            for line in buff.lines():
                self._sink.write(self._indent(state.nest_level, line.nest_level) + line.text)
            self._last_buffer = buff
        return result

    def last_print_string(self) -> str:
        """Return the last emitted rendering as it was indented.

        The first line carries the calling thread's call indentation; every
        line carries its own data indentation.
        """
        with self._lock:
            self._initialize()
            state = self._current_state()
            lines = self._last_buffer.lines()
            text = "\n".join(
                self._config.data_indent_string * line.nest_level + line.text
                for line in lines
            )
            return self._indent(state.nest_level, 0) + text

    def current_state(self) -> TraceState:
        """Return the TraceState of the calling thread or task."""
        with self._lock:
            return self._current_state()

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True

        warnings = []
        if self._config is None:
            self._config = load_config(self._config_path)
        warnings.extend(self._config.warnings)
        if self._sink is None:
            self._sink, warning = create_sink(self._config)
            if warning:
                warnings.append(warning)

        self._formatter = Formatter(self._config)
        self._last_buffer = self._new_buffer()

        if not self._config.enabled:
            return
        self._sink.write(
            f"DebugTrace-py {__version__} on {platform.python_implementation()} "
            f"{platform.python_version()}"
        )
        self._sink.write(f"  config file path: {self._config.config_path}")
        self._sink.write(f"  logger: {self._sink}")
        for warning in warnings:
            self._sink.write(warning)

    def _start(self) -> bool:
        """Initialise on first use and print a banner on thread change.

        Returns:
            False if tracing is disabled by configuration.
        """
        self._initialize()
        if not self._config.enabled:
            return False

        key, name = current_context()
        if key != self._before_context:
            self._sink.write("")
            self._sink.write(self._config.thread_boundary_format.format(name, _display_id(key)))
            self._sink.write("")
            self._before_context = key
        return True

    def _current_state(self) -> TraceState:
        key, _ = current_context()
        return self._states.get(key)

    def _new_buffer(self) -> LineBuffer:
        return LineBuffer(self._config.maximum_data_output_width)

    def _indent(self, nest_level: int, data_nest_level: int) -> str:
        config = self._config
        maximum = config.maximum_indents
        return (
            config.indent_string * min(max(0, nest_level), maximum)
            + config.data_indent_string * min(max(0, data_nest_level), maximum)
        )

    def _emit_message(self, indent: str, message: str) -> None:
        buff = self._new_buffer().no_break_append(message).line_feed()
        self._last_buffer = buff
        self._sink.write(indent + buff.lines()[0].text)

    def _render(self, name: str, value: Any, options: PrintOptions) -> LineBuffer:
        # Rendering errors are printed, never raised.
        formatter = self._formatter
        formatter.reset()
        try:
            return formatter.render(name, value, options)
        except Exception as exc:
            buff = self._new_buffer()
            if name:
                buff.append(name).no_break_append(self._config.varname_value_separator)
            return buff.no_break_append(
                self._config.error_format.format(type(exc).__name__, exc)
            )
        finally:
            formatter.reset()


def _display_id(key: Any) -> Any:
    return key[1] if isinstance(key, tuple) else key
