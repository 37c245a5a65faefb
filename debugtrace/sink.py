"""sink.py - Pluggable destinations for finished trace lines.

This module defines the Sink protocol and the concrete sinks selectable with
the ``logger`` configuration key:

    ``stdout`` / ``stderr``  StreamSink: timestamped lines on a stream.
    ``file``                 FileSink: timestamped lines appended to ``log_path``.
    ``logging``              LoggingSink: DEBUG records on the ``debugtrace`` logger.

The Tracer calls ``write()`` once per line, in order, while holding its lock,
so sinks need no locking of their own.

Typical usage::

    from debugtrace import Tracer
    from debugtrace.sink import FileSink

    tracer = Tracer(sink=FileSink("/tmp/trace.log"))
"""

import logging
import os
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Tuple

from .config import Config

LOGGER_NAME = "debugtrace"
DEFAULT_LOG_PATH = "debugtrace.log"


def _timestamp(datetime_format: str) -> str:
    return datetime.now().astimezone().strftime(datetime_format)


class Sink(ABC):
    """Abstract base class for all trace line destinations.

    Example:
        >>> class ListSink(Sink):
        ...     def __init__(self):
        ...         self.lines = []
        ...     def write(self, line: str) -> None:
        ...         self.lines.append(line)
    """

    @abstractmethod
    def write(self, line: str) -> None:
        """Output one finished line of trace text.

        Args:
            line: The line, already indented, without a trailing newline.
        """

    def __str__(self) -> str:
        return type(self).__name__


class StreamSink(Sink):
    """Write timestamped lines to a text stream (default: sys.stderr).

    Output format::

        2025-05-10 12:34:56.789012+0900 Enter main (app.py:10) <- <module> (app.py:20)

    Attributes:
        _stream: The writable file-like object, or None to look up
            ``sys.stderr`` on every write.
        _datetime_format (str): strftime template for the line prefix.
    """

    def __init__(self, stream=None, datetime_format: str = Config.logging_datetime_format) -> None:
        """Initialise the stream sink.

        Args:
            stream: A writable file-like object. Defaults to ``sys.stderr``,
                resolved at write time so that stream replacement (for
                example by pytest's capture) is honoured.
            datetime_format: strftime template for the timestamp prefix.
        """
        self._stream = stream
        self._datetime_format = datetime_format

    @property
    def stream(self):
        return self._stream if self._stream is not None else sys.stderr

    def write(self, line: str) -> None:
        stream = self.stream
        stream.write(f"{_timestamp(self._datetime_format)} {line}\n")
        stream.flush()

    def __str__(self) -> str:
        name = getattr(self.stream, "name", None) or type(self.stream).__name__
        return f"{type(self).__name__} {name}"


class FileSink(Sink):
    """Append timestamped lines to a file.

    The file is truncated when the sink is created unless ``path`` starts
    with ``+``, in which case lines are appended to the existing content.
    When the directory of ``path`` does not exist, the sink falls back to
    ``debugtrace.log`` in the working directory (append mode) and records a
    warning in ``warning``.

    Attributes:
        path (str): Path of the log file, without the ``+`` marker.
        append (bool): True if existing content is kept.
        warning (Optional[str]): Set when the fallback path is in use.

    Example:
        >>> sink = FileSink("+/tmp/debugtrace/trace.log")
    """

    def __init__(
        self,
        path: str = DEFAULT_LOG_PATH,
        datetime_format: str = Config.logging_datetime_format,
        encoding: str = "utf-8",
    ) -> None:
        self.append = path.startswith("+")
        self.path = path[1:] if self.append else path
        self.warning: Optional[str] = None
        self._datetime_format = datetime_format
        self._encoding = encoding

        directory = os.path.dirname(os.path.abspath(self.path))
        if not os.path.isdir(directory):
            self.warning = (
                f"debugtrace: FileSink: the directory '{directory}' cannot be found, "
                f"using '{DEFAULT_LOG_PATH}'"
            )
            self.path = DEFAULT_LOG_PATH
            self.append = True

        if not self.append:
            with open(self.path, "w", encoding=self._encoding):
                pass

    def write(self, line: str) -> None:
        with open(self.path, "a", encoding=self._encoding) as f:
            f.write(f"{_timestamp(self._datetime_format)} {line}\n")

    def __str__(self) -> str:
        return f"{type(self).__name__} path: {self.path}, append: {self.append}"


class LoggingSink(Sink):
    """Forward lines to the standard ``logging`` module at DEBUG level.

    Timestamps are left to the formatter of whatever handler is attached to
    the logger.

    Attributes:
        _logger (logging.Logger): Target logger, ``debugtrace`` by default.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(LOGGER_NAME)

    def write(self, line: str) -> None:
        self._logger.debug(line)

    def __str__(self) -> str:
        return f"{type(self).__name__} logger: {self._logger.name}"


def create_sink(config: Config) -> Tuple[Sink, Optional[str]]:
    """Build the sink selected by ``config.logger``.

    Args:
        config: The loaded configuration.

    Returns:
        ``(sink, warning)``. ``warning`` is None unless the configured sink
        could not be used as is; an unknown sink kind yields a stderr
        StreamSink and a warning naming the bad value.
    """
    kind = config.logger.lower()
    if kind == "stdout":
        return StreamSink(sys.stdout, config.logging_datetime_format), None
    if kind == "stderr":
        return StreamSink(None, config.logging_datetime_format), None
    if kind == "file":
        sink = FileSink(config.log_path, config.logging_datetime_format)
        return sink, sink.warning
    if kind == "logging":
        return LoggingSink(), None
    return (
        StreamSink(None, config.logging_datetime_format),
        f"debugtrace: ({config.config_path}) logger = {config.logger} is unknown, using stderr",
    )
