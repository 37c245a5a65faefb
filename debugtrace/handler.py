"""handler.py - Bridge from the standard logging module into a Tracer.

DebugTraceHandler lets existing ``logging`` calls show up inside the trace,
at the current call indentation and tagged with the record's own call site:

    Enter pay (shop.py:10) <- checkout (shop.py:42)
    | [INFO] charging card (shop.py:12)
    Leave pay (shop.py:10) duration: 1.204 ms

Typical usage:
    import logging
    from debugtrace.handler import DebugTraceHandler

    logging.getLogger().addHandler(DebugTraceHandler())
"""

import logging
from typing import Optional

from .core import Tracer
from .location import Location
from .sink import LOGGER_NAME


class DebugTraceHandler(logging.Handler):
    """A logging.Handler that prints each record through a Tracer.

    Records emitted by the ``debugtrace`` logger itself are ignored, so a
    Tracer configured with the ``logging`` sink cannot feed its own output
    back into itself.

    Attributes:
        _tracer (Optional[Tracer]): Target tracer; the module-level tracer
            when None.

    Example:
        >>> import logging
        >>> from debugtrace.handler import DebugTraceHandler
        >>> logging.getLogger("shop").addHandler(DebugTraceHandler())
        >>> logging.getLogger("shop").warning("low stock")  # printed in the trace
    """

    def __init__(self, tracer: Optional[Tracer] = None, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._tracer = tracer

    @property
    def tracer(self) -> Tracer:
        if self._tracer is not None:
            return self._tracer
        from . import get_tracer

        return get_tracer()

    def emit(self, record: logging.LogRecord) -> None:
        """Print ``[LEVEL] message`` at the record's call site.

        Args:
            record: The LogRecord produced by the logging framework.
        """
        if record.name == LOGGER_NAME or record.name.startswith(LOGGER_NAME + "."):
            return
        try:
            message = f"[{record.levelname}] {self.format(record)}"
            location = Location(record.funcName or "unknown", record.filename, record.lineno)
            self.tracer.print(message, location=location)
        except Exception:
            self.handleError(record)
