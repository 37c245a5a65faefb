"""location.py - Call-site lookup for enter/leave/print messages."""

import os
import sys
from typing import NamedTuple


class Location(NamedTuple):
    """A source position: function name, file base name, line number."""

    name: str
    filename: str
    lineno: int


UNKNOWN = Location("unknown", "unknown", 0)


def get_location(stacklevel: int = 1) -> Location:
    """Return the location of a frame above the function calling this one.

    Counting works like ``stacklevel`` in ``logging.Logger.log``: with F
    the function that calls ``get_location()``, 1 is the caller of F, 2 the
    caller's caller, and so on.

    Args:
        stacklevel: How many frames to go up from F.

    Returns:
        The Location, or ``UNKNOWN`` when the stack is not that deep.
    """
    try:
        frame = sys._getframe(stacklevel + 1)
    except ValueError:
        return UNKNOWN
    code = frame.f_code
    return Location(
        getattr(code, "co_qualname", code.co_name),
        os.path.basename(code.co_filename),
        frame.f_lineno,
    )


def location_of(func) -> Location:
    """Return the definition site of a function."""
    code = getattr(func, "__code__", None)
    if code is None:
        return Location(getattr(func, "__qualname__", repr(func)), "unknown", 0)
    return Location(
        func.__qualname__, os.path.basename(code.co_filename), code.co_firstlineno
    )
