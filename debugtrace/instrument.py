"""instrument.py - @trace decorator wrapping a function in enter/leave.

The decorator is a convenience over calling ``enter()`` and ``leave()`` by
hand. The entered scope is reported at the function's definition site, the
parent at the call site, and the Leave line at the definition site again:

    Enter pay (shop.py:10) <- checkout (shop.py:42)
    | ...
    Leave pay (shop.py:10) duration: 1.204 ms

If the function raises (any BaseException, including KeyboardInterrupt and
asyncio task cancellation), an ``!! ExcType: message`` line is printed, the
scope is left so nest levels stay balanced, and the exception propagates
unchanged.

Usage:
    from debugtrace import trace

    @trace
    def process_payment(user_id: int, amount: float) -> Receipt:
        ...

    @trace(tracer=my_tracer)
    async def fetch(url: str) -> bytes:
        ...
"""

import inspect
from functools import wraps
from typing import Callable, Optional

from .core import Tracer
from .location import location_of


def _resolve(tracer: Optional[Tracer]) -> Tracer:
    if tracer is not None:
        return tracer
    from . import get_tracer

    return get_tracer()


def trace(func: Optional[Callable] = None, *, tracer: Optional[Tracer] = None):
    """Decorator that traces every call of ``func``.

    Works with plain functions, methods and ``async def`` coroutine
    functions. May be applied bare (``@trace``) or with arguments
    (``@trace(tracer=...)``).

    Args:
        func: The callable to wrap.
        tracer: Tracer to report to. Defaults to the module-level tracer,
            looked up at call time so ``debugtrace.configure()`` applies to
            functions decorated earlier.

    Returns:
        The wrapped callable, with ``functools.wraps`` metadata, or a
        decorator when called without ``func``.
    """
    if func is None:
        return lambda f: trace(f, tracer=tracer)

    location = location_of(func)

    def _raised(active: Tracer, exc: BaseException) -> None:
        active.print(f"!! {type(exc).__name__}: {exc}", location=location)

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            active = _resolve(tracer)
            active.enter(location=location, stacklevel=2)
            try:
                result = await func(*args, **kwargs)
            except BaseException as exc:
                _raised(active, exc)
                active.leave(location=location)
                raise  # never swallow the traced function's exception
            return active.leave(result, location=location)

        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs):
        active = _resolve(tracer)
        active.enter(location=location, stacklevel=2)
        try:
            result = func(*args, **kwargs)
        except BaseException as exc:
            _raised(active, exc)
            active.leave(location=location)
            raise  # never swallow the traced function's exception
        return active.leave(result, location=location)

    return wrapper
