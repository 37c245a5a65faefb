"""context.py - Per-thread (or per-task) call nesting state.

Each logical flow of execution has its own TraceState: an OS thread, or an
asyncio Task when one is running. The Tracer keeps them in a StateRegistry
keyed by ``current_context()`` and only touches the registry while holding
its lock, so neither class does any locking of its own.

States are created lazily and never removed.
"""

import asyncio
import threading
import time
from typing import Dict, Hashable, List, Tuple


def current_context() -> Tuple[Hashable, str]:
    """Return ``(key, name)`` identifying the current flow of execution.

    Inside a running asyncio Task the key is derived from the task, so
    coroutines interleaved on one thread keep separate nest levels.
    Otherwise the current thread's ident and name are used.

    Example:
        >>> key, name = current_context()
        >>> name
        'MainThread'
    """
    try:
        task = asyncio.current_task()
    except RuntimeError:
        task = None
    if task is not None:
        return ("task", id(task)), task.get_name()
    thread = threading.current_thread()
    return thread.ident, thread.name


class TraceState:
    """Nest level and entry timestamps of one thread or task.

    Attributes:
        key: The ``current_context()`` key this state belongs to.
        nest_level (int): Number of unmatched ``enter()`` calls.
        previous_nest_level (int): Nest level before the last transition.
            A nest level below it means the flow returned to a shallower
            level since the last message.

    Example:
        >>> state = TraceState("t1")
        >>> state.enter()
        >>> state.nest_level
        1
        >>> _ = state.leave()
        >>> state.nest_level, state.previous_nest_level
        (0, 1)
    """

    def __init__(self, key: Hashable) -> None:
        self.key = key
        self.reset()

    def reset(self) -> None:
        """Return to nest level 0 with no pending entries."""
        self.nest_level = 0
        self.previous_nest_level = 0
        self._times: List[float] = []

    def enter(self) -> None:
        """Record a scope entry: push the current time, go one level deeper."""
        self.previous_nest_level = self.nest_level
        self._times.append(time.monotonic())
        self.nest_level += 1

    def leave(self) -> float:
        """Record a scope exit and return the matching entry time.

        The nest level never drops below 0, so an unmatched ``leave()`` does
        not shift later output to the left.

        Returns:
            The ``time.monotonic()`` value pushed by the matching ``enter()``,
            or the current time when there is no pending entry.
        """
        self.previous_nest_level = self.nest_level
        if self.nest_level > 0:
            self.nest_level -= 1
        return self._times.pop() if self._times else time.monotonic()

    @property
    def pending(self) -> int:
        """Number of entry timestamps not yet popped by ``leave()``."""
        return len(self._times)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"TraceState(key={self.key!r}, nest_level={self.nest_level}, "
            f"previous_nest_level={self.previous_nest_level})"
        )


class StateRegistry:
    """Mapping from context key to TraceState, filled on first access."""

    def __init__(self) -> None:
        self._states: Dict[Hashable, TraceState] = {}

    def get(self, key: Hashable) -> TraceState:
        """Return the state for ``key``, creating it if needed."""
        state = self._states.get(key)
        if state is None:
            state = TraceState(key)
            self._states[key] = state
        return state

    def __len__(self) -> int:
        return len(self._states)
