"""test_context.py - Unit tests for TraceState, StateRegistry and current_context.

Covers:
    - enter / leave symmetry and previous_nest_level bookkeeping
    - entry timestamps: one per unmatched enter, popped by leave
    - leave without enter is clamped and never fails
    - StateRegistry creates states lazily and returns the same instance
    - current_context isolation across threads and asyncio tasks
"""

import asyncio
import threading
import time

from debugtrace.context import StateRegistry, TraceState, current_context


# ---------------------------------------------------------------------------
# TraceState
# ---------------------------------------------------------------------------


class TestTraceState:
    def test_initial_state_is_level_zero(self):
        state = TraceState("k")
        assert state.nest_level == 0
        assert state.previous_nest_level == 0
        assert state.pending == 0

    def test_enter_increments_nest_level(self):
        state = TraceState("k")
        state.enter()
        assert state.nest_level == 1
        assert state.previous_nest_level == 0

    def test_leave_decrements_and_records_previous(self):
        state = TraceState("k")
        state.enter()
        state.enter()
        state.leave()
        assert state.nest_level == 1
        assert state.previous_nest_level == 2

    def test_pending_matches_unmatched_enters(self):
        """One timestamp per enter not yet matched by a leave."""
        state = TraceState("k")
        for _ in range(3):
            state.enter()
        state.leave()
        assert state.pending == 2

    def test_leave_returns_matching_entry_time(self):
        """leave() pops the timestamp pushed by the matching enter()."""
        state = TraceState("k")
        before = time.monotonic()
        state.enter()
        after = time.monotonic()
        assert before <= state.leave() <= after

    def test_leave_without_enter_returns_now_and_stays_at_zero(self):
        """An unmatched leave() does not fail and does not go negative."""
        state = TraceState("k")
        before = time.monotonic()
        started = state.leave()
        assert started >= before
        assert state.nest_level == 0

    def test_reset_clears_everything(self):
        state = TraceState("k")
        state.enter()
        state.reset()
        assert (state.nest_level, state.previous_nest_level, state.pending) == (0, 0, 0)


# ---------------------------------------------------------------------------
# StateRegistry
# ---------------------------------------------------------------------------


class TestStateRegistry:
    def test_get_creates_state_lazily(self):
        registry = StateRegistry()
        assert len(registry) == 0
        state = registry.get("t1")
        assert state.key == "t1"
        assert len(registry) == 1

    def test_get_returns_same_instance(self):
        registry = StateRegistry()
        assert registry.get("t1") is registry.get("t1")
        assert registry.get("t1") is not registry.get("t2")


# ---------------------------------------------------------------------------
# current_context
# ---------------------------------------------------------------------------


class TestCurrentContext:
    def test_current_context_names_main_thread(self):
        key, name = current_context()
        assert key == threading.main_thread().ident
        assert name == threading.main_thread().name

    def test_current_context_is_isolated_per_thread(self):
        """Each thread gets its own key and reports its own name."""
        results = {}

        def worker(label: str):
            results[label] = current_context()

        threads = [
            threading.Thread(target=worker, args=(label,), name=f"worker-{label}")
            for label in ("a", "b")
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results["a"][0] != results["b"][0]
        assert results["a"][1] == "worker-a"
        assert results["b"][1] == "worker-b"

    def test_current_context_is_isolated_per_task(self):
        """Tasks on the same thread are told apart."""

        async def worker():
            await asyncio.sleep(0)
            return current_context()

        async def main():
            first = asyncio.create_task(worker(), name="task-a")
            second = asyncio.create_task(worker(), name="task-b")
            return await asyncio.gather(first, second)

        first, second = asyncio.run(main())
        assert first[0] != second[0]
        assert first[1] == "task-a"
        assert second[1] == "task-b"
