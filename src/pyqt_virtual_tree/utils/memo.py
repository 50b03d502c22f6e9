"""Dependency-tracked memoization for derived getters.

Every derived value of the engine (measurements, range, indexes, rendered
items, visible nodes) is a ``memo`` getter. A getter recomputes only when one
of its declared dependencies changed since the previous call:

- scalars (int, float, str, bytes, bool, None) compare by value
- everything else compares by identity

Containers therefore have to be replaced, never mutated in place, for a change
to be observed.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

TResult = TypeVar("TResult")
T = TypeVar("T")

_VALUE_TYPES = (int, float, str, bytes, bool, type(None))

# Frame budget used to grade the timing output of debug-enabled getters.
_FRAME_MS = 16.0


def deps_equal(previous: Sequence[Any], current: Sequence[Any]) -> bool:
    """Return True when two dependency tuples are element-wise equal."""
    if len(previous) != len(current):
        return False
    for old, new in zip(previous, current):
        if old is new:
            continue
        if type(old) is type(new) and isinstance(new, _VALUE_TYPES) and old == new:
            continue
        return False
    return True


def memo(
    get_deps: Callable[[], Sequence[Any]],
    compute: Callable[..., TResult],
    *,
    key: Optional[str] = None,
    debug: Optional[Callable[[], bool]] = None,
    on_change: Optional[Callable[[TResult], None]] = None,
    initial_deps: Optional[Sequence[Any]] = None,
) -> Callable[[], TResult]:
    """Wrap ``compute`` so it only runs when ``get_deps()`` changes.

    Args:
        get_deps: Returns the current dependency tuple; called on every access.
        compute: Called with the dependencies unpacked when they changed.
        key: Name used in debug timing output.
        debug: Returns True when timing output should be logged.
        on_change: Called with the new result after each recompute.
        initial_deps: Dependencies considered current before the first call.
            With a value equal to the first ``get_deps()`` result, the first
            call returns None without computing.

    Returns:
        A zero-argument getter returning the cached or recomputed result.
    """
    state: dict[str, Any] = {
        "deps": tuple(initial_deps) if initial_deps is not None else None,
        "result": None,
    }

    def getter() -> TResult:
        timed = key is not None and debug is not None and debug()
        dep_start = time.perf_counter() if timed else 0.0

        new_deps = tuple(get_deps())
        previous = state["deps"]
        if previous is not None and deps_equal(previous, new_deps):
            return state["result"]

        state["deps"] = new_deps
        result_start = time.perf_counter() if timed else 0.0
        result = compute(*new_deps)
        state["result"] = result

        if timed:
            now = time.perf_counter()
            result_ms = round((now - result_start) * 1000, 2)
            dep_ms = round((now - dep_start) * 1000, 2)
            budget = min(result_ms / _FRAME_MS, 1.0)
            logger.debug(
                f"⏱ {result_ms:>5} /{dep_ms:>5} ms {key} ({budget:.0%} of frame)"
            )

        if on_change is not None:
            on_change(result)
        return result

    return getter


def expect_present(value: Optional[T], msg: Optional[str] = None) -> T:
    """Unwrap a value that must not be None.

    Raises:
        ValueError: ``value`` is None, which means an engine invariant broke.
    """
    if value is None:
        raise ValueError(f"Unexpected None: {msg}" if msg else "Unexpected None")
    return value


def approx_equal(a: float, b: float) -> bool:
    """True when two pixel extents differ by less than one pixel."""
    return abs(a - b) < 1
