"""Dependency change detection — decides when a subscription must restart.

Two strategies, picked by whether a dependency list was supplied:

- with deps: element-wise comparison, same length and same values;
- without deps: the supplier's identity is the only dependency.

A cycle where one side has deps and the other does not always restarts.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence

# Marks "no previous cycle" — distinct from None, which means "no deps".
UNSET: Any = object()


def deps_equal(prev: Sequence, nxt: Sequence) -> bool:
    """True when both lists have the same length and equal elements by index.

    Elements match when they are the same object or compare equal. An element
    whose comparison raises or yields something without a truth value counts
    as changed.
    """
    if len(prev) != len(nxt):
        return False
    for old, new in zip(prev, nxt):
        if old is new:
            continue
        try:
            if not (old == new):
                return False
        except (TypeError, ValueError):
            return False
    return True


def should_restart(
    prev_deps: Sequence | None,
    prev_supplier: Callable | None,
    next_deps: Sequence | None,
    next_supplier: Callable,
) -> bool:
    """Decide whether the next cycle must start a new generation."""
    if prev_deps is UNSET:
        return True
    if prev_deps is not None and next_deps is not None:
        return not deps_equal(prev_deps, next_deps)
    if prev_deps is None and next_deps is None:
        return next_supplier is not prev_supplier
    return True
