"""Actions and transactions — batched notifications.

Wrapping writes in an @action or `with transaction()` defers host re-runs
until the outermost scope exits. Refreshing several controllers in one
transaction re-runs a host that reads all of them once, not once per
controller.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from awaited._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all observable writes inside fn.

    Usage:
        @action
        def refresh_all():
            users.force_refresh()
            orders.force_refresh()
            # a host subscribed to both restarts them in a single pass
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_batch()
        try:
            return fn(*args, **kwargs)
        finally:
            end_batch()

    return wrapper


@contextmanager
def transaction():
    """Context manager for batching writes.

    Usage:
        with transaction():
            users.force_refresh()
            orders.force_refresh()
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()
