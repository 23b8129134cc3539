"""Dependency tracking for hosts — records which observables a reaction reads.

Uses contextvars to track the reaction currently running, so that any
Observable.get() made while it runs (including the controller's record and
force counter reads inside subscribe) registers a dependency.

Batching: writes inside an @action or `with transaction()` accumulate
scheduled reactions and flush them once at the end.
"""

from __future__ import annotations

import contextvars
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from awaited.reaction import Reaction, _DataReaction

    Derivation = Reaction | _DataReaction

# The reaction being evaluated, if any.
current_derivation: contextvars.ContextVar[Derivation | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

# Batch depth counter. When > 0, scheduling is deferred.
_batch_depth: int = 0

# Reactions scheduled during a batch, awaiting flush.
_pending: set[Derivation] = set()


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. The outermost exit flushes pending reactions."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def schedule(derivation: Derivation) -> None:
    """Run a reaction now, or defer it if a batch is open."""
    if _batch_depth > 0:
        _pending.add(derivation)
    else:
        derivation._run()


def _flush_pending() -> None:
    while _pending:
        # Reactions may schedule others while running.
        batch = list(_pending)
        _pending.clear()
        for derivation in batch:
            derivation._run()


def get_pending_count() -> int:
    """Number of reactions waiting to run. Useful for testing."""
    return len(_pending)
