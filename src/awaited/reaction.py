"""Reactions — the host side of a subscription.

A host is a reaction that calls Awaited.subscribe() while it runs. Because
subscribe reads the controller's record and force counter, the host re-runs
whenever an outcome is published or force_refresh() is called, just like a
component re-rendering.

Two flavors:
- autorun(fn): runs fn immediately, re-runs when any observable it read changes.
- reaction(data_fn, effect_fn): tracks data_fn, calls effect_fn with the new value
  only when data_fn's result changes.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from awaited._tracking import current_derivation

T = TypeVar("T")


class Reaction:
    """A reactive side effect that re-runs when its dependencies change."""

    __slots__ = ("_fn", "_dependencies", "_disposed")

    def __init__(self, fn: Callable[[], None]) -> None:
        self._fn = fn
        self._dependencies: set = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _clear_dependencies(self) -> None:
        for dep in self._dependencies:
            dep._remove_observer(self)
        self._dependencies.clear()

    def _run(self) -> None:
        """Re-evaluate the reaction function, re-tracking dependencies."""
        if self._disposed:
            return

        self._clear_dependencies()

        token = current_derivation.set(self)
        try:
            self._fn()
        finally:
            current_derivation.reset(token)

    def dispose(self) -> None:
        """Stop this reaction. Disconnects from all dependencies."""
        self._disposed = True
        self._clear_dependencies()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Reaction({getattr(self._fn, '__name__', self._fn)!r}, {state})"


class _DataReaction(Reaction):
    """Internal: reaction(data_fn, effect_fn) implementation.

    Re-runs data_fn when its dependencies change and calls effect_fn only when
    the result differs from the last one.
    """

    __slots__ = ("_effect_fn", "_last_value", "_initialized")

    def __init__(self, data_fn: Callable, effect_fn: Callable) -> None:
        super().__init__(data_fn)
        self._effect_fn = effect_fn
        self._last_value = None
        self._initialized = False

    def _track(self):
        self._clear_dependencies()
        token = current_derivation.set(self)
        try:
            return self._fn()
        finally:
            current_derivation.reset(token)

    def _run(self) -> None:
        if self._disposed:
            return

        new_value = self._track()
        if not self._initialized or (new_value is not self._last_value and new_value != self._last_value):
            self._last_value = new_value
            self._initialized = True
            self._effect_fn(new_value)


def autorun(fn: Callable[[], None]) -> Reaction:
    """Run fn immediately, then re-run whenever any observable it reads changes.

    Returns the Reaction (call .dispose() to stop).

    Usage:
        ctl = Awaited()
        seen = []

        host = autorun(lambda: seen.append(ctl.subscribe(load_user, [user_id])))
        # seen[-1].state == "pending"

        # ...once load_user's awaitable settles on the event loop:
        # seen[-1].state == "resolved"

        host.dispose()
        ctl.teardown()
    """
    r = Reaction(fn)
    r._run()
    return r


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
) -> _DataReaction:
    """Track data_fn's observables; call effect_fn when the result changes.

    Returns the reaction (call .dispose() to stop).

    Usage:
        states = []
        r = reaction(lambda: ctl.record.state, states.append)
        # states == [] until the record's state changes

        r.dispose()
    """
    r = _DataReaction(data_fn, effect_fn)
    if fire_immediately:
        r._run()
    else:
        # Establish deps but suppress the initial effect.
        r._last_value = r._track()
        r._initialized = True
    return r
