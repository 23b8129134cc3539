"""Observable values — the channel a controller publishes through.

A controller keeps its current record and its force-refresh counter in
Observables. Reading one inside a reaction registers the dependency; writing
a different value re-runs every reaction that read it. That is how a host
learns about a settled outcome or a force_refresh() call.

State is held per instance; there is no process-wide store.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from awaited._tracking import current_derivation, schedule

T = TypeVar("T")


class Observable(Generic[T]):
    """A single observable value with automatic dependency tracking."""

    __slots__ = ("_value", "_observers")

    def __init__(self, value: T) -> None:
        self._value = value
        self._observers: set = set()

    def get(self) -> T:
        """Read the value. If inside a reaction, registers the dependency."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._observers.add(derivation)
            derivation._dependencies.add(self)
        return self._value

    def peek(self) -> T:
        """Read the value without registering a dependency."""
        return self._value

    def set(self, value: T) -> None:
        """Write a new value and notify observers if it changed."""
        old = self._value
        if old is not value and old != value:
            self._value = value
            self._notify()

    def _notify(self) -> None:
        for observer in list(self._observers):
            schedule(observer)

    def _remove_observer(self, observer) -> None:
        """Remove an observer. Called during dependency cleanup."""
        self._observers.discard(observer)

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"
