"""The subscription controller — one generation-tracking state machine.

An Awaited instance backs one subscription. The host calls subscribe() every
cycle; the controller starts a new generation only when the dependencies
changed or force_refresh() was called, runs the supplier, and applies its
outcome only if that generation is still the current one when it settles.

Outcomes are applied on the event loop, so every run is observably Pending
first, even when the supplier returns a plain value.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar, Union

from awaited.deps import UNSET, should_restart
from awaited.observable import Observable
from awaited.state import (
    DEBOUNCE_MS,
    StateRecord,
    initial_record,
    to_pending,
    to_rejected,
    to_resolved,
)
from awaited.token import CancellationToken

T = TypeVar("T")

Supplier = Callable[[CancellationToken], Union[T, Awaitable[T]]]

logger = logging.getLogger("awaited.controller")


def wall_clock_ms() -> float:
    """Milliseconds since the epoch."""
    return time.time() * 1000


class Awaited(Generic[T]):
    """Tracks the latest run of a supplier on behalf of one host.

    Usage:
        ctl = Awaited()
        host = autorun(lambda: render(ctl.subscribe(fetch_profile, [user_id.get()])))
        ...
        host.dispose()
        ctl.teardown()
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] | None = None,
        debounce_ms: float = DEBOUNCE_MS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._clock = clock or wall_clock_ms
        self._debounce_ms = debounce_ms
        self._loop = loop
        self._generation = 0
        self._token = CancellationToken(0)
        self._record: Observable[StateRecord | None] = Observable(None)
        self._force_counter = Observable(0)
        self._seen_force = 0
        self._deps: Any = UNSET
        self._supplier: Supplier | None = None
        self._torn_down = False
        # Bound once so every record shares the same callable.
        self._force_refresh = self.force_refresh

    @property
    def record(self) -> StateRecord | None:
        """The current record; None before the first subscribe()."""
        return self._record.get()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def subscribe(self, supplier: Supplier, deps: Sequence | None = None) -> StateRecord:
        """Run one host cycle with no initial value (latest_data starts as None)."""
        return self.subscribe_with_default(None, supplier, deps)

    def subscribe_with_default(
        self,
        initial: T | Callable[[], T],
        supplier: Supplier,
        deps: Sequence | None = None,
    ) -> StateRecord:
        """Run one host cycle.

        Starts a new generation when deps changed (or, without deps, when
        supplier is a different object) or when force_refresh() was called
        since the last cycle. Returns the current record either way.

        initial seeds latest_data. It is used only on the first call, and a
        callable is invoked then to produce the value.
        """
        if self._torn_down:
            return self._record.peek()

        if self._record.peek() is None:
            if callable(initial):
                initial = initial()
            self._record.set(initial_record(initial, self._force_refresh, self._clock()))

        forced = self._force_counter.get()
        restart = forced != self._seen_force or should_restart(
            self._deps, self._supplier, deps, supplier
        )
        self._seen_force = forced
        self._deps = None if deps is None else tuple(deps)
        self._supplier = supplier

        if restart:
            self._start(supplier)
        return self._record.get()

    def force_refresh(self) -> None:
        """Request a new generation on the next cycle, whatever the deps."""
        if self._torn_down:
            return
        self._force_counter.set(self._force_counter.peek() + 1)

    def teardown(self) -> None:
        """Signal the current token and ignore everything that happens after."""
        if self._torn_down:
            return
        self._torn_down = True
        self._token.signal()
        logger.debug("Torn down at generation %d", self._generation)

    # --- Generations ---

    def _start(self, supplier: Supplier) -> None:
        self._generation += 1
        generation = self._generation
        self._token.signal()
        token = self._token = CancellationToken(generation)
        self._record.set(to_pending(self._record.peek(), self._clock(), self._debounce_ms))
        logger.debug("Starting generation %d", generation)

        try:
            result = supplier(token)
        except Exception as exc:
            self._defer(self._reject, generation, exc)
            return

        if isinstance(result, concurrent.futures.Future) or inspect.isawaitable(result):
            self._await(generation, result)
        else:
            self._defer(self._resolve, generation, result)

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _defer(self, fn: Callable, *args) -> None:
        """Apply an outcome on the loop, or right away when there is none."""
        loop = self._get_loop()
        if loop is None:
            fn(*args)
        else:
            loop.call_soon(fn, *args)

    def _await(self, generation: int, awaitable) -> None:
        loop = self._get_loop()
        if loop is None:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self._reject(generation, RuntimeError("supplier returned an awaitable but no event loop is running"))
            return
        try:
            if isinstance(awaitable, concurrent.futures.Future):
                future = asyncio.wrap_future(awaitable, loop=loop)
            else:
                future = asyncio.ensure_future(awaitable, loop=loop)
        except (TypeError, ValueError) as exc:
            self._defer(self._reject, generation, exc)
            return
        future.add_done_callback(functools.partial(self._on_done, generation))

    def _on_done(self, generation: int, future: asyncio.Future) -> None:
        if future.cancelled():
            self._reject(generation, asyncio.CancelledError())
            return
        error = future.exception()
        if error is not None:
            self._reject(generation, error)
        else:
            self._resolve(generation, future.result())

    def _is_current(self, generation: int) -> bool:
        if self._torn_down or generation != self._generation:
            logger.debug(
                "Discarding outcome of generation %d (current=%d, torn_down=%s)",
                generation, self._generation, self._torn_down,
            )
            return False
        return True

    def _resolve(self, generation: int, data: Any) -> None:
        if self._is_current(generation):
            self._record.set(to_resolved(self._record.peek(), data, self._clock()))

    def _reject(self, generation: int, error: Any) -> None:
        if self._is_current(generation):
            self._record.set(to_rejected(self._record.peek(), error, self._clock()))

    def __repr__(self) -> str:
        record = self._record.peek()
        state = "torn down" if self._torn_down else (record.state if record else "idle")
        return f"Awaited(generation={self._generation}, {state})"
