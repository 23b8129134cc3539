"""Cancellation tokens — one-shot advisory signals handed to suppliers.

A token starts unsignaled and flips to signaled exactly once, when the
generation that owns it is superseded or torn down. Suppliers may check it
(or register a callback) to abandon their own work early. The controller
never relies on that: stale outcomes are dropped by generation, not by token.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger("awaited.token")


class CancellationToken:
    """Advisory cancellation signal for one generation of a supplier."""

    __slots__ = ("_generation", "_signaled", "_callbacks")

    def __init__(self, generation: int = 0) -> None:
        self._generation = generation
        self._signaled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def generation(self) -> int:
        """The generation this token was created for."""
        return self._generation

    @property
    def signaled(self) -> bool:
        return self._signaled

    def signal(self) -> None:
        """Mark the token signaled and run callbacks. Idempotent."""
        if self._signaled:
            return
        self._signaled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._invoke(callback)

    def on_signal(self, callback: Callable[[], None]) -> None:
        """Run callback when the token is signaled.

        If the token is already signaled, callback runs immediately.
        """
        if self._signaled:
            self._invoke(callback)
        else:
            self._callbacks.append(callback)

    def raise_if_signaled(self) -> None:
        """Raise asyncio.CancelledError if the token has been signaled."""
        if self._signaled:
            raise asyncio.CancelledError(f"generation {self._generation} superseded")

    def _invoke(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Cancellation callback failed (generation=%d)", self._generation)

    def __repr__(self) -> str:
        state = "signaled" if self._signaled else "active"
        return f"CancellationToken(generation={self._generation}, {state})"
