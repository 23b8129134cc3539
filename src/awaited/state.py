"""State records and the transitions between them.

A subscription's visible state is always one of three immutable records:
Pending, Resolved or Rejected. Every record also carries the last good value
(latest_data), the stats of the last completed run (latest_stats) and the
controller's force_refresh callable, all of which survive later transitions.

Transitions never mutate a record. They return a new one, or, for a Pending
request that lands inside the debounce window, the very same record so hosts
see no change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")

PENDING = "pending"
RESOLVED = "resolved"
REJECTED = "rejected"

# Pending requests closer than this to the current Pending start are ignored.
DEBOUNCE_MS = 20


@dataclass(frozen=True)
class Stats:
    """Wall-clock timing of one run, in milliseconds."""

    begin_timestamp: float
    end_timestamp: float | None = None

    def to_dict(self) -> dict:
        return {"begin_timestamp": self.begin_timestamp, "end_timestamp": self.end_timestamp}


@dataclass(frozen=True, eq=False)
class _Record(Generic[T]):
    stats: Stats
    latest_data: Any
    latest_stats: Stats | None
    force_refresh: Callable[[], None]

    state: ClassVar[str]

    def to_dict(self) -> dict:
        """Plain structural view of the record, for display layers."""
        return {
            "state": self.state,
            "data": self.data,
            "error": self.error,
            "stats": self.stats.to_dict(),
            "latest_data": self.latest_data,
            "latest_stats": self.latest_stats.to_dict() if self.latest_stats else None,
        }


@dataclass(frozen=True, eq=False)
class Pending(_Record[T]):
    state: ClassVar[str] = PENDING
    data: ClassVar[None] = None
    error: ClassVar[None] = None


@dataclass(frozen=True, eq=False)
class Resolved(_Record[T]):
    data: T
    state: ClassVar[str] = RESOLVED
    error: ClassVar[None] = None


@dataclass(frozen=True, eq=False)
class Rejected(_Record[T]):
    error: BaseException | Any
    state: ClassVar[str] = REJECTED
    data: ClassVar[None] = None


StateRecord = Union[Pending[T], Resolved[T], Rejected[T]]


def initial_record(latest_data: Any, force_refresh: Callable[[], None], now: float) -> Pending:
    """The record a controller starts with, before any run has begun."""
    return Pending(
        stats=Stats(begin_timestamp=now),
        latest_data=latest_data,
        latest_stats=None,
        force_refresh=force_refresh,
    )


def to_pending(prev: StateRecord, now: float, debounce_ms: float = DEBOUNCE_MS) -> StateRecord:
    """Start a new run.

    Returns prev itself if it is Pending and began less than debounce_ms ago,
    so a burst of restarts right after construction publishes nothing.
    """
    if isinstance(prev, Pending) and now - prev.stats.begin_timestamp < debounce_ms:
        return prev
    return Pending(
        stats=Stats(begin_timestamp=now),
        latest_data=prev.latest_data,
        latest_stats=prev.latest_stats,
        force_refresh=prev.force_refresh,
    )


def to_resolved(prev: StateRecord, data: T, now: float) -> Resolved[T]:
    stats = Stats(begin_timestamp=prev.stats.begin_timestamp, end_timestamp=now)
    return Resolved(
        stats=stats,
        latest_data=data,
        latest_stats=stats,
        force_refresh=prev.force_refresh,
        data=data,
    )


def to_rejected(prev: StateRecord, error: Any, now: float) -> Rejected:
    # latest_data only moves on success.
    stats = Stats(begin_timestamp=prev.stats.begin_timestamp, end_timestamp=now)
    return Rejected(
        stats=stats,
        latest_data=prev.latest_data,
        latest_stats=stats,
        force_refresh=prev.force_refresh,
        error=error,
    )
