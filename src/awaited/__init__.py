"""awaited: race-free tracking of asynchronous computations for reactive hosts."""

from importlib.metadata import version as _version

__version__ = _version("awaited")

from awaited._tracking import get_pending_count
from awaited.token import CancellationToken
from awaited.deps import should_restart
from awaited.state import (
    DEBOUNCE_MS,
    PENDING,
    REJECTED,
    RESOLVED,
    Pending,
    Rejected,
    Resolved,
    StateRecord,
    Stats,
)
from awaited.controller import Awaited
from awaited.observable import Observable
from awaited.reaction import Reaction, autorun, reaction
from awaited.action import action, transaction
# textual NOT auto-imported — opt-in only

__all__ = [
    "Awaited",
    "CancellationToken",
    "should_restart",
    "StateRecord",
    "Pending",
    "Resolved",
    "Rejected",
    "Stats",
    "PENDING",
    "RESOLVED",
    "REJECTED",
    "DEBOUNCE_MS",
    "Observable",
    "Reaction",
    "autorun",
    "reaction",
    "action",
    "transaction",
    "get_pending_count",
]
