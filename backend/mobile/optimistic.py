"""
Optimistic updates with a rollback policy.

Every preference write follows the same three phases:

1. snapshot the part of the state the write touches
2. apply the change locally, so the UI reacts immediately
3. send it to the server

If step 3 fails, the RollbackPolicy decides what happens to step 2:
RESTORE puts the snapshot back, RETAIN keeps the local change.

Writes to the same key are queued behind a per-key lock. A second toggle
of the same key waits for the first one's whole round trip, so responses
for one key always apply in the order the writes were issued.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Optional, TypeVar

from .exceptions import ApiError, ClientError, NetworkError

logger = logging.getLogger(__name__)

S = TypeVar("S")
R = TypeVar("R")


class RollbackPolicy(str, Enum):
    RESTORE = "restore"
    RETAIN = "retain"


@dataclass(frozen=True)
class SyncResult(Generic[R]):
    """
    Outcome of one optimistic write.

    ok: the server accepted the change
    rolled_back: the local change was undone
    error: what went wrong, when ok is False
    value: what the server returned, when ok is True
    """

    ok: bool
    rolled_back: bool = False
    error: Optional[ClientError] = None
    value: Optional[R] = None

    @property
    def retryable(self) -> bool:
        if self.error is None:
            return False
        return bool(getattr(self.error, "retryable", False))


class KeySerializer:
    """
    One asyncio.Lock per key, created on demand and dropped when idle.

    Waiters on a lock are woken in FIFO order, which is what keeps
    same-key writes in issue order.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiting: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiting[key] = self._waiting.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiting[key] -= 1
            if self._waiting[key] == 0:
                del self._waiting[key]
                del self._locks[key]

    def is_busy(self, key: str) -> bool:
        return key in self._locks

    def __len__(self) -> int:
        return len(self._locks)


async def run_optimistic(
    *,
    snapshot: Callable[[], S],
    apply: Callable[[], Any],
    remote: Callable[[], Awaitable[R]],
    restore: Callable[[S], Any],
    policy: RollbackPolicy,
    on_success: Optional[Callable[[R], Awaitable[Any]]] = None,
    on_failure: Optional[Callable[[ClientError, bool], Awaitable[Any]]] = None,
    label: str = "update",
) -> SyncResult[R]:
    """
    Run one optimistic write.

    Args:
        snapshot: Capture the pre-state (phase 1)
        apply: Make the local change (phase 2)
        remote: Send it to the server (phase 3)
        restore: Put a snapshot back; only called under RESTORE
        policy: What to do with the local change if the server call fails
        on_success: Reconcile with the server's answer
        on_failure: Called with the error and whether the change was rolled back
        label: Used in log lines

    Returns:
        SyncResult. ApiError and NetworkError never escape.
    """
    saved = snapshot()
    apply()

    try:
        value = await remote()
    except (ApiError, NetworkError) as e:
        rolled_back = policy is RollbackPolicy.RESTORE
        if rolled_back:
            restore(saved)
            logger.info(f"{label} failed, local change rolled back: {e.message}")
        else:
            logger.info(f"{label} failed, local change kept: {e.message}")
        if on_failure is not None:
            await on_failure(e, rolled_back)
        return SyncResult(ok=False, rolled_back=rolled_back, error=e)

    if on_success is not None:
        await on_success(value)
    return SyncResult(ok=True, value=value)
