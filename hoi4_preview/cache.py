"""Memoizing cache for expensive asynchronous computations.

Entries hold the *future* of a computation, stored before it resolves, so
concurrent callers for the same key share a single in-flight computation.
Staleness is decided lazily on access from an expiry token and an optional
time-to-live. Failed computations are never served past their own callers.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Generic
from typing import TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Factory = Callable[[K], Awaitable[V]]
ExpiryTokenFunc = Callable[[K, Awaitable[V]], Awaitable[str]]


def _retrieve_exception(future: asyncio.Future) -> None:
    """Mark a future's exception as retrieved; callers see it through await."""
    if not future.cancelled():
        future.exception()


class _PendingValue(Generic[V]):
    """Value of a new entry as handed to its expiry token function.

    The factory starts once the token is captured, or as soon as the token
    function awaits this object, whichever comes first.
    """

    def __init__(self) -> None:
        self.requested = asyncio.Event()
        self.future: asyncio.Future[V] | None = None

    def __await__(self):
        self.requested.set()
        return asyncio.shield(self.future).__await__()


@dataclass
class CacheEntry(Generic[K, V]):
    """One cached computation.

    Attributes:
        key: Cache key
        value: Future of the computed value
        token: Future of the expiry token captured when the entry was created
        created_at: Clock reading at creation
    """

    key: K
    value: asyncio.Future[V]
    token: asyncio.Future[str]
    created_at: float


class PromiseCache(Generic[K, V]):
    """Key to future-of-value cache with token- and age-based expiry.

    The expiry token function receives the key and an awaitable of the entry's
    value, so a token may incorporate properties of the computed value. A new
    entry's token is captured before its factory runs, unless the token awaits
    the value first.
    """

    def __init__(
        self,
        factory: Factory,
        expire_when_change: ExpiryTokenFunc,
        life: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        """Initialize cache.

        Args:
            factory: Async function computing the value for a key
            expire_when_change: Async function producing the current expiry token
            life: Time-to-live in clock units; None disables age expiry
            clock: Monotonic clock, injectable for tests
            name: Label used in log messages
        """
        self._factory = factory
        self._expire_when_change = expire_when_change
        self._life = life
        self._clock = clock
        self._name = name
        self._entries: dict[K, CacheEntry[K, V]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def get(self, key: K) -> V:
        """Get the value for ``key``, computing it if missing or stale."""
        while True:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._create(key)
                break

            if await self._is_fresh(entry):
                break

            # Another caller may have replaced the entry while the token was computed
            if self._entries.get(key) is entry:
                logger.debug(f"[{self._name}] entry expired: {key}")
                entry = self._create(key)
                break

        return await asyncio.shield(entry.value)

    def invalidate(self, key: K) -> None:
        """Drop the entry for ``key``; callers already awaiting it are unaffected."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop all entries."""
        self._entries.clear()

    def _create(self, key: K) -> CacheEntry[K, V]:
        pending: _PendingValue[V] = _PendingValue()
        token = asyncio.ensure_future(self._expire_when_change(key, pending))
        token.add_done_callback(_retrieve_exception)
        value = asyncio.ensure_future(self._compute(key, token, pending))
        value.add_done_callback(_retrieve_exception)
        pending.future = value

        entry = CacheEntry(key=key, value=value, token=token, created_at=self._clock())
        self._entries[key] = entry
        return entry

    async def _compute(self, key: K, token: asyncio.Future[str], pending: _PendingValue[V]) -> V:
        requested = asyncio.ensure_future(pending.requested.wait())
        try:
            await asyncio.wait([token, requested], return_when=asyncio.FIRST_COMPLETED)
        finally:
            requested.cancel()
        return await self._factory(key)

    async def _is_fresh(self, entry: CacheEntry[K, V]) -> bool:
        if self._life is not None and self._clock() - entry.created_at > self._life:
            return False

        if entry.value.done() and (entry.value.cancelled() or entry.value.exception() is not None):
            return False

        try:
            stored = await asyncio.shield(entry.token)
            current = await self._expire_when_change(entry.key, entry.value)
        except asyncio.CancelledError:
            if entry.value.cancelled() or entry.token.cancelled():
                return False
            raise
        except Exception as e:
            # The in-flight computation failed while we were checking it:
            # hand the failure to this caller as well
            if entry.value.done() and not entry.value.cancelled() and entry.value.exception() is e:
                return True
            logger.debug(f"[{self._name}] expiry token failed for {entry.key}: {e}")
            return False

        return stored == current
