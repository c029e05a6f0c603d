"""Per-session locks for hosts that allow concurrent requests on one session.

The challenge framework assumes a single writer per session. When that
cannot be guaranteed, hand the orchestrator an ISessionLock so issue,
submit and cancel of one session run one at a time.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from .exceptions import SessionLockError
from .ports import ISessionLock

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from redis.asyncio import Redis

logger = logging.getLogger("cqrs_ddd.mfa.locking")


class InMemorySessionLock(ISessionLock):
    """
    In-memory implementation of ISessionLock.

    One ``asyncio.Lock`` per session id, dropped once nobody holds or
    waits for it. Useful for testing and single-process applications.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._waiters[session_id] = self._waiters.get(session_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            except asyncio.TimeoutError as err:
                logger.warning(
                    "Session lock for %s timed out after %.1fs", session_id, self.timeout
                )
                raise SessionLockError(session_id, self.timeout) from err
            try:
                yield
            finally:
                lock.release()
        finally:
            self._waiters[session_id] -= 1
            if self._waiters[session_id] == 0:
                del self._waiters[session_id]
                self._locks.pop(session_id, None)

    def is_locked(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()


class RedisSessionLock(ISessionLock):
    """
    Redis implementation of ISessionLock using ``redis.asyncio`` locks.

    Works across workers and hosts. ``ttl`` bounds how long a crashed
    holder can block the session.
    """

    def __init__(
        self,
        redis_client: Redis[bytes],
        *,
        key_prefix: str = "mfa:lock:",
        ttl: float = 30.0,
        timeout: float = 10.0,
    ) -> None:
        self._redis = redis_client
        self.key_prefix = key_prefix
        self.ttl = ttl
        self.timeout = timeout

    @contextlib.asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self._redis.lock(
            f"{self.key_prefix}{session_id}",
            timeout=self.ttl,
            blocking_timeout=self.timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning(
                "Redis session lock for %s timed out after %.1fs",
                session_id,
                self.timeout,
            )
            raise SessionLockError(session_id, self.timeout)
        try:
            yield
        finally:
            try:
                await lock.release()
            except Exception as e:  # noqa: BLE001
                # Lock expired (ttl) before release; nothing left to free
                logger.warning("Redis session lock release failed for %s: %s", session_id, e)


__all__: list[str] = ["InMemorySessionLock", "RedisSessionLock"]
