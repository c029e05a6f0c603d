"""In-memory secret store for development and testing.

WARNING: This implementation is NOT suitable for multi-worker deployments.
It stores challenges in a local dictionary.

Use RedisSecretStore in production.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from ..ports import ISecretStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..challenge import ChallengeState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemorySecretStore(ISecretStore):
    """In-memory secret store for development and testing only.

    ⚠️ WARNING: Entries live in process memory. They will NOT be shared
    between workers (Gunicorn/Uvicorn with workers>1).

    Example:
        ```python
        store = InMemorySecretStore(default_ttl=600)
        await store.set("session-1", "auth.email-code.code", state)
        state = await store.get("session-1", "auth.email-code.code")
        await store.remove("session-1", "auth.email-code.code")
        ```
    """

    def __init__(
        self,
        default_ttl: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            default_ttl: TTL in seconds applied when ``set`` gets none.
                ``None`` keeps entries until removed.
            clock: Source of the current UTC time (tests inject a fake).
        """
        self.default_ttl = default_ttl
        self._clock = clock or _utcnow
        self._entries: dict[tuple[str, str], tuple[ChallengeState, datetime | None]] = {}

    async def set(
        self,
        session_id: str,
        key: str,
        value: ChallengeState,
        ttl: int | None = None,
    ) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at: datetime | None = None
        if ttl is not None and ttl > 0:
            expires_at = self._clock() + timedelta(seconds=ttl)
        self._entries[(session_id, key)] = (value, expires_at)

    async def get(self, session_id: str, key: str) -> ChallengeState | None:
        entry = self._entries.get((session_id, key))
        if entry is None:
            return None

        value, expires_at = entry

        # Check expiration
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[(session_id, key)]
            logger.debug("Expired entry %s dropped for session %s", key, session_id)
            return None

        return value

    async def remove(self, session_id: str, key: str) -> None:
        self._entries.pop((session_id, key), None)

    async def clear(self, session_id: str) -> None:
        for entry_key in [k for k in self._entries if k[0] == session_id]:
            del self._entries[entry_key]

    def __len__(self) -> int:
        return len(self._entries)

    def clear_all(self) -> None:
        """Clear every session.

        Useful for testing cleanup.
        """
        self._entries.clear()


__all__: list[str] = ["InMemorySecretStore"]
