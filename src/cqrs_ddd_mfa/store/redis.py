"""Redis-backed secret store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ..challenge import ChallengeState
from ..exceptions import SecretStoreError
from ..ports import ISecretStore

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger("cqrs_ddd.mfa.redis_store")


class RedisSecretStore(ISecretStore):
    """
    Redis implementation of ISecretStore.

    Each challenge is one key, ``"{key_prefix}{session_id}:{key}"``, holding
    the JSON of a ChallengeState. TTLs are enforced by Redis (``SETEX``).
    Backend failures raise SecretStoreError: a write that silently failed
    would let a superseded or consumed code stay valid.
    """

    def __init__(
        self,
        redis_client: Redis[bytes],
        *,
        key_prefix: str = "mfa:",
        default_ttl: int | None = None,
    ) -> None:
        self._redis = redis_client
        self.key_prefix = key_prefix
        self.default_ttl = default_ttl

    def _key(self, session_id: str, key: str) -> str:
        return f"{self.key_prefix}{session_id}:{key}"

    async def set(
        self,
        session_id: str,
        key: str,
        value: ChallengeState,
        ttl: int | None = None,
    ) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        redis_key = self._key(session_id, key)
        try:
            if ttl:
                await self._redis.setex(redis_key, ttl, value.model_dump_json())
            else:
                await self._redis.set(redis_key, value.model_dump_json())
        except Exception as e:
            logger.error("Redis set failed for key %s: %s", redis_key, e)
            raise SecretStoreError(f"Failed to store challenge {key!r}") from e

    async def get(self, session_id: str, key: str) -> ChallengeState | None:
        redis_key = self._key(session_id, key)
        try:
            val = await self._redis.get(redis_key)
        except Exception as e:
            logger.error("Redis get failed for key %s: %s", redis_key, e)
            raise SecretStoreError(f"Failed to read challenge {key!r}") from e
        if not val:
            return None
        try:
            return ChallengeState.model_validate_json(val)
        except ValidationError as e:
            logger.error("Corrupt challenge payload under key %s", redis_key)
            raise SecretStoreError(f"Corrupt challenge {key!r}") from e

    async def remove(self, session_id: str, key: str) -> None:
        redis_key = self._key(session_id, key)
        try:
            await self._redis.delete(redis_key)
        except Exception as e:
            logger.error("Redis delete failed for key %s: %s", redis_key, e)
            raise SecretStoreError(f"Failed to remove challenge {key!r}") from e

    async def clear(self, session_id: str) -> None:
        """Delete all keys of a session. Uses SCAN, so keep sessions small."""
        pattern = f"{self._key(session_id, '')}*"
        try:
            cursor: int = 0
            while True:
                cursor, keys = await self._redis.scan(cursor, match=pattern)
                if keys:
                    await self._redis.delete(*keys)
                if cursor == 0:
                    break
        except Exception as e:
            logger.error("Redis clear failed for session %s: %s", session_id, e)
            raise SecretStoreError(
                f"Failed to clear challenges of session {session_id!r}"
            ) from e


__all__: list[str] = ["RedisSecretStore"]
