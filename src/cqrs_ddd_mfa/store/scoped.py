"""Session-bound view over an ISecretStore."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..challenge import ChallengeState
    from ..ports import ISecretStore


class SessionSecrets:
    """The slice of a secret store that belongs to one session.

    Factors receive this instead of the store itself, so a factor can
    only ever read and write its own session's challenges.
    """

    def __init__(self, store: ISecretStore, session_id: str) -> None:
        if not session_id:
            raise ValueError("session_id must not be empty")
        self._store = store
        self._session_id = session_id

    @property
    def session_id(self) -> str:
        return self._session_id

    async def set(self, key: str, value: ChallengeState, ttl: int | None = None) -> None:
        await self._store.set(self._session_id, key, value, ttl=ttl)

    async def get(self, key: str) -> ChallengeState | None:
        return await self._store.get(self._session_id, key)

    async def remove(self, key: str) -> None:
        await self._store.remove(self._session_id, key)

    async def clear(self) -> None:
        await self._store.clear(self._session_id)


__all__: list[str] = ["SessionSecrets"]
