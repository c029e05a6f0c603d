"""Ephemeral, session-scoped challenge storage."""

from __future__ import annotations

from .memory import InMemorySecretStore
from .redis import RedisSecretStore
from .scoped import SessionSecrets

__all__: list[str] = [
    "InMemorySecretStore",
    "RedisSecretStore",
    "SessionSecrets",
]
