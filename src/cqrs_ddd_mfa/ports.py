"""MFA ports (protocols) for the challenge framework.

Defines interfaces for the ephemeral secret store, challenge delivery,
per-session locking, enrolled-factor storage and the factors themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from contextlib import AbstractAsyncContextManager

    from .account import Account
    from .challenge import ChallengeRenderData, ChallengeState, FactorDescriptor


@runtime_checkable
class ISecretStore(Protocol):
    """Protocol for the ephemeral, session-scoped challenge store.

    Entries never outlive the authentication session and are never shared
    across sessions. A write or remove must be visible to the very next
    read for the same session.
    """

    async def set(
        self,
        session_id: str,
        key: str,
        value: ChallengeState,
        ttl: int | None = None,
    ) -> None:
        """Store a challenge, replacing any previous value under the key.

        Args:
            session_id: Authentication session identifier.
            key: Namespaced key (e.g. ``"auth.email-code.code"``).
            value: The challenge state.
            ttl: Optional time-to-live in seconds.
        """
        ...

    async def get(self, session_id: str, key: str) -> ChallengeState | None:
        """Return the stored challenge or None if absent or expired.

        Args:
            session_id: Authentication session identifier.
            key: Namespaced key.
        """
        ...

    async def remove(self, session_id: str, key: str) -> None:
        """Delete a challenge. Removing a missing key is a no-op.

        Args:
            session_id: Authentication session identifier.
            key: Namespaced key.
        """
        ...

    async def clear(self, session_id: str) -> None:
        """Delete every entry of a session (session teardown).

        Args:
            session_id: Authentication session identifier.
        """
        ...


@runtime_checkable
class IDeliveryCollaborator(Protocol):
    """Protocol for sending a challenge through an out-of-band channel.

    The framework supplies a stable template key and the template data;
    rendering and transport belong to the implementation.
    """

    async def send(
        self,
        destination: str,
        template_key: str,
        template_data: Mapping[str, Any],
    ) -> None:
        """Send a templated message.

        Args:
            destination: Email address, phone number, ...
            template_key: Template identifier (e.g. ``"mfa_code_email"``).
            template_data: Values for the template (e.g. ``{"code": ...}``).

        Raises:
            DeliveryError: If the message could not be sent.
        """
        ...


@runtime_checkable
class ISessionLock(Protocol):
    """Protocol for mutual exclusion across requests of one session.

    Only needed when the host lets two requests authenticate the same
    session at the same time.
    """

    def hold(self, session_id: str) -> AbstractAsyncContextManager[None]:
        """Return an async context manager holding the session's lock.

        Raises:
            SessionLockError: If the lock cannot be acquired in time.
        """
        ...


@runtime_checkable
class IFactor(Protocol):
    """Protocol every authentication factor implements."""

    factor_id: str

    @classmethod
    def descriptor(cls) -> FactorDescriptor:
        """Return the factor's static descriptor. Pure."""
        ...

    async def issue_challenge(self, account: Account) -> ChallengeRenderData:
        """Issue (or re-issue) a challenge for the account.

        Supersedes any previous challenge of this factor in the session.

        Raises:
            DeliveryError: If the out-of-band send failed.
        """
        ...

    async def verify(self, account: Account, response_fields: Mapping[str, Any]) -> bool:
        """Check a response. Returns False on mismatch, never raises for it."""
        ...

    async def cancel(self, account: Account) -> None:
        """Drop any live challenge of this factor in the session."""
        ...

    async def is_challenge_pending(self, account: Account) -> bool:
        """Return True if a response can currently be verified."""
        ...


@runtime_checkable
class ITotpSecretStore(Protocol):
    """Protocol for enrolled TOTP secret storage.

    Applications MUST implement this to store TOTP secrets securely.
    Secrets should be encrypted at rest.
    """

    async def store_secret(self, account_id: str, secret: str) -> None:
        """Store the Base32 TOTP secret of an account."""
        ...

    async def get_secret(self, account_id: str) -> str | None:
        """Return the Base32 secret or None if the account is not enrolled."""
        ...

    async def delete_secret(self, account_id: str) -> None:
        """Remove the account's TOTP secret."""
        ...


@runtime_checkable
class IRecoveryCodeStore(Protocol):
    """Protocol for recovery code storage.

    Implementations must store codes hashed and delete a code once used.
    """

    async def replace(self, account_id: str, codes: list[str]) -> None:
        """Replace all recovery codes of an account.

        Args:
            account_id: Account identifier.
            codes: Normalized plaintext codes (hash before storing).
        """
        ...

    async def consume(self, account_id: str, code: str) -> bool:
        """Consume a normalized code (single-use).

        Returns:
            True if the code was valid and has now been removed.
        """
        ...

    async def remaining(self, account_id: str) -> int:
        """Return the number of unused codes."""
        ...


__all__: list[str] = [
    "ISecretStore",
    "IDeliveryCollaborator",
    "ISessionLock",
    "IFactor",
    "ITotpSecretStore",
    "IRecoveryCodeStore",
]
