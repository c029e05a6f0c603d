"""MFA challenge errors.

All errors raised by the challenge framework inherit from MfaError.
A code that does not match is NOT an error: ``verify`` and ``submit``
report it as ``False``.
"""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════
# BASE MFA ERROR
# ═══════════════════════════════════════════════════════════════


class MfaError(Exception):
    """Base class for all MFA challenge errors."""


# ═══════════════════════════════════════════════════════════════
# FACTOR ERRORS
# ═══════════════════════════════════════════════════════════════


class UnknownFactorError(MfaError):
    """Raised when a factor id has no registered implementation.

    Attributes:
        factor_id: The identifier that could not be resolved.
    """

    def __init__(self, factor_id: str, message: str | None = None) -> None:
        self.factor_id = factor_id
        super().__init__(message or f"Unknown authentication factor: {factor_id!r}")


class FactorNotEnabledError(UnknownFactorError):
    """Raised when a registered factor is not enabled for the account.

    Attributes:
        factor_id: The selected factor.
        account_id: The account under authentication.
    """

    def __init__(self, factor_id: str, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(
            factor_id,
            f"Factor {factor_id!r} is not enabled for account {account_id!r}",
        )


class FactorRegistrationError(MfaError):
    """Raised when the factor registry is misconfigured.

    Examples:
        - Two factors registered under the same id
        - Registration attempted after the registry was frozen
        - A factory that fails or builds the wrong factor
    """


class MfaSetupError(MfaError):
    """Raised when a factor needs enrollment the account does not have.

    Examples:
        - TOTP selected for an account without an enrolled secret
    """


# ═══════════════════════════════════════════════════════════════
# DELIVERY ERRORS
# ═══════════════════════════════════════════════════════════════


class DeliveryError(MfaError):
    """Raised when the out-of-band send of a challenge fails.

    The caller must be told; an issued challenge whose delivery failed
    is rolled back before this is raised.

    Attributes:
        reason: Human-readable failure reason.
        channel: Delivery channel (``"email"``, ``"sms"``) when known.
        recipient: Destination address when known.
    """

    def __init__(
        self,
        reason: str,
        *,
        channel: str | None = None,
        recipient: str | None = None,
    ) -> None:
        self.reason = reason
        self.channel = channel
        self.recipient = recipient
        if channel and recipient:
            message = f"Failed to deliver via {channel} to {recipient}: {reason}"
        else:
            message = f"Failed to deliver challenge: {reason}"
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════
# ORCHESTRATION ERRORS
# ═══════════════════════════════════════════════════════════════


class ChallengeStateError(MfaError):
    """Raised when an orchestrator operation is invalid in the current state.

    Attributes:
        operation: The operation that was attempted (``"submit"``, ...).
        status: The status value the orchestrator was in.
    """

    def __init__(self, operation: str, status: str) -> None:
        self.operation = operation
        self.status = status
        super().__init__(f"Cannot {operation} while challenge is {status}")


class AccountNotFoundError(MfaError):
    """Raised when the account lookup has no record for an id."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Account {account_id!r} not found")


# ═══════════════════════════════════════════════════════════════
# INFRASTRUCTURE ERRORS
# ═══════════════════════════════════════════════════════════════


class SecretStoreError(MfaError):
    """Raised when the secret store backend fails to read or write."""


class SessionLockError(MfaError):
    """Raised when the per-session lock cannot be acquired in time.

    Attributes:
        session_id: The session whose lock was requested.
        timeout: Seconds waited before giving up.
    """

    def __init__(self, session_id: str, timeout: float) -> None:
        self.session_id = session_id
        self.timeout = timeout
        super().__init__(
            f"Failed to acquire session lock for {session_id!r} within {timeout}s"
        )


__all__: list[str] = [
    "MfaError",
    "UnknownFactorError",
    "FactorNotEnabledError",
    "FactorRegistrationError",
    "MfaSetupError",
    "DeliveryError",
    "ChallengeStateError",
    "AccountNotFoundError",
    "SecretStoreError",
    "SessionLockError",
]
