"""Pluggable multi-factor authentication challenges.

Select a factor, issue a challenge, verify the response:

- ``ChallengeOrchestrator`` drives one authentication session.
- ``FactorRegistry`` maps factor ids to factor implementations.
- ``ISecretStore`` keeps issued challenges for the session's lifetime.
- ``IDeliveryCollaborator`` sends out-of-band codes (email, SMS).
"""

from __future__ import annotations

from .account import Account, IAccountLookup, InMemoryAccountLookup, mask_destination
from .challenge import (
    ChallengeRenderData,
    ChallengeState,
    FactorDescriptor,
    FieldDefinition,
)
from .codes import CODE_ALPHABET, codes_match, generate_code, normalize_code
from .config import MfaConfig
from .exceptions import (
    AccountNotFoundError,
    ChallengeStateError,
    DeliveryError,
    FactorNotEnabledError,
    FactorRegistrationError,
    MfaError,
    MfaSetupError,
    SecretStoreError,
    SessionLockError,
    UnknownFactorError,
)
from .factors import (
    BaseFactor,
    EmailCodeFactor,
    FactorContext,
    InMemoryRecoveryCodeStore,
    InMemoryTotpSecretStore,
    OutOfBandCodeFactor,
    RecoveryCodeFactor,
    SmsCodeFactor,
    TotpEnrollment,
    TotpFactor,
    generate_recovery_codes,
)
from .locking import InMemorySessionLock, RedisSessionLock
from .orchestrator import ChallengeOrchestrator, ChallengeStatus
from .ports import (
    IDeliveryCollaborator,
    IFactor,
    IRecoveryCodeStore,
    ISecretStore,
    ISessionLock,
    ITotpSecretStore,
)
from .registry import FactorRegistry, default_registry
from .store import InMemorySecretStore, RedisSecretStore, SessionSecrets

__all__: list[str] = [
    # Orchestration
    "ChallengeOrchestrator",
    "ChallengeStatus",
    "FactorRegistry",
    "default_registry",
    # Value objects
    "Account",
    "ChallengeRenderData",
    "ChallengeState",
    "FactorDescriptor",
    "FieldDefinition",
    "MfaConfig",
    "mask_destination",
    # Codes
    "CODE_ALPHABET",
    "generate_code",
    "normalize_code",
    "codes_match",
    # Factors
    "BaseFactor",
    "FactorContext",
    "OutOfBandCodeFactor",
    "EmailCodeFactor",
    "SmsCodeFactor",
    "TotpFactor",
    "TotpEnrollment",
    "InMemoryTotpSecretStore",
    "RecoveryCodeFactor",
    "InMemoryRecoveryCodeStore",
    "generate_recovery_codes",
    # Ports
    "IAccountLookup",
    "IDeliveryCollaborator",
    "IFactor",
    "IRecoveryCodeStore",
    "ISecretStore",
    "ISessionLock",
    "ITotpSecretStore",
    # Adapters
    "InMemoryAccountLookup",
    "InMemorySecretStore",
    "RedisSecretStore",
    "SessionSecrets",
    "InMemorySessionLock",
    "RedisSessionLock",
    # Errors
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
