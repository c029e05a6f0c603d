"""Authentication factors.

Supports:
- Email code (single-use code sent by email)
- SMS code (single-use code sent by text message)
- TOTP (Google Authenticator, Microsoft Authenticator, Authy, etc.)
- Recovery codes (single-use codes kept by the user)
"""

from .base import BaseFactor, FactorContext
from .email_code import EMAIL_CODE_TEMPLATE_KEY, EmailCodeFactor
from .out_of_band import OutOfBandCodeFactor
from .recovery_code import (
    InMemoryRecoveryCodeStore,
    RecoveryCodeFactor,
    generate_recovery_codes,
    normalize_recovery_code,
)
from .sms_code import SMS_CODE_TEMPLATE_KEY, SmsCodeFactor
from .totp import InMemoryTotpSecretStore, TotpEnrollment, TotpFactor

__all__: list[str] = [
    # Base
    "BaseFactor",
    "FactorContext",
    "OutOfBandCodeFactor",
    # Email / SMS codes
    "EmailCodeFactor",
    "EMAIL_CODE_TEMPLATE_KEY",
    "SmsCodeFactor",
    "SMS_CODE_TEMPLATE_KEY",
    # TOTP
    "TotpFactor",
    "TotpEnrollment",
    "InMemoryTotpSecretStore",
    # Recovery codes
    "RecoveryCodeFactor",
    "InMemoryRecoveryCodeStore",
    "generate_recovery_codes",
    "normalize_recovery_code",
]
