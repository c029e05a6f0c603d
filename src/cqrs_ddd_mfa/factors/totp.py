"""TOTP (Time-based One-Time Password) factor.

Works with any TOTP-compatible authenticator app:
- Google Authenticator
- Microsoft Authenticator
- Authy
- 1Password
- FreeOTP

Uses pyotp library internally.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..challenge import ChallengeRenderData, ChallengeState, FieldDefinition
from ..codes import normalize_code
from ..exceptions import MfaSetupError
from ..ports import ITotpSecretStore
from .base import BaseFactor, FactorContext

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..account import Account

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TotpEnrollment:
    """TOTP enrollment data returned when an account enrolls.

    Attributes:
        secret: Base32-encoded TOTP secret.
        provisioning_uri: otpauth:// URI for QR code generation.
        manual_key: Human-readable key for manual entry.
    """

    secret: str
    provisioning_uri: str
    manual_key: str


def _get_pyotp() -> Any:
    """Lazy import pyotp."""
    try:
        import pyotp

        return pyotp
    except ImportError as e:
        raise ImportError(
            "pyotp is required for TOTP support. "
            "Install with: pip install cqrs-ddd-mfa[totp]"
        ) from e


class TotpFactor(BaseFactor):
    """Authenticate with a code from an authenticator app.

    Nothing is sent: ``issue_challenge`` only checks that the account is
    enrolled. The secret is the account's enrolled key, so the session
    store holds the last accepted time step of each account instead, which stops the same
    code from being replayed within the session.

    Example:
        ```python
        factor = TotpFactor(context, secret_store=InMemoryTotpSecretStore())
        enrollment = await factor.enroll(account)
        print(f"Scan this QR: {enrollment.provisioning_uri}")

        await factor.issue_challenge(account)
        await factor.verify(account, {"verificationCode": "123456"})
        ```
    """

    factor_id = "totp"
    display_name = "Authenticator App"
    description = "Authenticate with the code shown in your authenticator app."
    fields = (FieldDefinition("verificationCode", "Authenticator app code"),)

    code_field = "verificationCode"

    def __init__(
        self,
        context: FactorContext,
        *,
        secret_store: ITotpSecretStore,
        issuer: str = "MyApp",
        digits: int = 6,
        interval: int = 30,
        valid_window: int = 1,
    ) -> None:
        """Initialize TOTP factor.

        Args:
            context: Session collaborators.
            secret_store: Storage for enrolled TOTP secrets.
            issuer: Application name shown in authenticator app.
            digits: Number of digits in code (default 6).
            interval: Time interval in seconds (default 30).
            valid_window: Accept codes ±N intervals for clock drift (default 1).
        """
        super().__init__(context)
        self.secret_store = secret_store
        self.issuer = issuer
        self.digits = digits
        self.interval = interval
        self.valid_window = valid_window

    def replay_key(self, account: Account) -> str:
        """Store key of the last accepted time step for one account."""
        prefix = self.context.config.session_key_prefix
        return f"{prefix}.{self.factor_id}.{account.account_id}.last_step"

    def _totp(self, secret: str) -> Any:
        pyotp = _get_pyotp()
        return pyotp.TOTP(secret, digits=self.digits, interval=self.interval)

    async def enroll(self, account: Account) -> TotpEnrollment:
        """Generate and store a new TOTP secret for the account.

        Replaces any previous enrollment.
        """
        pyotp = _get_pyotp()
        secret = pyotp.random_base32()
        totp = pyotp.TOTP(
            secret,
            digits=self.digits,
            interval=self.interval,
            issuer=self.issuer,
        )
        provisioning_uri = totp.provisioning_uri(
            name=account.email or account.account_id,
            issuer_name=self.issuer,
        )
        await self.secret_store.store_secret(account.account_id, secret)
        logger.info("TOTP enrolled for account %s", account.account_id)
        return TotpEnrollment(
            secret=secret,
            provisioning_uri=provisioning_uri,
            manual_key=self._format_secret(secret),
        )

    def _format_secret(self, secret: str) -> str:
        """Format secret as groups of 4 characters for manual entry."""
        secret = secret.rstrip("=")
        return " ".join(secret[i : i + 4] for i in range(0, len(secret), 4))

    async def issue_challenge(self, account: Account) -> ChallengeRenderData:
        if await self.secret_store.get_secret(account.account_id) is None:
            raise MfaSetupError(
                f"TOTP is not enabled for account {account.account_id!r}"
            )
        return self.render_data()

    async def is_challenge_pending(self, account: Account) -> bool:
        return await self.secret_store.get_secret(account.account_id) is not None

    async def cancel(self, account: Account) -> None:
        # The last accepted step must survive cancellation to keep blocking replays
        logger.debug(
            "TOTP challenge cancelled for account %s (session %s)",
            account.account_id,
            self.context.session_id,
        )

    async def verify(self, account: Account, response_fields: Mapping[str, Any]) -> bool:
        code = normalize_code(response_fields.get(self.code_field))
        if not code or not code.isdigit() or len(code) != self.digits:
            return False

        secret = await self.secret_store.get_secret(account.account_id)
        if secret is None:
            logger.warning(
                "TOTP verification for unenrolled account %s", account.account_id
            )
            return False

        totp = self._totp(secret)
        now = self.context.clock()
        current_step = totp.timecode(now)

        matched_step: int | None = None
        for offset in range(-self.valid_window, self.valid_window + 1):
            if secrets.compare_digest(totp.at(now, counter_offset=offset), code):
                matched_step = current_step + offset
                break
        if matched_step is None:
            return False

        replay_key = self.replay_key(account)
        last = await self.context.secrets.get(replay_key)
        if last is not None and matched_step <= int(last.secret):
            logger.warning(
                "Replayed TOTP code rejected for account %s (session %s)",
                account.account_id,
                self.context.session_id,
            )
            return False

        await self.context.secrets.set(
            replay_key,
            ChallengeState(
                session_id=self.context.session_id,
                factor_id=self.factor_id,
                secret=str(matched_step),
                created_at=now,
            ),
        )
        return True


class InMemoryTotpSecretStore(ITotpSecretStore):
    """In-memory TOTP secret store for TESTING ONLY.

    ⚠️ WARNING: Secrets are stored in plain text in memory.
    Do NOT use in production!
    """

    def __init__(self) -> None:
        self._secrets: dict[str, str] = {}

    async def store_secret(self, account_id: str, secret: str) -> None:
        self._secrets[account_id] = secret

    async def get_secret(self, account_id: str) -> str | None:
        return self._secrets.get(account_id)

    async def delete_secret(self, account_id: str) -> None:
        self._secrets.pop(account_id, None)


__all__: list[str] = [
    "TotpFactor",
    "TotpEnrollment",
    "InMemoryTotpSecretStore",
]
