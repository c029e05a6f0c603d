"""Recovery code factor.

Single-use codes handed to the user when MFA is set up, for when the
primary factor is unavailable. Codes are stored hashed and deleted on use.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any

from ..challenge import ChallengeRenderData, FieldDefinition
from ..codes import generate_code, normalize_code
from ..ports import IRecoveryCodeStore
from .base import BaseFactor, FactorContext

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..account import Account

logger = logging.getLogger(__name__)

RECOVERY_CODE_GROUP_LENGTH = 4
RECOVERY_CODE_GROUPS = 2


def generate_recovery_codes(count: int = 10) -> list[str]:
    """Generate formatted recovery codes (e.g. ``"ABCD-EFGH"``).

    Returns plaintext codes to show the user ONCE; store only their hashes.
    """
    return [
        generate_code(RECOVERY_CODE_GROUPS, RECOVERY_CODE_GROUP_LENGTH)
        for _ in range(count)
    ]


def normalize_recovery_code(code: object) -> str | None:
    """Normalize recovery code input: strip whitespace, accept with or without dash."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    length = RECOVERY_CODE_GROUPS * RECOVERY_CODE_GROUP_LENGTH
    # If 8 chars without dash, add dash for lookup (format is XXXX-XXXX)
    if len(normalized) == length and "-" not in normalized:
        normalized = "-".join(
            normalized[i : i + RECOVERY_CODE_GROUP_LENGTH]
            for i in range(0, length, RECOVERY_CODE_GROUP_LENGTH)
        )
    return normalized


class RecoveryCodeFactor(BaseFactor):
    """Authenticate with one of the account's recovery codes.

    ``issue_challenge`` has no side effects; each code is its own
    single-use secret held by the IRecoveryCodeStore.
    """

    factor_id = "recovery-code"
    display_name = "Recovery Code"
    description = "Authenticate with one of your single use recovery codes."
    fields = (FieldDefinition("recoveryCode", "Recovery code"),)

    code_field = "recoveryCode"

    def __init__(self, context: FactorContext, *, code_store: IRecoveryCodeStore) -> None:
        super().__init__(context)
        self.code_store = code_store

    async def issue_challenge(self, account: Account) -> ChallengeRenderData:  # noqa: ARG002
        return self.render_data()

    async def is_challenge_pending(self, account: Account) -> bool:
        return await self.code_store.remaining(account.account_id) > 0

    async def cancel(self, account: Account) -> None:
        """Nothing to cancel: recovery codes are not session challenges."""

    async def verify(self, account: Account, response_fields: Mapping[str, Any]) -> bool:
        code = normalize_recovery_code(response_fields.get(self.code_field))
        if not code:
            return False
        consumed = await self.code_store.consume(account.account_id, code)
        if consumed:
            logger.info(
                "Recovery code used by account %s, %d left",
                account.account_id,
                await self.code_store.remaining(account.account_id),
            )
        return consumed


def _digest(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


class InMemoryRecoveryCodeStore(IRecoveryCodeStore):
    """In-memory recovery code store for testing.

    Keeps SHA-256 digests only. Not for production use.
    """

    def __init__(self) -> None:
        self._codes: dict[str, set[str]] = {}

    async def replace(self, account_id: str, codes: list[str]) -> None:
        self._codes[account_id] = {
            _digest(c) for c in (normalize_recovery_code(c) for c in codes) if c
        }

    async def consume(self, account_id: str, code: str) -> bool:
        digest = _digest(code)
        account_codes = self._codes.get(account_id)
        if not account_codes or digest not in account_codes:
            return False
        account_codes.discard(digest)
        return True

    async def remaining(self, account_id: str) -> int:
        return len(self._codes.get(account_id, set()))


__all__: list[str] = [
    "RecoveryCodeFactor",
    "InMemoryRecoveryCodeStore",
    "generate_recovery_codes",
    "normalize_recovery_code",
]
