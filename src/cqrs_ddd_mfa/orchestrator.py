"""Challenge orchestrator: the per-login MFA state machine.

::

    IDLE ──select_factor──▶ FACTOR_SELECTED ──issue──▶ CHALLENGE_ISSUED ──submit(ok)──▶ VERIFIED
                                  ▲                        │    ▲
                                  └──issue (DeliveryError)─┘    └──submit(wrong code)

A wrong code leaves the issued secret in place, so the same challenge may be
answered again until it is re-issued, cancelled, or the session ends. Only a
successful submit consumes it. Attempts are counted but not capped.

VERIFIED is terminal for ``issue``, ``select_factor`` and ``cancel``. A later
``submit`` is answered from the store and returns False once the secret is
consumed.
"""

from __future__ import annotations

import contextlib
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from .config import MfaConfig
from .exceptions import (
    AccountNotFoundError,
    ChallengeStateError,
    DeliveryError,
    FactorNotEnabledError,
    MfaError,
)
from .factors.base import FactorContext
from .store.scoped import SessionSecrets

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping

    from .account import Account, IAccountLookup
    from .challenge import ChallengeRenderData, FactorDescriptor
    from .ports import IDeliveryCollaborator, IFactor, ISecretStore, ISessionLock
    from .registry import FactorRegistry

logger = logging.getLogger(__name__)


class ChallengeStatus(Enum):
    """States of one authentication attempt."""

    IDLE = "idle"
    FACTOR_SELECTED = "factor_selected"
    CHALLENGE_ISSUED = "challenge_issued"
    VERIFIED = "verified"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChallengeOrchestrator:
    """Drives select factor → issue challenge → verify for one session.

    Collaborators are injected; nothing is looked up from process-wide
    state apart from the (read-only) registry handed in.

    Example:
        ```python
        orchestrator = ChallengeOrchestrator(
            session_id=request.session.id,
            registry=registry,
            secret_store=secret_store,
            delivery=delivery,
        )

        await orchestrator.select_factor(account, "email-code")
        render = await orchestrator.issue()       # fields for the form
        ...
        if await orchestrator.submit({"verificationCode": form_code}):
            complete_login(account)
        ```

    In a later request, ``resume(account, factor_id)`` rebuilds the state
    from the secret store before calling ``submit``.
    """

    def __init__(
        self,
        session_id: str,
        *,
        registry: FactorRegistry,
        secret_store: ISecretStore,
        delivery: IDeliveryCollaborator,
        config: MfaConfig | None = None,
        session_lock: ISessionLock | None = None,
        account_lookup: IAccountLookup | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the orchestrator for one authentication session.

        Args:
            session_id: Authentication session (attempt) identifier.
            registry: Factor registry, normally frozen.
            secret_store: Ephemeral store for issued challenges.
            delivery: Out-of-band delivery collaborator.
            config: Challenge configuration.
            session_lock: Optional lock serialising this session's calls.
            account_lookup: Optional lookup used by ``load_account``.
            clock: Source of the current UTC time.
        """
        self.registry = registry
        self.session_lock = session_lock
        self.account_lookup = account_lookup
        self._context = FactorContext(
            secrets=SessionSecrets(secret_store, session_id),
            delivery=delivery,
            config=config or MfaConfig(),
            clock=clock or _utcnow,
        )
        self._status = ChallengeStatus.IDLE
        self._factor: IFactor | None = None
        self._account: Account | None = None
        self._failed_attempts = 0
        self._last_rejected = False
        self._resumed = False

    # ── State ────────────────────────────────────────────────────

    @property
    def session_id(self) -> str:
        return self._context.session_id

    @property
    def status(self) -> ChallengeStatus:
        return self._status

    @property
    def factor(self) -> IFactor | None:
        return self._factor

    @property
    def descriptor(self) -> FactorDescriptor | None:
        return self._factor.descriptor() if self._factor is not None else None

    @property
    def account(self) -> Account | None:
        return self._account

    @property
    def failed_attempts(self) -> int:
        """Rejected submissions since the current challenge was issued."""
        return self._failed_attempts

    @property
    def last_rejected(self) -> bool:
        """True when the most recent submit did not match."""
        return self._last_rejected

    @property
    def is_verified(self) -> bool:
        return self._status is ChallengeStatus.VERIFIED

    def _require(self, operation: str, *allowed: ChallengeStatus) -> None:
        if self._status not in allowed:
            raise ChallengeStateError(operation, self._status.value)

    @contextlib.asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        if self.session_lock is None:
            yield
            return
        async with self.session_lock.hold(self.session_id):
            yield

    # ── Account & factor selection ───────────────────────────────

    async def load_account(self, account_id: str) -> Account:
        """Fetch the account through the configured lookup.

        Raises:
            AccountNotFoundError: If the lookup has no such account.
            MfaError: If no lookup was configured.
        """
        if self.account_lookup is None:
            raise MfaError("No account lookup configured")
        account = await self.account_lookup.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def available_factors(self, account: Account) -> tuple[FactorDescriptor, ...]:
        """Factors the account may choose from, in priority order."""
        return self.registry.factors_for(account)

    async def select_factor(self, account: Account, factor_id: str) -> FactorDescriptor:
        """Choose the factor for this attempt.

        Switching to another factor cancels the previous factor's live
        challenge.

        Raises:
            UnknownFactorError: If the factor id is not registered.
            FactorNotEnabledError: If the account has not enabled it.
            ChallengeStateError: If the attempt is already verified.
        """
        self._require(
            "select a factor",
            ChallengeStatus.IDLE,
            ChallengeStatus.FACTOR_SELECTED,
            ChallengeStatus.CHALLENGE_ISSUED,
        )
        factor = self.registry.resolve(factor_id, self._context)
        if not account.has_factor(factor_id):
            raise FactorNotEnabledError(factor_id, account.account_id)

        previous, previous_account = self._factor, self._account
        if previous is not None and previous_account is not None and (
            previous.factor_id != factor_id
            or previous_account.account_id != account.account_id
        ):
            await previous.cancel(previous_account)

        self._factor = factor
        self._account = account
        self._status = ChallengeStatus.FACTOR_SELECTED
        self._failed_attempts = 0
        self._last_rejected = False
        self._resumed = False
        logger.debug(
            "Factor %s selected for account %s (session %s)",
            factor_id,
            account.account_id,
            self.session_id,
        )
        return factor.descriptor()

    async def resume(self, account: Account, factor_id: str) -> ChallengeStatus:
        """Rebuild the attempt's state in a new request.

        Selects the factor, then moves to CHALLENGE_ISSUED if the factor
        still has a challenge that can be answered.
        """
        await self.select_factor(account, factor_id)
        self._resumed = True
        assert self._factor is not None
        if await self._factor.is_challenge_pending(account):
            self._status = ChallengeStatus.CHALLENGE_ISSUED
        return self._status

    # ── Challenge ────────────────────────────────────────────────

    async def issue(self) -> ChallengeRenderData:
        """Issue (or re-issue) the selected factor's challenge.

        Returns:
            What the presentation layer needs to render the form.

        Raises:
            DeliveryError: The send failed; status is FACTOR_SELECTED and
                no challenge is live.
            ChallengeStateError: If no factor is selected or already verified.
        """
        self._require(
            "issue a challenge",
            ChallengeStatus.FACTOR_SELECTED,
            ChallengeStatus.CHALLENGE_ISSUED,
        )
        factor, account = self._selected()
        async with self._locked():
            try:
                render = await factor.issue_challenge(account)
            except DeliveryError:
                self._status = ChallengeStatus.FACTOR_SELECTED
                raise
        self._status = ChallengeStatus.CHALLENGE_ISSUED
        self._failed_attempts = 0
        self._last_rejected = False
        return render

    async def submit(self, response_fields: Mapping[str, Any]) -> bool:
        """Verify the user's response to the issued challenge.

        A response to an attempt that is already verified, or to a resumed
        attempt whose challenge is gone, is still checked against the
        store. The secret was consumed, so it reads as a rejection.

        Returns:
            True if verified (the secret is consumed and the attempt is
            complete), False if the response did not match.

        Raises:
            ChallengeStateError: If no challenge has been issued.
        """
        allowed = [ChallengeStatus.CHALLENGE_ISSUED, ChallengeStatus.VERIFIED]
        if self._resumed:
            allowed.append(ChallengeStatus.FACTOR_SELECTED)
        self._require("submit a response", *allowed)
        factor, account = self._selected()
        async with self._locked():
            verified = await factor.verify(account, response_fields)

        if self._status is ChallengeStatus.VERIFIED:
            if not verified:
                self._failed_attempts += 1
                self._last_rejected = True
                logger.warning(
                    "Challenge %s already verified for account %s (session %s); "
                    "response rejected",
                    factor.factor_id,
                    account.account_id,
                    self.session_id,
                )
            return verified

        if verified:
            self._status = ChallengeStatus.VERIFIED
            self._last_rejected = False
            logger.info(
                "Challenge %s verified for account %s (session %s)",
                factor.factor_id,
                account.account_id,
                self.session_id,
            )
            return True

        self._failed_attempts += 1
        self._last_rejected = True
        logger.warning(
            "Challenge %s rejected for account %s (session %s, attempt %d)",
            factor.factor_id,
            account.account_id,
            self.session_id,
            self._failed_attempts,
        )
        return False

    async def cancel(self) -> None:
        """Abandon the attempt: drop the live challenge and return to IDLE."""
        self._require(
            "cancel",
            ChallengeStatus.IDLE,
            ChallengeStatus.FACTOR_SELECTED,
            ChallengeStatus.CHALLENGE_ISSUED,
        )
        if self._factor is not None and self._account is not None:
            async with self._locked():
                await self._factor.cancel(self._account)
            logger.info(
                "Challenge %s cancelled for account %s (session %s)",
                self._factor.factor_id,
                self._account.account_id,
                self.session_id,
            )
        self._factor = None
        self._account = None
        self._status = ChallengeStatus.IDLE
        self._failed_attempts = 0
        self._last_rejected = False
        self._resumed = False

    def _selected(self) -> tuple[IFactor, Account]:
        assert self._factor is not None and self._account is not None
        return self._factor, self._account


__all__: list[str] = ["ChallengeOrchestrator", "ChallengeStatus"]
