"""Factor registry: maps stable factor ids to factor implementations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import FactorRegistrationError, UnknownFactorError
from .factors.email_code import EmailCodeFactor
from .factors.recovery_code import RecoveryCodeFactor
from .factors.sms_code import SmsCodeFactor
from .factors.totp import TotpFactor

if TYPE_CHECKING:
    from collections.abc import Callable

    from .account import Account
    from .challenge import FactorDescriptor
    from .factors.base import BaseFactor, FactorContext
    from .ports import IFactor, IRecoveryCodeStore, ITotpSecretStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Registration:
    descriptor: FactorDescriptor
    factory: Callable[[FactorContext], IFactor]


class FactorRegistry:
    """Process-wide catalogue of the authentication factors on offer.

    Populate it once while bootstrapping, then ``freeze()`` it; after that
    it is read-only and safe to share between concurrent requests.
    Registration order is the priority order used by ``factors_for``.

    Example:
        ```python
        registry = FactorRegistry()
        registry.register(EmailCodeFactor)
        registry.register(
            TotpFactor,
            lambda ctx: TotpFactor(ctx, secret_store=totp_secrets),
        )
        registry.freeze()

        registry.factors_for(account)            # descriptors, in priority order
        factor = registry.resolve("totp", context)
        ```
    """

    def __init__(self) -> None:
        self._registrations: dict[str, _Registration] = {}
        self._frozen = False

    # ── Registration ─────────────────────────────────────────────

    def register(
        self,
        factor_type: type[BaseFactor],
        factory: Callable[[FactorContext], IFactor] | None = None,
    ) -> None:
        """Register a factor class.

        Args:
            factor_type: Factor class; provides the descriptor.
            factory: Builds an instance for a session. Defaults to
                ``factor_type`` itself, for factors needing only a context.

        Raises:
            FactorRegistrationError: If frozen or the id is already taken.
        """
        if self._frozen:
            raise FactorRegistrationError(
                f"Cannot register {factor_type.__name__}: registry is frozen"
            )
        descriptor = factor_type.descriptor()
        existing = self._registrations.get(descriptor.factor_id)
        if existing is not None:
            raise FactorRegistrationError(
                f"Duplicate factor id {descriptor.factor_id!r}: "
                f"{existing.descriptor.display_name!r} already registered"
            )
        self._registrations[descriptor.factor_id] = _Registration(
            descriptor=descriptor,
            factory=factory or factor_type,
        )
        logger.debug(
            "Registered factor %s -> %s", descriptor.factor_id, factor_type.__name__
        )

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # ── Lookup ───────────────────────────────────────────────────

    def factors_for(self, account: Account) -> tuple[FactorDescriptor, ...]:
        """Return the descriptors of factors the account has enabled.

        Snapshot in registration (priority) order.
        """
        return tuple(
            r.descriptor
            for factor_id, r in self._registrations.items()
            if account.has_factor(factor_id)
        )

    def resolve(self, factor_id: str, context: FactorContext) -> IFactor:
        """Build the factor registered under ``factor_id`` for a session.

        Raises:
            UnknownFactorError: If nothing is registered under the id.
            FactorRegistrationError: If the factory fails or builds a
                factor with another id.
        """
        registration = self._registrations.get(factor_id)
        if registration is None:
            raise UnknownFactorError(factor_id)
        try:
            factor = registration.factory(context)
        except Exception as e:
            raise FactorRegistrationError(
                f"Factory for factor {factor_id!r} failed: {e}"
            ) from e
        if getattr(factor, "factor_id", None) != factor_id:
            raise FactorRegistrationError(
                f"Factory for factor {factor_id!r} built "
                f"{type(factor).__name__} instead"
            )
        return factor

    def descriptor(self, factor_id: str) -> FactorDescriptor:
        registration = self._registrations.get(factor_id)
        if registration is None:
            raise UnknownFactorError(factor_id)
        return registration.descriptor

    @property
    def factor_ids(self) -> tuple[str, ...]:
        return tuple(self._registrations)

    def __contains__(self, factor_id: Any) -> bool:
        return factor_id in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)


def default_registry(
    *,
    totp_secret_store: ITotpSecretStore | None = None,
    recovery_code_store: IRecoveryCodeStore | None = None,
    totp_issuer: str = "MyApp",
) -> FactorRegistry:
    """Build a frozen registry with the bundled factors.

    Priority: email code, SMS code, then TOTP and recovery codes when
    their stores are given.
    """
    registry = FactorRegistry()
    registry.register(EmailCodeFactor)
    registry.register(SmsCodeFactor)
    if totp_secret_store is not None:
        totp_store = totp_secret_store
        registry.register(
            TotpFactor,
            lambda ctx: TotpFactor(ctx, secret_store=totp_store, issuer=totp_issuer),
        )
    if recovery_code_store is not None:
        code_store = recovery_code_store
        registry.register(
            RecoveryCodeFactor,
            lambda ctx: RecoveryCodeFactor(ctx, code_store=code_store),
        )
    registry.freeze()
    return registry


__all__: list[str] = ["FactorRegistry", "default_registry"]
