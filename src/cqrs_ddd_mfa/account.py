"""Account value object and the account lookup port.

Accounts are owned by the host application. This package only reads the
fields it needs to route a challenge: where to send it and which factors
the account has enabled.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class Account(BaseModel):
    """Immutable view of the account under authentication.

    Attributes:
        account_id: Unique identifier of the account.
        email: Registered email address, if any.
        phone: Registered phone number (E.164), if any.
        enabled_factors: Factor ids the account may authenticate with.

    Example:
        ```python
        account = Account(
            account_id="user-123",
            email="a@example.com",
            enabled_factors=("email-code", "totp"),
        )
        account.has_factor("totp")  # True
        ```
    """

    model_config = ConfigDict(frozen=True)

    account_id: str
    email: str | None = None
    phone: str | None = None
    enabled_factors: tuple[str, ...] = ()

    def has_factor(self, factor_id: str) -> bool:
        return factor_id in self.enabled_factors


def mask_destination(value: str) -> str:
    """Mask an address for display.

    ``alice@example.com`` becomes ``a****@example.com`` and
    ``+15551234567`` becomes ``********4567``.
    """
    if "@" in value:
        local, _, domain = value.partition("@")
        if len(local) <= 1:
            return f"*@{domain}"
        return f"{local[0]}{'*' * (len(local) - 1)}@{domain}"
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


@runtime_checkable
class IAccountLookup(Protocol):
    """Protocol for the read-only account lookup provided by the host."""

    async def get(self, account_id: str) -> Account | None:
        """Return the account or None if it does not exist.

        Args:
            account_id: Account identifier.
        """
        ...


class InMemoryAccountLookup(IAccountLookup):
    """In-memory account lookup for development and testing."""

    def __init__(self, accounts: list[Account] | None = None) -> None:
        self._accounts: dict[str, Account] = {
            a.account_id: a for a in accounts or []
        }

    def add(self, account: Account) -> None:
        self._accounts[account.account_id] = account

    async def get(self, account_id: str) -> Account | None:
        return self._accounts.get(account_id)


__all__: list[str] = [
    "Account",
    "IAccountLookup",
    "InMemoryAccountLookup",
    "mask_destination",
]
