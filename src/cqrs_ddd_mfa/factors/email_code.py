"""Email code factor: a single-use code sent to the account's email address."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..challenge import FieldDefinition
from .out_of_band import OutOfBandCodeFactor

if TYPE_CHECKING:
    from ..account import Account

EMAIL_CODE_TEMPLATE_KEY = "mfa_code_email"


class EmailCodeFactor(OutOfBandCodeFactor):
    """Authenticate via a single-use code sent to the account's email.

    Example:
        ```python
        factor = EmailCodeFactor(context)
        render = await factor.issue_challenge(account)   # sends "K7QM-R2XD"
        await factor.verify(account, {"verificationCode": "k7qm-r2xd"})  # True
        await factor.verify(account, {"verificationCode": "k7qm-r2xd"})  # False
        ```
    """

    factor_id = "email-code"
    display_name = "Email Code"
    description = "Authenticate via single use code sent to your email address."
    fields = (FieldDefinition("verificationCode", "Emailed verification code"),)

    channel = "email"
    template_key = EMAIL_CODE_TEMPLATE_KEY

    def destination_for(self, account: Account) -> str | None:
        return account.email


__all__: list[str] = ["EmailCodeFactor", "EMAIL_CODE_TEMPLATE_KEY"]
