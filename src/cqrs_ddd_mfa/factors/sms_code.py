"""SMS code factor."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..challenge import FieldDefinition
from .out_of_band import OutOfBandCodeFactor

if TYPE_CHECKING:
    from ..account import Account

SMS_CODE_TEMPLATE_KEY = "mfa_code_sms"


class SmsCodeFactor(OutOfBandCodeFactor):
    """Authenticate via a single-use code texted to the account's phone."""

    factor_id = "sms-code"
    display_name = "Text Message Code"
    description = "Authenticate via single use code sent to your phone."
    fields = (FieldDefinition("verificationCode", "Text message verification code"),)

    channel = "sms"
    template_key = SMS_CODE_TEMPLATE_KEY

    def destination_for(self, account: Account) -> str | None:
        return account.phone


__all__: list[str] = ["SmsCodeFactor", "SMS_CODE_TEMPLATE_KEY"]
