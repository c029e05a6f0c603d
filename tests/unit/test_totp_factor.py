"""Tests for the TOTP factor."""

from __future__ import annotations

import pyotp
import pytest

from cqrs_ddd_mfa import (
    Account,
    FactorContext,
    InMemorySecretStore,
    InMemoryTotpSecretStore,
    MfaSetupError,
    SessionSecrets,
    TotpFactor,
)
from cqrs_ddd_mfa.delivery import InMemoryDelivery


@pytest.fixture
def totp_secrets() -> InMemoryTotpSecretStore:
    return InMemoryTotpSecretStore()


@pytest.fixture
def totp_context(
    secret_store: InMemorySecretStore, delivery: InMemoryDelivery, clock
) -> FactorContext:
    return FactorContext(
        secrets=SessionSecrets(secret_store, "session-1"),
        delivery=delivery,
        clock=clock,
    )


@pytest.fixture
def factor(
    totp_context: FactorContext, totp_secrets: InMemoryTotpSecretStore
) -> TotpFactor:
    return TotpFactor(totp_context, secret_store=totp_secrets, issuer="TestApp")


class TestTotpFactor:
    @pytest.mark.asyncio
    async def test_enroll(
        self,
        factor: TotpFactor,
        account: Account,
        totp_secrets: InMemoryTotpSecretStore,
    ) -> None:
        enrollment = await factor.enroll(account)

        assert enrollment.provisioning_uri.startswith("otpauth://totp/")
        assert "TestApp" in enrollment.provisioning_uri
        assert enrollment.manual_key.replace(" ", "") == enrollment.secret.rstrip("=")
        assert await totp_secrets.get_secret("user-123") == enrollment.secret

    @pytest.mark.asyncio
    async def test_issue_requires_enrollment(
        self, factor: TotpFactor, account: Account
    ) -> None:
        with pytest.raises(MfaSetupError, match="TOTP is not enabled"):
            await factor.issue_challenge(account)

        assert not await factor.is_challenge_pending(account)

    @pytest.mark.asyncio
    async def test_issue_sends_nothing(
        self, factor: TotpFactor, account: Account, delivery: InMemoryDelivery
    ) -> None:
        await factor.enroll(account)

        render = await factor.issue_challenge(account)

        assert render.factor_id == "totp"
        assert render.delivered_to is None
        assert delivery.sent == []
        assert await factor.is_challenge_pending(account)

    @pytest.mark.asyncio
    async def test_verify_current_code(
        self, factor: TotpFactor, account: Account, clock
    ) -> None:
        enrollment = await factor.enroll(account)
        code = pyotp.TOTP(enrollment.secret).at(clock())

        assert await factor.verify(account, {"verificationCode": code})

    @pytest.mark.asyncio
    async def test_verify_accepts_drift_within_window(
        self, factor: TotpFactor, account: Account, clock
    ) -> None:
        enrollment = await factor.enroll(account)
        code = pyotp.TOTP(enrollment.secret).at(clock())

        clock.advance(30)

        assert await factor.verify(account, {"verificationCode": code})

    @pytest.mark.asyncio
    async def test_verify_rejects_stale_code(
        self, factor: TotpFactor, account: Account, clock
    ) -> None:
        enrollment = await factor.enroll(account)
        code = pyotp.TOTP(enrollment.secret).at(clock())

        clock.advance(120)

        assert not await factor.verify(account, {"verificationCode": code})

    @pytest.mark.asyncio
    async def test_replay_is_rejected(
        self, factor: TotpFactor, account: Account, clock
    ) -> None:
        enrollment = await factor.enroll(account)
        code = pyotp.TOTP(enrollment.secret).at(clock())

        assert await factor.verify(account, {"verificationCode": code})
        assert not await factor.verify(account, {"verificationCode": code})

    @pytest.mark.asyncio
    async def test_next_step_accepted_after_use(
        self, factor: TotpFactor, account: Account, clock
    ) -> None:
        enrollment = await factor.enroll(account)
        totp = pyotp.TOTP(enrollment.secret)

        assert await factor.verify(account, {"verificationCode": totp.at(clock())})
        clock.advance(30)
        assert await factor.verify(account, {"verificationCode": totp.at(clock())})

    @pytest.mark.asyncio
    async def test_cancel_keeps_replay_marker(
        self, factor: TotpFactor, account: Account, clock
    ) -> None:
        enrollment = await factor.enroll(account)
        code = pyotp.TOTP(enrollment.secret).at(clock())
        assert await factor.verify(account, {"verificationCode": code})

        await factor.cancel(account)

        assert not await factor.verify(account, {"verificationCode": code})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "12345", "1234567", "abcdef", None])
    async def test_malformed_codes(
        self, factor: TotpFactor, account: Account, code: object
    ) -> None:
        await factor.enroll(account)

        assert not await factor.verify(account, {"verificationCode": code})

    @pytest.mark.asyncio
    async def test_verify_unenrolled(self, factor: TotpFactor, account: Account) -> None:
        assert not await factor.verify(account, {"verificationCode": "123456"})

    @pytest.mark.asyncio
    async def test_replay_marker_is_per_account(
        self,
        factor: TotpFactor,
        account: Account,
        secret_store: InMemorySecretStore,
        clock,
    ) -> None:
        other = Account(account_id="user-456", enabled_factors=("totp",))
        totp = pyotp.TOTP((await factor.enroll(account)).secret)
        other_totp = pyotp.TOTP((await factor.enroll(other)).secret)

        assert await factor.verify(account, {"verificationCode": totp.at(clock())})
        assert await factor.verify(other, {"verificationCode": other_totp.at(clock())})

        assert factor.replay_key(account) == "auth.totp.user-123.last_step"
        assert await secret_store.get("session-1", factor.replay_key(other)) is not None
