"""Tests for the recovery code factor."""

from __future__ import annotations

import re

import pytest

from cqrs_ddd_mfa import (
    Account,
    FactorContext,
    InMemoryRecoveryCodeStore,
    RecoveryCodeFactor,
    generate_recovery_codes,
)
from cqrs_ddd_mfa.factors import normalize_recovery_code


@pytest.fixture
def code_store() -> InMemoryRecoveryCodeStore:
    return InMemoryRecoveryCodeStore()


@pytest.fixture
def factor(
    context: FactorContext, code_store: InMemoryRecoveryCodeStore
) -> RecoveryCodeFactor:
    return RecoveryCodeFactor(context, code_store=code_store)


def test_generate_recovery_codes() -> None:
    codes = generate_recovery_codes(5)

    assert len(codes) == 5
    assert all(re.fullmatch(r"[A-Z2-9]{4}-[A-Z2-9]{4}", c) for c in codes)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("abcd-efgh", "ABCD-EFGH"),
        (" abcdefgh ", "ABCD-EFGH"),
        ("", None),
        (None, None),
    ],
)
def test_normalize_recovery_code(raw: object, expected: str | None) -> None:
    assert normalize_recovery_code(raw) == expected


class TestRecoveryCodeFactor:
    @pytest.mark.asyncio
    async def test_code_is_single_use(
        self,
        factor: RecoveryCodeFactor,
        account: Account,
        code_store: InMemoryRecoveryCodeStore,
    ) -> None:
        codes = generate_recovery_codes(3)
        await code_store.replace(account.account_id, codes)

        assert await factor.verify(account, {"recoveryCode": codes[0]})
        assert not await factor.verify(account, {"recoveryCode": codes[0]})
        assert await code_store.remaining(account.account_id) == 2

    @pytest.mark.asyncio
    async def test_accepts_lowercase_without_dash(
        self,
        factor: RecoveryCodeFactor,
        account: Account,
        code_store: InMemoryRecoveryCodeStore,
    ) -> None:
        await code_store.replace(account.account_id, ["WXYZ-2345"])

        assert await factor.verify(account, {"recoveryCode": "wxyz2345"})

    @pytest.mark.asyncio
    async def test_wrong_code(
        self,
        factor: RecoveryCodeFactor,
        account: Account,
        code_store: InMemoryRecoveryCodeStore,
    ) -> None:
        await code_store.replace(account.account_id, ["WXYZ-2345"])

        assert not await factor.verify(account, {"recoveryCode": "AAAA-BBBB"})
        assert not await factor.verify(account, {})
        assert await code_store.remaining(account.account_id) == 1

    @pytest.mark.asyncio
    async def test_issue_and_pending(
        self,
        factor: RecoveryCodeFactor,
        account: Account,
        code_store: InMemoryRecoveryCodeStore,
    ) -> None:
        render = await factor.issue_challenge(account)

        assert render.fields[0].key == "recoveryCode"
        assert not await factor.is_challenge_pending(account)

        await code_store.replace(account.account_id, ["WXYZ-2345"])
        assert await factor.is_challenge_pending(account)

        await factor.cancel(account)
        assert await factor.is_challenge_pending(account)

    @pytest.mark.asyncio
    async def test_store_keeps_only_digests(
        self, account: Account, code_store: InMemoryRecoveryCodeStore
    ) -> None:
        await code_store.replace(account.account_id, ["WXYZ-2345"])

        assert "WXYZ-2345" not in repr(code_store._codes)
