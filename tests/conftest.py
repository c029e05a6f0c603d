"""Test configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cqrs_ddd_mfa import (
    Account,
    ChallengeOrchestrator,
    FactorContext,
    FactorRegistry,
    InMemorySecretStore,
    MfaConfig,
    SessionSecrets,
    default_registry,
)
from cqrs_ddd_mfa.delivery import InMemoryDelivery

SESSION_ID = "session-1"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def account() -> Account:
    """Account with an email address and the email code factor enabled."""
    return Account(
        account_id="user-123",
        email="a@example.com",
        phone="+15551234567",
        enabled_factors=("email-code", "sms-code"),
    )


@pytest.fixture
def secret_store() -> InMemorySecretStore:
    return InMemorySecretStore()


@pytest.fixture
def delivery() -> InMemoryDelivery:
    return InMemoryDelivery()


@pytest.fixture
def session_secrets(secret_store: InMemorySecretStore) -> SessionSecrets:
    return SessionSecrets(secret_store, SESSION_ID)


@pytest.fixture
def context(
    session_secrets: SessionSecrets, delivery: InMemoryDelivery
) -> FactorContext:
    return FactorContext(
        secrets=session_secrets, delivery=delivery, config=MfaConfig()
    )


@pytest.fixture
def registry() -> FactorRegistry:
    return default_registry()


@pytest.fixture
def orchestrator(
    registry: FactorRegistry,
    secret_store: InMemorySecretStore,
    delivery: InMemoryDelivery,
) -> ChallengeOrchestrator:
    return ChallengeOrchestrator(
        SESSION_ID,
        registry=registry,
        secret_store=secret_store,
        delivery=delivery,
    )
