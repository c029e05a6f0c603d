"""Base class and runtime context shared by all authentication factors."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, ClassVar

from ..challenge import ChallengeRenderData, FactorDescriptor, FieldDefinition
from ..config import MfaConfig

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ..account import Account
    from ..ports import IDeliveryCollaborator
    from ..store.scoped import SessionSecrets

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FactorContext:
    """Per-session collaborators a factor instance is built with.

    Attributes:
        secrets: Secret store view bound to the authentication session.
        delivery: Out-of-band delivery collaborator.
        config: Challenge configuration.
        clock: Source of the current UTC time.
    """

    secrets: SessionSecrets
    delivery: IDeliveryCollaborator
    config: MfaConfig = field(default_factory=MfaConfig)
    clock: Callable[[], datetime] = _utcnow

    @property
    def session_id(self) -> str:
        return self.secrets.session_id


class BaseFactor(ABC):
    """Base class for authentication factors.

    Subclasses declare their descriptor through class attributes and
    implement ``issue_challenge`` and ``verify``. One instance serves one
    authentication session; the registry builds it from a FactorContext.
    """

    factor_id: ClassVar[str]
    display_name: ClassVar[str]
    description: ClassVar[str]
    fields: ClassVar[tuple[FieldDefinition, ...]] = ()

    def __init__(self, context: FactorContext) -> None:
        self.context = context

    @classmethod
    def descriptor(cls) -> FactorDescriptor:
        return FactorDescriptor(
            factor_id=cls.factor_id,
            display_name=cls.display_name,
            description=cls.description,
            fields=cls.fields,
        )

    @property
    def session_key(self) -> str:
        """Secret store key of this factor's challenge."""
        return f"{self.context.config.session_key_prefix}.{self.factor_id}.code"

    def render_data(self, delivered_to: str | None = None) -> ChallengeRenderData:
        return ChallengeRenderData.from_descriptor(
            self.descriptor(), delivered_to=delivered_to
        )

    @abstractmethod
    async def issue_challenge(self, account: Account) -> ChallengeRenderData:
        """Issue a challenge and return what the form needs."""

    @abstractmethod
    async def verify(self, account: Account, response_fields: Mapping[str, Any]) -> bool:
        """Check a response; False on mismatch."""

    async def cancel(self, account: Account) -> None:
        """Drop the live challenge of this factor, if any."""
        await self.context.secrets.remove(self.session_key)
        logger.debug(
            "Challenge %s cancelled for account %s (session %s)",
            self.factor_id,
            account.account_id,
            self.context.session_id,
        )

    async def is_challenge_pending(self, account: Account) -> bool:  # noqa: ARG002
        return await self.context.secrets.get(self.session_key) is not None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session_id={self.context.session_id!r})"


__all__: list[str] = ["BaseFactor", "FactorContext"]
