"""Factors that send a one-time code through an out-of-band channel.

The code is generated here, kept in the session's secret store and handed
to the delivery collaborator. How the message is rendered and transported
is up to the application's IDeliveryCollaborator.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from ..account import mask_destination
from ..challenge import ChallengeRenderData, ChallengeState
from ..codes import codes_match, generate_code
from ..exceptions import DeliveryError
from .base import BaseFactor, FactorContext

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from ..account import Account

logger = logging.getLogger(__name__)


class OutOfBandCodeFactor(BaseFactor):
    """Base for factors proving possession of an email address, phone, ...

    Flow:
        1. ``issue_challenge`` generates a code, stores it under
           ``session_key`` (replacing any previous one) and sends it.
        2. ``verify`` compares the submitted code with the stored one and
           deletes it on a match, so a code works exactly once.

    A failed send rolls the stored code back and raises DeliveryError.
    A wrong code leaves the stored code in place.
    """

    channel: ClassVar[str]
    template_key: ClassVar[str]
    code_field: ClassVar[str] = "verificationCode"

    def __init__(
        self,
        context: FactorContext,
        *,
        code_generator: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the factor.

        Args:
            context: Session collaborators.
            code_generator: Override of the code source (tests, custom
                formats). Defaults to grouped codes shaped by MfaConfig.
        """
        super().__init__(context)
        self._code_generator = code_generator

    @abstractmethod
    def destination_for(self, account: Account) -> str | None:
        """Return where the code goes, or None if the account has nowhere."""

    def _generate_code(self) -> str:
        if self._code_generator is not None:
            return self._code_generator().upper()
        config = self.context.config
        return generate_code(
            groups=config.code_groups,
            group_length=config.code_group_length,
            separator=config.code_separator,
        )

    async def issue_challenge(self, account: Account) -> ChallengeRenderData:
        destination = self.destination_for(account)
        if not destination:
            # A failed re-issue leaves no live challenge, same as a failed send
            await self.context.secrets.remove(self.session_key)
            raise DeliveryError(
                f"Account {account.account_id!r} has no registered {self.channel} destination",
                channel=self.channel,
            )

        code = self._generate_code()
        state = ChallengeState(
            session_id=self.context.session_id,
            factor_id=self.factor_id,
            secret=code,
            created_at=self.context.clock(),
        )
        await self.context.secrets.set(
            self.session_key, state, ttl=self.context.config.challenge_ttl
        )

        try:
            await self.context.delivery.send(
                destination, self.template_key, {"code": code}
            )
        except DeliveryError:
            await self._rollback(account)
            raise
        except Exception as e:
            await self._rollback(account)
            raise DeliveryError(
                str(e) or type(e).__name__,
                channel=self.channel,
                recipient=destination,
            ) from e

        logger.info(
            "Challenge %s issued to account %s (session %s)",
            self.factor_id,
            account.account_id,
            self.context.session_id,
        )
        return self.render_data(delivered_to=mask_destination(destination))

    async def _rollback(self, account: Account) -> None:
        await self.context.secrets.remove(self.session_key)
        logger.warning(
            "Delivery of %s challenge failed for account %s (session %s)",
            self.factor_id,
            account.account_id,
            self.context.session_id,
        )

    async def verify(self, account: Account, response_fields: Mapping[str, Any]) -> bool:
        state = await self.context.secrets.get(self.session_key)
        if state is None:
            logger.info(
                "No live %s challenge for account %s (session %s)",
                self.factor_id,
                account.account_id,
                self.context.session_id,
            )
            return False

        if not codes_match(response_fields.get(self.code_field), state.secret):
            return False

        await self.context.secrets.remove(self.session_key)
        return True


__all__: list[str] = ["OutOfBandCodeFactor"]
