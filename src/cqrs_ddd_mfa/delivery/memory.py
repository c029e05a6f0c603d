"""In-memory delivery collaborator for test assertions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..exceptions import DeliveryError
from ..ports import IDeliveryCollaborator

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentChallenge:
    """Record of a delivered challenge for test assertions."""

    destination: str
    template_key: str
    template_data: dict[str, Any]


class InMemoryDelivery(IDeliveryCollaborator):
    """
    Test double (Fake) that records sends in a list for assertions.

    ``fail_with(reason)`` makes subsequent sends raise DeliveryError
    until ``recover()`` is called.
    """

    def __init__(self) -> None:
        self.sent: list[SentChallenge] = []
        self._failure: str | None = None

    async def send(
        self,
        destination: str,
        template_key: str,
        template_data: Mapping[str, Any],
    ) -> None:
        if self._failure is not None:
            raise DeliveryError(self._failure, recipient=destination)
        self.sent.append(SentChallenge(destination, template_key, dict(template_data)))

    def fail_with(self, reason: str = "transport unavailable") -> None:
        self._failure = reason

    def recover(self) -> None:
        self._failure = None

    def last_code_for(self, destination: str) -> str | None:
        """Return the code of the most recent send to ``destination``."""
        for record in reversed(self.sent):
            if record.destination == destination:
                code = record.template_data.get("code")
                return str(code) if code is not None else None
        return None

    def assert_sent(self, destination: str, count: int = 1) -> None:
        """Helper for test assertions."""
        matches = [m for m in self.sent if m.destination == destination]
        if len(matches) != count:
            raise AssertionError(
                f"Expected {count} challenges sent to {destination}, "
                f"but found {len(matches)}."
            )

    def clear(self) -> None:
        """Clear all recorded sends."""
        self.sent.clear()


__all__: list[str] = ["InMemoryDelivery", "SentChallenge"]
