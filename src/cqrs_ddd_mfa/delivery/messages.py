"""Message and delivery receipt types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class DeliveryStatus(Enum):
    """Delivery status outcomes."""

    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryReceipt:
    """Immutable record of one transport attempt."""

    recipient: str
    status: DeliveryStatus
    provider_id: str | None = None
    sent_at: datetime | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.sent_at is None:
            object.__setattr__(self, "sent_at", datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.status is DeliveryStatus.SENT

    @classmethod
    def sent(cls, recipient: str, provider_id: str | None = None) -> DeliveryReceipt:
        """Create a successful delivery receipt."""
        return cls(recipient=recipient, status=DeliveryStatus.SENT, provider_id=provider_id)

    @classmethod
    def failed(cls, recipient: str, error: str | None = None) -> DeliveryReceipt:
        """Create a failed delivery receipt."""
        return cls(recipient=recipient, status=DeliveryStatus.FAILED, error=error)


@dataclass(frozen=True)
class MessageTemplate:
    """Immutable template definition."""

    template_key: str
    channel: str
    body_template: str
    subject_template: str | None = None


@dataclass(frozen=True)
class RenderedMessage:
    """Immutable rendered message ready for a transport."""

    channel: str
    body_text: str
    subject: str | None = None
    body_html: str | None = None


__all__: list[str] = [
    "DeliveryStatus",
    "DeliveryReceipt",
    "MessageTemplate",
    "RenderedMessage",
]
