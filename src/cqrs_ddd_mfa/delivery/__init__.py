"""Out-of-band delivery of challenge codes."""

from __future__ import annotations

from .memory import InMemoryDelivery, SentChallenge
from .messages import DeliveryReceipt, DeliveryStatus, MessageTemplate, RenderedMessage
from .smtp import SmtpTransport
from .templated import IMessageTransport, TemplatedDelivery
from .templates import (
    DEFAULT_TEMPLATES,
    ITemplateRenderer,
    JinjaTemplateRenderer,
    StringFormatRenderer,
    TemplateRegistry,
)

__all__: list[str] = [
    "DeliveryReceipt",
    "DeliveryStatus",
    "MessageTemplate",
    "RenderedMessage",
    "IMessageTransport",
    "TemplatedDelivery",
    "TemplateRegistry",
    "DEFAULT_TEMPLATES",
    "ITemplateRenderer",
    "StringFormatRenderer",
    "JinjaTemplateRenderer",
    "SmtpTransport",
    "InMemoryDelivery",
    "SentChallenge",
]
