"""Delivery collaborator that renders a template and hands it to a transport."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ..exceptions import DeliveryError
from ..ports import IDeliveryCollaborator
from .templates import ITemplateRenderer, StringFormatRenderer, TemplateRegistry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .messages import DeliveryReceipt, RenderedMessage

logger = logging.getLogger(__name__)


@runtime_checkable
class IMessageTransport(Protocol):
    """
    Port for the channel-specific transport (SMTP, SES, Twilio, ...).

    Transports report failures through the receipt; raising is also
    tolerated and treated the same way.
    """

    async def send(self, recipient: str, message: RenderedMessage) -> DeliveryReceipt:
        """Send a rendered message and return a receipt."""
        ...


class TemplatedDelivery(IDeliveryCollaborator):
    """
    IDeliveryCollaborator built from a template registry, a renderer and
    one transport per channel.

    Example:
        ```python
        delivery = TemplatedDelivery(
            transports={"email": SmtpTransport(host="smtp.example.com", from_email="no-reply@example.com")},
        )
        await delivery.send("a@example.com", "mfa_code_email", {"code": "K7QM-R2XD"})
        ```
    """

    def __init__(
        self,
        transports: Mapping[str, IMessageTransport],
        *,
        templates: TemplateRegistry | None = None,
        renderer: ITemplateRenderer | None = None,
    ) -> None:
        self.transports = dict(transports)
        self.templates = templates or TemplateRegistry()
        self.renderer = renderer or StringFormatRenderer()

    async def send(
        self,
        destination: str,
        template_key: str,
        template_data: Mapping[str, Any],
    ) -> None:
        template = self.templates.get(template_key)
        if template is None:
            raise DeliveryError(f"No template registered for {template_key!r}")

        transport = self.transports.get(template.channel)
        if transport is None:
            raise DeliveryError(
                f"No transport configured for channel {template.channel!r}",
                channel=template.channel,
                recipient=destination,
            )

        try:
            message = self.renderer.render(template, template_data)
        except Exception as e:
            raise DeliveryError(
                f"Rendering {template_key!r} failed: {e}",
                channel=template.channel,
                recipient=destination,
            ) from e

        try:
            receipt = await transport.send(destination, message)
        except Exception as e:
            logger.error("Transport %s raised for %s: %s", template.channel, destination, e)
            raise DeliveryError(
                str(e) or type(e).__name__,
                channel=template.channel,
                recipient=destination,
            ) from e

        if not receipt.ok:
            raise DeliveryError(
                receipt.error or "transport reported failure",
                channel=template.channel,
                recipient=destination,
            )
        logger.debug(
            "Delivered %s via %s (provider_id=%s)",
            template_key,
            template.channel,
            receipt.provider_id,
        )


__all__: list[str] = ["IMessageTransport", "TemplatedDelivery"]
