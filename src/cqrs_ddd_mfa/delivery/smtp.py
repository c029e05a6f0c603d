"""SMTP email transport."""

from __future__ import annotations

import email.message
import email.policy
import logging

from .messages import DeliveryReceipt, RenderedMessage
from .templated import IMessageTransport

logger = logging.getLogger(__name__)


class SmtpTransport(IMessageTransport):
    """
    Async SMTP email transport using aiosmtplib.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
        from_email: str | None = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.from_email = from_email

    def build_message(self, recipient: str, content: RenderedMessage) -> email.message.EmailMessage:
        if not self.from_email:
            raise ValueError("Sender email (from_email) is required.")

        message = email.message.EmailMessage(policy=email.policy.default)
        message["To"] = recipient
        message["From"] = self.from_email
        if content.subject:
            message["Subject"] = content.subject

        if content.body_html:
            # Multipart with both text and HTML
            message.set_content(content.body_text, subtype="plain", charset="utf-8")
            message.add_alternative(content.body_html, subtype="html", charset="utf-8")
        else:
            message.set_content(content.body_text, charset="utf-8")
        return message

    async def send(self, recipient: str, message: RenderedMessage) -> DeliveryReceipt:
        if message.channel != "email":
            raise ValueError(f"SmtpTransport does not support {message.channel}")

        # Lazy import of aiosmtplib
        try:
            import aiosmtplib
        except ImportError as e:
            raise ImportError(
                "aiosmtplib is required for SmtpTransport. "
                "Install with: pip install 'cqrs-ddd-mfa[smtp]'"
            ) from e

        email_message = self.build_message(recipient, message)

        try:
            async with aiosmtplib.SMTP(
                hostname=self.host,
                port=self.port,
                timeout=self.timeout,
            ) as smtp:
                if self.use_tls:
                    await smtp.starttls()
                if self.username and self.password:
                    await smtp.login(self.username, self.password)

                await smtp.send_message(email_message)
        except Exception as e:
            logger.error("Failed to send email to %s: %s", recipient, e)
            return DeliveryReceipt.failed(recipient, error=str(e))

        logger.info("Email sent to %s via SMTP", recipient)
        return DeliveryReceipt.sent(recipient, provider_id="smtp")


__all__: list[str] = ["SmtpTransport"]
