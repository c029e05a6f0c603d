"""Tests for challenge delivery: templates, renderers and transports."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cqrs_ddd_mfa import DeliveryError
from cqrs_ddd_mfa.delivery import (
    DeliveryReceipt,
    DeliveryStatus,
    InMemoryDelivery,
    MessageTemplate,
    RenderedMessage,
    SmtpTransport,
    StringFormatRenderer,
    TemplatedDelivery,
    TemplateRegistry,
)

try:
    import jinja2  # noqa: F401

    from cqrs_ddd_mfa.delivery import JinjaTemplateRenderer

    _JINJA_AVAILABLE = True
except ImportError:
    _JINJA_AVAILABLE = False


class RecordingTransport:
    """Transport fake that records rendered messages."""

    def __init__(self, receipt_ok: bool = True) -> None:
        self.messages: list[tuple[str, RenderedMessage]] = []
        self.receipt_ok = receipt_ok

    async def send(self, recipient: str, message: RenderedMessage) -> DeliveryReceipt:
        self.messages.append((recipient, message))
        if self.receipt_ok:
            return DeliveryReceipt.sent(recipient, provider_id="fake-1")
        return DeliveryReceipt.failed(recipient, error="mailbox full")


class TestTemplateRegistry:
    def test_defaults(self) -> None:
        registry = TemplateRegistry()

        assert "mfa_code_email" in registry
        assert "mfa_code_sms" in registry
        assert registry.get("mfa_code_email").channel == "email"  # type: ignore[union-attr]

    def test_override_and_no_defaults(self) -> None:
        custom = MessageTemplate("mfa_code_email", "email", "Code: {code}")

        assert TemplateRegistry([custom]).get("mfa_code_email") == custom
        assert "mfa_code_email" not in TemplateRegistry(include_defaults=False)


class TestRenderers:
    def test_string_renderer(self) -> None:
        template = TemplateRegistry().get("mfa_code_email")
        assert template is not None

        message = StringFormatRenderer().render(template, {"code": "WXYZ-1234"})

        assert message.subject == "Your verification code"
        assert "WXYZ-1234" in message.body_text
        assert message.channel == "email"

    def test_string_renderer_missing_variable(self) -> None:
        template = MessageTemplate("t", "email", "Hello {name}")

        with pytest.raises(KeyError):
            StringFormatRenderer().render(template, {})

    @pytest.mark.skipif(not _JINJA_AVAILABLE, reason="Jinja2 not installed")
    def test_jinja_renderer(self) -> None:
        template = MessageTemplate(
            "t",
            "email",
            "<html><body>Code: {{ code }}</body></html>",
            subject_template="Code {{ code }}",
        )

        message = JinjaTemplateRenderer().render(template, {"code": "WXYZ-1234"})

        assert message.subject == "Code WXYZ-1234"
        assert message.body_html is not None
        assert "WXYZ-1234" in message.body_html

    @pytest.mark.skipif(not _JINJA_AVAILABLE, reason="Jinja2 not installed")
    def test_jinja_renderer_strict_undefined(self) -> None:
        template = MessageTemplate("t", "sms", "Code: {{ code }}")

        with pytest.raises(jinja2.UndefinedError):
            JinjaTemplateRenderer().render(template, {})


class TestTemplatedDelivery:
    @pytest.mark.asyncio
    async def test_send(self) -> None:
        transport = RecordingTransport()
        delivery = TemplatedDelivery({"email": transport})

        await delivery.send("a@example.com", "mfa_code_email", {"code": "WXYZ-1234"})

        recipient, message = transport.messages[0]
        assert recipient == "a@example.com"
        assert "WXYZ-1234" in message.body_text

    @pytest.mark.asyncio
    async def test_unknown_template(self) -> None:
        delivery = TemplatedDelivery({"email": RecordingTransport()})

        with pytest.raises(DeliveryError, match="No template"):
            await delivery.send("a@example.com", "nope", {"code": "X"})

    @pytest.mark.asyncio
    async def test_missing_transport(self) -> None:
        delivery = TemplatedDelivery({"email": RecordingTransport()})

        with pytest.raises(DeliveryError, match="No transport") as exc_info:
            await delivery.send("+15551234567", "mfa_code_sms", {"code": "X"})

        assert exc_info.value.channel == "sms"

    @pytest.mark.asyncio
    async def test_render_failure(self) -> None:
        delivery = TemplatedDelivery({"email": RecordingTransport()})

        with pytest.raises(DeliveryError, match="Rendering"):
            await delivery.send("a@example.com", "mfa_code_email", {})

    @pytest.mark.asyncio
    async def test_failed_receipt(self) -> None:
        delivery = TemplatedDelivery({"email": RecordingTransport(receipt_ok=False)})

        with pytest.raises(DeliveryError, match="mailbox full"):
            await delivery.send("a@example.com", "mfa_code_email", {"code": "X"})

    @pytest.mark.asyncio
    async def test_transport_exception(self) -> None:
        transport = MagicMock()
        transport.send = AsyncMock(side_effect=ConnectionError("refused"))
        delivery = TemplatedDelivery({"email": transport})

        with pytest.raises(DeliveryError, match="refused") as exc_info:
            await delivery.send("a@example.com", "mfa_code_email", {"code": "X"})

        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestSmtpTransport:
    @pytest.fixture
    def message(self) -> RenderedMessage:
        return RenderedMessage(
            channel="email", subject="Your verification code", body_text="WXYZ-1234"
        )

    def test_build_message(self, message: RenderedMessage) -> None:
        transport = SmtpTransport(host="smtp.example.com", from_email="no-reply@example.com")

        email_message = transport.build_message("a@example.com", message)

        assert email_message["To"] == "a@example.com"
        assert email_message["From"] == "no-reply@example.com"
        assert email_message["Subject"] == "Your verification code"

    def test_build_message_requires_sender(self, message: RenderedMessage) -> None:
        with pytest.raises(ValueError, match="from_email"):
            SmtpTransport(host="smtp.example.com").build_message("a@example.com", message)

    @pytest.mark.asyncio
    async def test_rejects_other_channels(self) -> None:
        transport = SmtpTransport(host="smtp.example.com", from_email="x@example.com")

        with pytest.raises(ValueError, match="sms"):
            await transport.send("+1555", RenderedMessage(channel="sms", body_text="x"))

    @pytest.mark.asyncio
    async def test_send(self, message: RenderedMessage) -> None:
        smtp = MagicMock()
        smtp.starttls = AsyncMock()
        smtp.login = AsyncMock()
        smtp.send_message = AsyncMock()
        smtp_cm = MagicMock()
        smtp_cm.__aenter__ = AsyncMock(return_value=smtp)
        smtp_cm.__aexit__ = AsyncMock(return_value=False)

        transport = SmtpTransport(
            host="smtp.example.com",
            username="user",
            password="pass",
            from_email="no-reply@example.com",
        )
        with patch("aiosmtplib.SMTP", return_value=smtp_cm):
            receipt = await transport.send("a@example.com", message)

        assert receipt.ok
        assert receipt.provider_id == "smtp"
        smtp.starttls.assert_awaited_once()
        smtp.login.assert_awaited_once_with("user", "pass")
        smtp.send_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_failure_returns_failed_receipt(
        self, message: RenderedMessage
    ) -> None:
        transport = SmtpTransport(host="smtp.example.com", from_email="x@example.com")

        with patch("aiosmtplib.SMTP", side_effect=OSError("connection refused")):
            receipt = await transport.send("a@example.com", message)

        assert receipt.status is DeliveryStatus.FAILED
        assert "connection refused" in (receipt.error or "")


class TestInMemoryDelivery:
    @pytest.mark.asyncio
    async def test_records_and_asserts(self) -> None:
        delivery = InMemoryDelivery()

        await delivery.send("a@example.com", "mfa_code_email", {"code": "WXYZ-1234"})

        delivery.assert_sent("a@example.com")
        assert delivery.last_code_for("a@example.com") == "WXYZ-1234"
        assert delivery.last_code_for("b@example.com") is None
        with pytest.raises(AssertionError):
            delivery.assert_sent("a@example.com", count=2)

        delivery.clear()
        assert delivery.sent == []

    @pytest.mark.asyncio
    async def test_fail_and_recover(self) -> None:
        delivery = InMemoryDelivery()
        delivery.fail_with("down")

        with pytest.raises(DeliveryError, match="down"):
            await delivery.send("a@example.com", "mfa_code_email", {"code": "X"})

        delivery.recover()
        await delivery.send("a@example.com", "mfa_code_email", {"code": "X"})
        delivery.assert_sent("a@example.com")
