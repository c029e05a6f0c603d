"""Challenge message templates and renderers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ..factors.email_code import EMAIL_CODE_TEMPLATE_KEY
from ..factors.sms_code import SMS_CODE_TEMPLATE_KEY
from .messages import MessageTemplate, RenderedMessage

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

_JinjaTemplateClass: type[Any] | None = None
try:
    from jinja2 import StrictUndefined, Template

    _JinjaTemplateClass = Template
    _JINJA2_AVAILABLE = True
except ImportError:
    _JINJA2_AVAILABLE = False


DEFAULT_TEMPLATES: tuple[MessageTemplate, ...] = (
    MessageTemplate(
        template_key=EMAIL_CODE_TEMPLATE_KEY,
        channel="email",
        subject_template="Your verification code",
        body_template=(
            "Your verification code is: {code}\n\n"
            "It can be used once. If you did not try to sign in, "
            "you can ignore this email."
        ),
    ),
    MessageTemplate(
        template_key=SMS_CODE_TEMPLATE_KEY,
        channel="sms",
        body_template="Your verification code is {code}",
    ),
)


class TemplateRegistry:
    """
    Lookup of message templates by template key.

    Starts with the built-in challenge templates unless told otherwise;
    registering a template under an existing key replaces it.
    """

    def __init__(
        self,
        templates: list[MessageTemplate] | None = None,
        *,
        include_defaults: bool = True,
    ) -> None:
        self._templates: dict[str, MessageTemplate] = {}
        if include_defaults:
            for template in DEFAULT_TEMPLATES:
                self.register(template)
        for template in templates or []:
            self.register(template)

    def register(self, template: MessageTemplate) -> None:
        self._templates[template.template_key] = template

    def get(self, template_key: str) -> MessageTemplate | None:
        return self._templates.get(template_key)

    def __contains__(self, template_key: object) -> bool:
        return template_key in self._templates


@runtime_checkable
class ITemplateRenderer(Protocol):
    """Protocol for rendering message templates."""

    def render(
        self,
        template: MessageTemplate,
        context: Mapping[str, Any],
    ) -> RenderedMessage:
        """Render template with context."""
        ...


class StringFormatRenderer(ITemplateRenderer):
    """
    Simple renderer using Python's native string formatting.
    No external dependencies.
    """

    def render(
        self, template: MessageTemplate, context: Mapping[str, Any]
    ) -> RenderedMessage:
        """Render template using str.format()."""
        try:
            subject = None
            if template.subject_template:
                subject = template.subject_template.format(**context)

            body = template.body_template.format(**context)
        except KeyError as e:
            logger.error("Missing template variable %s in %s", e, template.template_key)
            raise

        return RenderedMessage(channel=template.channel, subject=subject, body_text=body)


class JinjaTemplateRenderer(ITemplateRenderer):
    """
    Renders messages using the Jinja2 engine.

    Undefined variables raise instead of rendering as empty strings, so a
    template that forgot ``{{ code }}`` fails loudly.
    """

    def __init__(self) -> None:
        if not _JINJA2_AVAILABLE or _JinjaTemplateClass is None:
            raise ImportError(
                "Jinja2 is required. Install with: pip install 'cqrs-ddd-mfa[jinja2]'"
            )

    def render(
        self, template: MessageTemplate, context: Mapping[str, Any]
    ) -> RenderedMessage:
        """Render template using Jinja2."""
        assert _JinjaTemplateClass is not None  # ensured by __init__
        try:
            subject = None
            if template.subject_template:
                subject = _JinjaTemplateClass(
                    template.subject_template,
                    undefined=StrictUndefined,
                ).render(**context)

            body = _JinjaTemplateClass(
                template.body_template,
                undefined=StrictUndefined,
            ).render(**context)
        except Exception as e:
            logger.error("Jinja2 rendering of %s failed: %s", template.template_key, e)
            raise

        # Detect HTML and set body_html if applicable
        body_html = None
        if "<html>" in body.lower() or "<body>" in body.lower():
            body_html = body

        return RenderedMessage(
            channel=template.channel,
            subject=subject,
            body_text=body,
            body_html=body_html,
        )


__all__: list[str] = [
    "DEFAULT_TEMPLATES",
    "TemplateRegistry",
    "ITemplateRenderer",
    "StringFormatRenderer",
    "JinjaTemplateRenderer",
]
