"""Email notification service for RenoQuote.

Sends Jinja2-rendered notifications over SMTP. Delivery problems are reported
through ``EmailResult`` rather than raised, so callers can treat mail as a
best-effort side effect.
"""
from __future__ import annotations

import logging
import smtplib
import string
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from renoquote.config import EmailConfig, get_config

logger = logging.getLogger(__name__)

# kind -> (template, subject format)
EMAIL_KINDS: dict[str, tuple[str, str]] = {
    "estimate_request": ("estimate_request.html", "[견적 요청] {complex_name} {size} - {name}"),
    "quote": ("quote.html", "[스탠다드 유닛] {recipient_name}님의 인테리어 견적서 ({quote_number})"),
    "styleboard_link": ("styleboard_link.html", "[스탠다드 유닛] {customer_name}님의 스타일보드가 준비되었습니다"),
}


def format_won(value: Any) -> str:
    """KRW amount with thousands separators, e.g. ``42,000,000``."""
    return f"{int(value or 0):,}"


@dataclass(slots=True)
class EmailResult:
    success: bool
    error: str | None = None


class EmailService:
    """Service for sending templated emails."""

    def __init__(self, config: EmailConfig | None = None):
        self.config = config or get_config().email

        template_dir = Path(__file__).parent / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )
        self.jinja_env.filters["won"] = format_won

    def render_template(self, template_name: str, context: dict[str, Any]) -> str:
        """Render an email template with the given context."""
        template = self.jinja_env.get_template(template_name)
        return template.render(**context)

    def send_email(self, to_emails: list[str], subject: str, html_body: str) -> EmailResult:
        if not self.config.is_configured:
            logger.warning("SMTP credentials not configured; email to %s not sent: %s", to_emails, subject)
            return EmailResult(success=False, error="SMTP not configured")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.config.from_email
        msg["To"] = ", ".join(to_emails)
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.config.smtp_user, self.config.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_emails, exc)
            return EmailResult(success=False, error=str(exc))

        logger.info("Email sent to %s: %s", to_emails, subject)
        return EmailResult(success=True)

    def send(self, kind: str, recipient: str | None, data: dict[str, Any]) -> EmailResult:
        """Render the template registered for ``kind`` and send it to ``recipient``."""
        if kind not in EMAIL_KINDS:
            return EmailResult(success=False, error=f"Unknown email kind: {kind}")
        if not recipient:
            return EmailResult(success=False, error="No recipient")

        template_name, subject_format = EMAIL_KINDS[kind]
        try:
            html_body = self.render_template(template_name, data)
            subject = subject_format.format(**{key: data.get(key, "") for key in _format_keys(subject_format)})
        except (TemplateError, KeyError, ValueError) as exc:
            logger.error("Failed to render %s email: %s", kind, exc)
            return EmailResult(success=False, error=str(exc))

        return self.send_email([recipient], subject, html_body)


def _format_keys(template: str) -> list[str]:
    return [name for _, name, _, _ in string.Formatter().parse(template) if name]


_service: EmailService | None = None


def get_email_service() -> EmailService:
    global _service
    if _service is None:
        _service = EmailService()
    return _service
