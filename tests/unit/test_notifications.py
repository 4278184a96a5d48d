"""Tests for the email notification service."""

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock, patch

from renoquote.config import EmailConfig
from renoquote.notifications.email import EmailService, format_won

ESTIMATE = {
    "id": "7d3f",
    "complex_name": "헬리오시티",
    "size": "34평",
    "name": "김민수",
    "phone": "010-1234-5678",
    "email": "minsu@example.com",
    "wants_construction": True,
    "construction_scope": ["욕실", "주방"],
}


def configured() -> EmailConfig:
    return EmailConfig(smtp_user="bot@example.com", smtp_password="secret", from_email="bot@example.com")


class TestRenderTemplate:
    def test_estimate_request(self):
        html = EmailService(EmailConfig()).render_template("estimate_request.html", ESTIMATE)

        assert "헬리오시티" in html
        assert "욕실, 주방" in html
        assert "예" in html

    def test_styleboard_link(self):
        html = EmailService(EmailConfig()).render_template(
            "styleboard_link.html",
            {"customer_name": "김민수", "styleboard_url": "https://standardunit.kr/styleboard/abc", "password": "4821"},
        )

        assert "https://standardunit.kr/styleboard/abc" in html
        assert "4821" in html

    def test_values_are_escaped(self):
        html = EmailService(EmailConfig()).render_template(
            "estimate_request.html", {**ESTIMATE, "name": "<script>x</script>"}
        )

        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestSend:
    def test_unconfigured_smtp_reports_failure(self):
        result = EmailService(EmailConfig()).send("estimate_request", "admin@example.com", ESTIMATE)

        assert result.success is False
        assert result.error == "SMTP not configured"

    def test_missing_recipient(self):
        result = EmailService(configured()).send("estimate_request", None, ESTIMATE)

        assert result.success is False

    def test_unknown_kind(self):
        result = EmailService(configured()).send("newsletter", "admin@example.com", ESTIMATE)

        assert result.success is False
        assert "newsletter" in result.error

    @patch("renoquote.notifications.email.smtplib.SMTP")
    def test_sends_rendered_message(self, smtp_cls):
        server = MagicMock()
        smtp_cls.return_value.__enter__.return_value = server

        result = EmailService(configured()).send("estimate_request", "admin@example.com", ESTIMATE)

        assert result.success is True
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "secret")
        message = server.send_message.call_args.args[0]
        assert message["To"] == "admin@example.com"
        assert "헬리오시티 34평 - 김민수" in str(message["Subject"])

    @patch("renoquote.notifications.email.smtplib.SMTP")
    def test_smtp_error_is_reported(self, smtp_cls):
        smtp_cls.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad")

        result = EmailService(configured()).send("estimate_request", "admin@example.com", ESTIMATE)

        assert result.success is False
        assert "535" in result.error


def test_format_won():
    assert format_won(42000000) == "42,000,000"
    assert format_won(None) == "0"
