"""Tests for SMTP delivery and the transactional email templates."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import aiosmtplib
import pytest

from siteapi.models.contact import Contact
from siteapi.services.email import (
    EmailDeliveryError,
    contact_auto_response,
    contact_notification,
    send_email,
    send_in_background,
    welcome_email,
)


def _contact(**overrides):
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    data = {
        "id": "c1",
        "first_name": "Jane",
        "last_name": "Okafor",
        "email": "jane@acme.io",
        "company": None,
        "message": "Please call me <back>",
        "inquiry_type": "TRAINING",
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return Contact(**data)


@pytest.fixture
def mock_smtp(mocker):
    return mocker.patch(
        "siteapi.services.email.aiosmtplib.send", new_callable=AsyncMock
    )


class TestSendEmail:
    async def test_sends_html_message(self, mock_settings, mock_smtp):
        await send_email("jane@acme.io", "Hello", "<p>Hi</p>")

        message = mock_smtp.call_args.args[0]
        kwargs = mock_smtp.call_args.kwargs
        assert message["To"] == "jane@acme.io"
        assert message["Subject"] == "Hello"
        assert message.get_content_subtype() == "html"
        assert kwargs["hostname"] == "smtp.test.local"
        assert kwargs["port"] == 587
        assert kwargs["use_tls"] is False

    async def test_port_465_uses_implicit_tls(self, mock_settings, mock_smtp):
        mock_settings.smtp_port = 465

        await send_email("jane@acme.io", "Hello", "<p>Hi</p>")

        assert mock_smtp.call_args.kwargs["use_tls"] is True

    async def test_unconfigured_smtp(self, mock_settings, mock_smtp):
        mock_settings.smtp_host = ""

        with pytest.raises(EmailDeliveryError):
            await send_email("jane@acme.io", "Hello", "<p>Hi</p>")
        mock_smtp.assert_not_called()

    async def test_smtp_failure_wrapped(self, mock_settings, mock_smtp):
        mock_smtp.side_effect = aiosmtplib.SMTPException("relay denied")

        with pytest.raises(EmailDeliveryError, match="relay denied"):
            await send_email("jane@acme.io", "Hello", "<p>Hi</p>")

    async def test_background_send_logs_failure(self, mock_settings, mock_smtp, caplog):
        mock_smtp.side_effect = OSError("connection refused")

        await send_in_background("jane@acme.io", "Hello", "<p>Hi</p>")

        assert "Background email failed" in caplog.text


class TestTemplates:
    def test_notification_escapes_user_input(self, mock_settings):
        subject, body = contact_notification(_contact())

        assert subject == "New TRAINING inquiry from Jane Okafor"
        assert "&lt;back&gt;" in body
        assert "<back>" not in body
        assert "n/a" in body

    def test_auto_response_addresses_submitter(self, mock_settings):
        subject, body = contact_auto_response(_contact())

        assert subject == "We received your message"
        assert "Jane" in body
        assert "training inquiry" in body

    def test_welcome_email(self, mock_settings):
        subject, body = welcome_email()

        assert "Welcome" in subject
        assert mock_settings.site_url in body
