"""Outbound email over SMTP, plus the site's transactional templates."""

import html
import logging
from email.message import EmailMessage

import aiosmtplib

from siteapi.config import get_settings
from siteapi.models.contact import Contact

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """The message could not be handed to the SMTP server."""


async def send_email(to: str, subject: str, html_body: str) -> None:
    """Send a single HTML email. Raises EmailDeliveryError on failure."""
    settings = get_settings()
    if not settings.smtp_host:
        raise EmailDeliveryError("SMTP is not configured")

    message = EmailMessage()
    message["From"] = settings.email_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(html_body, subtype="html")

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            use_tls=settings.smtp_port == 465,  # Implicit TLS for port 465
            timeout=settings.smtp_timeout,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        raise EmailDeliveryError(f"Failed to send email to {to}: {e}") from e


async def send_in_background(to: str, subject: str, html_body: str) -> None:
    """Background-task wrapper: delivery failures are logged, not raised."""
    try:
        await send_email(to, subject, html_body)
        logger.info("Sent email %r to %s", subject, to)
    except EmailDeliveryError as e:
        logger.error("Background email failed: %s", e)


def contact_notification(contact: Contact) -> tuple[str, str]:
    """Subject and body of the admin notification for a new contact."""
    company = html.escape(contact.company) if contact.company else "n/a"
    body = f"""<h2>New contact request</h2>
<p><strong>Name:</strong> {html.escape(contact.full_name)}</p>
<p><strong>Email:</strong> {html.escape(contact.email)}</p>
<p><strong>Company:</strong> {company}</p>
<p><strong>Inquiry type:</strong> {html.escape(contact.inquiry_type)}</p>
<p><strong>Message:</strong></p>
<p>{html.escape(contact.message)}</p>"""
    return f"New {contact.inquiry_type} inquiry from {contact.full_name}", body


def contact_auto_response(contact: Contact) -> tuple[str, str]:
    """Subject and body of the acknowledgement sent to the submitter."""
    site_url = get_settings().site_url
    body = f"""<h2>Thank you, {html.escape(contact.first_name)}!</h2>
<p>We have received your {html.escape(contact.inquiry_type.lower())} inquiry
and will get back to you soon.</p>
<p><a href="{site_url}">Bahoju Tech</a></p>"""
    return "We received your message", body


def welcome_email() -> tuple[str, str]:
    """Subject and body of the newsletter welcome message."""
    site_url = get_settings().site_url
    body = f"""<h1>Welcome to Bahoju!</h1>
<p>Thank you for subscribing. Get ready to receive:</p>
<ul>
<li>Latest technology trends and insights</li>
<li>Behind-the-scenes project updates</li>
<li>Exclusive offers and early access</li>
<li>Industry news and expert tips</li>
</ul>
<p><a href="{site_url}">Visit our website</a></p>
<p><small>You can unsubscribe at any time.</small></p>"""
    return "Welcome to Bahoju Newsletter!", body
