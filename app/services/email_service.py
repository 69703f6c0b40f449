"""
Email service.

Handles sending emails via SMTP using aiosmtplib for async support.
Used by the refresh flow to warn a user about a login from a new IP.
"""

import logging
from email.message import EmailMessage
from typing import Protocol

import aiosmtplib

from app.core.config import settings

logger = logging.getLogger(__name__)


async def send_email(to: str, subject: str, html_body: str) -> None:
    """Send an HTML email via the configured SMTP server."""
    message = EmailMessage()
    message["From"] = settings.SENDER_EMAIL
    message["To"] = to
    message["Subject"] = subject
    message.set_content(html_body, subtype="html")

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.EMAIL_HOST,
            port=settings.EMAIL_PORT,
            username=settings.EMAIL_USERNAME,
            password=settings.EMAIL_PASSWORD,
            start_tls=settings.EMAIL_START_TLS,
        )
        logger.info("Email sent to user mailbox (subject=%r)", subject)
    except Exception:
        logger.exception("Failed to send email (subject=%r)", subject)
        raise


class Notifier(Protocol):
    async def send_login_from_new_ip(self, old_ip: str, email: str) -> None: ...


class EmailNotifier:
    """``Notifier`` that delivers notices over SMTP."""

    async def send_login_from_new_ip(self, old_ip: str, email: str) -> None:
        subject = "Login from new IP."
        html_body = f"""\
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #2c3e50;">{settings.APP_NAME}</h2>
            <p>Login from new IP address: <strong>{old_ip}</strong></p>
            <p style="color: #7f8c8d; font-size: 13px;">
                If this was not you, sign in again to rotate your session.
            </p>
        </div>
    </body>
    </html>
    """
        await send_email(email, subject, html_body)
