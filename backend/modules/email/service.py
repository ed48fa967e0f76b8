"""
Email delivery providers.

This module implements the IEmailSender interface with three providers:
- ConsoleEmailSender: Logs messages instead of sending (development, tests)
- SmtpEmailSender: Sends through an SMTP relay (e.g. Gmail with an app password)
- SesEmailSender: Sends through Amazon SES

Use create_email_sender() to pick one from settings.
"""

import asyncio
import html
import logging
import smtplib
from collections import deque
from email.message import EmailMessage as MimeMessage
from email.utils import formataddr
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.config import Settings, get_settings

from .exceptions import EmailDeliveryError, UnknownEmailServiceError
from .interfaces import IEmailSender
from .models import EmailMessage

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify Your ProductivityHub Account"


def verification_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/api/auth/verify-email?token={token}"


def compose_verification_email(
    to: str,
    name: str,
    token: str,
    settings: Optional[Settings] = None,
) -> EmailMessage:
    """
    Build the verification message in text and HTML form.

    Args:
        to: Recipient address
        name: Display name used in the greeting
        token: Verification token embedded in the link
        settings: Source of the link base URL and expiry window

    Returns:
        EmailMessage ready for any provider
    """
    settings = settings or get_settings()
    url = verification_url(settings.api_base_url, token)
    hours = settings.email_verification_expires_hours

    text = (
        f"Welcome to ProductivityHub, {name}!\n\n"
        "Thanks for registering. Please verify your email address by visiting:\n"
        f"{url}\n\n"
        f"This link will expire in {hours} hours.\n\n"
        "If you didn't create an account, please ignore this email.\n"
    )

    safe_name = html.escape(name)
    safe_url = html.escape(url, quote=True)
    body = (
        '<div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif;">'
        '<div style="background-color: #f8f9fa; padding: 20px; text-align: center;">'
        '<h1 style="color: #007AFF; margin: 0;">ProductivityHub</h1>'
        "</div>"
        '<div style="padding: 20px;">'
        f"<h2>Welcome, {safe_name}!</h2>"
        "<p>Thanks for registering for ProductivityHub. Please verify your email "
        "address to complete your account setup.</p>"
        '<div style="text-align: center; margin: 30px 0;">'
        f'<a href="{safe_url}" style="background-color: #007AFF; color: white; '
        'padding: 12px 30px; text-decoration: none; border-radius: 8px; display: inline-block;">'
        "Verify Email Address</a>"
        "</div>"
        '<p style="color: #666; font-size: 14px;">Or copy and paste this link into your browser:</p>'
        f'<p style="word-break: break-all; color: #007AFF; font-size: 14px;">{safe_url}</p>'
        f'<p style="color: #666; font-size: 12px; margin-top: 30px;">This link will expire in '
        f"{hours} hours. If you didn't create an account, please ignore this email.</p>"
        "</div>"
        "</div>"
    )

    return EmailMessage(to=to, subject=VERIFICATION_SUBJECT, text=text, html=body)


class _BaseEmailSender:
    """Shared composition logic; subclasses only implement send()."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()

    async def send(self, message: EmailMessage) -> None:
        raise NotImplementedError

    async def send_verification_email(self, to: str, name: str, token: str) -> None:
        message = compose_verification_email(to, name, token, self._settings)
        await self.send(message)


class ConsoleEmailSender(_BaseEmailSender):
    """
    Development provider.

    Logs the recipient and subject instead of sending. The body, which
    carries the verification link, is only logged at DEBUG level. The
    last MAX_KEPT messages stay in `sent` for inspection.
    """

    MAX_KEPT = 50

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self.sent: deque[EmailMessage] = deque(maxlen=self.MAX_KEPT)

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)
        logger.info(f"Email to {message.to}: {message.subject}")
        logger.debug(f"Email body for {message.to}:\n{message.text}")


class SmtpEmailSender(_BaseEmailSender):
    """
    SMTP provider.

    smtplib is blocking, so delivery runs in a worker thread.
    """

    def __init__(self, settings: Optional[Settings] = None, timeout: float = 10.0):
        super().__init__(settings)
        self._timeout = timeout

    def _build_mime(self, message: EmailMessage) -> MimeMessage:
        mime = MimeMessage()
        mime["From"] = formataddr((self._settings.email_from_name, self._settings.email_from_address))
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")
        return mime

    def _send_sync(self, message: EmailMessage) -> None:
        settings = self._settings
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=self._timeout) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.email_user:
                smtp.login(settings.email_user, settings.email_pass)
            smtp.send_message(self._build_mime(message))

    async def send(self, message: EmailMessage) -> None:
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(message.to, str(e)) from e
        logger.info(f"Verification email sent via SMTP to: {message.to}")


class SesEmailSender(_BaseEmailSender):
    """
    Amazon SES provider.

    boto3 clients are blocking, so delivery runs in a worker thread.
    """

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        settings = self._settings
        self._client = boto3.client(
            "ses",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
        )

    def _send_sync(self, message: EmailMessage) -> None:
        self._client.send_email(
            Source=formataddr((self._settings.email_from_name, self._settings.email_from_address)),
            Destination={"ToAddresses": [message.to]},
            Message={
                "Subject": {"Data": message.subject},
                "Body": {
                    "Text": {"Data": message.text},
                    "Html": {"Data": message.html},
                },
            },
        )

    async def send(self, message: EmailMessage) -> None:
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (BotoCoreError, ClientError) as e:
            raise EmailDeliveryError(message.to, str(e)) from e
        logger.info(f"Verification email sent via AWS SES to: {message.to}")


def create_email_sender(settings: Optional[Settings] = None) -> IEmailSender:
    """
    Pick the provider named by EMAIL_SERVICE.

    Raises:
        UnknownEmailServiceError: For anything other than "console", "smtp" or "ses"
    """
    settings = settings or get_settings()
    service = settings.email_service.lower()
    if service == "console":
        return ConsoleEmailSender(settings)
    if service == "smtp":
        return SmtpEmailSender(settings)
    if service in ("ses", "aws-ses"):
        return SesEmailSender(settings)
    raise UnknownEmailServiceError(settings.email_service)
