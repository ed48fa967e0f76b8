"""
Email module.

Composes and delivers account emails.

Public API:
- IEmailSender: Interface for delivery
- create_email_sender: Provider factory driven by EMAIL_SERVICE
- EmailDeliveryError, UnknownEmailServiceError: Email exceptions
"""

from .interfaces import IEmailSender
from .models import EmailMessage
from .service import (
    ConsoleEmailSender,
    SesEmailSender,
    SmtpEmailSender,
    compose_verification_email,
    create_email_sender,
)
from .exceptions import EmailDeliveryError, UnknownEmailServiceError

__all__ = [
    "IEmailSender",
    "EmailMessage",
    "ConsoleEmailSender",
    "SmtpEmailSender",
    "SesEmailSender",
    "compose_verification_email",
    "create_email_sender",
    "EmailDeliveryError",
    "UnknownEmailServiceError",
]
