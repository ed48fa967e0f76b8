"""
Email module interface.

The auth module depends on IEmailSender only, so delivery can be swapped
(console for development, SMTP in production, a mock in tests).
"""

from typing import Protocol, runtime_checkable

from .models import EmailMessage


@runtime_checkable
class IEmailSender(Protocol):
    """Interface for outbound email delivery."""

    async def send(self, message: EmailMessage) -> None:
        """
        Deliver one message.

        Raises:
            EmailDeliveryError: If the provider rejected or could not take the message
        """
        ...

    async def send_verification_email(self, to: str, name: str, token: str) -> None:
        """Compose and deliver the email-verification message."""
        ...
