"""
Email module exceptions.
"""

from typing import Optional

from shared.exceptions import ConfigurationError, HubError


class EmailDeliveryError(HubError):
    """Raised when a provider fails to deliver a message."""

    def __init__(self, recipient: str, reason: Optional[str] = None):
        super().__init__(
            "Failed to send email",
            code="EMAIL_DELIVERY_FAILED",
            details={"recipient": recipient, "reason": reason},
        )


class UnknownEmailServiceError(ConfigurationError):
    """Raised when EMAIL_SERVICE names a provider we do not have."""

    def __init__(self, service: str):
        super().__init__(
            f"Unknown email service: {service}",
            code="UNKNOWN_EMAIL_SERVICE",
            details={"service": service},
        )
