"""
Client runtime exceptions.

ApiError and NetworkError come out of the HTTP client. The sync engine
catches both and turns them into notices; only precondition failures
(InvalidStateError, ForbiddenError) reach the caller.
"""

from typing import Any, Optional


class ClientError(Exception):
    """Base exception for the client runtime."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ApiError(ClientError):
    """The server answered with an error status."""

    def __init__(
        self,
        status: int,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.details = details or {}

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def retryable(self) -> bool:
        """Server-side failures may go away; rejections will not."""
        return self.status >= 500


class NetworkError(ClientError):
    """The request never got an answer: connection failure or timeout."""

    retryable = True


class StorageError(ClientError):
    """The local key-value store could not be read or written."""


class InvalidStateError(ClientError):
    """The requested change is not allowed from the current local state."""


class ForbiddenError(ClientError):
    """The requested change is never allowed (e.g. disabling a core theme)."""
