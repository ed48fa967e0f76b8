"""
Shared infrastructure for ProductivityHub backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: SQLAlchemy engine, per-request sessions, transactions
- exceptions: Base exception classes
- themes: Theme catalog (ids, canonical order, core set)

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import Base, get_db, get_engine, init_db, reset_engine, transaction
from .exceptions import (
    HubError,
    ValidationError,
    ConflictError,
    NotFoundError,
    AuthenticationError,
    AuthorizationError,
    InternalError,
    ConfigurationError,
)
from .models import AuthenticatedUser, CamelModel

__all__ = [
    "Settings",
    "get_settings",
    "Base",
    "get_db",
    "get_engine",
    "init_db",
    "reset_engine",
    "transaction",
    "HubError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "AuthenticationError",
    "AuthorizationError",
    "InternalError",
    "ConfigurationError",
    "AuthenticatedUser",
    "CamelModel",
]
