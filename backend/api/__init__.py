"""
ProductivityHub API package.

Provides the FastAPI application for accounts and preference sync.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
