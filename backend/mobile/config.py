"""
Client runtime configuration.

Loaded from HUB_CLIENT_* environment variables.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings for the mobile client runtime."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HUB_CLIENT_",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: str = "http://localhost:3000/api"
    # Seconds before a request counts as failed
    request_timeout: float = 10.0
    storage_path: str = "~/.productivity-hub/storage.json"


@lru_cache
def get_client_settings() -> ClientSettings:
    """Get cached settings instance."""
    return ClientSettings()
