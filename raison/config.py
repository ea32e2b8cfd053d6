"""Raison client configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://api.raison.ist"
API_KEY_PREFIX = "rsn_"


class RaisonSettings(BaseSettings):
    """Client configuration with environment variable support.

    Explicit arguments to Raison(...) take precedence over these values.
    """

    RAISON_API_KEY: str = ""
    RAISON_BASE_URL: str = DEFAULT_BASE_URL

    # None waits for the first snapshot indefinitely
    RAISON_READY_TIMEOUT: Optional[float] = None

    # Initial connection backoff (seconds)
    RAISON_RECONNECT_DELAY: float = 1.0
    RAISON_MAX_RECONNECT_DELAY: float = 30.0

    RAISON_LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


def validate_api_key(api_key: Optional[str]) -> str:
    """Check the API key before any connection is attempted.

    Raises:
        ConfigurationError: If the key is missing or lacks the rsn_ prefix.
    """
    if not api_key:
        raise ConfigurationError("API key is required")
    if not isinstance(api_key, str) or not api_key.startswith(API_KEY_PREFIX):
        raise ConfigurationError("Invalid API key format")
    return api_key


def normalize_base_url(base_url: Optional[str]) -> str:
    """Default the base URL and strip trailing slashes."""
    url = base_url or DEFAULT_BASE_URL
    if not isinstance(url, str):
        raise ConfigurationError(f"Base URL must be a string, got {type(url).__name__}")
    return url.rstrip("/")
