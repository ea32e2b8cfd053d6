"""Raison: realtime-synced prompt catalog client.

This package provides:
- Raison: client that mirrors the prompt catalog into a local cache
- PromptRecord / PromptFilter: cached record and query models
- register_helper / HelperRegistry: custom template helpers

Usage:
    from raison import Raison

    Raison.register_helper("upper", str.upper)

    async with Raison(api_key="rsn_...") as raison:
        text = await raison.render("prompt-id", {"name": "World"})
"""
from .client import Raison
from .config import DEFAULT_BASE_URL, RaisonSettings
from .core.exceptions import (
    ClientClosedError,
    ConfigurationError,
    InvalidFilterError,
    RaisonError,
    ReadyTimeoutError,
)
from .core.models import PromptFilter, PromptRecord
from .core.renderer import HelperRegistry, default_helpers, register_helper
from .logging_client import setup_logger

__all__ = [
    "ClientClosedError",
    "ConfigurationError",
    "DEFAULT_BASE_URL",
    "HelperRegistry",
    "InvalidFilterError",
    "PromptFilter",
    "PromptRecord",
    "Raison",
    "RaisonError",
    "RaisonSettings",
    "ReadyTimeoutError",
    "default_helpers",
    "register_helper",
    "setup_logger",
]
