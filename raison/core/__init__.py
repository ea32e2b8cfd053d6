"""Core cache engine: store, readiness gate, sync coordinator and renderer."""
from .exceptions import (
    ClientClosedError,
    ConfigurationError,
    InvalidFilterError,
    RaisonError,
    ReadyTimeoutError,
)
from .models import FilterLike, PromptFilter, PromptRecord
from .readiness import ReadinessGate, ReadinessState
from .renderer import HelperRegistry, TemplateRenderer, default_helpers, register_helper
from .store import PromptStore
from .sync import (
    CATALOG_EVENTS,
    DEPLOYED_EVENT,
    SYNC_EVENT,
    UNDEPLOYED_EVENT,
    SyncCoordinator,
)

__all__ = [
    "CATALOG_EVENTS",
    "ClientClosedError",
    "ConfigurationError",
    "DEPLOYED_EVENT",
    "FilterLike",
    "HelperRegistry",
    "InvalidFilterError",
    "PromptFilter",
    "PromptRecord",
    "PromptStore",
    "RaisonError",
    "ReadinessGate",
    "ReadinessState",
    "ReadyTimeoutError",
    "SYNC_EVENT",
    "SyncCoordinator",
    "TemplateRenderer",
    "UNDEPLOYED_EVENT",
    "default_helpers",
    "register_helper",
]
