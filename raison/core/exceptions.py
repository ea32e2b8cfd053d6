"""Custom exceptions for Raison."""


class RaisonError(Exception):
    """Base exception for Raison."""
    pass


class ConfigurationError(RaisonError, ValueError):
    """Raised at construction when the API key or base URL is unusable."""
    pass


class ReadyTimeoutError(RaisonError, TimeoutError):
    """Raised when the first catalog snapshot does not arrive in time."""
    pass


class InvalidFilterError(RaisonError, ValueError):
    """Raised when a prompt filter names unknown fields or bad values."""
    pass


class ClientClosedError(RaisonError):
    """Raised when connecting a client that has already been disconnected."""
    pass
