"""
Logging setup for applications embedding the Raison client.

The library itself only logs through module loggers under "raison"; call
setup_logger() to get console output with the service name attached.
"""
import logging
from typing import Optional


class _ServiceFilter(logging.Filter):
    """Stamp every record with the service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service_name
        return True


def setup_logger(
    service_name: str = "raison",
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Setup console logging for the raison package.

    Args:
        service_name: Name shown in each log line
        level: Log level name; defaults to RAISON_LOG_LEVEL

    Returns:
        Configured "raison" logger
    """
    if level is None:
        from .config import RaisonSettings
        level = RaisonSettings().RAISON_LOG_LEVEL

    logger = logging.getLogger("raison")
    logger.setLevel(level.upper())

    # Remove existing handlers
    logger.handlers = []

    console_handler = logging.StreamHandler()
    console_formatter = logging.Formatter(
        '%(asctime)s - [%(service)s] - %(levelname)s - %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    console_handler.addFilter(_ServiceFilter(service_name))
    logger.addHandler(console_handler)

    return logger
