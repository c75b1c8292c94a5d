"""Utility modules for the personalization core.

- **errors** -- Exception hierarchy rooted at PersonalizationError; each
  concern raises its own subclass so callers recover at the right level.
- **logging** -- structlog setup with coloured console output in
  development and JSON in production.
"""

from src.utils.errors import (
    ConfigurationError,
    DataSourceError,
    EnrichmentError,
    PersistenceError,
    PersonalizationError,
)
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DataSourceError",
    "EnrichmentError",
    "PersistenceError",
    "PersonalizationError",
    "configure_logging",
    "get_logger",
]
