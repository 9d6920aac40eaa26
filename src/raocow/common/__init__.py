"""Common utilities and shared components for raocow."""

from .config import (
    Config,
    DatabaseConfig,
    IdentifierConfig,
    LoggingConfig,
    Neo4jConfig,
)
from .logging_config import setup_logging
from .string_utils import slugify, strip_accents, with_suffix

__all__ = [
    "Config",
    "DatabaseConfig",
    "IdentifierConfig",
    "LoggingConfig",
    "Neo4jConfig",
    "setup_logging",
    "slugify",
    "strip_accents",
    "with_suffix",
]
