"""Raocow package initialization."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import structlog

from .common.config import Config, DatabaseConfig, IdentifierConfig, LoggingConfig, Neo4jConfig
from .common.logging_config import setup_logging
from .common.string_utils import slugify
from .core.db import (
    Channel,
    ChannelRepository,
    DatabaseConnectionError,
    DatabaseError,
    DuplicateRecordError,
    GraphStore,
    IdentifierAllocationError,
    IdentifierAllocator,
    Neo4jGraphStore,
    QueryError,
    Series,
    SeriesRepository,
    SQLiteGraphStore,
    TransactionError,
    Video,
    VideoMembership,
    VideoRepository,
)
from .core.results import ErrorKind, OperationResult
from .services import Catalog, SeedResult, seed_sample_data

__version__ = "0.1.0"
__all__ = [
    "Config",
    "DatabaseConfig",
    "IdentifierConfig",
    "LoggingConfig",
    "Neo4jConfig",
    "configure",
    "get_config",
    "create_graph_store",
    "open_catalog",
    "slugify",
    "Channel",
    "Series",
    "Video",
    "ChannelRepository",
    "SeriesRepository",
    "VideoRepository",
    "VideoMembership",
    "IdentifierAllocator",
    "GraphStore",
    "SQLiteGraphStore",
    "Neo4jGraphStore",
    "ErrorKind",
    "OperationResult",
    "Catalog",
    "SeedResult",
    "seed_sample_data",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "TransactionError",
    "DuplicateRecordError",
    "IdentifierAllocationError",
]

# Module-level logger (not configured yet)
logger = structlog.get_logger(__name__)

# Global config state
_config: Optional[Config] = None


def configure(config_path: Optional[Path] = None, config: Optional[Config] = None) -> Config:
    """
    Configure the raocow package.

    Call once at application startup to load configuration, resolve the
    config directory and set up logging. No store connection is opened;
    use open_catalog() or create_graph_store() for that.

    Args:
        config_path: Path to YAML configuration file
        config: Pre-loaded Config object (takes precedence over config_path)

    Returns:
        The active Config

    Example:
        >>> import raocow
        >>> raocow.configure(config_path=Path("config.yaml"))
    """
    global _config

    if config is not None:
        _config = config
    elif config_path is not None:
        _config = Config.from_yaml(config_path)
    else:
        # Use defaults
        _config = Config()

    _config.resolve_paths()
    setup_logging(_config.logging, _config.config_dir)

    logger.info(
        "raocow_configured",
        version=__version__,
        backend=_config.database.backend,
        config_dir=str(_config.config_dir),
    )
    return _config


def get_config() -> Config:
    """
    Get current configuration, initializing with defaults if needed.

    Returns:
        Current Config object
    """
    if _config is None:
        return configure()
    return _config


def create_graph_store(config: Optional[Config] = None) -> GraphStore:
    """
    Build the graph store selected by config.database.backend.

    The store is not connected; use it as an async context manager or call
    connect() and ensure_schema() yourself.

    Args:
        config: Configuration (defaults to get_config())

    Returns:
        SQLiteGraphStore or Neo4jGraphStore
    """
    config = config or get_config()

    if config.database.backend == "neo4j":
        return Neo4jGraphStore.from_config(config.neo4j)

    return SQLiteGraphStore(
        db_path=config.get_database_path(),
        enable_wal=config.database.enable_wal_mode,
        timeout=config.database.connection_timeout,
    )


@asynccontextmanager
async def open_catalog(config: Optional[Config] = None) -> AsyncIterator[Catalog]:
    """
    Open the configured store and yield a Catalog over it.

    Example:
        >>> async with raocow.open_catalog() as catalog:
        ...     result = await catalog.channels.list_all()
    """
    config = config or get_config()

    async with create_graph_store(config) as store:
        yield Catalog(
            store,
            allocator=IdentifierAllocator.from_config(config.identifiers),
            conflict_retries=config.identifiers.conflict_retries,
        )
