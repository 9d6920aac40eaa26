"""Shared pytest fixtures for all tests."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from raocow.common.config import Config, DatabaseConfig, LoggingConfig
from raocow.core.db import (
    ChannelRepository,
    SeriesRepository,
    SQLiteGraphStore,
    Video,
    VideoRepository,
)
from raocow.services import Catalog


@pytest.fixture
def sample_config(tmp_path: Path) -> Config:
    """Provide a sample configuration for tests."""
    return Config(
        config_dir=tmp_path,
        logging=LoggingConfig(
            level="DEBUG",
            format="text",
        ),
        database=DatabaseConfig(
            enable_wal_mode=False,
        ),
    )


@pytest.fixture
def database_config(tmp_path: Path) -> DatabaseConfig:
    """Provide a test database configuration."""
    db_path = tmp_path / "test_raocow.db"
    return DatabaseConfig(
        database_path=str(db_path),
        enable_wal_mode=False,  # Disable WAL mode in tests to avoid lock issues
        connection_timeout=30,
    )


@pytest_asyncio.fixture
async def graph_store(database_config: DatabaseConfig) -> SQLiteGraphStore:
    """Provide a connected SQLite graph store with the schema applied."""
    store = SQLiteGraphStore.from_config(database_config)
    async with store:
        yield store


@pytest_asyncio.fixture
async def catalog(graph_store: SQLiteGraphStore) -> Catalog:
    """Provide a catalog over the test store."""
    return Catalog(graph_store)


@pytest.fixture
def channel_repository(graph_store: SQLiteGraphStore) -> ChannelRepository:
    return ChannelRepository(graph_store)


@pytest.fixture
def series_repository(graph_store: SQLiteGraphStore) -> SeriesRepository:
    return SeriesRepository(graph_store)


@pytest.fixture
def video_repository(graph_store: SQLiteGraphStore) -> VideoRepository:
    return VideoRepository(graph_store)


@pytest.fixture
def make_video():
    """Provide a factory for valid, unsaved videos."""

    def _make_video(title: str = "Super Marisa World 1", youtube_id: str = "dQw4w9WgXcQ") -> Video:
        return Video(
            title=title,
            youtube_id=youtube_id,
            published=datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
        )

    return _make_video
