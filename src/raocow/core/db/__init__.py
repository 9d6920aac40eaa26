"""Graph store, repositories and relationship management for the catalog."""

from .connection import DatabaseConnection
from .exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DuplicateRecordError,
    IdentifierAllocationError,
    QueryError,
    TransactionError,
)
from .identifiers import IdentifierAllocator
from .models import Channel, Entity, Series, Video
from .neo4j_store import Neo4jGraphStore
from .relationships import VideoMembership
from .repository import ChannelRepository, EntityRepository, SeriesRepository, VideoRepository
from .sqlite_store import SQLiteGraphStore
from .store import CHANNEL, CONTAINS, SERIES, VIDEO, GraphStore, GraphTransaction

__all__ = [
    "CHANNEL",
    "SERIES",
    "VIDEO",
    "CONTAINS",
    "GraphStore",
    "GraphTransaction",
    "SQLiteGraphStore",
    "Neo4jGraphStore",
    "DatabaseConnection",
    "IdentifierAllocator",
    "Entity",
    "Channel",
    "Series",
    "Video",
    "EntityRepository",
    "ChannelRepository",
    "SeriesRepository",
    "VideoRepository",
    "VideoMembership",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "TransactionError",
    "DuplicateRecordError",
    "IdentifierAllocationError",
]
