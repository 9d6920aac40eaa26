"""SQLite connection management."""

from pathlib import Path
from typing import Any, Optional

import aiosqlite
import structlog

from .exceptions import DatabaseConnectionError

logger = structlog.get_logger(__name__)


class DatabaseConnection:
    """Manages one async SQLite connection with context manager support.

    Connections are opened in autocommit mode (isolation_level=None) so the
    caller controls transaction boundaries with explicit BEGIN statements.
    """

    def __init__(
        self,
        db_path: Path,
        enable_wal: bool = False,
        timeout: int = 30,
    ):
        """
        Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file
            enable_wal: Switch the database file to Write-Ahead Logging mode
            timeout: Seconds to wait on a locked database
        """
        self.db_path = db_path
        self.enable_wal = enable_wal
        self.timeout = timeout
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> aiosqlite.Connection:
        """
        Establish database connection.

        Returns:
            Active database connection

        Raises:
            DatabaseConnectionError: If connection fails
        """
        if self._connection is not None:
            return self._connection

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(
                str(self.db_path),
                timeout=self.timeout,
                isolation_level=None,
            )
            self._connection.row_factory = aiosqlite.Row

            # Required for ON DELETE CASCADE on edges
            await self._connection.execute("PRAGMA foreign_keys = ON")

            if self.enable_wal:
                await self._connection.execute("PRAGMA journal_mode = WAL")

            logger.debug(
                "database_connected",
                db_path=str(self.db_path),
                wal_mode=self.enable_wal,
            )

            return self._connection

        except (aiosqlite.Error, OSError) as e:
            logger.error(
                "database_connection_failed",
                db_path=str(self.db_path),
                error=str(e),
            )
            if self._connection is not None:
                await self._connection.close()
                self._connection = None
            raise DatabaseConnectionError(
                f"Failed to connect to database: {e}",
                path=self.db_path,
            ) from e

    async def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.debug("database_closed", db_path=str(self.db_path))

    async def __aenter__(self) -> aiosqlite.Connection:
        return await self.connect()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
