"""Embedded graph store on SQLite (nodes + edges tables)."""

import json
from contextlib import asynccontextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, AsyncIterator, List, Optional, Sequence

import aiosqlite
import structlog

from .connection import DatabaseConnection
from .exceptions import DuplicateRecordError, QueryError, TransactionError
from .schema import schema_script
from .store import GraphStore, GraphTransaction, Properties, check_edge_type, check_label

logger = structlog.get_logger(__name__)


def _json_default(value: Any) -> Any:
    """Serialize datetimes as ISO-8601 strings."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode(properties: Properties) -> str:
    payload = {key: value for key, value in properties.items() if key != "id"}
    return json.dumps(payload, default=_json_default)


def _decode(row: aiosqlite.Row) -> Properties:
    properties = json.loads(row["properties"])
    properties["id"] = row["id"]
    return properties


class SQLiteGraphTransaction(GraphTransaction):
    """Graph primitives over one SQLite connection with an open transaction."""

    def __init__(self, connection: aiosqlite.Connection):
        self._connection = connection

    async def _execute(self, sql: str, params: Sequence[Any] = ()) -> aiosqlite.Cursor:
        try:
            return await self._connection.execute(sql, params)
        except aiosqlite.Error as e:
            logger.error("query_failed", query=sql.strip().split("\n")[0], error=str(e))
            raise QueryError(f"Query failed: {e}", query=sql) from e

    async def _node_key(self, label: str, node_id: str) -> Optional[int]:
        cursor = await self._execute(
            "SELECT node_key FROM nodes WHERE label = ? AND id = ?",
            (check_label(label), node_id),
        )
        row = await cursor.fetchone()
        return row["node_key"] if row else None

    async def node_exists(self, label: str, node_id: str) -> bool:
        return await self._node_key(label, node_id) is not None

    async def get_node(self, label: str, node_id: str) -> Optional[Properties]:
        cursor = await self._execute(
            "SELECT id, properties FROM nodes WHERE label = ? AND id = ?",
            (check_label(label), node_id),
        )
        row = await cursor.fetchone()
        return _decode(row) if row else None

    async def list_nodes(self, label: str) -> List[Properties]:
        cursor = await self._execute(
            "SELECT id, properties FROM nodes WHERE label = ? ORDER BY node_key",
            (check_label(label),),
        )
        rows = await cursor.fetchall()
        return [_decode(row) for row in rows]

    async def create_node(self, label: str, node_id: str, properties: Properties) -> None:
        try:
            await self._connection.execute(
                "INSERT INTO nodes (label, id, properties) VALUES (?, ?, ?)",
                (check_label(label), node_id, _encode(properties)),
            )
        except aiosqlite.IntegrityError as e:
            raise DuplicateRecordError(
                f"{label} already exists: {node_id}",
                label=label,
                node_id=node_id,
            ) from e
        except aiosqlite.Error as e:
            raise QueryError(f"Failed to create {label} node: {e}") from e

    async def update_node(self, label: str, node_id: str, properties: Properties) -> bool:
        current = await self.get_node(label, node_id)
        if current is None:
            return False

        current.update(properties)
        await self._execute(
            "UPDATE nodes SET properties = ? WHERE label = ? AND id = ?",
            (_encode(current), label, node_id),
        )
        return True

    async def delete_node(self, label: str, node_id: str) -> bool:
        # Incident edges go with the node (ON DELETE CASCADE)
        cursor = await self._execute(
            "DELETE FROM nodes WHERE label = ? AND id = ?",
            (check_label(label), node_id),
        )
        return cursor.rowcount > 0

    async def merge_edge(
        self, rel: str, from_label: str, from_id: str, to_label: str, to_id: str
    ) -> bool:
        rel = check_edge_type(rel)
        source_key = await self._node_key(from_label, from_id)
        target_key = await self._node_key(to_label, to_id)
        if source_key is None or target_key is None:
            return False

        await self._execute(
            "INSERT OR IGNORE INTO edges (type, source_key, target_key) VALUES (?, ?, ?)",
            (rel, source_key, target_key),
        )
        return True

    async def delete_edge(
        self, rel: str, from_label: str, from_id: str, to_label: str, to_id: str
    ) -> None:
        await self._execute(
            """
            DELETE FROM edges
            WHERE type = ?
              AND source_key = (SELECT node_key FROM nodes WHERE label = ? AND id = ?)
              AND target_key = (SELECT node_key FROM nodes WHERE label = ? AND id = ?)
            """,
            (check_edge_type(rel), check_label(from_label), from_id, check_label(to_label), to_id),
        )

    async def list_targets(
        self, rel: str, from_label: str, from_id: str, to_label: str
    ) -> List[Properties]:
        cursor = await self._execute(
            """
            SELECT t.id, t.properties
            FROM edges e
            JOIN nodes s ON s.node_key = e.source_key
            JOIN nodes t ON t.node_key = e.target_key
            WHERE e.type = ? AND s.label = ? AND s.id = ? AND t.label = ?
            ORDER BY e.rowid
            """,
            (check_edge_type(rel), check_label(from_label), from_id, check_label(to_label)),
        )
        rows = await cursor.fetchall()
        return [_decode(row) for row in rows]

    async def list_sources(
        self, rel: str, to_label: str, to_id: str, from_label: str
    ) -> List[Properties]:
        cursor = await self._execute(
            """
            SELECT s.id, s.properties
            FROM edges e
            JOIN nodes s ON s.node_key = e.source_key
            JOIN nodes t ON t.node_key = e.target_key
            WHERE e.type = ? AND t.label = ? AND t.id = ? AND s.label = ?
            ORDER BY e.rowid
            """,
            (check_edge_type(rel), check_label(to_label), to_id, check_label(from_label)),
        )
        rows = await cursor.fetchall()
        return [_decode(row) for row in rows]


class SQLiteGraphStore(GraphStore):
    """Graph store backed by a single SQLite file.

    Every transaction opens its own connection. Write transactions start
    with BEGIN IMMEDIATE, which takes the database write lock up front, so
    an existence check followed by an insert cannot interleave with another writer.
    """

    def __init__(
        self,
        db_path: Path,
        enable_wal: bool = True,
        timeout: int = 30,
    ):
        """
        Initialize SQLite graph store.

        Args:
            db_path: Path to SQLite database file
            enable_wal: Enable Write-Ahead Logging mode
            timeout: Seconds a transaction waits for the write lock
        """
        self.db_path = db_path
        self.enable_wal = enable_wal
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Any, config_dir: Optional[Path] = None) -> "SQLiteGraphStore":
        """
        Create store from DatabaseConfig.

        Args:
            config: DatabaseConfig instance
            config_dir: Directory relative database paths resolve against
        """
        db_path = Path(config.database_path)
        if not db_path.is_absolute() and config_dir is not None:
            db_path = config_dir / db_path

        return cls(
            db_path=db_path,
            enable_wal=config.enable_wal_mode,
            timeout=config.connection_timeout,
        )

    async def connect(self) -> None:
        """Verify the database file can be opened and apply journal mode."""
        async with DatabaseConnection(self.db_path, self.enable_wal, self.timeout):
            pass

        logger.info(
            "graph_store_connected",
            backend="sqlite",
            db_path=str(self.db_path),
            wal_mode=self.enable_wal,
        )

    async def close(self) -> None:
        # Connections are scoped to transactions; nothing is held open
        logger.debug("graph_store_closed", backend="sqlite", db_path=str(self.db_path))

    async def ensure_schema(self) -> None:
        async with DatabaseConnection(self.db_path, timeout=self.timeout) as connection:
            try:
                await connection.executescript(schema_script())
            except aiosqlite.Error as e:
                raise QueryError(f"Failed to create schema: {e}") from e

        logger.info("graph_schema_ensured", backend="sqlite")

    @asynccontextmanager
    async def _transaction(self, begin: str) -> AsyncIterator[GraphTransaction]:
        db_connection = DatabaseConnection(self.db_path, timeout=self.timeout)
        connection = await db_connection.connect()
        try:
            try:
                await connection.execute(begin)
            except aiosqlite.Error as e:
                raise TransactionError(f"Failed to begin transaction: {e}", operation="begin") from e

            try:
                yield SQLiteGraphTransaction(connection)
            except Exception:
                await self._rollback(connection)
                raise

            try:
                await connection.commit()
            except aiosqlite.Error as e:
                await self._rollback(connection)
                raise TransactionError(f"Failed to commit: {e}", operation="commit") from e
        finally:
            await db_connection.close()

    @staticmethod
    async def _rollback(connection: aiosqlite.Connection) -> None:
        try:
            await connection.rollback()
            logger.debug("transaction_rolled_back")
        except aiosqlite.Error as e:
            # Closing the connection discards the transaction anyway
            logger.warning("transaction_rollback_failed", error=str(e))

    def read_transaction(self) -> Any:
        return self._transaction("BEGIN")

    def write_transaction(self) -> Any:
        return self._transaction("BEGIN IMMEDIATE")
