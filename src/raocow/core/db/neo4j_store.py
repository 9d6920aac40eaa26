"""Graph store on a Neo4j server via the async Bolt driver.

Schema:
  Nodes:  Channel, Series, Video (unique "id" per label)
  Edges:  CONTAINS (Channel -> Video, Series -> Video)

Labels and edge types cannot be query parameters in Cypher, so they are
checked against the store whitelist before being formatted into queries.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Tuple

import structlog
from neo4j import READ_ACCESS, WRITE_ACCESS, AsyncDriver, AsyncGraphDatabase, AsyncTransaction
from neo4j.exceptions import (
    ConstraintError,
    DriverError,
    Neo4jError,
    ServiceUnavailable,
    SessionExpired,
)

from .exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DuplicateRecordError,
    QueryError,
    TransactionError,
)
from .store import (
    NODE_LABELS,
    GraphStore,
    GraphTransaction,
    Properties,
    check_edge_type,
    check_label,
)

logger = structlog.get_logger(__name__)


def _to_native(value: Any) -> Any:
    """Convert neo4j.time values to their standard library equivalents."""
    to_native = getattr(value, "to_native", None)
    return to_native() if callable(to_native) else value


def _node_properties(node: Any) -> Properties:
    return {key: _to_native(value) for key, value in dict(node).items()}


def _translate(e: Exception, query: Optional[str] = None) -> DatabaseError:
    """Map a driver exception onto the store exception hierarchy."""
    if isinstance(e, ConstraintError):
        return DuplicateRecordError(f"Uniqueness constraint violated: {e}")
    if isinstance(e, (ServiceUnavailable, SessionExpired)):
        return DatabaseConnectionError(f"Neo4j unavailable: {e}")
    return QueryError(f"Query failed: {e}", query=query)


class Neo4jGraphTransaction(GraphTransaction):
    """Graph primitives over one explicit Neo4j transaction."""

    def __init__(self, tx: AsyncTransaction):
        self._tx = tx

    async def _run(self, query: str, **params: Any) -> Tuple[List[Any], Any]:
        try:
            result = await self._tx.run(query, params)
            records = [record async for record in result]
            summary = await result.consume()
            return records, summary
        except (Neo4jError, DriverError) as e:
            logger.error("query_failed", query=query.strip().split("\n")[0], error=str(e))
            raise _translate(e, query) from e

    async def node_exists(self, label: str, node_id: str) -> bool:
        records, _ = await self._run(
            f"MATCH (n:{check_label(label)} {{id: $id}}) RETURN n.id AS id LIMIT 1",
            id=node_id,
        )
        return bool(records)

    async def get_node(self, label: str, node_id: str) -> Optional[Properties]:
        records, _ = await self._run(
            f"MATCH (n:{check_label(label)} {{id: $id}}) RETURN n LIMIT 1",
            id=node_id,
        )
        return _node_properties(records[0]["n"]) if records else None

    async def list_nodes(self, label: str) -> List[Properties]:
        records, _ = await self._run(f"MATCH (n:{check_label(label)}) RETURN n")
        return [_node_properties(record["n"]) for record in records]

    async def create_node(self, label: str, node_id: str, properties: Properties) -> None:
        try:
            await self._run(
                f"CREATE (n:{check_label(label)}) SET n = $props",
                props={**properties, "id": node_id},
            )
        except DuplicateRecordError as e:
            raise DuplicateRecordError(
                f"{label} already exists: {node_id}",
                label=label,
                node_id=node_id,
            ) from e

    async def update_node(self, label: str, node_id: str, properties: Properties) -> bool:
        records, _ = await self._run(
            f"""
            MATCH (n:{check_label(label)} {{id: $id}})
            SET n += $props
            RETURN count(n) AS matched
            """,
            id=node_id,
            props={key: value for key, value in properties.items() if key != "id"},
        )
        return bool(records) and records[0]["matched"] > 0

    async def delete_node(self, label: str, node_id: str) -> bool:
        _, summary = await self._run(
            f"MATCH (n:{check_label(label)} {{id: $id}}) DETACH DELETE n",
            id=node_id,
        )
        return summary.counters.nodes_deleted > 0

    async def merge_edge(
        self, rel: str, from_label: str, from_id: str, to_label: str, to_id: str
    ) -> bool:
        records, _ = await self._run(
            f"""
            MATCH (s:{check_label(from_label)} {{id: $from_id}})
            MATCH (t:{check_label(to_label)} {{id: $to_id}})
            MERGE (s)-[:{check_edge_type(rel)}]->(t)
            RETURN count(*) AS matched
            """,
            from_id=from_id,
            to_id=to_id,
        )
        return bool(records) and records[0]["matched"] > 0

    async def delete_edge(
        self, rel: str, from_label: str, from_id: str, to_label: str, to_id: str
    ) -> None:
        await self._run(
            f"""
            MATCH (s:{check_label(from_label)} {{id: $from_id}})
                  -[r:{check_edge_type(rel)}]->
                  (t:{check_label(to_label)} {{id: $to_id}})
            DELETE r
            """,
            from_id=from_id,
            to_id=to_id,
        )

    async def list_targets(
        self, rel: str, from_label: str, from_id: str, to_label: str
    ) -> List[Properties]:
        records, _ = await self._run(
            f"""
            MATCH (s:{check_label(from_label)} {{id: $from_id}})
                  -[:{check_edge_type(rel)}]->
                  (t:{check_label(to_label)})
            RETURN t
            """,
            from_id=from_id,
        )
        return [_node_properties(record["t"]) for record in records]

    async def list_sources(
        self, rel: str, to_label: str, to_id: str, from_label: str
    ) -> List[Properties]:
        records, _ = await self._run(
            f"""
            MATCH (s:{check_label(from_label)})
                  -[:{check_edge_type(rel)}]->
                  (t:{check_label(to_label)} {{id: $to_id}})
            RETURN s
            """,
            to_id=to_id,
        )
        return [_node_properties(record["s"]) for record in records]


class Neo4jGraphStore(GraphStore):
    """Neo4j async driver wrapper handing out one session per transaction.

    Neo4j transactions are read-committed, so id uniqueness is enforced by
    the constraints created in ensure_schema(); a losing concurrent writer
    gets DuplicateRecordError.
    """

    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: str = "neo4j",
        max_connection_pool_size: int = 50,
        connection_timeout: float = 30.0,
    ):
        self.uri = uri
        self.database = database
        self._auth = (user, password)
        self._max_connection_pool_size = max_connection_pool_size
        self._connection_timeout = connection_timeout
        self._driver: Optional[AsyncDriver] = None

    @classmethod
    def from_config(cls, config: Any) -> "Neo4jGraphStore":
        """Create store from Neo4jConfig."""
        return cls(
            uri=config.uri,
            user=config.user,
            password=config.password,
            database=config.database,
            max_connection_pool_size=config.max_connection_pool_size,
            connection_timeout=config.connection_timeout,
        )

    async def connect(self) -> None:
        """Initialize the driver and verify the server is reachable."""
        if self._driver is not None:
            return

        self._driver = AsyncGraphDatabase.driver(
            self.uri,
            auth=self._auth,
            max_connection_pool_size=self._max_connection_pool_size,
            connection_timeout=self._connection_timeout,
        )
        try:
            await self._driver.verify_connectivity()
        except (Neo4jError, DriverError) as e:
            logger.error("graph_store_connection_failed", backend="neo4j", uri=self.uri, error=str(e))
            await self.close()
            raise DatabaseConnectionError(f"Failed to connect to Neo4j: {e}", uri=self.uri) from e

        logger.info("graph_store_connected", backend="neo4j", uri=self.uri)

    async def close(self) -> None:
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("graph_store_closed", backend="neo4j", uri=self.uri)

    def _schema_statements(self) -> List[str]:
        return [
            f"CREATE CONSTRAINT {label.lower()}_id IF NOT EXISTS "
            f"FOR (n:{label}) REQUIRE n.id IS UNIQUE"
            for label in sorted(NODE_LABELS)
        ]

    async def ensure_schema(self) -> None:
        """Create one uniqueness constraint on id per node label."""
        if self._driver is None:
            await self.connect()

        async with self._driver.session(database=self.database) as session:
            for statement in self._schema_statements():
                try:
                    result = await session.run(statement)
                    await result.consume()
                except (Neo4jError, DriverError) as e:
                    raise _translate(e, statement) from e

        logger.info("graph_schema_ensured", backend="neo4j")

    @asynccontextmanager
    async def _transaction(self, access_mode: str) -> AsyncIterator[GraphTransaction]:
        if self._driver is None:
            await self.connect()

        # Clusters route read sessions to followers
        async with self._driver.session(
            database=self.database, default_access_mode=access_mode
        ) as session:
            try:
                tx = await session.begin_transaction()
            except (Neo4jError, DriverError) as e:
                raise _translate(e) from e

            try:
                yield Neo4jGraphTransaction(tx)
            except Exception:
                await self._rollback(tx)
                raise

            try:
                await tx.commit()
            except ConstraintError as e:
                raise DuplicateRecordError(f"Uniqueness constraint violated on commit: {e}") from e
            except (Neo4jError, DriverError) as e:
                raise TransactionError(f"Failed to commit: {e}", operation="commit") from e

    @staticmethod
    async def _rollback(tx: AsyncTransaction) -> None:
        try:
            await tx.rollback()
            logger.debug("transaction_rolled_back")
        except (Neo4jError, DriverError) as e:
            # Session close discards the transaction anyway
            logger.warning("transaction_rollback_failed", error=str(e))

    def read_transaction(self) -> Any:
        return self._transaction(READ_ACCESS)

    def write_transaction(self) -> Any:
        return self._transaction(WRITE_ACCESS)
