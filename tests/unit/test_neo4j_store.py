"""Tests for the Neo4j graph store backend against a mocked driver."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from neo4j import READ_ACCESS, WRITE_ACCESS
from neo4j.exceptions import ConstraintError, ServiceUnavailable

from raocow.common.config import Neo4jConfig
from raocow.core.db import (
    DatabaseConnectionError,
    DuplicateRecordError,
    Neo4jGraphStore,
    QueryError,
)
from raocow.core.db.neo4j_store import Neo4jGraphTransaction, _translate


class FakeResult:
    """Minimal stand-in for neo4j.AsyncResult."""

    def __init__(self, records=None, nodes_deleted=0):
        self._records = records or []
        self._summary = SimpleNamespace(counters=SimpleNamespace(nodes_deleted=nodes_deleted))

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for record in self._records:
            yield record

    async def consume(self):
        return self._summary


class FakeDateTime:
    """Stand-in for neo4j.time.DateTime."""

    def __init__(self, native):
        self._native = native

    def to_native(self):
        return self._native


@pytest.fixture
def driver_tx() -> MagicMock:
    """Provide a mocked neo4j AsyncTransaction."""
    tx = MagicMock()
    tx.run = AsyncMock(return_value=FakeResult())
    tx.commit = AsyncMock()
    tx.rollback = AsyncMock()
    return tx


@pytest.fixture
def mock_driver(driver_tx: MagicMock) -> MagicMock:
    """Provide a mocked AsyncDriver whose sessions hand out driver_tx."""
    session = MagicMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = False
    session.begin_transaction = AsyncMock(return_value=driver_tx)
    session.run = AsyncMock(return_value=FakeResult())

    driver = MagicMock()
    driver.verify_connectivity = AsyncMock()
    driver.close = AsyncMock()
    driver.session = MagicMock(return_value=session)
    return driver


@pytest.fixture
def neo4j_store(mock_driver: MagicMock) -> Neo4jGraphStore:
    """Provide a Neo4j store wired to the mocked driver."""
    store = Neo4jGraphStore("bolt://localhost:7687", "neo4j", "secret")
    store._driver = mock_driver
    return store


class TestTranslate:
    """Tests for driver exception translation."""

    def test_constraint_error(self):
        """Test constraint violations become DuplicateRecordError."""
        assert isinstance(_translate(ConstraintError("exists")), DuplicateRecordError)

    def test_service_unavailable(self):
        """Test connectivity failures become DatabaseConnectionError."""
        assert isinstance(_translate(ServiceUnavailable("down")), DatabaseConnectionError)

    def test_other_errors(self):
        """Test anything else becomes QueryError carrying the query."""
        error = _translate(RuntimeError("boom"), "MATCH (n) RETURN n")
        assert isinstance(error, QueryError)
        assert error.query == "MATCH (n) RETURN n"


@pytest.mark.asyncio
class TestNeo4jGraphTransaction:
    """Test Cypher primitives against a mocked transaction."""

    async def test_node_exists(self, driver_tx):
        """Test node_exists matches on label and id parameter."""
        driver_tx.run = AsyncMock(return_value=FakeResult([{"id": "raocow"}]))

        exists = await Neo4jGraphTransaction(driver_tx).node_exists("Channel", "raocow")

        assert exists is True
        query, params = driver_tx.run.await_args.args
        assert "MATCH (n:Channel {id: $id})" in query
        assert params == {"id": "raocow"}

    async def test_get_node_converts_temporal_values(self, driver_tx):
        """Test neo4j temporal values are returned as native datetimes."""
        native = object()
        node = {"id": "v1", "title": "SMW 1", "published": FakeDateTime(native)}
        driver_tx.run = AsyncMock(return_value=FakeResult([{"n": node}]))

        properties = await Neo4jGraphTransaction(driver_tx).get_node("Video", "v1")

        assert properties == {"id": "v1", "title": "SMW 1", "published": native}

    async def test_get_missing_node(self, driver_tx):
        """Test get_node returns None when nothing matches."""
        assert await Neo4jGraphTransaction(driver_tx).get_node("Video", "ghost") is None

    async def test_create_node_sets_id(self, driver_tx):
        """Test create_node writes properties with the id included."""
        await Neo4jGraphTransaction(driver_tx).create_node("Series", "smw", {"name": "smw"})

        query, params = driver_tx.run.await_args.args
        assert query.startswith("CREATE (n:Series)")
        assert params == {"props": {"name": "smw", "id": "smw"}}

    async def test_create_node_duplicate(self, driver_tx):
        """Test constraint violations surface as DuplicateRecordError."""
        driver_tx.run = AsyncMock(side_effect=ConstraintError("exists"))

        with pytest.raises(DuplicateRecordError) as exc_info:
            await Neo4jGraphTransaction(driver_tx).create_node("Series", "smw", {})

        assert exc_info.value.label == "Series"
        assert exc_info.value.node_id == "smw"

    async def test_update_node(self, driver_tx):
        """Test update_node reports whether a node matched and never rewrites id."""
        driver_tx.run = AsyncMock(return_value=FakeResult([{"matched": 1}]))

        matched = await Neo4jGraphTransaction(driver_tx).update_node(
            "Channel", "raocow", {"id": "other", "name": "Raocow"}
        )

        assert matched is True
        _, params = driver_tx.run.await_args.args
        assert params == {"id": "raocow", "props": {"name": "Raocow"}}

    async def test_delete_node_uses_counters(self, driver_tx):
        """Test delete_node reports deletions from the result summary."""
        driver_tx.run = AsyncMock(return_value=FakeResult(nodes_deleted=1))

        deleted = await Neo4jGraphTransaction(driver_tx).delete_node("Channel", "raocow")

        assert deleted is True
        query, _ = driver_tx.run.await_args.args
        assert "DETACH DELETE n" in query

    async def test_merge_edge(self, driver_tx):
        """Test merge_edge uses MERGE and reports missing endpoints."""
        driver_tx.run = AsyncMock(return_value=FakeResult([{"matched": 0}]))
        tx = Neo4jGraphTransaction(driver_tx)

        linked = await tx.merge_edge("CONTAINS", "Series", "smw", "Video", "ghost")

        assert linked is False
        query, params = driver_tx.run.await_args.args
        assert "MERGE (s)-[:CONTAINS]->(t)" in query
        assert params == {"from_id": "smw", "to_id": "ghost"}

    async def test_list_targets(self, driver_tx):
        """Test outgoing traversal returns target properties."""
        driver_tx.run = AsyncMock(
            return_value=FakeResult([{"t": {"id": "v1"}}, {"t": {"id": "v2"}}])
        )

        rows = await Neo4jGraphTransaction(driver_tx).list_targets(
            "CONTAINS", "Series", "smw", "Video"
        )

        assert [row["id"] for row in rows] == ["v1", "v2"]

    async def test_unknown_label_never_reaches_driver(self, driver_tx):
        """Test labels are checked before being formatted into Cypher."""
        with pytest.raises(ValueError):
            await Neo4jGraphTransaction(driver_tx).list_nodes("Video) DETACH DELETE (m")

        driver_tx.run.assert_not_awaited()

    async def test_driver_error_translated(self, driver_tx):
        """Test driver failures surface as store exceptions."""
        driver_tx.run = AsyncMock(side_effect=ServiceUnavailable("down"))

        with pytest.raises(DatabaseConnectionError):
            await Neo4jGraphTransaction(driver_tx).list_nodes("Video")


@pytest.mark.asyncio
class TestNeo4jGraphStore:
    """Test driver lifecycle and transaction scoping."""

    async def test_from_config(self):
        """Test store settings come from Neo4jConfig."""
        store = Neo4jGraphStore.from_config(
            Neo4jConfig(uri="bolt://graph:7687", database="catalog")
        )
        assert store.uri == "bolt://graph:7687"
        assert store.database == "catalog"

    async def test_connect_failure(self, mock_driver):
        """Test an unreachable server raises DatabaseConnectionError and drops the driver."""
        mock_driver.verify_connectivity = AsyncMock(side_effect=ServiceUnavailable("down"))
        store = Neo4jGraphStore("bolt://nowhere:7687", "neo4j", "secret")

        with patch("raocow.core.db.neo4j_store.AsyncGraphDatabase.driver", return_value=mock_driver):
            with pytest.raises(DatabaseConnectionError) as exc_info:
                await store.connect()

        assert exc_info.value.uri == "bolt://nowhere:7687"
        mock_driver.close.assert_awaited_once()
        assert store._driver is None

    async def test_ensure_schema(self, neo4j_store, mock_driver):
        """Test one uniqueness constraint is created per label."""
        await neo4j_store.ensure_schema()

        session = mock_driver.session.return_value
        statements = [call.args[0] for call in session.run.await_args_list]
        assert statements == [
            "CREATE CONSTRAINT channel_id IF NOT EXISTS FOR (n:Channel) REQUIRE n.id IS UNIQUE",
            "CREATE CONSTRAINT series_id IF NOT EXISTS FOR (n:Series) REQUIRE n.id IS UNIQUE",
            "CREATE CONSTRAINT video_id IF NOT EXISTS FOR (n:Video) REQUIRE n.id IS UNIQUE",
        ]

    async def test_transaction_commits(self, neo4j_store, mock_driver, driver_tx):
        """Test a clean block commits."""
        async with neo4j_store.write_transaction() as tx:
            await tx.node_exists("Video", "v1")

        mock_driver.session.assert_called_with(database="neo4j", default_access_mode=WRITE_ACCESS)
        driver_tx.commit.assert_awaited_once()
        driver_tx.rollback.assert_not_awaited()

    async def test_read_transaction_uses_read_access(self, neo4j_store, mock_driver, driver_tx):
        """Test read transactions open read sessions."""
        async with neo4j_store.read_transaction() as tx:
            await tx.node_exists("Video", "v1")

        mock_driver.session.assert_called_with(database="neo4j", default_access_mode=READ_ACCESS)
        driver_tx.commit.assert_awaited_once()

    async def test_transaction_rolls_back(self, neo4j_store, driver_tx):
        """Test an exception in the block rolls back and propagates."""
        with pytest.raises(RuntimeError):
            async with neo4j_store.read_transaction():
                raise RuntimeError("abort")

        driver_tx.rollback.assert_awaited_once()
        driver_tx.commit.assert_not_awaited()

    async def test_commit_constraint_violation(self, neo4j_store, driver_tx):
        """Test a constraint failure at commit time is a DuplicateRecordError."""
        driver_tx.commit = AsyncMock(side_effect=ConstraintError("exists"))

        with pytest.raises(DuplicateRecordError):
            async with neo4j_store.write_transaction():
                pass

    async def test_close(self, neo4j_store, mock_driver):
        """Test close releases the driver once."""
        await neo4j_store.close()
        await neo4j_store.close()

        mock_driver.close.assert_awaited_once()
