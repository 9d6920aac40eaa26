"""Fixtures specific to unit tests."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from raocow.core.db import GraphStore, GraphTransaction, QueryError


@pytest.fixture
def mock_tx() -> MagicMock:
    """Provide a graph transaction whose primitives are AsyncMocks."""
    tx = MagicMock(spec=GraphTransaction)
    tx.node_exists = AsyncMock(return_value=False)
    tx.get_node = AsyncMock(return_value=None)
    tx.list_nodes = AsyncMock(return_value=[])
    tx.create_node = AsyncMock(return_value=None)
    tx.update_node = AsyncMock(return_value=True)
    tx.delete_node = AsyncMock(return_value=True)
    tx.merge_edge = AsyncMock(return_value=True)
    tx.delete_edge = AsyncMock(return_value=None)
    tx.list_targets = AsyncMock(return_value=[])
    tx.list_sources = AsyncMock(return_value=[])
    return tx


@pytest.fixture
def mock_store(mock_tx: MagicMock) -> MagicMock:
    """Provide a graph store handing out mock_tx for every transaction."""

    @asynccontextmanager
    async def transaction():
        yield mock_tx

    store = MagicMock(spec=GraphStore)
    store.read_transaction = MagicMock(side_effect=transaction)
    store.write_transaction = MagicMock(side_effect=transaction)
    return store


@pytest.fixture
def failing_store() -> MagicMock:
    """Provide a graph store whose transactions always fail."""
    @asynccontextmanager
    async def transaction():
        raise QueryError("database is locked")
        yield  # pragma: no cover

    store = MagicMock(spec=GraphStore)
    store.read_transaction = MagicMock(side_effect=transaction)
    store.write_transaction = MagicMock(side_effect=transaction)
    return store
