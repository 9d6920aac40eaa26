"""Tests for identifier allocation."""

from unittest.mock import AsyncMock

import pytest

from raocow.common.config import IdentifierConfig
from raocow.core.db import IdentifierAllocationError, IdentifierAllocator, SQLiteGraphStore


@pytest.mark.asyncio
class TestIdentifierAllocator:
    """Test IdentifierAllocator against mocked and real transactions."""

    async def test_free_slug_is_used_as_is(self, mock_tx):
        """Test the bare slug is returned when nothing collides."""
        allocator = IdentifierAllocator()

        node_id = await allocator.allocate(mock_tx, "Series", "Super Marisa World")

        assert node_id == "super-marisa-world"
        mock_tx.node_exists.assert_awaited_once_with("Series", "super-marisa-world")

    async def test_collisions_get_numeric_suffix(self, mock_tx):
        """Test taken candidates are skipped in order."""
        mock_tx.node_exists = AsyncMock(side_effect=[True, True, False])
        allocator = IdentifierAllocator()

        node_id = await allocator.allocate(mock_tx, "Video", "Super Marisa World")

        assert node_id == "super-marisa-world2"
        tried = [call.args[1] for call in mock_tx.node_exists.await_args_list]
        assert tried == ["super-marisa-world", "super-marisa-world1", "super-marisa-world2"]

    async def test_exhaustion_raises(self, mock_tx):
        """Test allocation fails after max_attempts candidates."""
        mock_tx.node_exists = AsyncMock(return_value=True)
        allocator = IdentifierAllocator(max_attempts=3)

        with pytest.raises(IdentifierAllocationError) as exc_info:
            await allocator.allocate(mock_tx, "Channel", "raocow")

        assert exc_info.value.attempts == 3
        assert exc_info.value.label == "Channel"
        assert exc_info.value.base_name == "raocow"
        assert mock_tx.node_exists.await_count == 3

    async def test_suffixed_ids_stay_within_max_length(self, mock_tx):
        """Test suffixed candidates never exceed max_length."""
        mock_tx.node_exists = AsyncMock(side_effect=[True] * 10 + [False])
        allocator = IdentifierAllocator(max_length=8)

        node_id = await allocator.allocate(mock_tx, "Video", "abcdefghijkl")

        assert node_id == "abcdef10"
        assert len(node_id) == 8

    async def test_suffix_overflow_ends_allocation(self, mock_tx):
        """Test allocation stops once the suffix digits no longer fit in max_length."""
        mock_tx.node_exists = AsyncMock(return_value=True)
        allocator = IdentifierAllocator(max_length=1, max_attempts=20)

        with pytest.raises(IdentifierAllocationError) as exc_info:
            await allocator.allocate(mock_tx, "Series", "a")

        tried = [call.args[1] for call in mock_tx.node_exists.await_args_list]
        assert tried == ["a", "1", "2", "3", "4", "5", "6", "7", "8", "9"]
        assert exc_info.value.attempts == 10

    async def test_invalid_max_length(self):
        """Test max_length outside 1..64 is rejected."""
        with pytest.raises(ValueError):
            IdentifierAllocator(max_length=0)
        with pytest.raises(ValueError):
            IdentifierAllocator(max_length=65)

    async def test_invalid_max_attempts(self):
        """Test max_attempts below 1 is rejected."""
        with pytest.raises(ValueError):
            IdentifierAllocator(max_attempts=0)

    async def test_from_config(self):
        """Test allocator settings come from IdentifierConfig."""
        allocator = IdentifierAllocator.from_config(
            IdentifierConfig(max_length=32, max_attempts=10)
        )
        assert allocator.max_length == 32
        assert allocator.max_attempts == 10

    async def test_allocation_sees_nodes_in_store(self, graph_store: SQLiteGraphStore):
        """Test the allocator checks the real store inside a write transaction."""
        allocator = IdentifierAllocator()

        async with graph_store.write_transaction() as tx:
            await tx.create_node("Series", "super-marisa-world", {"name": "super marisa world"})

        async with graph_store.write_transaction() as tx:
            node_id = await allocator.allocate(tx, "Series", "Super Marisa World")
            # Ids are unique per label only
            video_id = await allocator.allocate(tx, "Video", "Super Marisa World")

        assert node_id == "super-marisa-world1"
        assert video_id == "super-marisa-world"
