"""Graph store contract shared by the SQLite and Neo4j backends.

A store hands out one scoped transaction per operation. Repositories only
talk to GraphTransaction primitives, so the backend can be swapped (or
mocked in tests) without touching them.

Node labels: Channel, Series, Video
Edge types:  CONTAINS (Channel -> Video, Series -> Video)
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Dict, List, Optional

CHANNEL = "Channel"
SERIES = "Series"
VIDEO = "Video"
CONTAINS = "CONTAINS"

NODE_LABELS = frozenset({CHANNEL, SERIES, VIDEO})
EDGE_TYPES = frozenset({CONTAINS})

Properties = Dict[str, Any]


def check_label(label: str) -> str:
    """Return label if it is a known node label, else raise ValueError."""
    if label not in NODE_LABELS:
        raise ValueError(f"Unknown node label: {label!r}. Must be one of {sorted(NODE_LABELS)}")
    return label


def check_edge_type(rel: str) -> str:
    """Return rel if it is a known edge type, else raise ValueError."""
    if rel not in EDGE_TYPES:
        raise ValueError(f"Unknown edge type: {rel!r}. Must be one of {sorted(EDGE_TYPES)}")
    return rel


class GraphTransaction(ABC):
    """Primitive graph operations executed inside one store transaction.

    Node properties always include "id". Missing properties are simply
    absent from the returned dicts.
    """

    @abstractmethod
    async def node_exists(self, label: str, node_id: str) -> bool:
        """Check for a node with the given label and id."""

    @abstractmethod
    async def get_node(self, label: str, node_id: str) -> Optional[Properties]:
        """Return node properties, or None if there is no such node."""

    @abstractmethod
    async def list_nodes(self, label: str) -> List[Properties]:
        """Return all nodes with the label in store-native order."""

    @abstractmethod
    async def create_node(self, label: str, node_id: str, properties: Properties) -> None:
        """
        Create a node.

        Raises:
            DuplicateRecordError: If a node with this label and id exists
        """

    @abstractmethod
    async def update_node(self, label: str, node_id: str, properties: Properties) -> bool:
        """Merge properties into an existing node. Returns False if no node matched."""

    @abstractmethod
    async def delete_node(self, label: str, node_id: str) -> bool:
        """Delete a node and every edge touching it. Returns False if no node matched."""

    @abstractmethod
    async def merge_edge(
        self, rel: str, from_label: str, from_id: str, to_label: str, to_id: str
    ) -> bool:
        """Create the edge unless it exists. Returns False if either node is missing."""

    @abstractmethod
    async def delete_edge(
        self, rel: str, from_label: str, from_id: str, to_label: str, to_id: str
    ) -> None:
        """Delete the edge if present."""

    @abstractmethod
    async def list_targets(
        self, rel: str, from_label: str, from_id: str, to_label: str
    ) -> List[Properties]:
        """Return nodes reached by outgoing edges from the given node."""

    @abstractmethod
    async def list_sources(
        self, rel: str, to_label: str, to_id: str, from_label: str
    ) -> List[Properties]:
        """Return nodes with an edge pointing at the given node."""


class GraphStore(ABC):
    """Session factory for a graph database."""

    @abstractmethod
    async def connect(self) -> None:
        """Prepare the backend (open driver, verify connectivity)."""

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def ensure_schema(self) -> None:
        """Create tables/constraints required by the store. Idempotent."""

    @abstractmethod
    def read_transaction(self) -> AbstractAsyncContextManager[GraphTransaction]:
        """Open a scoped read transaction."""

    @abstractmethod
    def write_transaction(self) -> AbstractAsyncContextManager[GraphTransaction]:
        """
        Open a scoped write transaction.

        Commits when the block exits normally, rolls back and re-raises on error.
        """

    async def __aenter__(self) -> "GraphStore":
        await self.connect()
        await self.ensure_schema()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
