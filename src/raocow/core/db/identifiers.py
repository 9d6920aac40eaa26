"""Slug-based identifier allocation."""

from typing import Any

import structlog

from ...common.string_utils import DEFAULT_SLUG_LENGTH, slugify, with_suffix
from .exceptions import IdentifierAllocationError
from .store import GraphTransaction

logger = structlog.get_logger(__name__)


class IdentifierAllocator:
    """
    Turns a display name into an identifier that is free within a node label.

    Candidates are tried in order: "slug", "slug1", "slug2", ... Each one is
    checked inside the caller's write transaction, so the id returned is free
    for as long as that transaction stays open.

    Example:
        >>> allocator = IdentifierAllocator()
        >>> async with store.write_transaction() as tx:
        ...     video_id = await allocator.allocate(tx, "Video", "Super Marisa World 1")
        ...     await tx.create_node("Video", video_id, {...})
    """

    DEFAULT_MAX_ATTEMPTS = 1000

    def __init__(
        self,
        max_length: int = DEFAULT_SLUG_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """
        Initialize allocator.

        Args:
            max_length: Maximum identifier length, numeric suffix included
            max_attempts: Number of candidates tried before giving up
        """
        if not 1 <= max_length <= DEFAULT_SLUG_LENGTH:
            raise ValueError(
                f"max_length must be between 1 and {DEFAULT_SLUG_LENGTH}, got {max_length}"
            )
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_length = max_length
        self.max_attempts = max_attempts

    @classmethod
    def from_config(cls, config: Any) -> "IdentifierAllocator":
        """Create allocator from IdentifierConfig."""
        return cls(max_length=config.max_length, max_attempts=config.max_attempts)

    async def allocate(
        self,
        tx: GraphTransaction,
        label: str,
        base_name: str,
    ) -> str:
        """
        Find a free identifier for a new node.

        Args:
            tx: Open write transaction the node will be created in
            label: Node label (ids are unique per label)
            base_name: Display name the id is derived from

        Returns:
            Identifier not used by any node with this label

        Raises:
            IdentifierAllocationError: If every candidate up to max_attempts is taken,
                or the suffixes no longer fit in max_length
            DatabaseError: If an existence check fails
        """
        candidate = slugify(base_name, self.max_length)

        attempts = 0
        for suffix in range(self.max_attempts):
            try:
                attempt_id = with_suffix(candidate, suffix, self.max_length)
            except ValueError:
                break
            attempts += 1
            if not await tx.node_exists(label, attempt_id):
                logger.debug(
                    "identifier_allocated",
                    label=label,
                    node_id=attempt_id,
                    collisions=suffix,
                )
                return attempt_id

        logger.warning(
            "identifier_allocation_exhausted",
            label=label,
            base_name=base_name,
            attempts=attempts,
        )
        raise IdentifierAllocationError(
            f"No free {label} id for {base_name!r} after {attempts} attempts",
            label=label,
            base_name=base_name,
            attempts=attempts,
        )
