"""CONTAINS edges between containers (Channel, Series) and Videos."""

from typing import Any, Dict, List, Optional, Type

import structlog
from pydantic import ValidationError

from ..results import ErrorKind, OperationResult
from .exceptions import DatabaseError
from .models import Channel, Entity, Series, Video
from .store import CHANNEL, CONTAINS, SERIES, VIDEO, GraphStore

logger = structlog.get_logger(__name__)

CONTAINER_MODELS = {CHANNEL: Channel, SERIES: Series}


class VideoMembership:
    """
    Attach, detach and list the Videos held by one kind of container.

    Edges are idempotent: a container holds a given video at most once, and
    adding an existing edge or removing a missing one both succeed.

    Example:
        >>> series_videos = VideoMembership(store, "Series")
        >>> await series_videos.add_video("super-marisa-world", "super-marisa-world-1")
        >>> result = await series_videos.list_videos("super-marisa-world")
        >>> [video.title for video in result.value]
        ['Super marisa world 1']
    """

    def __init__(self, store: GraphStore, container_label: str):
        """
        Initialize relationship manager.

        Args:
            store: Graph store transactions are opened on
            container_label: "Channel" or "Series"
        """
        if container_label not in CONTAINER_MODELS:
            raise ValueError(
                f"Invalid container label: {container_label!r}. "
                f"Must be one of {sorted(CONTAINER_MODELS)}"
            )
        self.store = store
        self.container_label = container_label
        self._container_model = CONTAINER_MODELS[container_label]

    def _check_ids(self, container_id: Optional[str], video_id: Optional[str]) -> Optional[OperationResult]:
        if container_id is None:
            return OperationResult.failure(
                ErrorKind.VALIDATION, f"{self.container_label} id is required"
            )
        if video_id is None:
            return OperationResult.failure(ErrorKind.VALIDATION, "Video id is required")
        return None

    def _decode_rows(
        self, model: Type[Entity], rows: List[Dict[str, Any]]
    ) -> OperationResult[List[Any]]:
        try:
            return OperationResult.success([model.from_properties(row) for row in rows])
        except ValidationError as e:
            # Stored properties written by another client may not match the model
            logger.error(
                "membership_decode_failed",
                container=self.container_label,
                label=model.LABEL,
                error=str(e),
            )
            return OperationResult.failure(
                ErrorKind.STORE, f"Malformed {model.LABEL} node in store: {e}"
            )

    async def add_video(
        self, container_id: Optional[str], video_id: Optional[str]
    ) -> OperationResult[None]:
        """
        Make the container hold the video.

        Args:
            container_id: Container id
            video_id: Video id

        Returns:
            Result; NOT_FOUND if the container or the video does not exist
        """
        invalid = self._check_ids(container_id, video_id)
        if invalid is not None:
            return invalid

        try:
            async with self.store.write_transaction() as tx:
                linked = await tx.merge_edge(
                    CONTAINS, self.container_label, container_id, VIDEO, video_id
                )
        except DatabaseError as e:
            logger.error(
                "membership_video_add_failed",
                container=self.container_label,
                container_id=container_id,
                video_id=video_id,
                error=str(e),
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        if not linked:
            return OperationResult.failure(
                ErrorKind.NOT_FOUND,
                f"{self.container_label} {container_id!r} or Video {video_id!r} not found",
            )

        logger.debug(
            "membership_video_added",
            container=self.container_label,
            container_id=container_id,
            video_id=video_id,
        )
        return OperationResult.success()

    async def remove_video(
        self, container_id: Optional[str], video_id: Optional[str]
    ) -> OperationResult[None]:
        """Remove the edge if present; a missing edge or node is not an error."""
        invalid = self._check_ids(container_id, video_id)
        if invalid is not None:
            return invalid

        try:
            async with self.store.write_transaction() as tx:
                await tx.delete_edge(
                    CONTAINS, self.container_label, container_id, VIDEO, video_id
                )
        except DatabaseError as e:
            logger.error(
                "membership_video_remove_failed",
                container=self.container_label,
                container_id=container_id,
                video_id=video_id,
                error=str(e),
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        logger.debug(
            "membership_video_removed",
            container=self.container_label,
            container_id=container_id,
            video_id=video_id,
        )
        return OperationResult.success()

    async def list_videos(self, container_id: Optional[str]) -> OperationResult[List[Video]]:
        """
        List the videos the container holds, in the order they were added.

        Returns:
            Result with the videos; NOT_FOUND if the container does not exist,
            STORE if the store fails or holds a malformed video
        """
        if container_id is None:
            return OperationResult.failure(
                ErrorKind.VALIDATION, f"{self.container_label} id is required"
            )

        try:
            async with self.store.read_transaction() as tx:
                if not await tx.node_exists(self.container_label, container_id):
                    return OperationResult.failure(
                        ErrorKind.NOT_FOUND,
                        f"{self.container_label} not found: {container_id}",
                    )
                rows = await tx.list_targets(CONTAINS, self.container_label, container_id, VIDEO)
        except DatabaseError as e:
            logger.error(
                "membership_video_list_failed",
                container=self.container_label,
                container_id=container_id,
                error=str(e),
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        return self._decode_rows(Video, rows)

    async def list_containers(self, video_id: Optional[str]) -> OperationResult[List[Entity]]:
        """
        List the containers of this kind holding the video.

        Returns:
            Result with Channel or Series entities; NOT_FOUND if the video does not exist
        """
        if video_id is None:
            return OperationResult.failure(ErrorKind.VALIDATION, "Video id is required")

        try:
            async with self.store.read_transaction() as tx:
                if not await tx.node_exists(VIDEO, video_id):
                    return OperationResult.failure(
                        ErrorKind.NOT_FOUND, f"Video not found: {video_id}"
                    )
                rows = await tx.list_sources(CONTAINS, VIDEO, video_id, self.container_label)
        except DatabaseError as e:
            logger.error(
                "membership_container_list_failed",
                container=self.container_label,
                video_id=video_id,
                error=str(e),
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        return self._decode_rows(self._container_model, rows)
