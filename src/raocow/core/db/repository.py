"""Entity repositories for Channel, Series and Video nodes."""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Generic, List, Optional, Type, TypeVar

import structlog
from pydantic import ValidationError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from ..results import ErrorKind, OperationResult
from .exceptions import DatabaseError, DuplicateRecordError, IdentifierAllocationError
from .identifiers import IdentifierAllocator
from .models import Channel, Entity, Series, Video
from .store import GraphStore

logger = structlog.get_logger(__name__)

E = TypeVar("E", bound=Entity)


class EntityRepository(Generic[E]):
    """
    CRUD operations for one node label.

    Store errors never escape: every method returns an OperationResult whose
    error tells validation failures, missing nodes, store failures and id
    allocation failures apart. Every store access runs in its own transaction.
    """

    model: ClassVar[Type[Entity]]

    DEFAULT_CONFLICT_RETRIES = 5

    def __init__(
        self,
        store: GraphStore,
        allocator: Optional[IdentifierAllocator] = None,
        conflict_retries: int = DEFAULT_CONFLICT_RETRIES,
    ):
        """
        Initialize repository.

        Args:
            store: Graph store transactions are opened on
            allocator: Identifier allocator for new nodes (default settings if omitted)
            conflict_retries: Times a create is re-run after losing an id to a
                concurrent writer
        """
        self.store = store
        self.allocator = allocator or IdentifierAllocator()
        self.conflict_retries = conflict_retries

    @property
    def label(self) -> str:
        return self.model.LABEL

    def _decode(self, rows: List[Dict[str, Any]]) -> OperationResult[List[E]]:
        try:
            return OperationResult.success([self.model.from_properties(row) for row in rows])
        except ValidationError as e:
            # Stored properties written by another client may not match the model
            logger.error("entity_decode_failed", label=self.label, error=str(e))
            return OperationResult.failure(
                ErrorKind.STORE, f"Malformed {self.label} node in store: {e}"
            )

    # ==================== Read Methods ====================

    async def list_all(self) -> OperationResult[List[E]]:
        """
        List every node of this kind in store-native order.

        Returns:
            Result whose value is the list of entities; STORE if the store
            fails or holds a malformed node
        """
        try:
            async with self.store.read_transaction() as tx:
                rows = await tx.list_nodes(self.label)
        except DatabaseError as e:
            logger.error("entity_list_failed", label=self.label, error=str(e))
            return OperationResult.failure(ErrorKind.STORE, str(e))

        return self._decode(rows)

    async def get_by_id(self, entity_id: str) -> OperationResult[E]:
        """
        Get a single entity by exact id.

        Returns:
            Result with the entity, or ErrorKind.NOT_FOUND
        """
        try:
            async with self.store.read_transaction() as tx:
                row = await tx.get_node(self.label, entity_id)
        except DatabaseError as e:
            logger.error(
                "entity_get_failed", label=self.label, entity_id=entity_id, error=str(e)
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        if row is None:
            return OperationResult.failure(
                ErrorKind.NOT_FOUND, f"{self.label} not found: {entity_id}"
            )
        decoded = self._decode([row])
        if not decoded:
            return OperationResult.failure(decoded.error, decoded.message)
        return OperationResult.success(decoded.value[0])

    # ==================== Write Methods ====================

    async def save(self, entity: E) -> OperationResult[E]:
        """
        Create or update an entity.

        Without an id a new node is created under a freshly allocated id,
        which is then set on the entity. With an id, only its non-null fields
        are written to the existing node; the id itself never changes.
        The "updated" timestamp is refreshed for kinds that have one.

        Args:
            entity: Entity to persist

        Returns:
            Result with the saved entity. Failures: VALIDATION (required field
            missing, nothing written), NOT_FOUND (update of a deleted node),
            ALLOCATION (no free id), STORE (store failure, nothing written)
        """
        missing = entity.missing_fields()
        if missing:
            logger.info("entity_validation_failed", label=self.label, missing_fields=missing)
            return OperationResult.failure(
                ErrorKind.VALIDATION,
                f"{self.label} is missing required fields: {', '.join(missing)}",
            )

        properties = entity.to_properties()
        now = datetime.now(timezone.utc)
        if "updated" in type(entity).model_fields:
            properties["updated"] = now

        if entity.id is None:
            result = await self._create(entity, properties)
        else:
            result = await self._update(entity, properties)

        if result and "updated" in properties:
            entity.updated = now
        return result

    async def _create(self, entity: E, properties: Dict[str, Any]) -> OperationResult[E]:
        base_name = entity.id_source()

        def log_conflict(retry_state: RetryCallState) -> None:
            logger.warning(
                "entity_id_conflict_retry",
                label=self.label,
                base_name=base_name,
                attempt=retry_state.attempt_number,
            )

        # A concurrent writer can still claim the checked id on stores without
        # serializable check+write; the whole transaction is re-run then
        @retry(
            stop=stop_after_attempt(self.conflict_retries),
            wait=wait_random(min=0, max=0.05),
            retry=retry_if_exception_type(DuplicateRecordError),
            before_sleep=log_conflict,
            reraise=True,
        )
        async def create_once() -> str:
            async with self.store.write_transaction() as tx:
                node_id = await self.allocator.allocate(tx, self.label, base_name)
                await tx.create_node(self.label, node_id, properties)
            return node_id

        try:
            node_id = await create_once()
        except (IdentifierAllocationError, DuplicateRecordError) as e:
            logger.error(
                "entity_id_allocation_failed",
                label=self.label,
                base_name=base_name,
                error=str(e),
            )
            return OperationResult.failure(ErrorKind.ALLOCATION, str(e))
        except DatabaseError as e:
            logger.error(
                "entity_creation_failed", label=self.label, base_name=base_name, error=str(e)
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        entity.id = node_id
        logger.info("entity_created", label=self.label, entity_id=node_id)
        return OperationResult.success(entity)

    async def _update(self, entity: E, properties: Dict[str, Any]) -> OperationResult[E]:
        try:
            async with self.store.write_transaction() as tx:
                matched = await tx.update_node(self.label, entity.id, properties)
        except DatabaseError as e:
            logger.error(
                "entity_update_failed", label=self.label, entity_id=entity.id, error=str(e)
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        if not matched:
            return OperationResult.failure(
                ErrorKind.NOT_FOUND, f"{self.label} not found: {entity.id}"
            )

        logger.info(
            "entity_updated",
            label=self.label,
            entity_id=entity.id,
            fields=sorted(properties),
        )
        return OperationResult.success(entity)

    async def delete(self, entity: E) -> OperationResult[None]:
        """
        Delete the entity's node together with every edge touching it.

        Deleting an id that has no node is a success. On success the
        entity's id is cleared.

        Returns:
            Result; VALIDATION if the entity has no id, STORE on store failure
        """
        if entity.id is None:
            return OperationResult.failure(
                ErrorKind.VALIDATION, f"Cannot delete a {self.label} without an id"
            )

        try:
            async with self.store.write_transaction() as tx:
                deleted = await tx.delete_node(self.label, entity.id)
        except DatabaseError as e:
            logger.error(
                "entity_delete_failed", label=self.label, entity_id=entity.id, error=str(e)
            )
            return OperationResult.failure(ErrorKind.STORE, str(e))

        logger.info("entity_deleted", label=self.label, entity_id=entity.id, existed=deleted)
        entity.id = None
        return OperationResult.success()

    # ==================== Request-Level Helpers ====================

    async def create(self, entity: E) -> OperationResult[E]:
        """Save a new entity; an entity that already carries an id is rejected."""
        if entity.id is not None:
            return OperationResult.failure(
                ErrorKind.VALIDATION, f"A new {self.label} must not have an id"
            )
        return await self.save(entity)

    async def update(self, entity_id: str, changes: E) -> OperationResult[E]:
        """
        Overlay the non-null fields of changes onto the stored entity and save it.

        Args:
            entity_id: Id of the entity to update
            changes: Partial entity; its id, if set, must equal entity_id

        Returns:
            Result with the updated entity; VALIDATION on id mismatch,
            NOT_FOUND if there is no such entity
        """
        if changes.id is not None and changes.id != entity_id:
            return OperationResult.failure(
                ErrorKind.VALIDATION,
                f"Id mismatch: {changes.id!r} does not match {entity_id!r}",
            )

        current = await self.get_by_id(entity_id)
        if not current:
            return current

        entity = current.value
        for field, value in changes.model_dump(exclude={"id"}, exclude_none=True).items():
            setattr(entity, field, value)

        return await self.save(entity)

    async def delete_by_id(self, entity_id: str) -> OperationResult[None]:
        """Delete an entity by id; NOT_FOUND if there is no such entity."""
        current = await self.get_by_id(entity_id)
        if not current:
            return OperationResult.failure(current.error, current.message)
        return await self.delete(current.value)


class ChannelRepository(EntityRepository[Channel]):
    """Channels; required fields youtube_id and name, id derived from name."""

    model = Channel


class SeriesRepository(EntityRepository[Series]):
    """Series; required field name, id derived from name."""

    model = Series


class VideoRepository(EntityRepository[Video]):
    """Videos; required fields title, published and youtube_id, id derived from title."""

    model = Video
