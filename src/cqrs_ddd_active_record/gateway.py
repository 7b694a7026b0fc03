"""BsonCollection[T] — per-entity-type CRUD gateway over one collection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .entity import BsonEntity, collection_name_for
from .query import build_filter, build_sort
from .serialization import DOC_ID, EntityMapper
from .state import EntityState, mark
from .stream import EntityStream

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Mapping

    from bson import ObjectId

    from .connection import MongoHost
    from .query import Filter, Sort

T = TypeVar("T", bound=BsonEntity)

logger = logging.getLogger("cqrs_ddd.active_record.gateway")


class BsonCollection(Generic[T]):
    """CRUD access point for one entity type.

    The collection handle is requested from the host on every call, so
    operations issued before the host is connected wait (bounded) and
    operations issued after it stops fail with ``NotConnectedError``.

    Write outcomes the server acknowledges without effect (a replace that
    matched nothing, an unacknowledged delete) are reported through the
    return value, never raised. Driver errors such as ``DuplicateKeyError``
    propagate unchanged. All methods are coroutines and honour task
    cancellation.
    """

    def __init__(
        self,
        host: MongoHost,
        model_cls: type[T],
        *,
        name: str | None = None,
        mapper: EntityMapper[T] | None = None,
    ) -> None:
        self._host = host
        self._model_cls = model_cls
        self.name = name or collection_name_for(model_cls)
        self._mapper = mapper or EntityMapper(model_cls)

    @property
    def model_cls(self) -> type[T]:
        return self._model_cls

    async def _collection(self) -> Any:
        return await self._host.get_collection(self.name)

    def _ready(self, doc: Mapping[str, Any]) -> T:
        entity = self._mapper.from_doc(dict(doc))
        mark(entity, EntityState.READY)
        return entity

    # -- writes -------------------------------------------------------------

    async def insert(self, entity: T) -> None:
        """Insert ``entity`` and write the assigned id back to it."""
        coll = await self._collection()
        result = await coll.insert_one(self._mapper.to_doc(entity))
        entity.id = result.inserted_id

    async def insert_many(self, entities: Iterable[T]) -> None:
        """Insert a batch; partial failures surface as the driver reports them."""
        batch = list(entities)
        if not batch:
            return
        coll = await self._collection()
        result = await coll.insert_many(self._mapper.to_docs(batch))
        for entity, doc_id in zip(batch, result.inserted_ids):
            entity.id = doc_id

    async def insert_or_update(self, entity: T) -> bool:
        """Insert when ``entity.id`` is None, otherwise replace by id.

        Returns True on insert, or when the replace was acknowledged and
        modified a document. A replace matching no document returns False.
        """
        if entity.id is None:
            await self.insert(entity)
            return True
        return await self.update(entity)

    async def update(self, entity: T, filter: Filter = None) -> bool:  # noqa: A002
        """Replace the whole document, matched by id or by ``filter``."""
        entity_id = entity.id
        if filter is None and entity_id is None:
            return False
        criteria = {DOC_ID: entity_id} if filter is None else build_filter(filter)
        coll = await self._collection()
        result = await coll.replace_one(criteria, self._mapper.to_doc(entity))
        return bool(result.acknowledged and result.modified_count > 0)

    async def modify(self, entity_id: ObjectId, update: Mapping[str, Any]) -> bool:
        """Apply a partial update (``$set`` etc.) to the document with ``entity_id``.

        Success is acknowledgement only: setting a field to the value it
        already holds is still a successful write.
        """
        coll = await self._collection()
        result = await coll.update_one({DOC_ID: entity_id}, dict(update))
        return bool(result.acknowledged)

    async def delete(self, entity: T) -> bool:
        """Delete the document backing ``entity``."""
        entity_id = entity.id
        if entity_id is None:
            return False
        coll = await self._collection()
        result = await coll.delete_one({DOC_ID: entity_id})
        return bool(result.acknowledged)

    async def delete_one(self, filter: Filter) -> bool:  # noqa: A002
        """Delete the first document matching ``filter``."""
        coll = await self._collection()
        result = await coll.delete_one(build_filter(filter))
        return bool(result.acknowledged)

    async def delete_many(self, filter: Filter) -> int:  # noqa: A002
        """Delete every match; returns the count, or -1 if unacknowledged."""
        coll = await self._collection()
        result = await coll.delete_many(build_filter(filter))
        if result.acknowledged:
            return int(result.deleted_count)
        logger.warning("delete_many on %s was not acknowledged", self.name)
        return -1

    # -- reads --------------------------------------------------------------

    async def find_one(self, filter: Filter = None) -> T | None:  # noqa: A002
        """Return the first match stamped ``READY``, or None."""
        coll = await self._collection()
        doc = await coll.find_one(build_filter(filter))
        if doc is None:
            return None
        return self._ready(doc)

    def find_many(
        self,
        filter: Filter = None,  # noqa: A002
        *,
        sort: Sort = None,
        limit: int | None = None,
    ) -> EntityStream[T]:
        """Return a lazy single-pass stream of matches, each stamped ``READY``.

        The cursor is opened when iteration starts.
        """
        criteria = build_filter(filter)
        sort_list = build_sort(sort)

        async def source() -> AsyncIterator[T]:
            coll = await self._collection()
            options: dict[str, Any] = {}
            if sort_list:
                options["sort"] = sort_list
            if limit:
                options["limit"] = limit
            cursor = coll.find(criteria, **options)
            async for doc in cursor:
                yield self._ready(doc)

        return EntityStream(source)

    async def count(self, filter: Filter = None) -> int:  # noqa: A002
        """Count matching documents."""
        coll = await self._collection()
        return int(await coll.count_documents(build_filter(filter)))
