"""
EntityOperations — active-record style operations over registered gateways.

Every operation resolves the gateway for the entity type through the
:class:`GatewayRegistry` and applies the lifecycle rules of
:mod:`cqrs_ddd_active_record.state`:

- ``create`` stamps ``READY`` after the first write;
- everything read back is stamped ``READY``;
- ``delete`` stamps ``DELETED`` and is a no-op the second time;
- ``save`` writes exactly one field with ``$set`` and is silently skipped
  unless the entity is ``READY``.

Usage::

    example = await ops.create_if_absent(
        ExampleModel, {"name": "Example"}, lambda e: setattr(e, "name", "Example")
    )
    await ops.save(example, fields(ExampleModel).name, "Example2")
    await ops.require(ExampleModel, {"name": "Example2"})
"""

from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, TypeVar

from .entity import BsonEntity
from .exceptions import EntityNotFoundError
from .fields import resolve_field
from .serialization import encode_value
from .state import EntityState, can_save, is_detached, mark

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .fields import FieldRef
    from .gateway import BsonCollection
    from .query import Filter, Sort
    from .registry import GatewayRegistry
    from .stream import EntityStream

    Initializer = Callable[[Any], "Awaitable[None] | None"]

T = TypeVar("T", bound=BsonEntity)

logger = logging.getLogger("cqrs_ddd.active_record.operations")


class EntityOperations:
    """Async entity operations, generic over the entity type passed in."""

    def __init__(self, registry: GatewayRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> GatewayRegistry:
        return self._registry

    def gateway(self, model: type[T]) -> BsonCollection[T]:
        return self._registry.gateway_for(model)

    async def create(
        self,
        model: type[T],
        initializer: Initializer | None = None,
        **values: Any,
    ) -> T:
        """Build, initialise and insert a new entity.

        ``initializer`` (sync or async) runs on an unvalidated draft before the
        first write, so it may supply required fields and the inserted
        document already carries whatever it sets. The draft is validated
        afterwards; a pydantic ``ValidationError`` means nothing was written.
        """
        draft = model.model_construct(**values)
        draft.created_at = datetime.now(timezone.utc)
        if initializer is not None:
            result = initializer(draft)
            if inspect.isawaitable(result):
                await result
        entity = model.model_validate(dict(draft.__dict__))
        await self.gateway(model).insert_or_update(entity)
        mark(entity, EntityState.READY)
        return entity

    async def get(self, model: type[T], filter: Filter) -> T | None:  # noqa: A002
        return await self.gateway(model).find_one(filter)

    async def get_first(self, model: type[T]) -> T | None:
        return await self.gateway(model).find_one(None)

    def get_many(
        self,
        model: type[T],
        filter: Filter = None,  # noqa: A002
        *,
        sort: Sort = None,
        limit: int | None = None,
    ) -> EntityStream[T]:
        """Lazy single-pass stream of matches; see :class:`EntityStream`."""
        return self.gateway(model).find_many(filter, sort=sort, limit=limit)

    def get_all(self, model: type[T], *, sort: Sort = None) -> EntityStream[T]:
        return self.gateway(model).find_many(None, sort=sort)

    async def delete_many(self, model: type[T], filter: Filter) -> int:  # noqa: A002
        """Delete all matches; -1 when the server did not acknowledge."""
        return await self.gateway(model).delete_many(filter)

    async def get_count(self, model: type[T], filter: Filter = None) -> int:  # noqa: A002
        return await self.gateway(model).count(filter)

    async def save(self, entity: T, field: FieldRef | str, value: Any) -> bool:
        """Assign ``value`` to one field and persist only that field.

        The attribute is always updated on the instance. The write is skipped
        (returning False) when the entity is ``STATELESS``, ``DELETED`` or
        ``DESERIALIZING``. Other fields of the stored document are left
        untouched, so concurrent saves of different fields do not clobber
        each other.
        """
        ref = resolve_field(type(entity), field)
        setattr(entity, ref.name, value)
        if not can_save(entity):
            logger.debug(
                "Skipping save of %s.%s: entity is %s",
                type(entity).__name__,
                ref.name,
                entity.state.value,
            )
            return False
        return await self.gateway(type(entity)).modify(
            entity.id, {"$set": {ref.path: encode_value(value)}}
        )

    async def update(self, entity: T) -> bool:
        """Write the whole entity (insert when new, replace otherwise).

        Skipped for ``STATELESS`` and ``DELETED`` entities.
        """
        if is_detached(entity):
            return False
        written = await self.gateway(type(entity)).insert_or_update(entity)
        if written:
            mark(entity, EntityState.READY)
        return written

    async def delete(self, entity: T) -> bool:
        """Delete the entity's document once; later calls return False."""
        if is_detached(entity):
            return False
        mark(entity, EntityState.DELETED)
        return await self.gateway(type(entity)).delete(entity)

    async def create_if_absent(
        self,
        model: type[T],
        filter: Filter,  # noqa: A002
        initializer: Initializer | None = None,
        **values: Any,
    ) -> T:
        """Return the first match, or create one with ``initializer``."""
        existing = await self.get(model, filter)
        if existing is not None:
            return existing
        return await self.create(model, initializer, **values)

    async def require(self, model: type[T], filter: Filter) -> T:  # noqa: A002
        """Return the first match or raise :class:`EntityNotFoundError`."""
        return require_entity(await self.get(model, filter), model, filter)


def require_entity(entity: T | None, model: type[T], criteria: Filter = None) -> T:
    """Return ``entity`` or raise :class:`EntityNotFoundError` naming ``model``."""
    if entity is None:
        raise EntityNotFoundError(model.__name__, criteria)
    return entity
