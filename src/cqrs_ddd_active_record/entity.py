"""Entity capability and the pydantic base that implements it."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Protocol, TypeVar, runtime_checkable

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, PrivateAttr

from .state import EntityState

MODEL_SUFFIX = "Model"


@runtime_checkable
class Persistable(Protocol):
    """What the persistence layer needs from an entity.

    ``id`` is ``None`` until the entity has been inserted. ``state`` is
    transient and must never reach the stored document.
    """

    id: ObjectId | None
    created_at: datetime | None
    state: EntityState


T_Entity = TypeVar("T_Entity", bound=BaseModel)


class BsonEntity(BaseModel):
    """Base model for documents managed by the active-record operations.

    Usage::

        class ExampleModel(BsonEntity):
            name: str = ""

        example = await ops.create(ExampleModel, name="Example")
        await ops.save(example, fields(ExampleModel).name, "Example2")
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    __collection__: ClassVar[str | None] = None

    id: ObjectId | None = None
    created_at: datetime | None = None
    _state: EntityState = PrivateAttr(default=EntityState.DESERIALIZING)

    @property
    def state(self) -> EntityState:
        return self._state

    @state.setter
    def state(self, value: EntityState) -> None:
        self._state = value

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @classmethod
    def stateless(cls: type[T_Entity]) -> T_Entity:
        """Return a detached placeholder that will never be persisted."""
        return make_stateless(cls)


def make_stateless(model_cls: type[T_Entity]) -> T_Entity:
    """Build ``model_cls`` without validation and stamp it ``STATELESS``.

    Required fields are left unset; the instance only stands in for a
    missing value.
    """
    entity = model_cls.model_construct()
    entity.state = EntityState.STATELESS  # type: ignore[attr-defined]
    return entity


def collection_name_for(model_cls: type[Any]) -> str:
    """Collection name for ``model_cls``.

    ``__collection__`` wins when set; otherwise the class name with a trailing
    ``Model`` removed (``ExampleModel`` -> ``Example``).
    """
    explicit = getattr(model_cls, "__collection__", None)
    if explicit:
        return str(explicit)
    name = model_cls.__name__
    stripped = name.removesuffix(MODEL_SUFFIX)
    return stripped or name
