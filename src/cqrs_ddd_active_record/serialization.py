"""EntityMapper — pydantic entity <-> BSON document with type preservation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Generic, TypeVar

from bson.decimal128 import Decimal128
from pydantic import BaseModel, ValidationError

from .exceptions import MongoPersistenceError
from .state import EntityState

T_Entity = TypeVar("T_Entity", bound=BaseModel)

ID_FIELD = "id"
DOC_ID = "_id"


def encode_value(value: Any) -> Any:
    """Convert a Python value to a BSON-ready one (Decimal -> Decimal128)."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="python", by_alias=True)
    if isinstance(value, Decimal):
        return Decimal128(str(value))
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    """Convert BSON types back to Python types (Decimal128 -> Decimal)."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, dict):
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


class EntityMapper(Generic[T_Entity]):
    """
    Entity <-> document mapper for one entity type.

    Uses model_dump(mode='python', by_alias=True) so PyMongo converts
    datetime/UUID/bytes natively; Decimal is stored as Decimal128. The ``id``
    field maps to ``_id`` and is left out while it is ``None`` so the driver
    assigns one on insert. Private attributes (the lifecycle state) are never
    dumped.
    """

    def __init__(self, entity_cls: type[T_Entity]) -> None:
        self.entity_cls = entity_cls

    def to_doc(self, entity: T_Entity) -> dict[str, Any]:
        """Convert a pydantic entity to a MongoDB document."""
        data = entity.model_dump(mode="python", by_alias=True)
        doc_id = data.pop(ID_FIELD, None)
        doc = encode_value(data)
        if doc_id is not None:
            doc[DOC_ID] = doc_id
        return doc

    def from_doc(self, doc: dict[str, Any]) -> T_Entity:
        """Convert a MongoDB document to an entity stamped ``DESERIALIZING``.

        Callers stamp the final state before handing the entity out.
        """
        data = decode_value(dict(doc))
        if DOC_ID in data:
            data[ID_FIELD] = data.pop(DOC_ID)
        try:
            entity = self.entity_cls.model_validate(data)
        except ValidationError as e:
            raise MongoPersistenceError(
                f"Document {doc.get(DOC_ID)!r} is not a valid "
                f"{self.entity_cls.__name__}: {e}"
            ) from e
        entity.state = EntityState.DESERIALIZING  # type: ignore[attr-defined]
        return entity

    def to_docs(self, entities: list[T_Entity]) -> list[dict[str, Any]]:
        """Convert multiple entities to documents."""
        return [self.to_doc(e) for e in entities]
