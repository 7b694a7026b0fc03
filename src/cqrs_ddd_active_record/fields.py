"""Field selectors used by atomic single-field saves."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidFieldError
from .serialization import ID_FIELD

if TYPE_CHECKING:
    from pydantic import BaseModel

_RESERVED = frozenset({ID_FIELD, "created_at", "state"})


@dataclass(frozen=True)
class FieldRef:
    """A validated reference to one persisted field of an entity type.

    ``name`` is the attribute name on the model; ``path`` is the key the
    field is stored under (the alias when one is declared).
    """

    model: type[BaseModel]
    name: str
    path: str

    def __str__(self) -> str:
        return self.path


def field_ref(model: type[BaseModel], name: str) -> FieldRef:
    """Resolve ``name`` on ``model`` to a :class:`FieldRef`.

    Raises:
        InvalidFieldError: ``name`` is not a model field, or is ``id``,
            ``created_at`` or ``state``, none of which a field save may write.
    """
    if name in _RESERVED:
        raise InvalidFieldError(f"{model.__name__}.{name} cannot be saved by field")
    info = model.model_fields.get(name)
    if info is None:
        raise InvalidFieldError(f"{model.__name__} has no field {name!r}")
    return FieldRef(model=model, name=name, path=info.alias or name)


class _FieldAccessor:
    __slots__ = ("_model",)

    def __init__(self, model: type[BaseModel]) -> None:
        self._model = model

    def __getattr__(self, name: str) -> FieldRef:
        if name.startswith("__"):
            raise AttributeError(name)
        return field_ref(self._model, name)

    def __dir__(self) -> list[str]:
        return [n for n in self._model.model_fields if n not in _RESERVED]


def fields(model: type[BaseModel]) -> Any:
    """Attribute-style selectors for ``model``: ``fields(ExampleModel).name``."""
    return _FieldAccessor(model)


def resolve_field(model: type[BaseModel], selector: FieldRef | str) -> FieldRef:
    """Accept a :class:`FieldRef` or an attribute name and validate it."""
    if isinstance(selector, FieldRef):
        if not issubclass(model, selector.model):
            raise InvalidFieldError(
                f"{selector.model.__name__}.{selector.name} does not belong to "
                f"{model.__name__}"
            )
        return selector
    return field_ref(model, selector)
