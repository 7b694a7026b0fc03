"""Entity lifecycle states and the guards built on them."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entity import Persistable


class EntityState(str, Enum):
    """Lifecycle state carried by every entity instance.

    - ``DESERIALIZING``: being built (from a document, or by ``create`` before
      its first write). Never observed on values returned by the store.
    - ``READY``: backed by a live document.
    - ``DELETED``: its document has been (or is being) deleted.
    - ``STATELESS``: a detached placeholder that is never persisted.
    """

    DESERIALIZING = "deserializing"
    READY = "ready"
    DELETED = "deleted"
    STATELESS = "stateless"


UNBACKED_STATES = frozenset(
    {EntityState.STATELESS, EntityState.DELETED, EntityState.DESERIALIZING}
)


def mark(entity: Persistable, state: EntityState) -> None:
    """Stamp ``entity`` with ``state``."""
    entity.state = state


def can_save(entity: Persistable) -> bool:
    """Return True when a single-field save may write to the store."""
    return entity.state not in UNBACKED_STATES


def is_detached(entity: Persistable) -> bool:
    """Return True for placeholders and deleted entities.

    Detached entities are skipped by full writes and by delete.
    """
    return entity.state in (EntityState.STATELESS, EntityState.DELETED)
