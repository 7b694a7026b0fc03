"""Active-record style MongoDB persistence for CQRS/DDD.

Entities carry an in-memory lifecycle state and are persisted through one
gateway per entity type, with async and blocking operation facades.
"""

from __future__ import annotations

# Blocking facade
from .blocking import BlockingEntityOperations, EventLoopThread

# Configuration and connection
from .config import MongoSettings
from .connection import MongoHost

# Entities and lifecycle
from .entity import BsonEntity, collection_name_for, make_stateless
from .exceptions import (
    CollectionUnavailableError,
    ConnectionTimeoutError,
    EntityNotFoundError,
    InvalidFieldError,
    MongoConfigurationError,
    MongoConnectionError,
    MongoPersistenceError,
    MongoQueryError,
    NotConnectedError,
    OperationCancelledError,
    StreamConsumedError,
)
from .fields import FieldRef, fields

# Core components
from .gateway import BsonCollection
from .model_dict import ModelDict
from .operations import EntityOperations, require_entity
from .registry import GatewayRegistry
from .serialization import EntityMapper
from .state import EntityState
from .store import DocumentStore
from .stream import EntityStream, to_model_dict

__all__ = [
    # Core
    "DocumentStore",
    "MongoHost",
    "MongoSettings",
    "GatewayRegistry",
    "BsonCollection",
    "EntityOperations",
    "BlockingEntityOperations",
    "EventLoopThread",
    # Entities
    "BsonEntity",
    "EntityState",
    "make_stateless",
    "collection_name_for",
    # Utilities
    "EntityMapper",
    "EntityStream",
    "ModelDict",
    "FieldRef",
    "fields",
    "to_model_dict",
    "require_entity",
    # Exceptions
    "MongoPersistenceError",
    "MongoConnectionError",
    "MongoConfigurationError",
    "MongoQueryError",
    "ConnectionTimeoutError",
    "NotConnectedError",
    "CollectionUnavailableError",
    "StreamConsumedError",
    "OperationCancelledError",
    "InvalidFieldError",
    "EntityNotFoundError",
]
