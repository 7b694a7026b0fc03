"""Exceptions for the active-record persistence layer."""

from __future__ import annotations


class CQRSDDDError(Exception):
    """Root exception for the entire cqrs-ddd toolkit."""


class DomainError(CQRSDDDError):
    """Base class for all domain-related errors."""


class NotFoundError(DomainError):
    """Raised when an aggregate or resource is not found."""


class EntityNotFoundError(NotFoundError):
    """Raised when a required entity does not exist in its collection."""

    def __init__(self, entity_type: str, criteria: object = None) -> None:
        self.entity_type = entity_type
        self.criteria = criteria
        super().__init__(
            f"The requested entity of type {entity_type} does not exist."
        )


class InfrastructureError(CQRSDDDError):
    """Base class for all infrastructure-related errors."""


class PersistenceError(InfrastructureError):
    """Base class for all persistence-related errors."""


class MongoPersistenceError(PersistenceError):
    """Base for MongoDB persistence errors."""


class MongoConnectionError(MongoPersistenceError):
    """Raised when the host cannot connect; the process cannot proceed."""


class MongoConfigurationError(MongoConnectionError):
    """Raised when the connection URL or database name is missing."""


class ConnectionTimeoutError(MongoPersistenceError):
    """Raised when the host is not connected within the bounded wait."""

    def __init__(self, attempts: int, interval: float) -> None:
        self.attempts = attempts
        self.interval = interval
        super().__init__(
            f"The database timed out after {attempts} attempts "
            f"({attempts * interval:.2f}s)."
        )


class NotConnectedError(MongoPersistenceError):
    """Raised when an operation runs after the host has been stopped."""


class CollectionUnavailableError(MongoPersistenceError):
    """Raised when a collection handle cannot be resolved while connected."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"The collection {name!r} could not be found, created, "
            "or is temporarily unavailable."
        )


class StreamConsumedError(MongoPersistenceError):
    """Raised when a single-pass entity stream is iterated a second time."""


class OperationCancelledError(MongoPersistenceError):
    """Raised when a blocking call is cancelled before it completes."""


class InvalidFieldError(MongoPersistenceError):
    """Raised when a field selector does not name a persisted field."""


class MongoQueryError(MongoPersistenceError):
    """Raised when a filter or sort cannot be turned into a MongoDB query."""
