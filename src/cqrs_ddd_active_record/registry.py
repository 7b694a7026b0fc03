"""Registry binding each entity type to its BsonCollection."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, TypeVar, cast

from .entity import BsonEntity
from .gateway import BsonCollection

if TYPE_CHECKING:
    from .connection import MongoHost

T = TypeVar("T", bound=BsonEntity)


class GatewayRegistry:
    """Owns the mapping from entity type to its gateway.

    Gateways are created on first use and cached for the registry's lifetime;
    a type never gets a second gateway. ``register`` binds a type to an
    explicit collection name ahead of first use.
    """

    def __init__(self, host: MongoHost) -> None:
        self._host = host
        self._gateways: dict[type[Any], BsonCollection[Any]] = {}
        self._lock = threading.Lock()

    @property
    def host(self) -> MongoHost:
        return self._host

    def register(
        self, model_cls: type[T], *, collection: str | None = None
    ) -> BsonCollection[T]:
        """Create the gateway for ``model_cls`` now.

        Raises:
            ValueError: ``model_cls`` already has a gateway bound to a
                different collection.
        """
        with self._lock:
            existing = self._gateways.get(model_cls)
            if existing is not None:
                if collection is not None and existing.name != collection:
                    raise ValueError(
                        f"{model_cls.__name__} is already bound to collection "
                        f"{existing.name!r}"
                    )
                return cast("BsonCollection[T]", existing)
            gateway = BsonCollection(self._host, model_cls, name=collection)
            self._gateways[model_cls] = gateway
            return gateway

    def gateway_for(self, model_cls: type[T]) -> BsonCollection[T]:
        """Return the cached gateway, creating it on first use."""
        gateway = self._gateways.get(model_cls)
        if gateway is not None:
            return cast("BsonCollection[T]", gateway)
        return self.register(model_cls)

    def __contains__(self, model_cls: object) -> bool:
        return model_cls in self._gateways

    def __len__(self) -> int:
        return len(self._gateways)
