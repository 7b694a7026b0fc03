"""
EntityStream — single-pass, lazily executed result of a find-many query.

Usage::

    # iterate
    async for example in ops.get_many(ExampleModel, {"name": "Example"}):
        ...

    # or materialise
    examples = await ops.get_many(ExampleModel, {"name": "Example"})

The query runs when iteration starts, not when the stream is built. Each
stream can be consumed exactly once; a second attempt raises
:class:`StreamConsumedError` instead of silently yielding nothing. Call the
find operation again for a fresh cursor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import StreamConsumedError
from .model_dict import ModelDict

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Generator, Hashable

    from pydantic import BaseModel

T = TypeVar("T")
K = TypeVar("K", bound="Hashable")
V = TypeVar("V", bound="BaseModel")


class EntityStream(Generic[T]):
    """Single-pass ``AsyncIterator[T]`` over a server-side cursor.

    Parameters
    ----------
    source:
        Zero-argument callable returning the async iterator to drain. It is
        called at most once.
    """

    __slots__ = ("_consumed", "_source")

    def __init__(self, source: Callable[[], AsyncIterator[T]]) -> None:
        self._source = source
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _take(self) -> AsyncIterator[T]:
        if self._consumed:
            raise StreamConsumedError(
                "This stream has already been consumed and cannot be consumed "
                "again."
            )
        self._consumed = True
        return self._source()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._take()

    def __await__(self) -> Generator[Any, None, list[T]]:
        """Make ``await stream`` return ``list[T]``."""
        return self.to_list().__await__()

    async def to_list(self) -> list[T]:
        return [item async for item in self._take()]

    async def first(self) -> T | None:
        """Return the first item (or None) and close the cursor."""
        iterator = self._take()
        try:
            async for item in iterator:
                return item
            return None
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()


async def to_model_dict(
    stream: EntityStream[V],
    key: Callable[[V], K],
    model: type[V],
    *,
    on_miss: Callable[[K, V], None] | None = None,
) -> ModelDict[K, V]:
    """Drain ``stream`` into a :class:`ModelDict` keyed by ``key(entity)``."""
    result: ModelDict[K, V] = ModelDict(model, on_miss=on_miss)
    async for entity in stream:
        result[key(entity)] = entity
    return result
