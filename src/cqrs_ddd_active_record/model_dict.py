"""Entity mapping that never reports a missing key."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterator, MutableMapping
from typing import TypeVar

from pydantic import BaseModel

from .entity import make_stateless

K = TypeVar("K", bound=Hashable)
V = TypeVar("V", bound=BaseModel)


class ModelDict(MutableMapping[K, V]):
    """Entity mapping whose lookups fall back to a shared stateless default.

    ``mapping[key]`` never raises ``KeyError`` and never returns ``None``: a
    miss (or a key stored with ``None``) yields :attr:`default`, the single
    ``STATELESS`` instance built for this mapping. On a true miss the optional
    ``on_miss(key, default)`` hook runs first so it can populate the default.

    The default is not backed by storage; field saves on it are skipped.
    """

    def __init__(
        self,
        model: type[V],
        data: MutableMapping[K, V | None] | None = None,
        *,
        on_miss: Callable[[K, V], None] | None = None,
    ) -> None:
        self._model = model
        self._data: MutableMapping[K, V | None] = data if data is not None else {}
        self.on_miss = on_miss
        self.default: V = make_stateless(model)

    def try_get(self, key: K) -> tuple[bool, V]:
        """Return ``(found, value)``; ``value`` is the default when not found."""
        if key in self._data:
            value = self._data[key]
            return True, value if value is not None else self.default
        if self.on_miss is not None:
            self.on_miss(key, self.default)
        return False, self.default

    def __getitem__(self, key: K) -> V:
        return self.try_get(key)[1]

    def __setitem__(self, key: K, value: V) -> None:
        self._data[key] = value

    def __delitem__(self, key: K) -> None:
        del self._data[key]

    # MutableMapping builds pop/setdefault on __getitem__ raising KeyError,
    # which never happens here.
    def pop(self, key: K, *default: V) -> V:  # type: ignore[override]
        if key not in self._data:
            if default:
                return default[0]
            raise KeyError(key)
        value = self._data.pop(key)
        return value if value is not None else self.default

    def setdefault(self, key: K, default: V | None = None) -> V:  # type: ignore[override]
        if key not in self._data:
            self._data[key] = default
        return self[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._model.__name__}, {dict(self._data)!r})"
