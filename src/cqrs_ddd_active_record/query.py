"""Filter and sort pass-through for gateway queries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from .exceptions import MongoQueryError

# A raw filter mapping, an object with to_dict(), or None.
Filter = Any
Sort = Union[list[tuple[str, str]], list[tuple[str, int]], list[str], None]


def build_filter(criteria: Filter) -> dict[str, Any]:
    """Return the MongoDB filter document for ``criteria``.

    Accepts ``None`` (match everything), a raw MongoDB filter mapping
    (e.g. ``{"name": "Example"}``), or any object with a ``to_dict()`` method
    returning one. The filter is passed to the driver unmodified.
    """
    if criteria is None:
        return {}
    if hasattr(criteria, "to_dict"):
        criteria = criteria.to_dict()
    if not isinstance(criteria, Mapping):
        raise MongoQueryError(
            f"filter must be a mapping or expose to_dict(), got "
            f"{type(criteria).__name__}"
        )
    return dict(criteria)


def build_sort(order_by: Sort) -> list[tuple[str, int]]:
    """Build MongoDB sort tuples.

    Accepts ``[(field, "asc"|"desc")]``, ``[(field, 1|-1)]`` or
    ``["-field", "field"]``.
    """
    if not order_by:
        return []
    result: list[tuple[str, int]] = []
    for item in order_by:
        if isinstance(item, tuple):
            field, direction = item[0], item[1]
            if isinstance(direction, int):
                result.append((field, -1 if direction < 0 else 1))
            else:
                result.append(
                    (field, -1 if str(direction).lower() == "desc" else 1)
                )
        elif isinstance(item, str):
            if item.startswith("-"):
                result.append((item[1:], -1))
            else:
                result.append((item, 1))
        else:
            raise MongoQueryError(f"Unsupported sort item: {item!r}")
    return result
