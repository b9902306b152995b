"""
Identity map used by the entomb and revive transforms.

Both transforms walk an arbitrary object graph. Whenever they produce the
counterpart of a container they record it here, keyed by the id() of the
original, so that a second visit to the same node (a shared reference or a
cycle) returns the counterpart that was already produced instead of
descending again.
"""

from __future__ import annotations

from typing import Any


class Known:
    """
    Per-call table mapping original objects to their produced counterparts.

    Lookups use object identity, never equality. The original object is kept
    alongside its counterpart: Python can reuse the id() of a garbage
    collected object, which would make an unrelated object look visited.
    """

    __slots__ = ("_table",)

    def __init__(self):
        self._table: dict[int, tuple[Any, Any]] = {}

    def __contains__(self, obj: Any) -> bool:
        return id(obj) in self._table

    def __len__(self) -> int:
        return len(self._table)

    def get(self, obj: Any) -> Any:
        return self._table[id(obj)][1]

    def set(self, obj: Any, counterpart: Any) -> Any:
        self._table[id(obj)] = (obj, counterpart)
        return counterpart


__all__ = ["Known"]
