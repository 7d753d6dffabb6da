"""
core/namespace.py
-----------------
Shared identifier namespace for tables, foreign keys and indexes.

The target database keeps one namespace across these three entity kinds,
so a foreign key may not share a name with an index or a table. A
:class:`Namespace` is created per conversion run and threaded explicitly
through every allocation; it is never module-level state.

Names are compared case-insensitively and are never released.
"""
from __future__ import annotations

from typing import Iterable

from logger import get_logger

log = get_logger(__name__)


class Namespace:
    """
    Append-only set of used identifiers.

    Example::

        ns = Namespace(["orders"])
        ns.allocate("Index_orders")   # "Index_orders"
        ns.allocate("Index_orders")   # "Index_orders_2"
        ns.allocate("ORDERS")         # "ORDERS_2"
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._used: set[str] = set()
        for name in names:
            self.reserve(name)

    @staticmethod
    def _key(name: str) -> str:
        return name.lower()

    def reserve(self, name: str) -> None:
        """Mark *name* as used without any collision handling."""
        self._used.add(self._key(name))

    def allocate(self, candidate: str) -> str:
        """
        Return a unique identifier derived from *candidate* and record it.

        The candidate itself is returned when free; otherwise the first
        free name of ``candidate_2``, ``candidate_3``, … is used.
        """
        name = candidate
        suffix = 2
        while self._key(name) in self._used:
            name = f"{candidate}_{suffix}"
            suffix += 1
        if name != candidate:
            log.debug("Name '%s' already in use; allocated '%s'.", candidate, name)
        self._used.add(self._key(name))
        return name

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._used

    def __len__(self) -> int:
        return len(self._used)
