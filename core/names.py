"""
core/names.py
-------------
Source → target identifier resolution.

The conversion engine only depends on the :class:`NameResolver` protocol;
:class:`IdentifierNameResolver` is the default implementation used when
the caller does not supply one.

Rules of the default resolver:
    * Characters other than letters, digits and ``_`` become ``_``.
    * A name that does not start with a letter is prefixed with ``A``.
    * Table names are unique across the schema, column names unique within
      their table; collisions get the same ``_2``, ``_3`` … suffixes the
      entity namespace uses.
    * Repeated calls for the same source name return the same answer.
"""
from __future__ import annotations

from typing import Protocol

from core.namespace import Namespace
from logger import get_logger

log = get_logger(__name__)


class NameNotFoundError(LookupError):
    """Raised when a source identifier has no target counterpart."""


class NameResolver(Protocol):
    def resolve_table_name(self, source_table: str) -> str:
        ...

    def resolve_column_name(
        self, source_table: str, source_column: str, must_exist: bool = False
    ) -> str:
        ...


def to_valid_identifier(name: str) -> str:
    """
    Make *name* a legal target identifier.

    Examples::

        to_valid_identifier("order items")   →  "order_items"
        to_valid_identifier("2fa_codes")     →  "A2fa_codes"
        to_valid_identifier("")              →  "A"
    """
    chars = [c if c.isalnum() or c == "_" else "_" for c in name]
    if not chars or not chars[0].isalpha():
        chars.insert(0, "A")
    return "".join(chars)


class IdentifierNameResolver:
    """Default, caching :class:`NameResolver` implementation."""

    def __init__(self) -> None:
        self._tables: dict[str, str] = {}
        self._table_names = Namespace()
        self._columns: dict[str, dict[str, str]] = {}
        self._column_names: dict[str, Namespace] = {}

    def resolve_table_name(self, source_table: str) -> str:
        if not source_table:
            raise NameNotFoundError("table name is empty")
        if source_table in self._tables:
            return self._tables[source_table]
        target = self._table_names.allocate(to_valid_identifier(source_table))
        if target != source_table:
            log.debug("Mapping source table '%s' to '%s'.", source_table, target)
        self._tables[source_table] = target
        self._columns[source_table] = {}
        self._column_names[source_table] = Namespace()
        return target

    def resolve_column_name(
        self, source_table: str, source_column: str, must_exist: bool = False
    ) -> str:
        """
        Resolve a column of an already resolved table.

        Args:
            must_exist: Only answer for columns resolved by an earlier call
                        (key and index columns must refer to real columns).

        Raises:
            NameNotFoundError: Empty names, unknown tables, or an unknown
                               column when *must_exist* is set.
        """
        if not source_table:
            raise NameNotFoundError("table name is empty")
        if not source_column:
            raise NameNotFoundError(f"column name is empty for table '{source_table}'")
        columns = self._columns.get(source_table)
        if columns is None:
            raise NameNotFoundError(f"unknown table '{source_table}'")
        if source_column in columns:
            return columns[source_column]
        if must_exist:
            raise NameNotFoundError(
                f"table '{source_table}' does not have a column '{source_column}'"
            )
        target = self._column_names[source_table].allocate(to_valid_identifier(source_column))
        if target != source_column:
            log.debug(
                "Mapping column '%s' of table '%s' to '%s'.",
                source_column, source_table, target,
            )
        columns[source_column] = target
        return target
