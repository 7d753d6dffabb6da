"""
models/issues.py
----------------
The two result channels of a conversion run.

    * :class:`IssueRegistry` – per-column annotations (the column was
      emitted, but its translation lost range, precision or behaviour).
    * :class:`Diagnostics`   – per-entity skip records (a table, column,
      key, foreign key or index was dropped).

Neither channel ever aborts a run; callers inspect both to judge the
quality of a conversion.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from logger import RunLogAdapter, get_logger

log = get_logger(__name__)


class SchemaIssue(str, Enum):
    """Closed set of per-column conversion caveats."""
    WIDENED = "widened"
    SERIAL = "serial"
    TIMESTAMP = "timestamp"
    MULTI_DIMENSIONAL_ARRAY = "multi_dimensional_array"
    NO_GOOD_TYPE = "no_good_type"
    FOREIGN_KEY = "foreign_key"
    DEFAULT_VALUE = "default_value"


class EntityKind(str, Enum):
    TABLE = "table"
    COLUMN = "column"
    PRIMARY_KEY = "primary_key"
    FOREIGN_KEY = "foreign_key"
    INDEX = "index"


@dataclass(frozen=True)
class Diagnostic:
    """
    One skipped entity.

    Attributes:
        kind:   What was dropped.
        table:  Table the entity belongs to; the source name, except for
                records from the reference pass, which only sees the
                target schema.
        name:   Identifying name within the table (column, key or index
                name); empty for whole-table skips.
        reason: Human readable explanation.
    """
    kind: EntityKind
    table: str
    reason: str
    name: str = ""

    def __str__(self) -> str:
        where = f"{self.table}.{self.name}" if self.name else self.table
        return f"[{self.kind.value}] {where}: {self.reason}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "table": self.table,
            "name": self.name,
            "reason": self.reason,
        }


class Diagnostics:
    """
    Ordered collector of :class:`Diagnostic` records for one run.

    Args:
        logger: Where each record is also logged at WARNING; usually the
                run's :class:`~logger.RunLogAdapter`.
    """

    def __init__(self, logger: logging.Logger | RunLogAdapter | None = None) -> None:
        self._items: list[Diagnostic] = []
        self._log = logger or log

    def report(self, kind: EntityKind, table: str, reason: str, name: str = "") -> Diagnostic:
        diag = Diagnostic(kind=kind, table=table, reason=reason, name=name)
        self._items.append(diag)
        self._log.warning("Skipped %s", diag)
        return diag

    def for_table(self, table: str) -> list[Diagnostic]:
        return [d for d in self._items if d.table == table]

    def as_list(self) -> list[Diagnostic]:
        return list(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


@dataclass
class IssueRegistry:
    """
    Conversion issues keyed by source table, then source column.

    Only columns with at least one issue have an entry; a column that
    mapped exactly is simply absent.
    """
    entries: dict[str, dict[str, list[SchemaIssue]]] = field(default_factory=dict)

    def record(self, table: str, column: str, issues: list[SchemaIssue]) -> None:
        if not issues:
            return
        self.entries.setdefault(table, {})[column] = list(issues)

    def get(self, table: str, column: str) -> list[SchemaIssue]:
        return list(self.entries.get(table, {}).get(column, []))

    def for_table(self, table: str) -> dict[str, list[SchemaIssue]]:
        return dict(self.entries.get(table, {}))

    def count(self) -> int:
        """Total number of annotated columns."""
        return sum(len(cols) for cols in self.entries.values())

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {
            table: {col: [i.value for i in issues] for col, issues in cols.items()}
            for table, cols in self.entries.items()
        }
