"""
models/target.py
----------------
Model of the emitted target schema.

Entities are created once during a conversion run and never mutated
afterwards; a pass that needs to change a table (e.g. reference
resolution) swaps in a modified copy via :func:`dataclasses.replace`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Sentinel length meaning "maximum / unbounded", printed as MAX.
MAX_LENGTH = 2**63 - 1


class TypeName(str, Enum):
    """The closed target type vocabulary."""
    BOOL = "BOOL"
    INT64 = "INT64"
    FLOAT64 = "FLOAT64"
    NUMERIC = "NUMERIC"
    STRING = "STRING"
    BYTES = "BYTES"
    DATE = "DATE"
    TIMESTAMP = "TIMESTAMP"


@dataclass(frozen=True)
class TargetType:
    """
    A target column type.

    ``length`` is only meaningful for STRING and BYTES and is ``None``
    for every other tag.
    """
    name: TypeName
    length: int | None = None
    is_array: bool = False

    @property
    def is_max_length(self) -> bool:
        return self.length == MAX_LENGTH

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name.value,
            "length": "MAX" if self.is_max_length else self.length,
            "is_array": self.is_array,
        }


@dataclass(frozen=True)
class TargetColumn:
    name: str
    type: TargetType
    not_null: bool = False
    comment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.to_dict(),
            "not_null": self.not_null,
            "comment": self.comment,
        }


@dataclass(frozen=True)
class IndexKey:
    column: str
    desc: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"column": self.column, "desc": self.desc}


@dataclass(frozen=True)
class TargetForeignKey:
    """
    A foreign key; ``name`` is empty for an unnamed constraint.

    Until the reference pass runs, ``refer_table`` and ``refer_columns``
    hold source names; in a finished schema they are target names.
    """
    name: str
    columns: tuple[str, ...]
    refer_table: str
    refer_columns: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "refer_table": self.refer_table,
            "refer_columns": list(self.refer_columns),
        }


@dataclass(frozen=True)
class TargetIndex:
    name: str
    table: str
    keys: tuple[IndexKey, ...]
    unique: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "table": self.table,
            "unique": self.unique,
            "keys": [k.to_dict() for k in self.keys],
        }


@dataclass(frozen=True)
class TargetTable:
    name: str
    col_names: tuple[str, ...]
    col_defs: dict[str, TargetColumn]
    primary_keys: tuple[IndexKey, ...] = ()
    foreign_keys: tuple[TargetForeignKey, ...] = ()
    indexes: tuple[TargetIndex, ...] = ()
    comment: str = ""

    @property
    def columns(self) -> list[TargetColumn]:
        """Column definitions in declaration order."""
        return [self.col_defs[name] for name in self.col_names]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "primary_keys": [k.to_dict() for k in self.primary_keys],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "indexes": [idx.to_dict() for idx in self.indexes],
            "comment": self.comment,
        }


# {target_table_name: TargetTable}, in conversion order
TargetSchema = dict[str, TargetTable]


def target_schema_to_dict(schema: TargetSchema) -> dict[str, Any]:
    return {"tables": [t.to_dict() for t in schema.values()]}
