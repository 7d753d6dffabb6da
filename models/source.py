"""
models/source.py
----------------
Read-only model of a parsed source (PostgreSQL) schema.

The engine never builds these itself; an external parser produces them.
:func:`load_source_schema` accepts the same model serialised as JSON so
a schema dumped by such a parser can be converted offline.

JSON layout::

    {
      "tables": [
        {
          "name": "orders",
          "columns": [
            {"name": "id", "type": "bigserial", "not_null": true},
            {"name": "code", "type": "varchar", "mods": [50]},
            {"name": "tags", "type": "text", "array_bounds": [-1]},
            {"name": "status", "type": "int4",
             "ignored": {"default": true}}
          ],
          "primary_keys": [{"column": "id"}],
          "foreign_keys": [
            {"name": "fk_user", "columns": ["user_id"],
             "refer_table": "users", "refer_columns": ["id"]}
          ],
          "indexes": [
            {"name": "", "unique": false, "keys": [{"column": "code", "desc": true}]}
          ]
        }
      ]
    }
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class SchemaLoadError(ValueError):
    """Raised when a serialised source schema is malformed."""


@dataclass(frozen=True)
class SourceType:
    """
    A scalar source type.

    Attributes:
        name:          Type identifier as the source database reports it.
        mods:          Type modifiers, e.g. ``(50,)`` for ``varchar(50)``.
        array_bounds:  One entry per array dimension; ``-1`` means the
                       dimension was declared without a size.
    """
    name: str
    mods: tuple[int, ...] = ()
    array_bounds: tuple[int, ...] = ()

    @property
    def array_dims(self) -> int:
        return len(self.array_bounds)

    def print(self) -> str:
        s = self.name
        if self.mods:
            s += "(" + ",".join(str(m) for m in self.mods) + ")"
        for bound in self.array_bounds:
            s += "[]" if bound == -1 else f"[{bound}]"
        return s


@dataclass(frozen=True)
class IgnoredFeatures:
    """Column features the target cannot represent and the parser dropped."""
    default: bool = False
    foreign_key: bool = False


@dataclass(frozen=True)
class SourceColumn:
    name: str
    type: SourceType
    not_null: bool = False
    ignored: IgnoredFeatures = field(default_factory=IgnoredFeatures)


@dataclass(frozen=True)
class SourceKey:
    column: str
    desc: bool = False


@dataclass(frozen=True)
class SourceForeignKey:
    name: str
    columns: tuple[str, ...]
    refer_table: str
    refer_columns: tuple[str, ...]


@dataclass(frozen=True)
class SourceIndex:
    name: str
    keys: tuple[SourceKey, ...]
    unique: bool = False


@dataclass(frozen=True)
class SourceTable:
    """
    A source table.

    ``col_names`` fixes the declaration order; ``col_defs`` holds the
    column definitions keyed by name.
    """
    name: str
    col_names: tuple[str, ...]
    col_defs: dict[str, SourceColumn]
    primary_keys: tuple[SourceKey, ...] = ()
    foreign_keys: tuple[SourceForeignKey, ...] = ()
    indexes: tuple[SourceIndex, ...] = ()

    @staticmethod
    def from_columns(
        name: str,
        columns: list[SourceColumn],
        primary_keys: list[SourceKey] | None = None,
        foreign_keys: list[SourceForeignKey] | None = None,
        indexes: list[SourceIndex] | None = None,
    ) -> "SourceTable":
        """Build a table whose declaration order is the order of *columns*."""
        return SourceTable(
            name=name,
            col_names=tuple(c.name for c in columns),
            col_defs={c.name: c for c in columns},
            primary_keys=tuple(primary_keys or ()),
            foreign_keys=tuple(foreign_keys or ()),
            indexes=tuple(indexes or ()),
        )


# {source_table_name: SourceTable}, in declaration order
SourceSchema = dict[str, SourceTable]


# ---------------------------------------------------------------------------
# Deserialisation
# ---------------------------------------------------------------------------

def _int_tuple(raw: Any, what: str) -> tuple[int, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(v, int) for v in raw):
        raise SchemaLoadError(f"{what} must be a list of integers, got {raw!r}")
    return tuple(raw)


def _key_from_dict(data: dict[str, Any]) -> SourceKey:
    if "column" not in data:
        raise SchemaLoadError(f"Key entry without 'column': {data!r}")
    return SourceKey(column=data["column"], desc=bool(data.get("desc", False)))


def column_from_dict(data: dict[str, Any]) -> SourceColumn:
    try:
        name = data["name"]
        type_name = data["type"]
    except KeyError as exc:
        raise SchemaLoadError(f"Column entry missing {exc.args[0]!r}: {data!r}") from exc
    ignored = data.get("ignored", {})
    return SourceColumn(
        name=name,
        type=SourceType(
            name=type_name,
            mods=_int_tuple(data.get("mods"), f"mods of column '{name}'"),
            array_bounds=_int_tuple(
                data.get("array_bounds"), f"array_bounds of column '{name}'"
            ),
        ),
        not_null=bool(data.get("not_null", False)),
        ignored=IgnoredFeatures(
            default=bool(ignored.get("default", False)),
            foreign_key=bool(ignored.get("foreign_key", False)),
        ),
    )


def table_from_dict(data: dict[str, Any]) -> SourceTable:
    if "name" not in data:
        raise SchemaLoadError(f"Table entry without 'name': {data!r}")
    foreign_keys = [
        SourceForeignKey(
            name=fk.get("name", ""),
            columns=tuple(fk.get("columns", [])),
            refer_table=fk.get("refer_table", ""),
            refer_columns=tuple(fk.get("refer_columns", [])),
        )
        for fk in data.get("foreign_keys", [])
    ]
    indexes = [
        SourceIndex(
            name=idx.get("name", ""),
            unique=bool(idx.get("unique", False)),
            keys=tuple(_key_from_dict(k) for k in idx.get("keys", [])),
        )
        for idx in data.get("indexes", [])
    ]
    return SourceTable.from_columns(
        name=data["name"],
        columns=[column_from_dict(c) for c in data.get("columns", [])],
        primary_keys=[_key_from_dict(k) for k in data.get("primary_keys", [])],
        foreign_keys=foreign_keys,
        indexes=indexes,
    )


def source_schema_from_dict(data: dict[str, Any]) -> SourceSchema:
    """
    Deserialise a source schema from its JSON dict representation.

    Raises:
        SchemaLoadError: On missing required fields or wrong value types.
    """
    if not isinstance(data, dict) or not isinstance(data.get("tables"), list):
        raise SchemaLoadError("Source schema must be an object with a 'tables' list.")
    schema: SourceSchema = {}
    for raw in data["tables"]:
        if not isinstance(raw, dict):
            raise SchemaLoadError(f"Table entry must be an object, got {raw!r}")
        table = table_from_dict(raw)
        schema[table.name] = table
    return schema


def load_source_schema(path: Path | str) -> SourceSchema:
    """
    Load a source schema from a JSON file.

    Raises:
        SchemaLoadError: If the file cannot be read or is not a valid
                         source schema document.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SchemaLoadError(f"Cannot read source schema '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SchemaLoadError(f"Invalid JSON in source schema '{path}': {exc}") from exc
    return source_schema_from_dict(raw)
