"""
core/ddl_writer.py
------------------
Renders a converted target schema as DDL statements.

Output shape::

    CREATE TABLE orders (
      id INT64 NOT NULL,  -- From: id bigserial
      code STRING(50),    -- From: code varchar(50)
      tags ARRAY<STRING(MAX)>,
    ) PRIMARY KEY (id)

    CREATE UNIQUE INDEX Index_orders ON orders (code DESC)

    ALTER TABLE orders ADD CONSTRAINT fk_user FOREIGN KEY (user_id) REFERENCES users (id)

Design Decisions:
    * Pure string building; nothing here touches a database.
    * Foreign keys are emitted as separate ALTER statements after every
      table and index, so statement order never depends on which table
      references which.
    * ``protect_ids`` wraps identifiers in backticks for names that clash
      with reserved words.
"""
from __future__ import annotations

from config import CONFIG
from logger import get_logger
from models.target import (
    IndexKey,
    TargetColumn,
    TargetForeignKey,
    TargetIndex,
    TargetSchema,
    TargetTable,
    TargetType,
    TypeName,
)

log = get_logger(__name__)


def _quote(name: str, protect_ids: bool) -> str:
    return f"`{name}`" if protect_ids else name


def print_type(t: TargetType) -> str:
    """
    Examples::

        TargetType(TypeName.STRING, 50)                  →  "STRING(50)"
        TargetType(TypeName.BYTES, MAX_LENGTH)           →  "BYTES(MAX)"
        TargetType(TypeName.INT64, is_array=True)        →  "ARRAY<INT64>"
    """
    s = t.name.value
    if t.name in (TypeName.STRING, TypeName.BYTES):
        s += "(MAX)" if t.is_max_length else f"({t.length})"
    if t.is_array:
        s = f"ARRAY<{s}>"
    return s


def print_column_def(col: TargetColumn, protect_ids: bool = False) -> str:
    s = f"{_quote(col.name, protect_ids)} {print_type(col.type)}"
    if col.not_null:
        s += " NOT NULL"
    return s


def _print_keys(keys: tuple[IndexKey, ...], protect_ids: bool) -> str:
    return ", ".join(
        _quote(k.column, protect_ids) + (" DESC" if k.desc else "") for k in keys
    )


def print_create_table(
    table: TargetTable, protect_ids: bool = False, comments: bool = True
) -> str:
    """
    Render ``CREATE TABLE`` for *table*, including its primary key.

    With *comments*, each column line carries its provenance comment and
    the statement is preceded by the table comment.
    """
    lines: list[str] = []
    if comments and table.comment:
        lines.append(f"-- {table.comment}")
    lines.append(f"CREATE TABLE {_quote(table.name, protect_ids)} (")
    defs = [print_column_def(c, protect_ids) + "," for c in table.columns]
    width = max((len(d) for d in defs), default=0)
    for col, d in zip(table.columns, defs):
        if comments and col.comment:
            lines.append(f"  {d.ljust(width)}  -- {col.comment}")
        else:
            lines.append(f"  {d}")
    closing = ")"
    if table.primary_keys:
        closing += f" PRIMARY KEY ({_print_keys(table.primary_keys, protect_ids)})"
    lines.append(closing)
    return "\n".join(lines)


def print_create_index(index: TargetIndex, protect_ids: bool = False) -> str:
    unique = "UNIQUE " if index.unique else ""
    return (
        f"CREATE {unique}INDEX {_quote(index.name, protect_ids)} "
        f"ON {_quote(index.table, protect_ids)} ({_print_keys(index.keys, protect_ids)})"
    )


def print_foreign_key(table: str, fk: TargetForeignKey, protect_ids: bool = False) -> str:
    constraint = f"CONSTRAINT {_quote(fk.name, protect_ids)} " if fk.name else ""
    cols = ", ".join(_quote(c, protect_ids) for c in fk.columns)
    refer_cols = ", ".join(_quote(c, protect_ids) for c in fk.refer_columns)
    return (
        f"ALTER TABLE {_quote(table, protect_ids)} ADD {constraint}"
        f"FOREIGN KEY ({cols}) REFERENCES {_quote(fk.refer_table, protect_ids)} ({refer_cols})"
    )


def schema_to_ddl(
    schema: TargetSchema, protect_ids: bool | None = None, comments: bool = True
) -> list[str]:
    """
    Render every statement needed to create *schema*.

    Args:
        schema:      Converted target schema.
        protect_ids: Backtick-quote identifiers; defaults to the configured
                     ``PROTECT_IDS``.
        comments:    Include table and column provenance comments.

    Returns:
        Statements without trailing semicolons: tables, then indexes, then
        foreign keys, each group in schema order.
    """
    if protect_ids is None:
        protect_ids = CONFIG.conversion.protect_ids
    tables = [print_create_table(t, protect_ids, comments) for t in schema.values()]
    indexes = [
        print_create_index(idx, protect_ids) for t in schema.values() for idx in t.indexes
    ]
    fks = [
        print_foreign_key(t.name, fk, protect_ids)
        for t in schema.values()
        for fk in t.foreign_keys
    ]
    log.debug(
        "Rendered %d table(s), %d index(es), %d foreign key(s).",
        len(tables), len(indexes), len(fks),
    )
    return tables + indexes + fks
