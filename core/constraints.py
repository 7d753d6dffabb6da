"""
core/constraints.py
-------------------
Primary key, foreign key and index conversion for one table.

Failure granularity differs per converter:

    primary key  – an unresolvable key column is dropped, the rest remain.
    foreign key  – any unresolvable part drops the whole foreign key; a
                   partially mapped foreign key is never emitted.
    index        – unresolvable key columns are dropped; the index name
                   is always allocated, and the index itself is dropped
                   only when no key column is left.

Every drop is reported to the run's :class:`Diagnostics`; nothing here
raises for a bad source entity.
"""
from __future__ import annotations

from typing import Sequence

from core.names import NameNotFoundError, NameResolver, to_valid_identifier
from core.namespace import Namespace
from logger import get_logger
from models.issues import Diagnostics, EntityKind
from models.source import SourceForeignKey, SourceIndex, SourceKey
from models.target import IndexKey, TargetForeignKey, TargetIndex

log = get_logger(__name__)


def convert_primary_keys(
    source_table: str,
    keys: Sequence[SourceKey],
    resolver: NameResolver,
    diagnostics: Diagnostics,
) -> tuple[IndexKey, ...]:
    result: list[IndexKey] = []
    for key in keys:
        try:
            column = resolver.resolve_column_name(source_table, key.column, True)
        except NameNotFoundError as exc:
            diagnostics.report(
                EntityKind.PRIMARY_KEY, source_table,
                f"can't map primary key column: {exc}", name=key.column,
            )
            continue
        result.append(IndexKey(column=column, desc=key.desc))
    return tuple(result)


def _convert_foreign_key(
    source_table: str,
    fk: SourceForeignKey,
    resolver: NameResolver,
    namespace: Namespace,
    diagnostics: Diagnostics,
) -> TargetForeignKey | None:
    if len(fk.columns) != len(fk.refer_columns):
        diagnostics.report(
            EntityKind.FOREIGN_KEY, source_table,
            f"columns and referenced columns differ in length: "
            f"len(columns)={len(fk.columns)}, len(refer_columns)={len(fk.refer_columns)} "
            f"for source table '{source_table}', referenced table '{fk.refer_table}'",
            name=fk.name,
        )
        return None
    try:
        resolver.resolve_table_name(fk.refer_table)
    except NameNotFoundError as exc:
        diagnostics.report(
            EntityKind.FOREIGN_KEY, source_table,
            f"can't map foreign key for source table '{source_table}', "
            f"referenced table '{fk.refer_table}': {exc}",
            name=fk.name,
        )
        return None

    columns: list[str] = []
    for col in fk.columns:
        try:
            columns.append(resolver.resolve_column_name(source_table, col, True))
        except NameNotFoundError as exc:
            diagnostics.report(
                EntityKind.FOREIGN_KEY, source_table,
                f"can't map foreign key for source table '{source_table}', "
                f"referenced table '{fk.refer_table}', column '{col}': {exc}",
                name=fk.name,
            )
            return None

    # The referenced table may not be built yet. Its name and columns stay
    # in source form until resolve_references runs over the finished schema;
    # resolving them here would claim names in another table's namespace.
    name = namespace.allocate(to_valid_identifier(fk.name)) if fk.name else ""
    return TargetForeignKey(
        name=name,
        columns=tuple(columns),
        refer_table=fk.refer_table,
        refer_columns=tuple(fk.refer_columns),
    )


def convert_foreign_keys(
    source_table: str,
    foreign_keys: Sequence[SourceForeignKey],
    resolver: NameResolver,
    namespace: Namespace,
    diagnostics: Diagnostics,
) -> tuple[TargetForeignKey, ...]:
    """
    Convert the foreign keys of *source_table*.

    A foreign key that fails any check is dropped entirely with one
    diagnostic; the remaining foreign keys are still converted. Named
    foreign keys get a unique name from *namespace*; unnamed ones stay
    unnamed.
    """
    result: list[TargetForeignKey] = []
    for fk in foreign_keys:
        converted = _convert_foreign_key(source_table, fk, resolver, namespace, diagnostics)
        if converted is not None:
            result.append(converted)
    return tuple(result)


def convert_indexes(
    target_table: str,
    source_table: str,
    indexes: Sequence[SourceIndex],
    resolver: NameResolver,
    namespace: Namespace,
    diagnostics: Diagnostics,
) -> tuple[TargetIndex, ...]:
    """
    Convert the secondary indexes of *source_table*.

    Unnamed indexes are called ``Index_<source_table>`` before allocation,
    so a second unnamed index on the same table becomes
    ``Index_<source_table>_2``.
    """
    result: list[TargetIndex] = []
    for index in indexes:
        source_name = index.name or f"Index_{source_table}"
        keys: list[IndexKey] = []
        for key in index.keys:
            try:
                column = resolver.resolve_column_name(source_table, key.column, True)
            except NameNotFoundError as exc:
                diagnostics.report(
                    EntityKind.INDEX, source_table,
                    f"can't map key column '{key.column}' of index '{source_name}': {exc}",
                    name=source_name,
                )
                continue
            keys.append(IndexKey(column=column, desc=key.desc))
        # The name is allocated whether or not the index survives.
        name = namespace.allocate(to_valid_identifier(source_name))
        if not keys:
            diagnostics.report(
                EntityKind.INDEX, source_table,
                f"index '{source_name}' has no mappable key columns",
                name=source_name,
            )
            continue
        log.debug("Index '%s' on '%s' → '%s'.", source_name, source_table, name)
        result.append(
            TargetIndex(name=name, table=target_table, keys=tuple(keys), unique=index.unique)
        )
    return tuple(result)
