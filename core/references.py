"""
core/references.py
------------------
Final cross-table pass over a finished target schema.

Foreign keys are converted table by table, so when one is built the
table it references may not exist yet. The converter therefore leaves
the referenced table and columns in their source form; once every table
is in place, :func:`resolve_references` maps them to target names and
drops foreign keys whose referenced table or columns never made it into
the target schema.

Referenced columns are looked up with ``must_exist=True``: this pass
never creates a column name, so a foreign key pointing at a missing
column cannot change how the referenced table's own columns are named.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from core.names import NameNotFoundError, NameResolver
from logger import get_logger
from models.issues import Diagnostics, EntityKind
from models.target import TargetForeignKey, TargetSchema

log = get_logger(__name__)


class ReferenceResolver(Protocol):
    def __call__(
        self, schema: TargetSchema, resolver: NameResolver, diagnostics: Diagnostics
    ) -> None:
        ...


def _resolve_foreign_key(
    schema: TargetSchema, resolver: NameResolver, fk: TargetForeignKey
) -> TargetForeignKey:
    """
    Return *fk* with target names for its referenced table and columns.

    Raises:
        NameNotFoundError: The referenced table or a referenced column is
                           not part of the target schema.
    """
    refer_table = resolver.resolve_table_name(fk.refer_table)
    target = schema.get(refer_table)
    if target is None:
        raise NameNotFoundError(f"referenced table '{refer_table}' is not in the target schema")
    refer_columns: list[str] = []
    for col in fk.refer_columns:
        name = resolver.resolve_column_name(fk.refer_table, col, True)
        if name not in target.col_defs:
            raise NameNotFoundError(f"referenced table '{refer_table}' has no column '{name}'")
        refer_columns.append(name)
    return replace(fk, refer_table=refer_table, refer_columns=tuple(refer_columns))


def resolve_references(
    schema: TargetSchema, resolver: NameResolver, diagnostics: Diagnostics
) -> None:
    """
    Resolve foreign key references in *schema*, dropping unresolvable ones.

    Every table with foreign keys is replaced by an updated copy; the
    table objects themselves are never modified.
    """
    for name, table in list(schema.items()):
        if not table.foreign_keys:
            continue
        resolved: list[TargetForeignKey] = []
        for fk in table.foreign_keys:
            try:
                resolved.append(_resolve_foreign_key(schema, resolver, fk))
            except NameNotFoundError as exc:
                diagnostics.report(
                    EntityKind.FOREIGN_KEY, name,
                    f"can't resolve foreign key to '{fk.refer_table}': {exc}",
                    name=fk.name,
                )
        schema[name] = replace(table, foreign_keys=tuple(resolved))
    log.debug("Resolved foreign key references across %d table(s).", len(schema))
