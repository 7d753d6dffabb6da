"""
core/converter.py
-----------------
Schema conversion engine: source schema → target schema.

A run goes through three phases, in order and exactly once each:

    1. Namespace seeding   – every table's target name is reserved in the
                             shared namespace before any foreign key or
                             index name is allocated.
    2. Table conversion    – tables in declaration order, columns in
                             declaration order, then primary key, foreign
                             keys and indexes.
    3. Reference pass      – foreign key references, kept in source form
                             until now, are mapped to target names and
                             checked against the finished schema.

Design Decisions:
    * Every run owns a fresh :class:`Namespace`, :class:`IssueRegistry` and
      :class:`Diagnostics`; nothing is shared between runs, so converting
      the same schema twice gives identical results.
    * There is no whole-run failure mode. A problem with one entity drops
      that entity with a diagnostic and the run continues; callers judge
      the outcome from :class:`ConversionResult`.
    * Collaborators (name resolver, reference resolver) are injected so
      callers can substitute their own naming rules.
"""
from __future__ import annotations

import json
import unicodedata
from dataclasses import dataclass, field
from typing import Any

from config import CONFIG
from core.constraints import convert_foreign_keys, convert_indexes, convert_primary_keys
from core.names import IdentifierNameResolver, NameNotFoundError, NameResolver
from core.namespace import Namespace
from core.references import ReferenceResolver, resolve_references
from core.type_mapper import TargetDialect, map_column_type
from logger import get_logger, get_run_logger
from models.issues import Diagnostic, Diagnostics, EntityKind, IssueRegistry
from models.source import SourceColumn, SourceSchema, SourceTable
from models.target import TargetColumn, TargetSchema, TargetTable, target_schema_to_dict

log = get_logger(__name__)


@dataclass
class ConversionResult:
    """Everything a conversion run produces."""
    schema: TargetSchema = field(default_factory=dict)
    issues: IssueRegistry = field(default_factory=IssueRegistry)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    # Matches the run id in this run's log records.
    run_id: str = field(default="", compare=False)

    @property
    def clean(self) -> bool:
        """True when nothing was dropped and no column needed a caveat."""
        return not self.diagnostics and not self.issues.entries

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": target_schema_to_dict(self.schema),
            "issues": self.issues.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def quote_if_needed(s: str) -> str:
    """
    Double-quote *s* if it holds anything but letters, digits or punctuation.

    Quotes, backslashes and control characters are escaped, so the result
    always fits on one line.
    """
    for ch in s:
        if ch.isalpha() or ch.isdigit() or unicodedata.category(ch).startswith("P"):
            continue
        return json.dumps(s, ensure_ascii=False)
    return s


def default_dialect() -> TargetDialect:
    try:
        return TargetDialect(CONFIG.conversion.target_dialect)
    except ValueError:
        log.warning(
            "Unknown TARGET_DIALECT '%s'; using '%s'.",
            CONFIG.conversion.target_dialect, TargetDialect.DEFAULT.value,
        )
        return TargetDialect.DEFAULT


class SchemaConverter:
    """
    Converts one source schema per :meth:`convert` call.

    Args:
        dialect:            Type post-processing mode; defaults to the
                            configured ``TARGET_DIALECT``.
        name_resolver:      Source → target identifier mapping; a fresh
                            :class:`IdentifierNameResolver` per run if omitted.
        reference_resolver: Final cross-table pass; defaults to
                            :func:`resolve_references`.

    Example::

        result = SchemaConverter().convert(load_source_schema("schema.json"))
        for diag in result.diagnostics:
            print(diag)
    """

    def __init__(
        self,
        dialect: TargetDialect | None = None,
        name_resolver: NameResolver | None = None,
        reference_resolver: ReferenceResolver | None = None,
    ) -> None:
        self._dialect = dialect or default_dialect()
        self._name_resolver = name_resolver
        self._reference_resolver = reference_resolver or resolve_references

    def convert(self, source: SourceSchema) -> ConversionResult:
        resolver = self._name_resolver or IdentifierNameResolver()
        run = _ConversionRun(source, self._dialect, resolver)
        run.seed_namespace()
        for source_table in source.values():
            run.convert_table(source_table)
        self._reference_resolver(run.schema, resolver, run.diagnostics)

        result = ConversionResult(
            schema=run.schema,
            issues=run.issues,
            diagnostics=run.diagnostics.as_list(),
            run_id=run.run_id,
        )
        run.log.info(
            "Converted %d of %d table(s): %d annotated column(s), %d skipped entit%s.",
            len(result.schema), len(source), result.issues.count(),
            len(result.diagnostics), "y" if len(result.diagnostics) == 1 else "ies",
        )
        return result


class _ConversionRun:
    """Mutable state of a single conversion run."""

    def __init__(self, source: SourceSchema, dialect: TargetDialect, resolver: NameResolver) -> None:
        self.source = source
        self.dialect = dialect
        self.resolver = resolver
        self.log = get_run_logger(__name__)
        self.run_id: str = self.log.extra["run_id"]
        self.namespace = Namespace()
        self.schema: TargetSchema = {}
        self.issues = IssueRegistry()
        self.diagnostics = Diagnostics(self.log)

    def _resolve_table(self, source_table: str, action: str) -> str | None:
        try:
            return self.resolver.resolve_table_name(source_table)
        except NameNotFoundError as exc:
            self.diagnostics.report(
                EntityKind.TABLE, source_table, f"can't map source table, {action}: {exc}"
            )
            return None

    def seed_namespace(self) -> None:
        for source_table in self.source.values():
            target = self._resolve_table(source_table.name, "name not reserved")
            if target is not None:
                self.namespace.reserve(target)

    def convert_table(self, source_table: SourceTable) -> None:
        table_name = self._resolve_table(source_table.name, "table skipped")
        if table_name is None:
            return

        col_names: list[str] = []
        col_defs: dict[str, TargetColumn] = {}
        for source_col_name in source_table.col_names:
            column = self._convert_column(source_table.name, source_table.col_defs[source_col_name])
            if column is not None:
                col_names.append(column.name)
                col_defs[column.name] = column

        self.schema[table_name] = TargetTable(
            name=table_name,
            col_names=tuple(col_names),
            col_defs=col_defs,
            primary_keys=convert_primary_keys(
                source_table.name, source_table.primary_keys, self.resolver, self.diagnostics
            ),
            foreign_keys=convert_foreign_keys(
                source_table.name, source_table.foreign_keys,
                self.resolver, self.namespace, self.diagnostics,
            ),
            indexes=convert_indexes(
                table_name, source_table.name, source_table.indexes,
                self.resolver, self.namespace, self.diagnostics,
            ),
            comment=f"Target schema for source table {quote_if_needed(source_table.name)}",
        )
        self.log.debug("Converted table '%s' → '%s'.", source_table.name, table_name)

    def _convert_column(self, source_table: str, source_col: SourceColumn) -> TargetColumn | None:
        try:
            name = self.resolver.resolve_column_name(source_table, source_col.name, False)
        except NameNotFoundError as exc:
            self.diagnostics.report(
                EntityKind.COLUMN, source_table,
                f"can't map source column: {exc}", name=source_col.name,
            )
            return None

        target_type, issues = map_column_type(source_col, self.dialect)
        self.issues.record(source_table, source_col.name, issues)
        return TargetColumn(
            name=name,
            type=target_type,
            not_null=source_col.not_null,
            comment=f"From: {quote_if_needed(source_col.name)} {source_col.type.print()}",
        )


def convert(
    source: SourceSchema,
    *,
    dialect: TargetDialect | None = None,
    name_resolver: NameResolver | None = None,
    reference_resolver: ReferenceResolver | None = None,
) -> ConversionResult:
    """
    Convert *source* into a target schema.

    Never raises for problems with individual tables, columns, keys or
    indexes; those are returned in ``result.diagnostics``. Lossy column
    translations are returned in ``result.issues``.
    """
    converter = SchemaConverter(
        dialect=dialect,
        name_resolver=name_resolver,
        reference_resolver=reference_resolver,
    )
    return converter.convert(source)
