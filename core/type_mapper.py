"""
core/type_mapper.py
-------------------
Scalar type mapping from PostgreSQL type identifiers to the target type
vocabulary.

Every source identifier maps to exactly one target type plus the list of
caveats the translation carries:

    int4         → INT64              [WIDENED]
    bigserial    → INT64              [SERIAL]
    varchar(50)  → STRING(50)         []
    timestamp    → TIMESTAMP          [TIMESTAMP]   (no time zone in source)
    point        → STRING(MAX)        [NO_GOOD_TYPE]

Design Decision:
    The mapping is a lookup table built once at import time rather than
    a chain of string comparisons. Synonyms share one rule object, and
    lookups are pure: the same input always yields the same output and
    unknown identifiers degrade to STRING(MAX) instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence

from models.issues import SchemaIssue
from models.source import SourceColumn, SourceType
from models.target import MAX_LENGTH, TargetType, TypeName


class TargetDialect(str, Enum):
    """Selects the post-processing applied after the base type mapping."""
    DEFAULT = "default"
    # Target variant that lacks NUMERIC, DATE and ARRAY support.
    EXPERIMENTAL_POSTGRES = "experimental_postgres"


@dataclass(frozen=True)
class _TypeRule:
    name: TypeName
    length: int | None = None
    issues: tuple[SchemaIssue, ...] = ()
    # First type modifier, when present, replaces ``length``.
    sized: bool = False

    def apply(self, mods: Sequence[int]) -> tuple[TargetType, list[SchemaIssue]]:
        length = self.length
        if self.sized and mods:
            length = mods[0]
        return TargetType(name=self.name, length=length), list(self.issues)


_STRING_MAX = _TypeRule(TypeName.STRING, MAX_LENGTH)
_NO_GOOD_TYPE = _TypeRule(TypeName.STRING, MAX_LENGTH, (SchemaIssue.NO_GOOD_TYPE,))


def _build_rules() -> dict[str, _TypeRule]:
    widened = (SchemaIssue.WIDENED,)
    serial = (SchemaIssue.SERIAL,)
    groups: list[tuple[tuple[str, ...], _TypeRule]] = [
        (("bool", "boolean"), _TypeRule(TypeName.BOOL)),
        (("bigserial",), _TypeRule(TypeName.INT64, issues=serial)),
        (("serial",), _TypeRule(TypeName.INT64, issues=serial)),
        # bpchar is the internal name of char; without a length it is char(1)
        (("bpchar", "char", "character"), _TypeRule(TypeName.STRING, 1, sized=True)),
        (("bytea",), _TypeRule(TypeName.BYTES, MAX_LENGTH)),
        (("date",), _TypeRule(TypeName.DATE)),
        (("float8", "double precision"), _TypeRule(TypeName.FLOAT64)),
        (("float4", "real"), _TypeRule(TypeName.FLOAT64, issues=widened)),
        (("int8", "bigint"), _TypeRule(TypeName.INT64)),
        (("int4", "integer"), _TypeRule(TypeName.INT64, issues=widened)),
        (("int2", "smallint"), _TypeRule(TypeName.INT64, issues=widened)),
        # TODO: flag precision loss once column precision/scale reach this layer;
        # source NUMERIC is unbounded while the target holds NUMERIC(38,9).
        (("numeric",), _TypeRule(TypeName.NUMERIC)),
        (("text",), _STRING_MAX),
        (("timestamptz", "timestamp with time zone"), _TypeRule(TypeName.TIMESTAMP)),
        (
            ("timestamp", "timestamp without time zone"),
            _TypeRule(TypeName.TIMESTAMP, issues=(SchemaIssue.TIMESTAMP,)),
        ),
        (("varchar", "character varying"), _TypeRule(TypeName.STRING, MAX_LENGTH, sized=True)),
    ]
    return {alias: rule for aliases, rule in groups for alias in aliases}


_RULES: dict[str, _TypeRule] = _build_rules()


def to_target_type(type_id: str, mods: Sequence[int] = ()) -> tuple[TargetType, list[SchemaIssue]]:
    """
    Map a scalar source type to a target type.

    Args:
        type_id: Source type identifier (case-insensitive).
        mods:    Type modifiers; only the first (length) is consulted.

    Returns:
        ``(target_type, issues)``. The returned type never has the array
        flag set; array handling happens in :func:`apply_dialect_rules`.
    """
    rule = _RULES.get(type_id.strip().lower(), _NO_GOOD_TYPE)
    return rule.apply(mods)


def apply_dialect_rules(
    source_type: SourceType,
    target_type: TargetType,
    issues: list[SchemaIssue],
    dialect: TargetDialect = TargetDialect.DEFAULT,
) -> tuple[TargetType, list[SchemaIssue]]:
    """
    Apply array handling and dialect-specific overrides to a mapped type.

    DEFAULT: multi-dimensional arrays collapse to STRING(MAX) with a
    MULTI_DIMENSIONAL_ARRAY issue; one-dimensional arrays keep the mapped
    element type with the array flag set.

    EXPERIMENTAL_POSTGRES: NUMERIC, DATE and every array collapse to
    STRING(MAX); the array flag is never set.
    """
    issues = list(issues)
    if dialect == TargetDialect.EXPERIMENTAL_POSTGRES:
        if target_type.name in (TypeName.NUMERIC, TypeName.DATE) or source_type.array_dims > 0:
            target_type, _ = _STRING_MAX.apply(())
        return target_type, issues

    if source_type.array_dims > 1:
        target_type, _ = _STRING_MAX.apply(())
        issues.append(SchemaIssue.MULTI_DIMENSIONAL_ARRAY)
        return target_type, issues
    return replace(target_type, is_array=source_type.array_dims == 1), issues


def ignored_feature_issues(column: SourceColumn) -> list[SchemaIssue]:
    """Issues for column features the parser had to drop."""
    issues: list[SchemaIssue] = []
    if column.ignored.foreign_key:
        issues.append(SchemaIssue.FOREIGN_KEY)
    if column.ignored.default:
        issues.append(SchemaIssue.DEFAULT_VALUE)
    return issues


def map_column_type(
    column: SourceColumn, dialect: TargetDialect = TargetDialect.DEFAULT
) -> tuple[TargetType, list[SchemaIssue]]:
    """Full per-column mapping: base type, dialect rules, ignored features."""
    target_type, issues = to_target_type(column.type.name, column.type.mods)
    target_type, issues = apply_dialect_rules(column.type, target_type, issues, dialect)
    issues.extend(ignored_feature_issues(column))
    return target_type, issues
