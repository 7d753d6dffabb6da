"""models/__init__.py"""
from models.issues import (
    Diagnostic,
    Diagnostics,
    EntityKind,
    IssueRegistry,
    SchemaIssue,
)
from models.source import (
    IgnoredFeatures,
    SchemaLoadError,
    SourceColumn,
    SourceForeignKey,
    SourceIndex,
    SourceKey,
    SourceSchema,
    SourceTable,
    SourceType,
    load_source_schema,
    source_schema_from_dict,
)
from models.target import (
    MAX_LENGTH,
    IndexKey,
    TargetColumn,
    TargetForeignKey,
    TargetIndex,
    TargetSchema,
    TargetTable,
    TargetType,
    TypeName,
    target_schema_to_dict,
)

__all__ = [
    "Diagnostic",
    "Diagnostics",
    "EntityKind",
    "IssueRegistry",
    "SchemaIssue",
    "IgnoredFeatures",
    "SchemaLoadError",
    "SourceColumn",
    "SourceForeignKey",
    "SourceIndex",
    "SourceKey",
    "SourceSchema",
    "SourceTable",
    "SourceType",
    "load_source_schema",
    "source_schema_from_dict",
    "MAX_LENGTH",
    "IndexKey",
    "TargetColumn",
    "TargetForeignKey",
    "TargetIndex",
    "TargetSchema",
    "TargetTable",
    "TargetType",
    "TypeName",
    "target_schema_to_dict",
]
