"""core/__init__.py"""
from core.constraints import convert_foreign_keys, convert_indexes, convert_primary_keys
from core.converter import ConversionResult, SchemaConverter, convert
from core.ddl_writer import print_create_table, print_type, schema_to_ddl
from core.names import (
    IdentifierNameResolver,
    NameNotFoundError,
    NameResolver,
    to_valid_identifier,
)
from core.namespace import Namespace
from core.references import ReferenceResolver, resolve_references
from core.type_mapper import TargetDialect, map_column_type, to_target_type

__all__ = [
    "convert_foreign_keys",
    "convert_indexes",
    "convert_primary_keys",
    "ConversionResult",
    "SchemaConverter",
    "convert",
    "print_create_table",
    "print_type",
    "schema_to_ddl",
    "IdentifierNameResolver",
    "NameNotFoundError",
    "NameResolver",
    "to_valid_identifier",
    "Namespace",
    "ReferenceResolver",
    "resolve_references",
    "TargetDialect",
    "map_column_type",
    "to_target_type",
]
