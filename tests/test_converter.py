"""
tests/test_converter.py
-----------------------
End-to-end tests for core/converter.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import json
import logging

import pytest

from core.converter import ConversionResult, SchemaConverter, convert, quote_if_needed
from core.names import IdentifierNameResolver, NameNotFoundError
from core.type_mapper import TargetDialect
from models.issues import EntityKind, SchemaIssue
from models.source import (
    IgnoredFeatures,
    SourceColumn,
    SourceForeignKey,
    SourceIndex,
    SourceKey,
    SourceSchema,
    SourceTable,
    SourceType,
)
from models.target import MAX_LENGTH, IndexKey, TargetType, TypeName


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _col(name: str, type_name: str, *mods: int, dims: int = 0, not_null: bool = False,
         **ignored: bool) -> SourceColumn:
    return SourceColumn(
        name=name,
        type=SourceType(type_name, tuple(mods), (-1,) * dims),
        not_null=not_null,
        ignored=IgnoredFeatures(**ignored),
    )


def _schema(*tables: SourceTable) -> SourceSchema:
    return {t.name: t for t in tables}


@pytest.fixture
def shop() -> SourceSchema:
    users = SourceTable.from_columns(
        "users",
        [
            _col("id", "bigserial", not_null=True),
            _col("email", "varchar", 255, not_null=True),
            _col("age", "smallint"),
        ],
        primary_keys=[SourceKey("id")],
    )
    orders = SourceTable.from_columns(
        "orders",
        [
            _col("id", "bigserial", not_null=True),
            _col("user_id", "int8", not_null=True),
            _col("code", "varchar", 50),
            _col("tags", "text", dims=1),
            _col("matrix", "int4", dims=2),
            _col("placed at", "timestamp", default=True),
            _col("location", "point"),
        ],
        primary_keys=[SourceKey("id")],
        foreign_keys=[SourceForeignKey("fk_user", ("user_id",), "users", ("id",))],
        indexes=[
            SourceIndex("", (SourceKey("code"),)),
            SourceIndex("", (SourceKey("placed at", desc=True),)),
        ],
    )
    return _schema(users, orders)


@pytest.fixture
def dflt() -> TargetDialect:
    return TargetDialect.DEFAULT


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

class TestConvertShop:
    def test_tables_in_declaration_order(self, shop, dflt) -> None:
        result = convert(shop, dialect=dflt)
        assert list(result.schema) == ["users", "orders"]

    def test_columns_in_declaration_order(self, shop, dflt) -> None:
        orders = convert(shop, dialect=dflt).schema["orders"]
        assert orders.col_names == (
            "id", "user_id", "code", "tags", "matrix", "placed_at", "location",
        )

    def test_column_types(self, shop, dflt) -> None:
        orders = convert(shop, dialect=dflt).schema["orders"]
        assert orders.col_defs["code"].type == TargetType(TypeName.STRING, 50)
        assert orders.col_defs["tags"].type == TargetType(TypeName.STRING, MAX_LENGTH, is_array=True)
        assert orders.col_defs["matrix"].type == TargetType(TypeName.STRING, MAX_LENGTH)
        assert orders.col_defs["id"].not_null

    def test_issue_registry(self, shop, dflt) -> None:
        issues = convert(shop, dialect=dflt).issues
        assert issues.get("users", "age") == [SchemaIssue.WIDENED]
        assert issues.get("users", "id") == [SchemaIssue.SERIAL]
        assert issues.get("orders", "placed at") == [SchemaIssue.TIMESTAMP, SchemaIssue.DEFAULT_VALUE]
        assert issues.get("orders", "location") == [SchemaIssue.NO_GOOD_TYPE]
        assert SchemaIssue.MULTI_DIMENSIONAL_ARRAY in issues.get("orders", "matrix")

    def test_exact_mappings_have_no_entry(self, shop, dflt) -> None:
        issues = convert(shop, dialect=dflt).issues
        assert "code" not in issues.for_table("orders")
        assert "email" not in issues.for_table("users")
        assert "user_id" not in issues.for_table("orders")

    def test_constraints(self, shop, dflt) -> None:
        orders = convert(shop, dialect=dflt).schema["orders"]
        assert orders.primary_keys == (IndexKey("id"),)
        assert [fk.name for fk in orders.foreign_keys] == ["fk_user"]
        assert [i.name for i in orders.indexes] == ["Index_orders", "Index_orders_2"]
        assert orders.indexes[1].keys == (IndexKey("placed_at", desc=True),)

    def test_comments(self, shop, dflt) -> None:
        orders = convert(shop, dialect=dflt).schema["orders"]
        assert orders.comment == "Target schema for source table orders"
        assert orders.col_defs["code"].comment == "From: code varchar(50)"
        assert orders.col_defs["placed_at"].comment == 'From: "placed at" timestamp'
        assert orders.col_defs["tags"].comment == "From: tags text[]"

    def test_clean_run_has_no_diagnostics(self, shop, dflt) -> None:
        result = convert(shop, dialect=dflt)
        assert result.diagnostics == []
        assert not result.clean


# ---------------------------------------------------------------------------
# Namespace
# ---------------------------------------------------------------------------

class TestNamespace:
    def test_index_cannot_take_later_table_name(self, dflt) -> None:
        # "b" is declared after "a", but its name is reserved before a's index
        a = SourceTable.from_columns("a", [_col("x", "int8")], indexes=[SourceIndex("b", (SourceKey("x"),))])
        b = SourceTable.from_columns("b", [_col("y", "int8")])
        result = convert(_schema(a, b), dialect=dflt)
        assert result.schema["a"].indexes[0].name == "b_2"

    def test_unnamed_index_collides_with_declared_name(self, dflt) -> None:
        orders = SourceTable.from_columns(
            "orders",
            [_col("id", "int8")],
            indexes=[
                SourceIndex("Index_orders", (SourceKey("id"),)),
                SourceIndex("", (SourceKey("id", desc=True),)),
            ],
        )
        result = convert(_schema(orders), dialect=dflt)
        assert [i.name for i in result.schema["orders"].indexes] == ["Index_orders", "Index_orders_2"]

    def test_all_entity_names_unique(self, dflt) -> None:
        tables = []
        for n in ("t1", "t2", "t3"):
            tables.append(SourceTable.from_columns(
                n,
                [_col("id", "int8"), _col("v", "text")],
                foreign_keys=[SourceForeignKey("t1", ("id",), "t1", ("id",))],
                indexes=[SourceIndex("", (SourceKey("v"),)), SourceIndex("t2", (SourceKey("v"),))],
            ))
        schema = convert(_schema(*tables), dialect=dflt).schema
        names = list(schema)
        for t in schema.values():
            names += [fk.name for fk in t.foreign_keys] + [i.name for i in t.indexes]
        assert len(names) == len({n.lower() for n in names})


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------

class _Resolver(IdentifierNameResolver):
    """Refuses table ``legacy`` and column ``secret``."""

    def resolve_table_name(self, source_table: str) -> str:
        if source_table == "legacy":
            raise NameNotFoundError("legacy tables are not migrated")
        return super().resolve_table_name(source_table)

    def resolve_column_name(self, source_table: str, source_column: str, must_exist: bool = False) -> str:
        if source_column == "secret":
            raise NameNotFoundError("secret columns are not migrated")
        return super().resolve_column_name(source_table, source_column, must_exist)


class TestFailureIsolation:
    @pytest.fixture
    def schema(self) -> SourceSchema:
        legacy = SourceTable.from_columns("legacy", [_col("id", "int8")])
        accounts = SourceTable.from_columns(
            "accounts",
            [_col("id", "int8"), _col("secret", "text"), _col("name", "text")],
            primary_keys=[SourceKey("id"), SourceKey("secret")],
            foreign_keys=[
                SourceForeignKey("fk_legacy", ("id",), "legacy", ("id",)),
                SourceForeignKey("fk_self", ("id",), "accounts", ("id",)),
            ],
        )
        return _schema(legacy, accounts)

    def test_failing_table_skipped(self, schema, dflt) -> None:
        result = convert(schema, dialect=dflt, name_resolver=_Resolver())
        assert list(result.schema) == ["accounts"]
        table_diags = [d for d in result.diagnostics if d.kind == EntityKind.TABLE]
        assert table_diags and all(d.table == "legacy" for d in table_diags)

    def test_failing_column_skipped(self, schema, dflt) -> None:
        result = convert(schema, dialect=dflt, name_resolver=_Resolver())
        accounts = result.schema["accounts"]
        assert accounts.col_names == ("id", "name")
        assert accounts.primary_keys == (IndexKey("id"),)
        kinds = {d.kind for d in result.diagnostics}
        assert {EntityKind.COLUMN, EntityKind.PRIMARY_KEY} <= kinds

    def test_foreign_key_to_failing_table_dropped(self, schema, dflt) -> None:
        result = convert(schema, dialect=dflt, name_resolver=_Resolver())
        accounts = result.schema["accounts"]
        assert [fk.name for fk in accounts.foreign_keys] == ["fk_self"]
        [fk_diag] = [d for d in result.diagnostics if d.kind == EntityKind.FOREIGN_KEY]
        assert "accounts" in fk_diag.reason and "legacy" in fk_diag.reason

    def test_mismatched_foreign_key_never_partial(self, dflt) -> None:
        t = SourceTable.from_columns(
            "t",
            [_col("a", "int8"), _col("b", "int8")],
            foreign_keys=[SourceForeignKey("fk", ("a", "b"), "t", ("a",))],
        )
        result = convert(_schema(t), dialect=dflt)
        assert result.schema["t"].foreign_keys == ()
        assert len(result.diagnostics) == 1

    def test_reference_to_missing_column_dropped(self, dflt) -> None:
        parent = SourceTable.from_columns("parent", [_col("id", "int8")])
        child = SourceTable.from_columns(
            "child",
            [_col("parent_id", "int8")],
            foreign_keys=[SourceForeignKey("fk_parent", ("parent_id",), "parent", ("uuid",))],
        )
        result = convert(_schema(child, parent), dialect=dflt)
        assert result.schema["child"].foreign_keys == ()
        [diag] = result.diagnostics
        assert diag.kind == EntityKind.FOREIGN_KEY
        assert "uuid" in diag.reason

    def test_reference_to_later_table_leaves_its_columns_alone(self, dflt) -> None:
        a = SourceTable.from_columns(
            "a",
            [_col("bid", "int8")],
            foreign_keys=[SourceForeignKey("fk_b", ("bid",), "b", ("Id",))],
        )
        b = SourceTable.from_columns("b", [_col("id", "int8")], primary_keys=[SourceKey("id")])
        result = convert(_schema(a, b), dialect=dflt)
        assert result.schema["b"].col_names == ("id",)
        assert result.schema["b"].primary_keys == (IndexKey("id"),)
        assert result.schema["a"].foreign_keys == ()
        [diag] = result.diagnostics
        assert diag.kind == EntityKind.FOREIGN_KEY
        assert diag.name == "fk_b"
        assert "'Id'" in diag.reason

    def test_reference_to_later_renamed_table_resolved(self, dflt) -> None:
        items = SourceTable.from_columns(
            "line items",
            [_col("order id", "int8")],
            foreign_keys=[SourceForeignKey("fk_order", ("order id",), "customer orders", ("order id",))],
        )
        orders = SourceTable.from_columns("customer orders", [_col("order id", "int8")])
        result = convert(_schema(items, orders), dialect=dflt)
        assert list(result.schema) == ["line_items", "customer_orders"]
        [fk] = result.schema["line_items"].foreign_keys
        assert (fk.columns, fk.refer_table, fk.refer_columns) == (
            ("order_id",), "customer_orders", ("order_id",),
        )
        assert result.diagnostics == []


# ---------------------------------------------------------------------------
# Determinism and configuration
# ---------------------------------------------------------------------------

class TestDeterminism:
    def test_two_runs_identical(self, shop, dflt) -> None:
        first = json.dumps(convert(shop, dialect=dflt).to_dict(), sort_keys=True)
        second = json.dumps(convert(shop, dialect=dflt).to_dict(), sort_keys=True)
        assert first == second

    def test_converter_reusable(self, shop, dflt) -> None:
        converter = SchemaConverter(dialect=dflt)
        assert converter.convert(shop).to_dict() == converter.convert(shop).to_dict()

    def test_source_untouched(self, shop, dflt) -> None:
        before = repr(shop)
        convert(shop, dialect=dflt)
        assert repr(shop) == before


class TestDialect:
    def test_experimental_postgres(self, shop) -> None:
        result = convert(shop, dialect=TargetDialect.EXPERIMENTAL_POSTGRES)
        orders = result.schema["orders"]
        assert orders.col_defs["tags"].type == TargetType(TypeName.STRING, MAX_LENGTH)
        assert orders.col_defs["matrix"].type == TargetType(TypeName.STRING, MAX_LENGTH)
        assert SchemaIssue.MULTI_DIMENSIONAL_ARRAY not in result.issues.get("orders", "matrix")


class TestReferenceResolverHook:
    def test_called_once_with_finished_schema(self, shop, dflt) -> None:
        calls = []

        def spy(schema, resolver, diagnostics) -> None:
            calls.append(list(schema))

        convert(shop, dialect=dflt, reference_resolver=spy)
        assert calls == [["users", "orders"]]


class TestEmpty:
    def test_empty_schema(self, dflt) -> None:
        result = convert({}, dialect=dflt)
        assert isinstance(result, ConversionResult)
        assert result.schema == {}
        assert result.clean


class TestQuoteIfNeeded:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("name", "name"),
            ("a.b-c", "a.b-c"),
            ("two words", '"two words"'),
            ('q"x y', '"q\\"x y"'),
            ("a\nb", '"a\\nb"'),
            ("tab\there", '"tab\\there"'),
        ],
    )
    def test_quoting(self, raw: str, expected: str) -> None:
        assert quote_if_needed(raw) == expected


class TestRunLogging:
    def test_warnings_carry_run_id(self, dflt, caplog) -> None:
        t = SourceTable.from_columns(
            "t", [_col("a", "int8")], indexes=[SourceIndex("ix", (SourceKey("ghost"),))]
        )
        with caplog.at_level(logging.WARNING, logger="schemaconv"):
            result = convert(_schema(t), dialect=dflt)
        assert result.run_id
        assert caplog.records
        for record in caplog.records:
            assert record.run_id == result.run_id
            assert record.getMessage().startswith(f"[run {result.run_id}] ")

    def test_each_run_gets_its_own_id(self, shop, dflt) -> None:
        first = convert(shop, dialect=dflt)
        second = convert(shop, dialect=dflt)
        assert first.run_id != second.run_id
        assert first == second
