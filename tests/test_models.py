"""
tests/test_models.py
Unit tests for apiforge.models: field projections, standard-field synthesis,
derived views and the generator configuration.
"""

from __future__ import annotations

from typing import Any, Dict

import pytest
from pydantic import ValidationError

from apiforge.models import (
    SQL_TYPES,
    TYPESCRIPT_DEFAULTS,
    TYPESCRIPT_TYPES,
    ZOD_TYPES,
    ArrayElementType,
    EntityField,
    EntitySchema,
    FieldType,
    GeneratorConfig,
    Operation,
    OperationType,
    OutputLayout,
)


def _field(**kwargs: Any) -> EntityField:
    data: Dict[str, Any] = {"name": "title", "dbName": "title", "type": "string"}
    data.update(kwargs)
    return EntityField.model_validate(data)


# ===========================================================================
# Projections
# ===========================================================================


class TestProjectionTables:
    def test_every_field_type_is_covered(self) -> None:
        for table in (SQL_TYPES, TYPESCRIPT_TYPES, ZOD_TYPES, TYPESCRIPT_DEFAULTS):
            assert set(table) == set(FieldType)

    @pytest.mark.parametrize(
        "field_type, sql",
        [
            ("string", "TEXT"),
            ("number", "NUMERIC"),
            ("integer", "INTEGER"),
            ("boolean", "BOOLEAN"),
            ("uuid", "UUID"),
            ("timestamp", "TIMESTAMPTZ"),
            ("json", "JSONB"),
        ],
    )
    def test_sql_type(self, field_type: str, sql: str) -> None:
        assert _field(type=field_type).sql_type == sql


class TestEnumField:
    def test_literal_union_in_declared_order(self) -> None:
        fld = _field(type="enum", enumValues=["b", "a", "c"])
        assert fld.typescript_type == "'b' | 'a' | 'c'"
        assert fld.zod_type == "z.enum(['b', 'a', 'c'])"
        assert fld.sql_type == "TEXT"
        assert fld.is_enum

    def test_required_default_is_first_value(self) -> None:
        fld = _field(type="enum", enumValues=["draft", "published"], required=True)
        assert fld.typescript_default == "'draft'"

    def test_quotes_in_values_are_escaped(self) -> None:
        fld = _field(type="enum", enumValues=["it's", "plain"], required=True, default="it's")
        assert fld.typescript_type == "'it\\'s' | 'plain'"
        assert fld.zod_type == "z.enum(['it\\'s', 'plain'])"
        assert fld.typescript_default == "'it\\'s'"
        assert fld.sql_default == "'it''s'"

    def test_optional_default_is_null(self) -> None:
        fld = _field(type="enum", enumValues=["draft", "published"])
        assert fld.typescript_default == "null"

    @pytest.mark.parametrize("values", [None, []])
    def test_missing_values_rejected(self, values: Any) -> None:
        data: Dict[str, Any] = {"name": "s", "dbName": "s", "type": "enum"}
        if values is not None:
            data["enumValues"] = values
        with pytest.raises(ValidationError, match="enumValues"):
            EntityField.model_validate(data)


class TestArrayField:
    def test_element_type_defaults_to_string(self) -> None:
        fld = _field(type="array")
        assert fld.array_element_type is ArrayElementType.STRING
        assert fld.sql_type == "TEXT[]"
        assert fld.typescript_type == "string[]"
        assert fld.zod_type == "z.array(z.string())"

    def test_explicit_element_type(self) -> None:
        fld = _field(type="array", arrayType="integer")
        assert fld.sql_type == "INTEGER[]"
        assert fld.typescript_type == "number[]"
        assert fld.zod_type == "z.array(z.number().int())"

    def test_unknown_element_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _field(type="array", arrayType="json")


class TestDefaults:
    @pytest.mark.parametrize(
        "field_type, expected",
        [
            ("string", "''"),
            ("number", "0"),
            ("integer", "0"),
            ("boolean", "false"),
            ("array", "[]"),
            ("json", "{}"),
            ("uuid", "null"),
            ("timestamp", "null"),
        ],
    )
    def test_required_typescript_defaults(self, field_type: str, expected: str) -> None:
        assert _field(type=field_type, required=True).typescript_default == expected

    def test_optional_is_always_null(self) -> None:
        assert _field(type="number").typescript_default == "null"

    def test_sql_default_quotes_text(self) -> None:
        assert _field(default="hello").sql_default == "'hello'"
        assert _field(default="it's").sql_default == "'it''s'"

    @pytest.mark.parametrize("expr", ["'already'", "gen_random_uuid()", "NOW()"])
    def test_sql_default_keeps_expressions(self, expr: str) -> None:
        assert _field(default=expr).sql_default == expr

    def test_sql_default_non_text_passes_through(self) -> None:
        assert _field(type="integer", default=0).sql_default == "0"
        assert _field(type="boolean", default=False).sql_default == "false"

    def test_no_default(self) -> None:
        assert _field().sql_default is None


class TestZodRefinements:
    def test_string_rules(self) -> None:
        fld = _field(validation={"minLength": 1, "maxLength": 200, "email": True})
        assert fld.zod_type == "z.string().min(1).max(200).email()"

    def test_number_rules(self) -> None:
        fld = _field(type="number", validation={"min": 0, "max": 9.5})
        assert fld.zod_type == "z.number().min(0).max(9.5)"

    def test_uuid_and_timestamp(self) -> None:
        assert _field(type="uuid").zod_type == "z.string().uuid()"
        assert _field(type="timestamp").zod_type == "z.string().datetime()"


# ===========================================================================
# Operations
# ===========================================================================


class TestOperation:
    def test_custom_requires_name(self) -> None:
        with pytest.raises(ValidationError, match="name"):
            Operation.model_validate({"type": "custom"})

    def test_filters_default_empty(self) -> None:
        op = Operation.model_validate({"type": "list"})
        assert op.op_type is OperationType.LIST
        assert op.filters == ()

    def test_limit_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Operation.model_validate({"type": "list", "limit": 0})


# ===========================================================================
# EntitySchema
# ===========================================================================


class TestStandardFields:
    def test_column_order(self, article_schema: EntitySchema) -> None:
        names = [f.name for f in article_schema.columns()]
        assert names[:2] == ["id", "userId"]
        assert names[-2:] == ["createdAt", "updatedAt"]
        assert names[2:-2] == [f.name for f in article_schema.fields]

    def test_id_field(self, article_schema: EntitySchema) -> None:
        fld = article_schema.get_field("id")
        assert fld is not None
        assert fld.primary_key
        assert fld.sql_default == "gen_random_uuid()"

    def test_owner_field(self, article_schema: EntitySchema) -> None:
        fld = article_schema.get_field("userId")
        assert fld is not None
        assert fld.db_name == "user_id"
        assert fld.references == "auth.users(id)"
        assert fld.on_delete == "CASCADE"
        assert fld.index

    def test_updated_at_auto_updates(self, article_schema: EntitySchema) -> None:
        fld = article_schema.get_field("updatedAt")
        assert fld is not None and fld.auto_update

    def test_columns_have_no_duplicates(self, article_schema: EntitySchema) -> None:
        names = [f.name for f in article_schema.columns()]
        assert len(names) == len(set(names))


class TestDerivations:
    def test_writable_excludes_pk_and_timestamps(self, article_schema: EntitySchema) -> None:
        names = [f.name for f in article_schema.writable_fields()]
        assert names == ["userId", "title", "content", "status", "viewCount", "tags", "isFeatured"]

    def test_updatable_excludes_owner(self, article_schema: EntitySchema) -> None:
        names = [f.name for f in article_schema.updatable_fields()]
        assert names == ["title", "content", "status", "viewCount", "tags", "isFeatured"]

    def test_indexed_is_owner_plus_declared(self, article_schema: EntitySchema) -> None:
        assert [f.name for f in article_schema.indexed_fields()] == ["userId", "status"]

    def test_enum_fields(self, article_schema: EntitySchema) -> None:
        assert [f.name for f in article_schema.enum_fields()] == ["status"]

    def test_get_field_missing(self, article_schema: EntitySchema) -> None:
        assert article_schema.get_field("nope") is None

    def test_operations_of(self, article_schema: EntitySchema) -> None:
        customs = article_schema.operations_of(OperationType.CUSTOM)
        assert [op.name for op in customs] == ["published"]

    def test_description(self, article_schema: EntitySchema) -> None:
        assert article_schema.description == "Blog articles written by users"

    def test_schema_is_frozen(self, article_schema: EntitySchema) -> None:
        with pytest.raises(ValidationError):
            article_schema.name = "Other"  # type: ignore[misc]


class TestCollisions:
    @pytest.mark.parametrize(
        "name, db_name",
        [
            ("id", "ident"),
            ("userId", "owner"),
            ("owner", "user_id"),
            ("createdAt", "created"),
            ("updated", "updated_at"),
        ],
    )
    def test_standard_field_collision_rejected(
        self, minimal_schema_dict: Dict[str, Any], name: str, db_name: str
    ) -> None:
        minimal_schema_dict["fields"] = [{"name": name, "dbName": db_name, "type": "string"}]
        with pytest.raises(ValidationError, match="collides"):
            EntitySchema.model_validate(minimal_schema_dict)

    def test_declared_primary_key_rejected(self, minimal_schema_dict: Dict[str, Any]) -> None:
        minimal_schema_dict["fields"] = [
            {"name": "code", "dbName": "code", "type": "string", "primaryKey": True}
        ]
        with pytest.raises(ValidationError, match="primaryKey"):
            EntitySchema.model_validate(minimal_schema_dict)

    def test_duplicate_declared_name_rejected(self, minimal_schema_dict: Dict[str, Any]) -> None:
        minimal_schema_dict["fields"] = [
            {"name": "title", "dbName": "title", "type": "string"},
            {"name": "title", "dbName": "title2", "type": "string"},
        ]
        with pytest.raises(ValidationError, match="Duplicate"):
            EntitySchema.model_validate(minimal_schema_dict)


# ===========================================================================
# Config
# ===========================================================================


class TestGeneratorConfig:
    def test_defaults(self) -> None:
        cfg = GeneratorConfig()
        assert cfg.timestamp_format == "%Y%m%d%H%M%S"
        assert cfg.overwrite_existing is True
        assert cfg.layout.migrations_dir == "supabase/migrations"
        assert cfg.layout.cli_clients_dir == "packages/app-cli/clients"

    def test_extension_dot_is_stripped(self) -> None:
        layout = OutputLayout(source_ext=".mts")
        assert layout.source_ext == "mts"

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig.model_validate({"layout": {"bogus_dir": "x"}})
