# File: apiforge/models.py
"""
APIForge - Core Data Models
============================
Pydantic V2 models for the entity schema AST and the generator configuration.
These models are the single source of truth for the entire pipeline:
Schema Loading → Context Building → Template Rendering → File Emission.

An ``EntitySchema`` is built once per input document and is immutable
afterwards (``frozen=True``).  Everything the context builders need is
exposed as pure, order-preserving derivations:

    columns()           id, userId, <declared fields...>, createdAt, updatedAt
    writable_fields()   columns minus primary key and the two timestamps
    updatable_fields()  writable_fields minus the owner reference (userId)
    indexed_fields()    columns flagged index=True
    enum_fields()       columns of type enum
    get_field(name)     first column with that name, or None

Type projections (SQL / TypeScript / Zod) are exhaustive lookups keyed by
``FieldType``; adding a member without extending every table fails the
model test-suite.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from apiforge.utils import sql_string, ts_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge.models")

# ---------------------------------------------------------------------------
# Enums: closed tags used across the entire project
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    """Supported entity field types."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    UUID = "uuid"
    TIMESTAMP = "timestamp"
    ENUM = "enum"
    ARRAY = "array"
    JSON = "json"


class ArrayElementType(str, Enum):
    """Element types allowed inside an ``array`` field."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    UUID = "uuid"


class OperationType(str, Enum):
    """Operations an entity API can expose."""

    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CUSTOM = "custom"


# ---------------------------------------------------------------------------
# Type projection tables (one entry per enum member)
# ---------------------------------------------------------------------------

SQL_TYPES: Dict[FieldType, str] = {
    FieldType.STRING: "TEXT",
    FieldType.NUMBER: "NUMERIC",
    FieldType.INTEGER: "INTEGER",
    FieldType.BOOLEAN: "BOOLEAN",
    FieldType.UUID: "UUID",
    FieldType.TIMESTAMP: "TIMESTAMPTZ",
    FieldType.ENUM: "TEXT",
    FieldType.ARRAY: "TEXT[]",
    FieldType.JSON: "JSONB",
}

TYPESCRIPT_TYPES: Dict[FieldType, str] = {
    FieldType.STRING: "string",
    FieldType.NUMBER: "number",
    FieldType.INTEGER: "number",
    FieldType.BOOLEAN: "boolean",
    FieldType.UUID: "string",
    FieldType.TIMESTAMP: "string",
    FieldType.ENUM: "string",
    FieldType.ARRAY: "string[]",
    FieldType.JSON: "Record<string, unknown>",
}

ZOD_TYPES: Dict[FieldType, str] = {
    FieldType.STRING: "z.string()",
    FieldType.NUMBER: "z.number()",
    FieldType.INTEGER: "z.number().int()",
    FieldType.BOOLEAN: "z.boolean()",
    FieldType.UUID: "z.string().uuid()",
    FieldType.TIMESTAMP: "z.string().datetime()",
    FieldType.ENUM: "z.string()",
    FieldType.ARRAY: "z.array(z.string())",
    FieldType.JSON: "z.record(z.unknown())",
}

# Defaults for required fields; optional fields always default to null.
TYPESCRIPT_DEFAULTS: Dict[FieldType, str] = {
    FieldType.STRING: "''",
    FieldType.NUMBER: "0",
    FieldType.INTEGER: "0",
    FieldType.BOOLEAN: "false",
    FieldType.UUID: "null",
    FieldType.TIMESTAMP: "null",
    FieldType.ENUM: "''",
    FieldType.ARRAY: "[]",
    FieldType.JSON: "{}",
}

ARRAY_ELEMENT_SQL_TYPES: Dict[ArrayElementType, str] = {
    ArrayElementType.STRING: "TEXT",
    ArrayElementType.NUMBER: "NUMERIC",
    ArrayElementType.INTEGER: "INTEGER",
    ArrayElementType.BOOLEAN: "BOOLEAN",
    ArrayElementType.UUID: "UUID",
}

ARRAY_ELEMENT_TYPESCRIPT_TYPES: Dict[ArrayElementType, str] = {
    ArrayElementType.STRING: "string",
    ArrayElementType.NUMBER: "number",
    ArrayElementType.INTEGER: "number",
    ArrayElementType.BOOLEAN: "boolean",
    ArrayElementType.UUID: "string",
}

ARRAY_ELEMENT_ZOD_TYPES: Dict[ArrayElementType, str] = {
    ArrayElementType.STRING: "z.string()",
    ArrayElementType.NUMBER: "z.number()",
    ArrayElementType.INTEGER: "z.number().int()",
    ArrayElementType.BOOLEAN: "z.boolean()",
    ArrayElementType.UUID: "z.string().uuid()",
}

# SQL defaults that are expressions, never quoted.
_UNQUOTED_DEFAULT_PREFIXES: Tuple[str, ...] = ("'", "gen_random_uuid", "NOW")


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=False,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Field
# ---------------------------------------------------------------------------


class Validation(BaseModel):
    """Per-field validation rules, projected into the Zod schema."""

    model_config = _SHARED_CONFIG

    min_length: Optional[int] = Field(default=None, ge=0, alias="minLength")
    max_length: Optional[int] = Field(default=None, ge=0, alias="maxLength")
    min: Optional[float] = Field(default=None)
    max: Optional[float] = Field(default=None)
    email: bool = Field(default=False)
    url: bool = Field(default=False)
    pattern: Optional[str] = Field(default=None)


class EntityField(BaseModel):
    """
    One field of an entity.

    ``name`` is the code-side identifier (camelCase), ``db_name`` the column
    name (snake_case).  Every generated layer refers to the field through one
    of these two names.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Field name in code.")
    db_name: str = Field(..., min_length=1, alias="dbName", description="Column name.")
    field_type: FieldType = Field(..., alias="type", description="Field type tag.")
    required: bool = Field(default=False)
    default: Optional[str] = Field(default=None, description="SQL default expression.")
    primary_key: bool = Field(default=False, alias="primaryKey")
    unique: bool = Field(default=False)
    references: Optional[str] = Field(
        default=None, description="Foreign key target, e.g. 'auth.users(id)'."
    )
    on_delete: Optional[str] = Field(default=None, alias="onDelete")
    index: bool = Field(default=False)
    index_type: Optional[str] = Field(default=None, alias="indexType")
    enum_values: Optional[Tuple[str, ...]] = Field(default=None, alias="enumValues")
    array_element_type: Optional[ArrayElementType] = Field(default=None, alias="arrayType")
    validation: Optional[Validation] = Field(default=None)
    auto_update: bool = Field(default=False, alias="autoUpdate")

    # -- Validators ---------------------------------------------------------

    @field_validator("default", mode="before")
    @classmethod
    def _stringify_default(cls, v: Any) -> Any:
        # YAML turns `default: false` / `default: 0` into native scalars.
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @model_validator(mode="before")
    @classmethod
    def _default_array_element_type(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        field_type: Any = data.get("type", data.get("field_type"))
        if field_type in (FieldType.ARRAY, FieldType.ARRAY.value):
            if data.get("arrayType") is None and data.get("array_element_type") is None:
                data = dict(data)
                data["array_element_type"] = ArrayElementType.STRING
        return data

    @model_validator(mode="after")
    def _validate_enum_values(self) -> "EntityField":
        if self.field_type is FieldType.ENUM and not self.enum_values:
            raise ValueError(
                f"Field '{self.name}' is of type enum but 'enumValues' is missing or empty."
            )
        return self

    # -- Type projections ---------------------------------------------------

    @property
    def sql_type(self) -> str:
        if self.field_type is FieldType.ARRAY:
            element: ArrayElementType = self.array_element_type or ArrayElementType.STRING
            return f"{ARRAY_ELEMENT_SQL_TYPES[element]}[]"
        return SQL_TYPES[self.field_type]

    @property
    def sql_default(self) -> Optional[str]:
        """Declared default, single-quoted for text-like fields unless already an expression."""
        if self.default is None:
            return None
        if self.field_type in (FieldType.STRING, FieldType.ENUM):
            if self.default.startswith(_UNQUOTED_DEFAULT_PREFIXES):
                return self.default
            return sql_string(self.default)
        return self.default

    @property
    def typescript_type(self) -> str:
        if self.field_type is FieldType.ENUM:
            return " | ".join(ts_string(v) for v in self.enum_values or ())
        if self.field_type is FieldType.ARRAY:
            element: ArrayElementType = self.array_element_type or ArrayElementType.STRING
            return f"{ARRAY_ELEMENT_TYPESCRIPT_TYPES[element]}[]"
        return TYPESCRIPT_TYPES[self.field_type]

    @property
    def typescript_default(self) -> str:
        if not self.required:
            return "null"
        if self.field_type is FieldType.ENUM and self.enum_values:
            return ts_string(self.enum_values[0])
        return TYPESCRIPT_DEFAULTS[self.field_type]

    @property
    def zod_type(self) -> str:
        """Zod expression for the field, including validation refinements."""
        if self.field_type is FieldType.ENUM:
            values: str = ", ".join(ts_string(v) for v in self.enum_values or ())
            return f"z.enum([{values}])"
        if self.field_type is FieldType.ARRAY:
            element: ArrayElementType = self.array_element_type or ArrayElementType.STRING
            return f"z.array({ARRAY_ELEMENT_ZOD_TYPES[element]})"

        zod: str = ZOD_TYPES[self.field_type]
        rules: Optional[Validation] = self.validation
        if rules is None:
            return zod

        if self.field_type is FieldType.STRING:
            if rules.min_length is not None:
                zod += f".min({rules.min_length})"
            if rules.max_length is not None:
                zod += f".max({rules.max_length})"
            if rules.email:
                zod += ".email()"
            if rules.url:
                zod += ".url()"
            if rules.pattern:
                zod += f".regex(new RegExp({rules.pattern!r}))"
        elif self.field_type in (FieldType.NUMBER, FieldType.INTEGER):
            if rules.min is not None:
                zod += f".min({_format_number(rules.min)})"
            if rules.max is not None:
                zod += f".max({_format_number(rules.max)})"
        return zod

    @property
    def is_enum(self) -> bool:
        return self.field_type is FieldType.ENUM

    def __repr__(self) -> str:
        flags: str = " PK" if self.primary_key else ""
        return f"<Field {self.name} ({self.db_name}) {self.field_type.value}{flags}>"


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(value)


# ---------------------------------------------------------------------------
# Operations, RLS, documentation
# ---------------------------------------------------------------------------


class Operation(BaseModel):
    """One API operation; ``filters`` are field names."""

    model_config = _SHARED_CONFIG

    op_type: OperationType = Field(..., alias="type")
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None)
    filters: Tuple[str, ...] = Field(default_factory=tuple)
    limit: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _custom_requires_name(self) -> "Operation":
        if self.op_type is OperationType.CUSTOM and not self.name:
            raise ValueError("Custom operations require a 'name'.")
        return self


class RLSPolicy(BaseModel):
    """Row-level security policy, passed through verbatim to the migration."""

    model_config = _SHARED_CONFIG

    action: str = Field(..., min_length=1, description="SELECT, INSERT, UPDATE or DELETE.")
    name: str = Field(..., min_length=1)
    using_expr: Optional[str] = Field(default=None, alias="using")
    with_check_expr: Optional[str] = Field(default=None, alias="withCheck")


class Example(BaseModel):
    model_config = _SHARED_CONFIG

    title: str
    code: str


class Documentation(BaseModel):
    model_config = _SHARED_CONFIG

    description: Optional[str] = Field(default=None)
    examples: Tuple[Example, ...] = Field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Standard fields synthesized around the declared ones
# ---------------------------------------------------------------------------

ID_FIELD: EntityField = EntityField(
    name="id",
    db_name="id",
    field_type=FieldType.UUID,
    required=True,
    primary_key=True,
    default="gen_random_uuid()",
)

OWNER_FIELD: EntityField = EntityField(
    name="userId",
    db_name="user_id",
    field_type=FieldType.UUID,
    required=True,
    references="auth.users(id)",
    on_delete="CASCADE",
    index=True,
)

CREATED_AT_FIELD: EntityField = EntityField(
    name="createdAt",
    db_name="created_at",
    field_type=FieldType.TIMESTAMP,
    required=True,
    default="NOW()",
)

UPDATED_AT_FIELD: EntityField = EntityField(
    name="updatedAt",
    db_name="updated_at",
    field_type=FieldType.TIMESTAMP,
    required=True,
    default="NOW()",
    auto_update=True,
)

LEADING_STANDARD_FIELDS: Tuple[EntityField, ...] = (ID_FIELD, OWNER_FIELD)
TRAILING_STANDARD_FIELDS: Tuple[EntityField, ...] = (CREATED_AT_FIELD, UPDATED_AT_FIELD)
STANDARD_FIELDS: Tuple[EntityField, ...] = LEADING_STANDARD_FIELDS + TRAILING_STANDARD_FIELDS

_TIMESTAMP_FIELD_NAMES: frozenset = frozenset({CREATED_AT_FIELD.name, UPDATED_AT_FIELD.name})


# ---------------------------------------------------------------------------
# EntitySchema (root of the AST)
# ---------------------------------------------------------------------------


class EntitySchema(BaseModel):
    """
    The root model: one data entity, end-to-end.

    Invariant: no declared field collides (by ``name`` or ``db_name``) with
    another declared field or with a standard field, and no declared field
    is a primary key.  ``columns()`` therefore never contains duplicates.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Entity name (PascalCase).")
    table_name: str = Field(..., min_length=1, alias="tableName")
    fields: Tuple[EntityField, ...] = Field(..., description="Declared fields.")
    operations: Tuple[Operation, ...] = Field(...)
    rls_policies: Tuple[RLSPolicy, ...] = Field(..., alias="rls")
    documentation: Optional[Documentation] = Field(default=None)

    @model_validator(mode="after")
    def _reject_field_collisions(self) -> "EntitySchema":
        reserved_names: Dict[str, str] = {f.name: f.name for f in STANDARD_FIELDS}
        reserved_names.update({f.db_name: f.name for f in STANDARD_FIELDS})

        seen_names: Set[str] = set()
        seen_db_names: Set[str] = set()
        for fld in self.fields:
            for candidate in (fld.name, fld.db_name):
                if candidate in reserved_names:
                    raise ValueError(
                        f"Field '{fld.name}' collides with the standard field "
                        f"'{reserved_names[candidate]}', which is always generated. "
                        "Remove it from the schema."
                    )
            if fld.primary_key:
                raise ValueError(
                    f"Field '{fld.name}' is marked primaryKey; the primary key "
                    f"'{ID_FIELD.name}' is always generated."
                )
            if fld.name in seen_names:
                raise ValueError(f"Duplicate field name '{fld.name}'.")
            if fld.db_name in seen_db_names:
                raise ValueError(f"Duplicate field dbName '{fld.db_name}'.")
            seen_names.add(fld.name)
            seen_db_names.add(fld.db_name)
        return self

    # -- Derivations ------------------------------------------------------

    def columns(self) -> Tuple[EntityField, ...]:
        """Standard id + owner, declared fields in order, then the two timestamps."""
        return LEADING_STANDARD_FIELDS + self.fields + TRAILING_STANDARD_FIELDS

    def get_field(self, name: str) -> Optional[EntityField]:
        for fld in self.columns():
            if fld.name == name:
                return fld
        return None

    def writable_fields(self) -> Tuple[EntityField, ...]:
        return tuple(
            f
            for f in self.columns()
            if not f.primary_key and f.name not in _TIMESTAMP_FIELD_NAMES
        )

    def updatable_fields(self) -> Tuple[EntityField, ...]:
        return tuple(f for f in self.writable_fields() if f.name != OWNER_FIELD.name)

    def indexed_fields(self) -> Tuple[EntityField, ...]:
        return tuple(f for f in self.columns() if f.index)

    def enum_fields(self) -> Tuple[EntityField, ...]:
        return tuple(f for f in self.columns() if f.field_type is FieldType.ENUM)

    def operations_of(self, op_type: OperationType) -> Tuple[Operation, ...]:
        return tuple(op for op in self.operations if op.op_type is op_type)

    def operation_names(self) -> Set[str]:
        return {op.name for op in self.operations if op.name}

    @property
    def description(self) -> Optional[str]:
        return self.documentation.description if self.documentation else None

    def __repr__(self) -> str:
        return (
            f"<EntitySchema {self.name} ({self.table_name}): "
            f"{len(self.fields)} fields, {len(self.operations)} operations>"
        )


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class OutputLayout(BaseModel):
    """Directories (relative to the project root) that receive each artifact."""

    model_config = _SHARED_CONFIG

    migrations_dir: str = Field(default="supabase/migrations")
    functions_dir: str = Field(default="supabase/functions")
    shared_repositories_dir: str = Field(default="supabase/functions/_shared/repositories")
    frontend_models_dir: str = Field(default="packages/app-frontend/src/models")
    frontend_services_dir: str = Field(default="packages/app-frontend/src/services")
    frontend_hooks_dir: str = Field(default="packages/app-frontend/src/hooks")
    frontend_admin_dir: str = Field(default="packages/app-frontend/src/pages/admin")
    frontend_features_dir: str = Field(default="packages/app-frontend/src/components/features")
    cli_clients_dir: str = Field(default="packages/app-cli/clients")

    migration_ext: str = Field(default="sql", min_length=1)
    source_ext: str = Field(default="ts", min_length=1)
    component_ext: str = Field(default="tsx", min_length=1)

    @field_validator("migration_ext", "source_ext", "component_ext")
    @classmethod
    def _strip_dot(cls, v: str) -> str:
        return v.lstrip(".")


class GeneratorConfig(BaseModel):
    """
    Master configuration for a generation run.

    Loaded from an optional YAML/JSON file; every key has a default that
    reproduces the standard monorepo layout.
    """

    model_config = _SHARED_CONFIG

    layout: OutputLayout = Field(default_factory=OutputLayout)
    timestamp_format: str = Field(
        default="%Y%m%d%H%M%S",
        min_length=1,
        description="strftime format of the migration filename prefix.",
    )
    overwrite_existing: bool = Field(
        default=True,
        description="Overwrite artifacts that already exist on disk.",
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldType",
    "ArrayElementType",
    "OperationType",
    "SQL_TYPES",
    "TYPESCRIPT_TYPES",
    "ZOD_TYPES",
    "TYPESCRIPT_DEFAULTS",
    "Validation",
    "EntityField",
    "Operation",
    "RLSPolicy",
    "Example",
    "Documentation",
    "ID_FIELD",
    "OWNER_FIELD",
    "CREATED_AT_FIELD",
    "UPDATED_AT_FIELD",
    "STANDARD_FIELDS",
    "EntitySchema",
    "OutputLayout",
    "GeneratorConfig",
]

logger.debug("apiforge.models loaded — %d public symbols.", len(__all__))
