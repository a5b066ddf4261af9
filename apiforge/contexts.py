# File: apiforge/contexts.py
"""
APIForge - Render Context Builders
====================================

Architecture::

    EntitySchema (AST) ──build_<kind>_context()──▶ <Kind>Context (view) ──▶ template

Each artifact kind has exactly one frozen context dataclass and one pure
builder function.  ``build_context(kind, schema)`` dispatches on
``ArtifactKind``.  Contexts hold only tuples and other frozen values, so two
contexts built from the same schema never share mutable state.

Filter deduplication
--------------------
Hook and CLI-client templates declare one typed filter parameter per enum
field *and* one per operation filter.  If an operation filters on an enum
field, the generated code would declare the same identifier twice.  For
those artifacts the shared ``build_operation_contexts`` routine is called
with ``OperationFilterOptions(exclude_enum_fields_from_filters=True)``.
Service and endpoint artifacts keep the filters untouched; their consumer
performs the equivalent elimination downstream.

Artifacts that declare a filters interface receive ``declared_filters``: the
deduplicated filter names with the TypeScript type of the field each one
names (``string`` when no field matches).
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from apiforge.models import (
    OWNER_FIELD,
    UPDATED_AT_FIELD,
    EntityField,
    EntitySchema,
    Operation,
    OperationType,
)
from apiforge.utils import camel_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge.contexts")


class ArtifactKind(str, Enum):
    """Every artifact the generator produces, in emission order."""

    MIGRATION = "migration"
    VALIDATION_SCHEMA = "validation_schema"
    REPOSITORY = "repository"
    ENDPOINT = "endpoint"
    MODEL = "model"
    SERVICE = "service"
    HOOK = "hook"
    ADMIN_PAGE = "admin_page"
    DEMO_COMPONENT = "demo_component"
    CLI_CLIENT = "cli_client"


# Display-field caps for the UI artifacts.
ADMIN_DISPLAY_FIELD_LIMIT: int = 4
DEMO_DISPLAY_FIELD_LIMIT: int = 3

# Field whose presence switches the UI templates to a long-text layout.
CONTENT_FIELD_NAME: str = "content"

# Type of a filter whose name matches no field.
FALLBACK_FILTER_TYPE: str = "string"

# Methods every generated CLI client defines besides its custom operations.
CLI_CLIENT_BUILTIN_METHODS: FrozenSet[str] = frozenset(
    {"list", "getById", "create", "update", "delete"}
)


# ---------------------------------------------------------------------------
# Shared context pieces
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldContext:
    name: str
    db_name: str
    typescript_type: str
    typescript_default: str
    zod_type: str
    required: bool


@dataclass(frozen=True, slots=True)
class UIFieldContext:
    """``FieldContext`` plus what form widgets need."""

    name: str
    db_name: str
    typescript_type: str
    typescript_default: str
    field_type: str
    required: bool
    enum_values: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class EnumFieldContext:
    name: str
    db_name: str
    enum_values: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FilterContext:
    name: str
    typescript_type: str


@dataclass(frozen=True, slots=True)
class OperationContext:
    op_type: str
    name: Optional[str]
    description: Optional[str]
    filters: Tuple[str, ...]
    limit: Optional[int]


@dataclass(frozen=True, slots=True)
class CustomOpContext:
    name: str
    description: Optional[str]
    filters: Tuple[str, ...]
    limit: Optional[int]


@dataclass(frozen=True, slots=True)
class MigrationFieldContext:
    name: str
    db_name: str
    sql_type: str
    required: bool
    default: Optional[str]
    primary_key: bool
    unique: bool
    references: Optional[str]
    on_delete: Optional[str]
    enum_values: Tuple[str, ...]
    index: bool
    index_type: Optional[str]
    auto_update: bool


@dataclass(frozen=True, slots=True)
class RLSPolicyContext:
    action: str
    name: str
    using: Optional[str]
    with_check: Optional[str]


@dataclass(frozen=True, slots=True)
class ExampleContext:
    title: str
    code: str


# ---------------------------------------------------------------------------
# Field conversions
# ---------------------------------------------------------------------------


def field_context(fld: EntityField) -> FieldContext:
    return FieldContext(
        name=fld.name,
        db_name=fld.db_name,
        typescript_type=fld.typescript_type,
        typescript_default=fld.typescript_default,
        zod_type=fld.zod_type,
        required=fld.required,
    )


def ui_field_context(fld: EntityField) -> UIFieldContext:
    return UIFieldContext(
        name=fld.name,
        db_name=fld.db_name,
        typescript_type=fld.typescript_type,
        typescript_default=fld.typescript_default,
        field_type=fld.field_type.value,
        required=fld.required,
        enum_values=tuple(fld.enum_values or ()),
    )


def enum_field_context(fld: EntityField) -> EnumFieldContext:
    return EnumFieldContext(
        name=fld.name,
        db_name=fld.db_name,
        enum_values=tuple(fld.enum_values or ()),
    )


def migration_field_context(fld: EntityField) -> MigrationFieldContext:
    return MigrationFieldContext(
        name=fld.name,
        db_name=fld.db_name,
        sql_type=fld.sql_type,
        required=fld.required,
        default=fld.sql_default,
        primary_key=fld.primary_key,
        unique=fld.unique,
        references=fld.references,
        on_delete=fld.on_delete,
        enum_values=tuple(fld.enum_values or ()),
        index=fld.index,
        index_type=fld.index_type,
        auto_update=fld.auto_update,
    )


def _fields(fields: Tuple[EntityField, ...]) -> Tuple[FieldContext, ...]:
    return tuple(field_context(f) for f in fields)


def _ui_fields(fields: Tuple[EntityField, ...]) -> Tuple[UIFieldContext, ...]:
    return tuple(ui_field_context(f) for f in fields)


def _enum_fields(schema: EntitySchema) -> Tuple[EnumFieldContext, ...]:
    return tuple(enum_field_context(f) for f in schema.enum_fields())


def _display_fields(schema: EntitySchema, limit: int) -> Tuple[UIFieldContext, ...]:
    candidates: List[EntityField] = [
        f for f in schema.writable_fields() if f.name != OWNER_FIELD.name
    ]
    return _ui_fields(tuple(candidates[:limit]))


def _has_content_field(schema: EntitySchema) -> bool:
    return schema.get_field(CONTENT_FIELD_NAME) is not None


# ---------------------------------------------------------------------------
# Operation contexts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationFilterOptions:
    """
    Options for ``build_operation_contexts``.

    ``exclude_enum_fields_from_filters`` removes enum field names from each
    operation's ``filters``; required by artifacts that also declare enum
    fields on their own.  ``excluded_enum_names`` narrows the removal to the
    enum fields such an artifact actually declares.  ``None`` means every
    enum field of the schema.
    """

    exclude_enum_fields_from_filters: bool = False
    excluded_enum_names: Optional[FrozenSet[str]] = None


KEEP_ALL_FILTERS: OperationFilterOptions = OperationFilterOptions()
EXCLUDE_ENUM_FILTERS: OperationFilterOptions = OperationFilterOptions(
    exclude_enum_fields_from_filters=True
)


def operation_context(op: Operation, excluded: FrozenSet[str] = frozenset()) -> OperationContext:
    return OperationContext(
        op_type=op.op_type.value,
        name=op.name,
        description=op.description,
        filters=tuple(f for f in op.filters if f not in excluded),
        limit=op.limit,
    )


def build_operation_contexts(
    schema: EntitySchema,
    options: OperationFilterOptions = KEEP_ALL_FILTERS,
) -> Tuple[OperationContext, ...]:
    """Convert every operation, in declared order, applying *options*."""
    excluded: FrozenSet[str] = frozenset()
    if options.exclude_enum_fields_from_filters:
        excluded = frozenset(f.name for f in schema.enum_fields())
        if options.excluded_enum_names is not None:
            excluded &= options.excluded_enum_names
    return tuple(operation_context(op, excluded) for op in schema.operations)


def filter_context(schema: EntitySchema, name: str) -> FilterContext:
    fld: Optional[EntityField] = schema.get_field(name)
    return FilterContext(
        name=name,
        typescript_type=fld.typescript_type if fld is not None else FALLBACK_FILTER_TYPE,
    )


def _declared_filters(schema: EntitySchema, names: Iterable[str]) -> Tuple[FilterContext, ...]:
    """One typed declaration per distinct filter name, first-seen order."""
    seen: List[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return tuple(filter_context(schema, name) for name in seen)


def _operation_filter_names(operations: Tuple[OperationContext, ...]) -> List[str]:
    return [name for op in operations for name in op.filters]


def _custom_operations(schema: EntitySchema) -> Tuple[CustomOpContext, ...]:
    return tuple(
        CustomOpContext(
            name=op.name or "",
            description=op.description,
            filters=op.filters,
            limit=op.limit,
        )
        for op in schema.operations_of(OperationType.CUSTOM)
    )


# ---------------------------------------------------------------------------
# Artifact contexts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MigrationContext:
    name: str
    table_name: str
    fields: Tuple[MigrationFieldContext, ...]
    indexed_fields: Tuple[MigrationFieldContext, ...]
    rls: Tuple[RLSPolicyContext, ...]
    has_updated_at: bool
    description: Optional[str]


def build_migration_context(schema: EntitySchema) -> MigrationContext:
    """
    Build the migration view.

    Column order is fixed: generated id, owner reference, declared fields in
    schema order, created-at, updated-at.  The indexed set is therefore the
    owner reference followed by the declared fields flagged ``index``.
    """
    columns: Tuple[EntityField, ...] = schema.columns()
    return MigrationContext(
        name=schema.name,
        table_name=schema.table_name,
        fields=tuple(migration_field_context(f) for f in columns),
        indexed_fields=tuple(migration_field_context(f) for f in schema.indexed_fields()),
        rls=tuple(
            RLSPolicyContext(
                action=p.action,
                name=p.name,
                using=p.using_expr,
                with_check=p.with_check_expr,
            )
            for p in schema.rls_policies
        ),
        has_updated_at=any(
            f.name == UPDATED_AT_FIELD.name and f.auto_update for f in columns
        ),
        description=schema.description,
    )


@dataclass(frozen=True, slots=True)
class ValidationSchemaContext:
    name: str
    table_name: str
    writable_fields: Tuple[FieldContext, ...]
    updatable_fields: Tuple[FieldContext, ...]
    enum_fields: Tuple[EnumFieldContext, ...]


def build_validation_schema_context(schema: EntitySchema) -> ValidationSchemaContext:
    return ValidationSchemaContext(
        name=schema.name,
        table_name=schema.table_name,
        writable_fields=_fields(schema.writable_fields()),
        updatable_fields=_fields(schema.updatable_fields()),
        enum_fields=_enum_fields(schema),
    )


@dataclass(frozen=True, slots=True)
class RepositoryContext:
    name: str
    table_name: str
    fields: Tuple[FieldContext, ...]
    writable_fields: Tuple[FieldContext, ...]
    updatable_fields: Tuple[FieldContext, ...]
    list_filters: Tuple[str, ...]
    all_filters: Tuple[str, ...]
    declared_filters: Tuple[FilterContext, ...]
    custom_operations: Tuple[CustomOpContext, ...]


def build_repository_context(schema: EntitySchema) -> RepositoryContext:
    """
    Build the backend repository view.

    ``all_filters`` starts with the list operation's filters and appends
    every other operation's filters not seen yet, preserving first-seen order.
    """
    list_ops: Tuple[Operation, ...] = schema.operations_of(OperationType.LIST)
    list_filters: Tuple[str, ...] = list_ops[0].filters if list_ops else ()

    all_filters: List[str] = list(list_filters)
    for op in schema.operations:
        for name in op.filters:
            if name not in all_filters:
                all_filters.append(name)

    return RepositoryContext(
        name=schema.name,
        table_name=schema.table_name,
        fields=_fields(schema.columns()),
        writable_fields=_fields(schema.writable_fields()),
        updatable_fields=_fields(schema.updatable_fields()),
        list_filters=list_filters,
        all_filters=tuple(all_filters),
        declared_filters=_declared_filters(schema, all_filters),
        custom_operations=_custom_operations(schema),
    )


@dataclass(frozen=True, slots=True)
class EndpointContext:
    name: str
    table_name: str
    operations: Tuple[OperationContext, ...]
    writable_fields: Tuple[FieldContext, ...]


def build_endpoint_context(schema: EntitySchema) -> EndpointContext:
    return EndpointContext(
        name=schema.name,
        table_name=schema.table_name,
        operations=build_operation_contexts(schema, KEEP_ALL_FILTERS),
        writable_fields=_fields(schema.writable_fields()),
    )


@dataclass(frozen=True, slots=True)
class ModelContext:
    name: str
    table_name: str
    fields: Tuple[FieldContext, ...]
    writable_fields: Tuple[FieldContext, ...]
    updatable_fields: Tuple[FieldContext, ...]
    enum_fields: Tuple[EnumFieldContext, ...]
    owner_field: str


def build_model_context(schema: EntitySchema) -> ModelContext:
    """``owner_field`` names the reference the endpoint fills in on create."""
    return ModelContext(
        name=schema.name,
        table_name=schema.table_name,
        fields=_fields(schema.columns()),
        writable_fields=_fields(schema.writable_fields()),
        updatable_fields=_fields(schema.updatable_fields()),
        enum_fields=_enum_fields(schema),
        owner_field=OWNER_FIELD.name,
    )


@dataclass(frozen=True, slots=True)
class ServiceContext:
    name: str
    table_name: str
    operations: Tuple[OperationContext, ...]
    writable_fields: Tuple[FieldContext, ...]
    updatable_fields: Tuple[FieldContext, ...]
    enum_fields: Tuple[EnumFieldContext, ...]


def build_service_context(schema: EntitySchema) -> ServiceContext:
    return ServiceContext(
        name=schema.name,
        table_name=schema.table_name,
        operations=build_operation_contexts(schema, KEEP_ALL_FILTERS),
        writable_fields=_fields(schema.writable_fields()),
        updatable_fields=_fields(schema.updatable_fields()),
        enum_fields=_enum_fields(schema),
    )


@dataclass(frozen=True, slots=True)
class HookContext:
    name: str
    table_name: str
    operations: Tuple[OperationContext, ...]
    writable_fields: Tuple[FieldContext, ...]
    updatable_fields: Tuple[FieldContext, ...]
    enum_fields: Tuple[EnumFieldContext, ...]
    declared_filters: Tuple[FilterContext, ...]


def build_hook_context(schema: EntitySchema) -> HookContext:
    operations: Tuple[OperationContext, ...] = build_operation_contexts(schema, EXCLUDE_ENUM_FILTERS)
    return HookContext(
        name=schema.name,
        table_name=schema.table_name,
        operations=operations,
        writable_fields=_fields(schema.writable_fields()),
        updatable_fields=_fields(schema.updatable_fields()),
        enum_fields=_enum_fields(schema),
        declared_filters=_declared_filters(schema, _operation_filter_names(operations)),
    )


@dataclass(frozen=True, slots=True)
class CLIClientContext:
    name: str
    table_name: str
    operations: Tuple[OperationContext, ...]
    writable_fields: Tuple[FieldContext, ...]
    updatable_fields: Tuple[FieldContext, ...]
    enum_fields: Tuple[EnumFieldContext, ...]
    declared_filters: Tuple[FilterContext, ...]


def build_cli_client_context(schema: EntitySchema) -> CLIClientContext:
    """
    Build the CLI client view.

    The client emits one helper per enum value after the first (the first is
    the default and gets no helper) and one method per custom operation.
    Helper and method names are the ``camel_case`` forms.  An enum field whose
    helper names would clash with a built-in method, a custom operation or a
    helper already emitted is dropped from ``enum_fields``.  Its filters then
    stay on the operations and are declared with the field's literal type.
    """
    taken: Set[str] = set(CLI_CLIENT_BUILTIN_METHODS)
    taken.update(
        camel_case(op.name) for op in schema.operations_of(OperationType.CUSTOM) if op.name
    )

    enum_fields: List[EnumFieldContext] = []
    for fld in schema.enum_fields():
        helpers: List[str] = [camel_case(v) for v in (fld.enum_values or ())[1:]]
        clashes: List[str] = sorted(
            {h for h in helpers if h in taken or helpers.count(h) > 1}
        )
        if clashes:
            logger.debug(
                "CLI client for %s: dropping enum field '%s' (helpers %s clash with "
                "other client methods).",
                schema.name,
                fld.name,
                clashes,
            )
            continue
        taken.update(helpers)
        enum_fields.append(enum_field_context(fld))

    operations: Tuple[OperationContext, ...] = build_operation_contexts(
        schema,
        OperationFilterOptions(
            exclude_enum_fields_from_filters=True,
            excluded_enum_names=frozenset(f.name for f in enum_fields),
        ),
    )
    return CLIClientContext(
        name=schema.name,
        table_name=schema.table_name,
        operations=operations,
        writable_fields=_fields(schema.writable_fields()),
        updatable_fields=_fields(schema.updatable_fields()),
        enum_fields=tuple(enum_fields),
        declared_filters=_declared_filters(schema, _operation_filter_names(operations)),
    )


@dataclass(frozen=True, slots=True)
class AdminPageContext:
    name: str
    table_name: str
    fields: Tuple[UIFieldContext, ...]
    writable_fields: Tuple[UIFieldContext, ...]
    updatable_fields: Tuple[UIFieldContext, ...]
    display_fields: Tuple[UIFieldContext, ...]
    enum_fields: Tuple[EnumFieldContext, ...]
    has_content_field: bool
    examples: Tuple[ExampleContext, ...]


def build_admin_page_context(schema: EntitySchema) -> AdminPageContext:
    examples: Tuple[ExampleContext, ...] = ()
    if schema.documentation is not None:
        examples = tuple(
            ExampleContext(title=e.title, code=e.code) for e in schema.documentation.examples
        )
    return AdminPageContext(
        name=schema.name,
        table_name=schema.table_name,
        fields=_ui_fields(schema.columns()),
        writable_fields=_ui_fields(schema.writable_fields()),
        updatable_fields=_ui_fields(schema.updatable_fields()),
        display_fields=_display_fields(schema, ADMIN_DISPLAY_FIELD_LIMIT),
        enum_fields=_enum_fields(schema),
        has_content_field=_has_content_field(schema),
        examples=examples,
    )


@dataclass(frozen=True, slots=True)
class DemoComponentContext:
    name: str
    table_name: str
    fields: Tuple[UIFieldContext, ...]
    writable_fields: Tuple[UIFieldContext, ...]
    updatable_fields: Tuple[UIFieldContext, ...]
    display_fields: Tuple[UIFieldContext, ...]
    enum_fields: Tuple[EnumFieldContext, ...]
    has_content_field: bool


def build_demo_component_context(schema: EntitySchema) -> DemoComponentContext:
    return DemoComponentContext(
        name=schema.name,
        table_name=schema.table_name,
        fields=_ui_fields(schema.columns()),
        writable_fields=_ui_fields(schema.writable_fields()),
        updatable_fields=_ui_fields(schema.updatable_fields()),
        display_fields=_display_fields(schema, DEMO_DISPLAY_FIELD_LIMIT),
        enum_fields=_enum_fields(schema),
        has_content_field=_has_content_field(schema),
    )


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

CONTEXT_BUILDERS: Dict[ArtifactKind, Callable[[EntitySchema], Any]] = {
    ArtifactKind.MIGRATION: build_migration_context,
    ArtifactKind.VALIDATION_SCHEMA: build_validation_schema_context,
    ArtifactKind.REPOSITORY: build_repository_context,
    ArtifactKind.ENDPOINT: build_endpoint_context,
    ArtifactKind.MODEL: build_model_context,
    ArtifactKind.SERVICE: build_service_context,
    ArtifactKind.HOOK: build_hook_context,
    ArtifactKind.ADMIN_PAGE: build_admin_page_context,
    ArtifactKind.DEMO_COMPONENT: build_demo_component_context,
    ArtifactKind.CLI_CLIENT: build_cli_client_context,
}

CONTEXT_TYPES: Dict[ArtifactKind, type] = {
    ArtifactKind.MIGRATION: MigrationContext,
    ArtifactKind.VALIDATION_SCHEMA: ValidationSchemaContext,
    ArtifactKind.REPOSITORY: RepositoryContext,
    ArtifactKind.ENDPOINT: EndpointContext,
    ArtifactKind.MODEL: ModelContext,
    ArtifactKind.SERVICE: ServiceContext,
    ArtifactKind.HOOK: HookContext,
    ArtifactKind.ADMIN_PAGE: AdminPageContext,
    ArtifactKind.DEMO_COMPONENT: DemoComponentContext,
    ArtifactKind.CLI_CLIENT: CLIClientContext,
}


def build_context(kind: ArtifactKind, schema: EntitySchema) -> Any:
    """Build the render context for *kind*."""
    return CONTEXT_BUILDERS[ArtifactKind(kind)](schema)


def context_as_mapping(context: Any) -> Dict[str, Any]:
    """Top-level fields of a context as template variables (nested values untouched)."""
    return {f.name: getattr(context, f.name) for f in dataclasses.fields(context)}


__all__: List[str] = [
    "ArtifactKind",
    "FieldContext",
    "UIFieldContext",
    "EnumFieldContext",
    "OperationContext",
    "FilterContext",
    "CustomOpContext",
    "MigrationFieldContext",
    "RLSPolicyContext",
    "ExampleContext",
    "OperationFilterOptions",
    "KEEP_ALL_FILTERS",
    "EXCLUDE_ENUM_FILTERS",
    "build_operation_contexts",
    "filter_context",
    "CLI_CLIENT_BUILTIN_METHODS",
    "MigrationContext",
    "ValidationSchemaContext",
    "RepositoryContext",
    "EndpointContext",
    "ModelContext",
    "ServiceContext",
    "HookContext",
    "CLIClientContext",
    "AdminPageContext",
    "DemoComponentContext",
    "build_migration_context",
    "build_validation_schema_context",
    "build_repository_context",
    "build_endpoint_context",
    "build_model_context",
    "build_service_context",
    "build_hook_context",
    "build_cli_client_context",
    "build_admin_page_context",
    "build_demo_component_context",
    "CONTEXT_BUILDERS",
    "CONTEXT_TYPES",
    "build_context",
    "context_as_mapping",
]

logger.debug("apiforge.contexts loaded — %d public symbols.", len(__all__))
