# File: apiforge/__init__.py
"""
APIForge — Schema-Driven Full-Stack API Generator
===================================================

Turns one declarative entity schema (JSON/YAML) into a coordinated set of
artifacts: a PostgreSQL migration with RLS, a Zod validation schema, an Edge
Function repository and CRUD endpoint, a frontend model, service and React
Query hook, an admin page, a demo component and a Node CLI client.  Every
artifact is rendered from the same canonical model, so names, types and
operations agree across layers.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│  APIGenerator  │────▶│  TemplateEngine  │
    │   (cli.py)   │     │ (generator.py) │     │  (templates.py)  │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
                    ┌────────────┼────────────┬────────────┐
                    ▼            ▼            ▼            ▼
             ┌──────────┐ ┌───────────┐ ┌───────────┐ ┌───────────┐
             │  loader  │ │  models   │ │ contexts  │ │ exporters │
             │  (.py)   │ │  (.py)    │ │  (.py)    │ │  (.py)    │
             └──────────┘ └───────────┘ └───────────┘ └───────────┘

Usage::

    # As a library
    from apiforge import APIGenerator
    report = APIGenerator(".").generate_one("schemas/article.yaml")

    # From the command line
    apiforge generate schemas/article.yaml --verbose
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from apiforge.errors import (
    ApiForgeError,
    FileWriteError,
    SchemaFormatError,
    SchemaIOError,
    TemplateRenderError,
)
from apiforge.models import (
    EntityField,
    EntitySchema,
    FieldType,
    GeneratorConfig,
    Operation,
    OperationType,
    OutputLayout,
    RLSPolicy,
)
from apiforge.loader import load, load_config
from apiforge.contexts import ArtifactKind, OperationFilterOptions, build_context
from apiforge.templates import TemplateEngine
from apiforge.exporters import ArtifactPaths, EmitResult, FileEmitter, GeneratedArtifact
from apiforge.generator import APIGenerator, BatchReport, GenerationReport, ValidationReport
from apiforge.utils import (
    Timer,
    camel_case,
    kebab_case,
    pascal_case,
    singular,
    snake_case,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core orchestrator
    "APIGenerator",
    "GenerationReport",
    "BatchReport",
    "ValidationReport",
    # Errors
    "ApiForgeError",
    "SchemaIOError",
    "SchemaFormatError",
    "TemplateRenderError",
    "FileWriteError",
    # Models
    "EntityField",
    "EntitySchema",
    "FieldType",
    "GeneratorConfig",
    "Operation",
    "OperationType",
    "OutputLayout",
    "RLSPolicy",
    # Loading
    "load",
    "load_config",
    # Contexts & templates
    "ArtifactKind",
    "OperationFilterOptions",
    "build_context",
    "TemplateEngine",
    # Emission
    "ArtifactPaths",
    "EmitResult",
    "FileEmitter",
    "GeneratedArtifact",
    # Utilities
    "Timer",
    "snake_case",
    "camel_case",
    "pascal_case",
    "kebab_case",
    "singular",
]
