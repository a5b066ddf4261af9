# File: apiforge/templates.py
"""
APIForge - Template Engine
============================
Renders one artifact from its render context.

Templates live in ``apiforge/jinja/`` and are addressed by ``ArtifactKind``.
Each kind accepts exactly one context type (see ``contexts.CONTEXT_TYPES``);
handing a template any other value is a ``TemplateRenderError`` rather than
a half-rendered file.

The environment is strict: a template referencing a field the context does
not carry fails instead of rendering an empty string.  The only computation
available inside templates is the filter set from ``apiforge.utils``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template
from jinja2 import TemplateError as JinjaTemplateError

from apiforge.contexts import CONTEXT_TYPES, ArtifactKind, context_as_mapping
from apiforge.errors import TemplateRenderError
from apiforge.utils import TEMPLATE_FILTERS

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_TEMPLATE_DIR: Path = Path(__file__).resolve().parent / "jinja"

TEMPLATE_NAMES: Dict[ArtifactKind, str] = {
    ArtifactKind.MIGRATION: "migration.sql.j2",
    ArtifactKind.VALIDATION_SCHEMA: "zod_schema.ts.j2",
    ArtifactKind.REPOSITORY: "repository_edge.ts.j2",
    ArtifactKind.ENDPOINT: "edge_function.ts.j2",
    ArtifactKind.MODEL: "model.ts.j2",
    ArtifactKind.SERVICE: "service.ts.j2",
    ArtifactKind.HOOK: "hook.ts.j2",
    ArtifactKind.ADMIN_PAGE: "admin_page.tsx.j2",
    ArtifactKind.DEMO_COMPONENT: "demo_component.tsx.j2",
    ArtifactKind.CLI_CLIENT: "cli_client.ts.j2",
}


def build_environment(template_dir: Optional[Path] = None) -> Environment:
    """Create the jinja2 environment with the APIForge filters registered."""
    env: Environment = Environment(
        loader=FileSystemLoader(str(template_dir or DEFAULT_TEMPLATE_DIR)),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        autoescape=False,  # generates SQL / TypeScript, not HTML
    )
    env.filters.update(TEMPLATE_FILTERS)
    return env


class TemplateEngine:
    """
    Render artifacts by kind.

    The environment (and its compiled-template cache) is created once per
    engine and is safe to reuse across every schema of a batch.
    """

    def __init__(self, template_dir: Optional[Path] = None) -> None:
        self.template_dir: Path = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
        self._env: Environment = build_environment(self.template_dir)
        logger.debug("TemplateEngine initialised (templates: %s).", self.template_dir)

    @property
    def environment(self) -> Environment:
        return self._env

    def template_name(self, kind: Union[ArtifactKind, str]) -> str:
        """Template file name for *kind*; ``TemplateRenderError`` if the kind is unknown."""
        try:
            resolved: ArtifactKind = ArtifactKind(kind)
        except ValueError:
            raise TemplateRenderError(str(kind), "unknown artifact kind") from None
        return TEMPLATE_NAMES[resolved]

    def render(self, kind: Union[ArtifactKind, str], context: Any) -> str:
        """
        Render the template designated for *kind* with *context*.

        Raises:
            TemplateRenderError: unknown kind, context of the wrong type,
                missing template, or a context field the template needs is
                absent.
        """
        name: str = self.template_name(kind)
        resolved: ArtifactKind = ArtifactKind(kind)

        expected: type = CONTEXT_TYPES[resolved]
        if not isinstance(context, expected):
            raise TemplateRenderError(
                name,
                f"expected {expected.__name__}, got {type(context).__name__}",
            )

        try:
            template: Template = self._env.get_template(name)
            rendered: str = template.render(**context_as_mapping(context))
        except JinjaTemplateError as exc:
            raise TemplateRenderError(name, f"{type(exc).__name__}: {exc}") from exc

        logger.debug("Rendered %s (%d chars).", name, len(rendered))
        return rendered


__all__: List[str] = [
    "DEFAULT_TEMPLATE_DIR",
    "TEMPLATE_NAMES",
    "build_environment",
    "TemplateEngine",
]

logger.debug("apiforge.templates loaded — %d public symbols.", len(__all__))
