# File: apiforge/generator.py
"""
APIForge - Master Generation Pipeline (Orchestrator)
======================================================

Connects every phase together:

    Schema file → EntitySchema → per-kind context → template → file

The ``APIGenerator`` class provides both a programmatic API and the
backend for the CLI.

Workflow::

    1. Load the schema from a JSON/YAML file (or accept a parsed mapping).
    2. For each ``ArtifactKind``: build its context, render its template.
    3. Hand the rendered artifacts to ``FileEmitter``.
    4. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - ``generate_one`` raises the first ``ApiForgeError``.  Artifacts already
      written stay on disk; nothing is rolled back.
    - ``generate_batch`` isolates every schema file: one failure is recorded
      in the ledger and the remaining files are still processed.
    - ``validate`` never writes anything; it only parses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

from apiforge.contexts import ArtifactKind, build_context
from apiforge.errors import ApiForgeError
from apiforge.exporters import ArtifactPaths, EmitResult, FileEmitter, GeneratedArtifact
from apiforge.loader import SchemaSource, load
from apiforge.models import EntitySchema, GeneratorConfig
from apiforge.templates import TemplateEngine
from apiforge.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge.generator")

Clock = Callable[[], datetime]

ARTIFACT_DESCRIPTIONS: Dict[ArtifactKind, str] = {
    ArtifactKind.MIGRATION: "SQL migration",
    ArtifactKind.VALIDATION_SCHEMA: "Zod validation schema",
    ArtifactKind.REPOSITORY: "Edge Function repository",
    ArtifactKind.ENDPOINT: "Edge Function CRUD endpoint",
    ArtifactKind.MODEL: "Frontend model",
    ArtifactKind.SERVICE: "Frontend service",
    ArtifactKind.HOOK: "React Query hook",
    ArtifactKind.ADMIN_PAGE: "Admin UI page",
    ArtifactKind.DEMO_COMPONENT: "Demo UI component",
    ArtifactKind.CLI_CLIENT: "CLI client",
}


def _source_label(source: SchemaSource) -> str:
    return "<mapping>" if isinstance(source, Mapping) else str(source)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Report produced by ``APIGenerator.generate_one()``."""

    success: bool = False
    schema_path: str = ""
    entity_name: str = ""
    table_name: str = ""
    output_directory: str = ""
    dry_run: bool = False

    files: List[EmitResult] = field(default_factory=list)
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    @property
    def written_paths(self) -> List[Path]:
        return [r.path for r in self.files if r.success]

    @property
    def description(self) -> str:
        verb: str = "Planned" if self.dry_run else "Generated"
        return (
            f"{verb} {len(self.written_paths)} artifact(s) for {self.entity_name} "
            f"(table {self.table_name}): {self.total_lines:,} lines, "
            f"{self.total_bytes:,} bytes."
        )

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  APIForge — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Schema:           {self.schema_path}")
        lines.append(f"  Entity:           {self.entity_name} ({self.table_name})")
        lines.append(f"  Root:             {self.output_directory}")
        lines.append(f"  Files:            {len(self.written_paths)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        if self.dry_run:
            lines.append("  Mode:             dry run (nothing written)")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )
            lines.append(f"{'─'*60}")

        lines.append("  Files:")
        for result in self.files:
            icon = "✓" if result.success else "✗"
            lines.append(f"    {icon} {result.artifact.path}  ({result.artifact.description})")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class BatchEntry:
    """Outcome for one schema file of a batch."""

    schema_path: str
    success: bool
    report: Optional[GenerationReport] = None
    error: Optional[ApiForgeError] = None


@dataclass(frozen=False, slots=True)
class BatchReport:
    """Per-file ledger of a ``generate_batch`` run."""

    entries: List[BatchEntry] = field(default_factory=list)
    total_elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return all(e.success for e in self.entries)

    @property
    def succeeded(self) -> List[BatchEntry]:
        return [e for e in self.entries if e.success]

    @property
    def failed(self) -> List[BatchEntry]:
        return [e for e in self.entries if not e.success]

    def summary(self) -> str:
        lines: List[str] = [
            f"{'='*60}",
            "  APIForge — Batch Report",
            f"{'='*60}",
            f"  Schemas:          {len(self.entries)}",
            f"  Succeeded:        {len(self.succeeded)}",
            f"  Failed:           {len(self.failed)}",
            f"  Total time:       {self.total_elapsed_seconds:.3f}s",
        ]
        if self.failed:
            lines.append(f"{'─'*60}")
            lines.append(f"  Failures ({len(self.failed)}):")
            for entry in self.failed:
                message: str = entry.error.message if entry.error else "unknown error"
                lines.append(f"    ✗ {Path(entry.schema_path).name}: {message}")
        lines.append(f"{'='*60}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class ValidationEntry:
    schema_path: str
    valid: bool
    message: str = ""
    entity_name: str = ""


@dataclass(frozen=False, slots=True)
class ValidationReport:
    """Parse-only verdict for a list of schema files."""

    entries: List[ValidationEntry] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return all(e.valid for e in self.entries)

    @property
    def exit_code(self) -> int:
        return 0 if self.valid else 1

    def summary(self) -> str:
        lines: List[str] = []
        for entry in self.entries:
            if entry.valid:
                lines.append(f"  ✓ {entry.schema_path}: {entry.entity_name}")
            else:
                lines.append(f"  ✗ {entry.schema_path}: {entry.message}")
        invalid: int = sum(1 for e in self.entries if not e.valid)
        lines.append(f"{len(self.entries)} schema(s) checked, {invalid} invalid.")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# APIGenerator
# ---------------------------------------------------------------------------


class APIGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = APIGenerator(Path("."))

        report = generator.generate_one("schemas/article.yaml")
        print(report.summary())

        batch = generator.generate_batch(["a.yaml", "b.yaml"])
        print(batch.summary())

    The generator is reusable: the template environment is built once and
    shared by every schema.  A batch shares nothing else between files.
    """

    def __init__(
        self,
        root: Union[str, Path],
        config: Optional[GeneratorConfig] = None,
        *,
        clock: Optional[Clock] = None,
        dry_run: bool = False,
        engine: Optional[TemplateEngine] = None,
    ) -> None:
        """
        Args:
            root: Project root all artifact paths are relative to.
            config: Output layout and naming options (defaults if None).
            clock: Returns "now" for migration timestamps; injectable for
                   deterministic output.
            dry_run: Render everything but write nothing.
            engine: Template engine to use (a default one is created).
        """
        self.root: Path = Path(root)
        self.config: GeneratorConfig = config or GeneratorConfig()
        self.dry_run: bool = dry_run
        self._clock: Clock = clock or datetime.now
        self._engine: TemplateEngine = engine or TemplateEngine()

        logger.debug(
            "APIGenerator initialised: root=%s, dry_run=%s.",
            self.root,
            self.dry_run,
        )

    # -----------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------

    def timestamp(self) -> str:
        return self._clock().strftime(self.config.timestamp_format)

    def render_artifacts(
        self,
        schema: EntitySchema,
        timestamp: Optional[str] = None,
    ) -> List[GeneratedArtifact]:
        """
        Build and render every artifact for *schema*, in ``ArtifactKind`` order.

        Raises:
            TemplateRenderError: the first template failure.
        """
        paths: ArtifactPaths = ArtifactPaths(self.config.layout, timestamp or self.timestamp())
        artifacts: List[GeneratedArtifact] = []
        for kind in ArtifactKind:
            context = build_context(kind, schema)
            content: str = self._engine.render(kind, context)
            artifacts.append(
                GeneratedArtifact(
                    kind=kind,
                    path=paths.path_for(kind, schema.name, schema.table_name),
                    content=content,
                    description=ARTIFACT_DESCRIPTIONS[kind],
                )
            )
        return artifacts

    # -----------------------------------------------------------------
    # Public: single schema
    # -----------------------------------------------------------------

    def generate_one(self, source: SchemaSource) -> GenerationReport:
        """
        Full pipeline for one schema: load → render → emit.

        Raises:
            SchemaIOError / SchemaFormatError: the schema cannot be loaded.
            TemplateRenderError: a template failed; nothing was written.
            FileWriteError: an artifact could not be written; artifacts
                emitted before it remain on disk.
        """
        report: GenerationReport = GenerationReport(
            schema_path=_source_label(source),
            output_directory=str(self.root.resolve()),
            dry_run=self.dry_run,
        )

        with Timer("generate_one") as total:
            with Timer("load") as t_load:
                schema: EntitySchema = load(source)
            report.entity_name = schema.name
            report.table_name = schema.table_name
            report.step_metrics.append(GenerationStepMetric(
                step_name="Load Schema",
                elapsed_seconds=t_load.elapsed,
                detail=f"{len(schema.columns())} columns, {len(schema.operations)} operations",
            ))

            with Timer("render") as t_render:
                artifacts: List[GeneratedArtifact] = self.render_artifacts(schema)
            report.step_metrics.append(GenerationStepMetric(
                step_name="Render Templates",
                elapsed_seconds=t_render.elapsed,
                detail=f"{len(artifacts)} artifacts",
            ))

            emitter: FileEmitter = FileEmitter(
                self.root,
                dry_run=self.dry_run,
                overwrite=self.config.overwrite_existing,
            )
            with Timer("emit") as t_emit:
                results: List[EmitResult] = emitter.emit(artifacts, fail_fast=True)
            report.files = results
            report.step_metrics.append(GenerationStepMetric(
                step_name="Write Files",
                success=all(r.success for r in results),
                elapsed_seconds=t_emit.elapsed,
                detail=f"{sum(1 for r in results if r.success)} written",
            ))

        report.total_elapsed_seconds = total.elapsed
        report.total_bytes = sum(r.bytes_written for r in results)
        report.total_lines = sum(r.artifact.line_count for r in results if r.success)

        for result in results:
            if result.error is not None:
                raise result.error

        report.success = True
        logger.info(report.description)
        return report

    # -----------------------------------------------------------------
    # Public: batch
    # -----------------------------------------------------------------

    def generate_batch(self, sources: Iterable[SchemaSource]) -> BatchReport:
        """Run ``generate_one`` per schema, recording each failure instead of raising."""
        batch: BatchReport = BatchReport()
        with Timer("generate_batch") as timer:
            for source in sources:
                label: str = _source_label(source)
                try:
                    report: GenerationReport = self.generate_one(source)
                except ApiForgeError as exc:
                    logger.error("%s: %s", label, exc.message)
                    batch.entries.append(BatchEntry(schema_path=label, success=False, error=exc))
                    continue
                batch.entries.append(BatchEntry(schema_path=label, success=True, report=report))
        batch.total_elapsed_seconds = timer.elapsed

        logger.info(
            "Batch finished: %d succeeded, %d failed.",
            len(batch.succeeded),
            len(batch.failed),
        )
        return batch

    # -----------------------------------------------------------------
    # Public: validate
    # -----------------------------------------------------------------

    def validate(self, sources: Iterable[SchemaSource]) -> ValidationReport:
        """Parse every schema without rendering or writing anything."""
        report: ValidationReport = ValidationReport()
        for source in sources:
            label: str = _source_label(source)
            try:
                schema: EntitySchema = load(source)
            except ApiForgeError as exc:
                logger.warning("Invalid schema %s: %s", label, exc.message)
                report.entries.append(ValidationEntry(schema_path=label, valid=False, message=exc.message))
                continue
            report.entries.append(
                ValidationEntry(schema_path=label, valid=True, entity_name=schema.name)
            )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ARTIFACT_DESCRIPTIONS",
    "GenerationStepMetric",
    "GenerationReport",
    "BatchEntry",
    "BatchReport",
    "ValidationEntry",
    "ValidationReport",
    "APIGenerator",
]

logger.debug("apiforge.generator loaded.")
