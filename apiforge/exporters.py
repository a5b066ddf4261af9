# File: apiforge/exporters.py
"""
APIForge - Artifact Emitter (File-System Manager)
===================================================

Responsible for:
    1. Computing where each artifact lives under the project root.
    2. Creating missing parent directories.
    3. Writing artifacts as UTF-8, atomically per file (write-to-temp then
       rename).
    4. Recording a per-artifact ``EmitResult`` (bytes, lines, checksum, error).

Writes are not transactional across files: if artifact *k* fails, artifacts
``1..k-1`` stay on disk.  Without ``fail_fast`` every artifact is attempted;
with it, emission stops right after the first failure.

The project root is always passed in explicitly; nothing here walks up the
directory tree looking for one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from apiforge.contexts import ArtifactKind
from apiforge.errors import FileWriteError
from apiforge.models import OutputLayout
from apiforge.utils import Timer, count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge.exporters")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeneratedArtifact:
    """One rendered output file, not yet written."""

    kind: ArtifactKind
    path: Path
    content: str
    description: str

    @property
    def line_count(self) -> int:
        return count_lines(self.content)


@dataclass(frozen=True, slots=True)
class EmitResult:
    """Outcome of writing (or, in dry-run mode, not writing) one artifact."""

    artifact: GeneratedArtifact
    path: Path
    success: bool
    bytes_written: int = 0
    sha256: str = ""
    error: Optional[FileWriteError] = None


# ---------------------------------------------------------------------------
# Path computation
# ---------------------------------------------------------------------------


class ArtifactPaths:
    """
    Relative output path per artifact kind.

    ``timestamp`` is the already-formatted migration prefix, so one
    ``ArtifactPaths`` instance yields the same migration name for every call.
    """

    def __init__(self, layout: OutputLayout, timestamp: str) -> None:
        self.layout: OutputLayout = layout
        self.timestamp: str = timestamp

        lay: OutputLayout = layout
        self._builders: Dict[ArtifactKind, Callable[[str, str], Path]] = {
            ArtifactKind.MIGRATION: lambda name, table: Path(lay.migrations_dir)
            / f"{self.timestamp}_create_{table}_table.{lay.migration_ext}",
            ArtifactKind.VALIDATION_SCHEMA: lambda name, table: Path(lay.functions_dir)
            / f"{table}-crud"
            / f"schema.{lay.source_ext}",
            ArtifactKind.REPOSITORY: lambda name, table: Path(lay.shared_repositories_dir)
            / f"{name}Repository.{lay.source_ext}",
            ArtifactKind.ENDPOINT: lambda name, table: Path(lay.functions_dir)
            / f"{table}-crud"
            / f"index.{lay.source_ext}",
            ArtifactKind.MODEL: lambda name, table: Path(lay.frontend_models_dir)
            / f"{name}.{lay.source_ext}",
            ArtifactKind.SERVICE: lambda name, table: Path(lay.frontend_services_dir)
            / f"{name}Service.{lay.source_ext}",
            ArtifactKind.HOOK: lambda name, table: Path(lay.frontend_hooks_dir)
            / f"use{name}s.{lay.source_ext}",
            ArtifactKind.ADMIN_PAGE: lambda name, table: Path(lay.frontend_admin_dir)
            / f"{name}AdminPage.{lay.component_ext}",
            ArtifactKind.DEMO_COMPONENT: lambda name, table: Path(lay.frontend_features_dir)
            / table
            / f"{name}sDemo.{lay.component_ext}",
            ArtifactKind.CLI_CLIENT: lambda name, table: Path(lay.cli_clients_dir)
            / f"{name}sClient.{lay.source_ext}",
        }

    def path_for(self, kind: ArtifactKind, name: str, table_name: str) -> Path:
        """Relative path of *kind* for entity *name* stored in *table_name*."""
        return self._builders[ArtifactKind(kind)](name, table_name)


# ---------------------------------------------------------------------------
# FileEmitter
# ---------------------------------------------------------------------------


class FileEmitter:
    """
    Writes ``GeneratedArtifact`` objects under a project root.

    Usage::

        emitter = FileEmitter(Path("."))
        results = emitter.emit(artifacts)
        failed = [r for r in results if not r.success]

    Thread-safety: NOT thread-safe.  Use one emitter per run.
    """

    def __init__(
        self,
        root: Union[str, Path],
        *,
        dry_run: bool = False,
        overwrite: bool = True,
        atomic_writes: bool = True,
    ) -> None:
        """
        Args:
            root: Project root every artifact path is relative to.
            dry_run: Record results without touching the filesystem.
            overwrite: If False, an existing target is a write failure.
            atomic_writes: Use the write-to-temp + rename pattern.
        """
        self.root: Path = Path(root).resolve()
        self.dry_run: bool = dry_run
        self.overwrite: bool = overwrite
        self.atomic_writes: bool = atomic_writes

        logger.debug(
            "FileEmitter initialised: root=%s, dry_run=%s, overwrite=%s.",
            self.root,
            self.dry_run,
            self.overwrite,
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def emit(
        self,
        artifacts: Iterable[GeneratedArtifact],
        *,
        fail_fast: bool = False,
    ) -> List[EmitResult]:
        """
        Write every artifact in order and return one result per attempt.

        With ``fail_fast`` the returned list ends at the first failed result;
        artifacts after it are not attempted.
        """
        results: List[EmitResult] = []

        with Timer("emit") as timer:
            for artifact in artifacts:
                result: EmitResult = self._emit_one(artifact)
                results.append(result)
                if not result.success and fail_fast:
                    logger.debug("fail_fast: stopping after %s.", result.path)
                    break

        written: int = sum(1 for r in results if r.success)
        failed: int = len(results) - written
        if failed:
            logger.error(
                "Emitted %d artifact(s), %d failed, in %.3fs.",
                written,
                failed,
                timer.elapsed,
            )
        else:
            logger.info(
                "Emitted %d artifact(s)%s in %.3fs.",
                written,
                " (dry run)" if self.dry_run else "",
                timer.elapsed,
            )
        return results

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _emit_one(self, artifact: GeneratedArtifact) -> EmitResult:
        target: Path = self.root / artifact.path
        checksum: str = sha256_hex(artifact.content)

        if self.dry_run:
            logger.info("[dry-run] would write %s", artifact.path)
            return EmitResult(
                artifact=artifact,
                path=target,
                success=True,
                bytes_written=0,
                sha256=checksum,
            )

        if not self.overwrite and target.exists():
            return self._failure(artifact, target, "already exists and overwrite is disabled")

        try:
            size: int = write_file(target, artifact.content, atomic=self.atomic_writes)
        except OSError as exc:
            return self._failure(artifact, target, f"{type(exc).__name__}: {exc}")

        logger.info("Wrote %s (%d bytes, %d lines).", artifact.path, size, artifact.line_count)
        return EmitResult(
            artifact=artifact,
            path=target,
            success=True,
            bytes_written=size,
            sha256=checksum,
        )

    @staticmethod
    def _failure(artifact: GeneratedArtifact, target: Path, reason: str) -> EmitResult:
        error: FileWriteError = FileWriteError(target, reason)
        logger.error(error.message)
        return EmitResult(artifact=artifact, path=target, success=False, error=error)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GeneratedArtifact",
    "EmitResult",
    "ArtifactPaths",
    "FileEmitter",
]

logger.debug("apiforge.exporters loaded.")
