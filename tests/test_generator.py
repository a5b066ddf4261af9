"""
tests/test_generator.py
End-to-end tests for apiforge.generator.APIGenerator: single-schema
generation, batch isolation and parse-only validation.

Run with:
    pytest tests/ -v
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict

import pytest
import yaml

from apiforge.contexts import ArtifactKind
from apiforge.errors import FileWriteError, SchemaFormatError, SchemaIOError, TemplateRenderError
from apiforge.generator import APIGenerator
from apiforge.models import GeneratorConfig, OutputLayout
from apiforge.templates import TEMPLATE_NAMES, TemplateEngine

EXPECTED_ARTIFACTS = [
    "supabase/migrations/20250102030405_create_articles_table.sql",
    "supabase/functions/articles-crud/schema.ts",
    "supabase/functions/_shared/repositories/ArticleRepository.ts",
    "supabase/functions/articles-crud/index.ts",
    "packages/app-frontend/src/models/Article.ts",
    "packages/app-frontend/src/services/ArticleService.ts",
    "packages/app-frontend/src/hooks/useArticles.ts",
    "packages/app-frontend/src/pages/admin/ArticleAdminPage.tsx",
    "packages/app-frontend/src/components/features/articles/ArticlesDemo.tsx",
    "packages/app-cli/clients/ArticlesClient.ts",
]


def _files_under(root: pathlib.Path):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


# ===========================================================================
# generate_one
# ===========================================================================


class TestGenerateOne:
    def test_writes_every_artifact(
        self, project_root: pathlib.Path, schema_yaml_path: pathlib.Path, fixed_clock
    ) -> None:
        report = APIGenerator(project_root, clock=fixed_clock).generate_one(schema_yaml_path)

        assert report.success
        assert report.entity_name == "Article"
        assert report.table_name == "articles"
        assert _files_under(project_root) == sorted(EXPECTED_ARTIFACTS)
        assert [r.artifact.kind for r in report.files] == list(ArtifactKind)
        assert report.total_bytes == sum(p.stat().st_size for p in project_root.rglob("*") if p.is_file())
        assert report.total_lines > 0
        assert len(report.written_paths) == 10

    def test_summary(self, project_root, schema_yaml_path, fixed_clock) -> None:
        report = APIGenerator(project_root, clock=fixed_clock).generate_one(schema_yaml_path)
        text = report.summary()
        assert "SUCCESS" in text
        assert "Article (articles)" in text
        assert "ArticlesClient.ts" in text
        assert "Generated 10 artifact(s) for Article" in report.description

    def test_mapping_source(self, project_root, schema_dict, fixed_clock) -> None:
        report = APIGenerator(project_root, clock=fixed_clock).generate_one(schema_dict)
        assert report.schema_path == "<mapping>"
        assert (project_root / EXPECTED_ARTIFACTS[0]).exists()

    def test_output_is_deterministic(self, tmp_path, schema_yaml_path, fixed_clock) -> None:
        first, second = tmp_path / "one", tmp_path / "two"
        APIGenerator(first, clock=fixed_clock).generate_one(schema_yaml_path)
        APIGenerator(second, clock=fixed_clock).generate_one(schema_yaml_path)
        for rel in EXPECTED_ARTIFACTS:
            assert (first / rel).read_bytes() == (second / rel).read_bytes()

    def test_dry_run(self, project_root, schema_yaml_path, fixed_clock) -> None:
        report = APIGenerator(project_root, clock=fixed_clock, dry_run=True).generate_one(
            schema_yaml_path
        )
        assert report.success
        assert report.dry_run
        assert report.total_bytes == 0
        assert _files_under(project_root) == []
        assert "Planned 10 artifact(s)" in report.description

    def test_custom_layout(self, project_root, schema_yaml_path, fixed_clock) -> None:
        config = GeneratorConfig(
            layout=OutputLayout(migrations_dir="db/migrations"),
            timestamp_format="%Y%m%d",
        )
        APIGenerator(project_root, config, clock=fixed_clock).generate_one(schema_yaml_path)
        assert (project_root / "db/migrations/20250102_create_articles_table.sql").exists()

    def test_render_artifacts_without_writing(self, project_root, article_schema) -> None:
        generator = APIGenerator(project_root)
        artifacts = generator.render_artifacts(article_schema, timestamp="0")
        assert [a.kind for a in artifacts] == list(ArtifactKind)
        assert artifacts[0].path == pathlib.Path("supabase/migrations/0_create_articles_table.sql")
        assert _files_under(project_root) == []


class TestGenerateOneErrors:
    def test_missing_schema(self, project_root: pathlib.Path) -> None:
        with pytest.raises(SchemaIOError):
            APIGenerator(project_root).generate_one(project_root / "missing.yaml")

    def test_malformed_schema(self, project_root, malformed_yaml_path) -> None:
        with pytest.raises(SchemaFormatError):
            APIGenerator(project_root).generate_one(malformed_yaml_path)
        assert _files_under(project_root) == []

    def test_template_failure_writes_nothing(
        self, tmp_path: pathlib.Path, project_root, schema_yaml_path
    ) -> None:
        templates = tmp_path / "templates"
        templates.mkdir()
        for name in TEMPLATE_NAMES.values():
            (templates / name).write_text("{{ name }}\n", encoding="utf-8")
        (templates / TEMPLATE_NAMES[ArtifactKind.HOOK]).write_text(
            "{{ nonexistent }}\n", encoding="utf-8"
        )

        generator = APIGenerator(project_root, engine=TemplateEngine(templates))
        with pytest.raises(TemplateRenderError):
            generator.generate_one(schema_yaml_path)
        assert _files_under(project_root) == []

    def test_write_failure_keeps_earlier_artifacts(
        self, project_root, schema_yaml_path, fixed_clock
    ) -> None:
        (project_root / "packages").write_text("blocks the frontend tree", encoding="utf-8")

        with pytest.raises(FileWriteError) as excinfo:
            APIGenerator(project_root, clock=fixed_clock).generate_one(schema_yaml_path)

        assert "Article.ts" in excinfo.value.path
        # Backend artifacts precede the model and stay on disk.
        assert (project_root / EXPECTED_ARTIFACTS[0]).exists()
        assert (project_root / EXPECTED_ARTIFACTS[3]).exists()

    def test_overwrite_disabled(self, project_root, schema_yaml_path, fixed_clock) -> None:
        config = GeneratorConfig(overwrite_existing=False)
        generator = APIGenerator(project_root, config, clock=fixed_clock)
        generator.generate_one(schema_yaml_path)
        with pytest.raises(FileWriteError, match="overwrite is disabled"):
            generator.generate_one(schema_yaml_path)


# ===========================================================================
# generate_batch
# ===========================================================================


class TestGenerateBatch:
    def test_failure_is_isolated(
        self,
        project_root,
        malformed_yaml_path,
        schema_yaml_path,
        material_yaml_path,
        fixed_clock,
    ) -> None:
        batch = APIGenerator(project_root, clock=fixed_clock).generate_batch(
            [schema_yaml_path, malformed_yaml_path, material_yaml_path]
        )

        assert not batch.success
        assert len(batch.entries) == 3
        assert len(batch.succeeded) == 2
        assert [e.schema_path for e in batch.failed] == [str(malformed_yaml_path)]
        assert isinstance(batch.failed[0].error, SchemaFormatError)
        assert (project_root / EXPECTED_ARTIFACTS[0]).exists()
        assert (project_root / "packages/app-cli/clients/MaterialsClient.ts").exists()

    def test_summary_lists_failures(self, project_root, malformed_yaml_path, fixed_clock) -> None:
        batch = APIGenerator(project_root, clock=fixed_clock).generate_batch([malformed_yaml_path])
        text = batch.summary()
        assert "Failed:           1" in text
        assert "✗ broken.yaml:" in text

    def test_all_succeed(self, project_root, schema_yaml_path, fixed_clock) -> None:
        batch = APIGenerator(project_root, clock=fixed_clock).generate_batch([schema_yaml_path])
        assert batch.success
        assert batch.entries[0].report is not None
        assert batch.entries[0].report.entity_name == "Article"

    def test_empty_batch(self, project_root) -> None:
        batch = APIGenerator(project_root).generate_batch([])
        assert batch.success
        assert batch.entries == []


# ===========================================================================
# validate
# ===========================================================================


class TestValidate:
    def test_all_valid(self, project_root, schema_yaml_path, material_yaml_path) -> None:
        report = APIGenerator(project_root).validate([schema_yaml_path, material_yaml_path])
        assert report.valid
        assert report.exit_code == 0
        assert [e.entity_name for e in report.entries] == ["Article", "Material"]
        assert _files_under(project_root) == []

    def test_mixed(
        self, project_root, schema_yaml_path, malformed_yaml_path, incomplete_yaml_path
    ) -> None:
        report = APIGenerator(project_root).validate(
            [schema_yaml_path, malformed_yaml_path, incomplete_yaml_path, project_root / "nope.yaml"]
        )
        assert not report.valid
        assert report.exit_code == 1
        assert [e.valid for e in report.entries] == [True, False, False, False]
        assert report.summary().endswith("4 schema(s) checked, 3 invalid.")

    def test_collision_reported(self, project_root, schema_dict: Dict[str, Any], tmp_path) -> None:
        schema_dict["fields"].append({"name": "createdAt", "dbName": "created_at", "type": "timestamp"})
        path = tmp_path / "collide.yaml"
        path.write_text(yaml.safe_dump(schema_dict), encoding="utf-8")
        report = APIGenerator(project_root).validate([path])
        assert report.exit_code == 1
        assert "createdAt" in report.entries[0].message
