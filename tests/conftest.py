"""
tests/conftest.py
Shared fixtures for the apiforge test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import pathlib
from datetime import datetime
from typing import Any, Dict

import pytest
import yaml

from apiforge.loader import load
from apiforge.models import EntitySchema


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"

FIXED_NOW: datetime = datetime(2025, 1, 2, 3, 4, 5)
FIXED_TIMESTAMP: str = "20250102030405"


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def article_schema(schema_dict: Dict[str, Any]) -> EntitySchema:
    return load(schema_dict)


@pytest.fixture()
def material_schema_dict() -> Dict[str, Any]:
    """
    An entity whose list *and* custom operation both filter on the enum
    field ``type``, plus a plain ``category`` filter shared by both.
    """
    return {
        "name": "Material",
        "tableName": "materials",
        "fields": [
            {"name": "title", "dbName": "title", "type": "string", "required": True},
            {
                "name": "type",
                "dbName": "type",
                "type": "enum",
                "required": True,
                "enumValues": ["video", "audio", "text"],
            },
            {"name": "category", "dbName": "category", "type": "string", "index": True},
        ],
        "operations": [
            {"type": "list", "filters": ["type", "category"]},
            {"type": "get"},
            {"type": "create"},
            {"type": "custom", "name": "byType", "filters": ["type", "category"], "limit": 10},
        ],
        "rls": [
            {"action": "SELECT", "name": "Owner can read", "using": "auth.uid() = user_id"},
        ],
    }


@pytest.fixture()
def material_schema(material_schema_dict: Dict[str, Any]) -> EntitySchema:
    return load(material_schema_dict)


@pytest.fixture()
def minimal_schema_dict() -> Dict[str, Any]:
    """Smallest valid schema: no declared fields, no operations, no policies."""
    return {
        "name": "Tag",
        "tableName": "tags",
        "fields": [],
        "operations": [],
        "rls": [],
    }


# ---------------------------------------------------------------------------
# File fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "article.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def schema_json_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "article.json"
    path.write_text(json.dumps(schema_dict, indent=2), encoding="utf-8")
    return path


@pytest.fixture()
def material_yaml_path(material_schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "material.yaml"
    path.write_text(yaml.safe_dump(material_schema_dict), encoding="utf-8")
    return path


@pytest.fixture()
def malformed_yaml_path(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "broken.yaml"
    path.write_text("name: Broken\nfields: [unclosed\n", encoding="utf-8")
    return path


@pytest.fixture()
def incomplete_yaml_path(tmp_path: pathlib.Path) -> pathlib.Path:
    """Parses as YAML but is missing required keys."""
    path = tmp_path / "incomplete.yaml"
    path.write_text("name: Incomplete\ntableName: incompletes\n", encoding="utf-8")
    return path


@pytest.fixture()
def project_root(tmp_path: pathlib.Path) -> pathlib.Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture()
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture()
def fixed_timestamp() -> str:
    return FIXED_TIMESTAMP
