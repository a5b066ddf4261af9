# File: apiforge/loader.py
"""
APIForge - Schema Loader
=========================

Turns a schema document (YAML or JSON file, or an already-parsed mapping)
into a validated, immutable ``EntitySchema``.

Failure modes:
    - ``SchemaIOError``     the file is missing, not a file, or unreadable.
    - ``SchemaFormatError`` the text does not parse, the top level is not a
                            mapping, or the structure does not match the
                            model (missing keys, wrong value types, enum
                            fields without values, colliding field names).

No semantic validation happens here: a ``references`` target or an
operation filter naming a field that does not exist is accepted as-is.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from apiforge.errors import SchemaFormatError, SchemaIOError
from apiforge.models import EntitySchema, GeneratorConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge.loader")

SchemaSource = Union[str, Path, Mapping[str, Any]]

_ModelT = TypeVar("_ModelT", bound=BaseModel)


# ---------------------------------------------------------------------------
# Raw document parsing
# ---------------------------------------------------------------------------


def _read_text(path: Path) -> str:
    if not path.exists():
        raise SchemaIOError(path, "file not found")
    if not path.is_file():
        raise SchemaIOError(path, "not a file")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SchemaIOError(path, str(exc)) from exc


def _parse_json(text: str, path: Path) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaFormatError(f"Invalid JSON: {exc}", path) from exc


def _parse_yaml(text: str, path: Path) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaFormatError(f"Invalid YAML: {exc}", path) from exc


def load_document(path: Path) -> Dict[str, Any]:
    """
    Read and parse a YAML/JSON document.

    Dispatches on the file extension; unknown extensions try JSON first and
    fall back to YAML.

    Raises:
        SchemaIOError: the file cannot be read.
        SchemaFormatError: the text does not parse into a mapping.
    """
    text: str = _read_text(path)
    suffix: str = path.suffix.lower()

    data: Any
    if suffix in (".yaml", ".yml"):
        data = _parse_yaml(text, path)
    elif suffix == ".json":
        data = _parse_json(text, path)
    else:
        logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
        try:
            data = _parse_json(text, path)
        except SchemaFormatError:
            data = _parse_yaml(text, path)

    if not isinstance(data, dict):
        raise SchemaFormatError(
            f"Expected a mapping at top level, got {type(data).__name__}.", path
        )
    return data


# ---------------------------------------------------------------------------
# Pydantic validation
# ---------------------------------------------------------------------------


def format_pydantic_error(error: ValidationError) -> str:
    """Format a pydantic ``ValidationError`` as one ``loc: msg`` line per problem."""
    messages: List[str] = []
    for err in error.errors():
        loc: str = ".".join(str(x) for x in err["loc"])
        msg: str = err["msg"]
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "\n".join(messages)


def _validate(model: Type[_ModelT], raw: Mapping[str, Any], source: Optional[Path]) -> _ModelT:
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        raise SchemaFormatError(format_pydantic_error(exc), source) from exc


def parse_raw_schema(raw: Mapping[str, Any], source: Optional[Path] = None) -> EntitySchema:
    """Validate an already-parsed mapping into an ``EntitySchema``."""
    return _validate(EntitySchema, raw, source)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def load(source: SchemaSource) -> EntitySchema:
    """
    Load an entity schema from a file path or a parsed mapping.

    Args:
        source: Path to a ``.yaml``/``.yml``/``.json`` file, or a mapping
                with the document's top-level keys.

    Returns:
        The immutable ``EntitySchema``.

    Raises:
        SchemaIOError: the file cannot be read.
        SchemaFormatError: the document is malformed or incomplete.
    """
    if isinstance(source, Mapping):
        return parse_raw_schema(source)

    path: Path = Path(source)
    raw: Dict[str, Any] = load_document(path)
    schema: EntitySchema = parse_raw_schema(raw, path)
    logger.info(
        "Loaded schema %s from %s (%d fields, %d operations).",
        schema.name,
        path,
        len(schema.fields),
        len(schema.operations),
    )
    return schema


def load_config(path: Optional[Union[str, Path]] = None) -> GeneratorConfig:
    """
    Load a ``GeneratorConfig`` file, or return the defaults when *path* is None.

    Raises the same ``SchemaIOError`` / ``SchemaFormatError`` pair as ``load``.
    """
    if path is None:
        return GeneratorConfig()
    config_path: Path = Path(path)
    raw: Dict[str, Any] = load_document(config_path)
    config: GeneratorConfig = _validate(GeneratorConfig, raw, config_path)
    logger.info("Loaded generator config from %s.", config_path)
    return config


__all__: List[str] = [
    "SchemaSource",
    "load",
    "load_document",
    "load_config",
    "parse_raw_schema",
    "format_pydantic_error",
]
