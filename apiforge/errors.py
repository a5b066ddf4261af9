# File: apiforge/errors.py
"""
APIForge - Error Taxonomy
==========================

Every failure the generation pipeline can report derives from
``ApiForgeError``.  Library code raises these; only the CLI turns them into
log lines and exit codes.

    ApiForgeError
    ├── SchemaIOError        — schema source cannot be read
    ├── SchemaFormatError    — document does not parse into an EntitySchema
    ├── TemplateRenderError  — unknown template, wrong context, missing field
    └── FileWriteError       — filesystem failure while emitting an artifact
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class ApiForgeError(Exception):
    """Base exception for all APIForge errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Return the error as a JSON-serialisable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class SchemaIOError(ApiForgeError):
    """The schema source could not be read."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path: str = str(path)
        self.reason: str = reason
        super().__init__(
            f"Cannot read schema '{self.path}': {reason}",
            {"path": self.path, "reason": reason},
        )


class SchemaFormatError(ApiForgeError):
    """The schema document is malformed or structurally incomplete."""

    def __init__(self, message: str, source: Optional[Union[str, Path]] = None) -> None:
        self.source: Optional[str] = str(source) if source is not None else None
        self.detail: str = message
        full_message: str = f"{self.source}: {message}" if self.source else message
        super().__init__(full_message, {"source": self.source})


class TemplateRenderError(ApiForgeError):
    """A template is unknown, was given the wrong context, or failed to render."""

    def __init__(self, template: str, reason: str) -> None:
        self.template: str = template
        self.reason: str = reason
        super().__init__(
            f"Failed to render template '{template}': {reason}",
            {"template": template, "reason": reason},
        )


class FileWriteError(ApiForgeError):
    """An artifact could not be written to disk."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path: str = str(path)
        self.reason: str = reason
        super().__init__(
            f"Failed to write '{self.path}': {reason}",
            {"path": self.path, "reason": reason},
        )


__all__: List[str] = [
    "ApiForgeError",
    "SchemaIOError",
    "SchemaFormatError",
    "TemplateRenderError",
    "FileWriteError",
]
