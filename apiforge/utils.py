# File: apiforge/utils.py
"""
APIForge - Text Filters & Helpers
==================================

The text filters below are the only computation available inside templates.
They are registered on the jinja2 environment under the same names and are
exported here as plain functions so the context builders and the path
computation use identical rules.

Every filter is total: it is defined for all inputs, including ``""``.

    >>> snake_case("UserProfile")
    'user_profile'
    >>> camel_case("user_profile")
    'userProfile'
    >>> pascal_case("user_profile")
    'UserProfile'
    >>> kebab_case("UserProfile")
    'user-profile'
    >>> singular("categories")
    'category'

The filters are deliberately literal (character-by-character) rather than
word-splitting: ``snake_case("HTTPResponse")`` is ``"h_t_t_p_response"``.
Generated identifiers must match the ones other tools derive the same way.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apiforge.utils")


# ---------------------------------------------------------------------------
# Case-conversion filters
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def snake_case(value: str) -> str:
    """
    Insert ``_`` before each uppercase letter (except the first character),
    then lowercase everything.

    Examples:
        >>> snake_case("UserProfile")
        'user_profile'
        >>> snake_case("userId")
        'user_id'
        >>> snake_case("")
        ''
    """
    chars: List[str] = []
    for i, ch in enumerate(value):
        if ch.isupper() and i > 0:
            chars.append("_")
        chars.append(ch.lower())
    return "".join(chars)


@functools.lru_cache(maxsize=None)
def camel_case(value: str) -> str:
    """
    Treat ``_`` as a word boundary: the character following each ``_`` is
    uppercased and every ``_`` is dropped.

    Examples:
        >>> camel_case("user_id")
        'userId'
        >>> camel_case("user__id")
        'userId'
    """
    chars: List[str] = []
    capitalize_next: bool = False
    for ch in value:
        if ch == "_":
            capitalize_next = True
        elif capitalize_next:
            chars.append(ch.upper())
            capitalize_next = False
        else:
            chars.append(ch)
    return "".join(chars)


@functools.lru_cache(maxsize=None)
def pascal_case(value: str) -> str:
    """``camel_case`` followed by uppercasing the first character."""
    camel: str = camel_case(value)
    if not camel:
        return ""
    return camel[0].upper() + camel[1:]


@functools.lru_cache(maxsize=None)
def kebab_case(value: str) -> str:
    """``snake_case`` with ``_`` replaced by ``-``."""
    return snake_case(value).replace("_", "-")


@functools.lru_cache(maxsize=None)
def singular(value: str) -> str:
    """
    Naive English depluralisation.

    Rules, first match wins:
        1. ``...ies`` → ``...y``
        2. ``...ses`` / ``...zes`` / ``...xes`` → drop the last two characters
        3. ``...s`` → drop the last character
        4. anything else is returned unchanged

    Examples:
        >>> singular("categories")
        'category'
        >>> singular("boxes")
        'box'
        >>> singular("cat")
        'cat'
    """
    if value.endswith("ies"):
        return value[:-3] + "y"
    if value.endswith(("ses", "zes", "xes")):
        return value[:-2]
    if value.endswith("s"):
        return value[:-1]
    return value


def upper(value: str) -> str:
    return value.upper()


def lower(value: str) -> str:
    return value.lower()


# ---------------------------------------------------------------------------
# Literal filters
# ---------------------------------------------------------------------------


def ts_string(value: str) -> str:
    """
    Single-quoted TypeScript string literal.

        >>> ts_string("it's")
        "'it\\\\'s'"
    """
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def sql_string(value: str) -> str:
    """
    Single-quoted SQL string literal (quotes doubled).

        >>> sql_string("it's")
        "'it''s'"
    """
    return "'" + value.replace("'", "''") + "'"


# Registered on the template environment by ``apiforge.templates``.
TEMPLATE_FILTERS: Dict[str, Callable[[str], str]] = {
    "snake_case": snake_case,
    "camel_case": camel_case,
    "pascal_case": pascal_case,
    "kebab_case": kebab_case,
    "singular": singular,
    "upper": upper,
    "lower": lower,
    "ts_string": ts_string,
    "sql_string": sql_string,
}


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path* as UTF-8, creating parent directories.

    When *atomic* is True, writes to a temporary file in the same directory
    first and then replaces the target, so a crash never leaves a truncated
    artifact behind.

    Returns the number of bytes written.  ``OSError`` propagates to the
    caller.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("render artifacts") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "snake_case",
    "camel_case",
    "pascal_case",
    "kebab_case",
    "singular",
    "upper",
    "lower",
    "ts_string",
    "sql_string",
    "TEMPLATE_FILTERS",
    "ensure_directory",
    "write_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("apiforge.utils loaded — %d public symbols.", len(__all__))
