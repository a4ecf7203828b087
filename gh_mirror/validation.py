"""
Validation — Error types and startup checks.

Every error raised by gh-mirror derives from GhMirrorError so the CLI can
report it with a single handler.

## Usage

    from gh_mirror.validation import validate_target_dir, ConfigurationError

    try:
        target = validate_target_dir(Path("mirrors"))
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}")
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Dict, Optional


class GhMirrorError(Exception):
    """Base class for gh-mirror errors."""


class ValidationError(GhMirrorError):
    """Raised when a value fails validation."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        self.message = message
        self.field = field
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class ConfigurationError(ValidationError):
    """Raised when configuration is missing or invalid."""
    pass


def validate_target_dir(path: Path) -> Path:
    """
    Resolve and validate the mirror target directory.

    Returns:
        Absolute path to the directory

    Raises:
        ConfigurationError: If the path cannot be resolved, stat'ed,
            or is not a directory
    """
    try:
        resolved = Path(os.path.abspath(os.fspath(path)))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"error resolving absolute path to {str(path)!r}: {e}")

    try:
        info = resolved.stat()
    except OSError as e:
        raise ConfigurationError(
            f"could not stat {str(resolved)!r}: {e}",
            details={"path": str(resolved), "errno": e.errno},
        )

    if not stat.S_ISDIR(info.st_mode):
        raise ConfigurationError(
            f"{str(resolved)!r} is not a directory",
            details={"path": str(resolved)},
        )

    return resolved


def validate_workers(workers: int) -> int:
    """Validate the worker pool size."""
    if workers < 1:
        raise ConfigurationError(
            f"must be at least 1, got {workers}", field="workers"
        )
    return workers
