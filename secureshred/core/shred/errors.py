"""
Shredding Errors
================

Failure taxonomy and the exceptions raised for fatal conditions.

Per-entry failures are never raised: they are recorded on the
entry's outcome so that sibling entries keep being processed.
Exceptions are reserved for problems that stop a run before any
destructive work begins.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional


class FailureReason(Enum):
    """Why an entry could not be destroyed."""
    PATH_NOT_FOUND = "path_not_found"
    PERMISSION_DENIED = "permission_denied"
    INCOMPLETE_WRITE = "incomplete_write"
    FLUSH_FAILED = "flush_failed"
    RENAME_COLLISION = "rename_collision"
    RENAME_FAILED = "rename_failed"
    UNLINK_FAILED = "unlink_failed"
    DIR_REMOVE_FAILED = "dir_remove_failed"
    DIRECTORY_ENUMERATION_FAILED = "directory_enumeration_failed"
    CANCELLED = "cancelled"


class ShredError(Exception):
    """Base class for fatal shredding errors."""

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        reason: Optional[FailureReason] = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.reason = reason


class TargetNotFoundError(ShredError):
    """Raised when the top-level target does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Path not found: {path}", path, FailureReason.PATH_NOT_FOUND)


class UnsupportedTargetError(ShredError):
    """Raised when the top-level target is neither a file nor a directory."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Not a file or directory: {path}", path)


class ConfirmationRequiredError(ShredError):
    """Raised when shredding is attempted without confirmation."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Refusing to shred {path}: confirmation has not been granted", path
        )
