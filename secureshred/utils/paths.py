"""
Path Utilities
==============

OS-aware path handling for the shredding engine.

Every query here uses ``lstat`` so that symbolic links are
classified as links and never resolved to their targets.
"""

from __future__ import annotations

import os
import stat
from enum import Enum
from pathlib import Path
from typing import Final, Protocol, Sequence

from secureshred.security.constants import (
    RANDOM_NAME_ALPHABET,
    RANDOM_NAME_LENGTH,
)


class EntryKind(Enum):
    """Classification of a filesystem entry at processing time."""
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"  # FIFO, socket, device node
    MISSING = "missing"


class NameSource(Protocol):
    """Anything that can pick an element from a sequence."""

    def choice(self, seq: Sequence[str]) -> str: ...


_ALPHABET: Final[str] = RANDOM_NAME_ALPHABET


def classify_path(path: Path | str) -> EntryKind:
    """
    Classify a path without following symbolic links.

    Inaccessible paths (permission denied on a parent) are
    reported as MISSING, since nothing can be done with them.
    """
    try:
        mode = os.lstat(path).st_mode
    except (FileNotFoundError, NotADirectoryError, PermissionError):
        return EntryKind.MISSING

    return kind_from_mode(mode)


def kind_from_mode(mode: int) -> EntryKind:
    """Map an ``lstat`` mode to an entry kind."""
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def random_entry_name(rng: NameSource, length: int = RANDOM_NAME_LENGTH) -> str:
    """
    Generate a random alphanumeric filename.

    The name carries no extension so nothing about the original
    file type leaks into the directory entry.
    """
    if length < 1:
        raise ValueError("Name length must be positive")
    return "".join(rng.choice(_ALPHABET) for _ in range(length))


def is_filesystem_root(path: Path) -> bool:
    """Check whether a path is the root of its filesystem tree (``/`` or a drive)."""
    resolved = path.resolve()
    return resolved.parent == resolved
