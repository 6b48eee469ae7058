"""
Validation Utilities
====================

Target validation performed before any destructive work starts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from secureshred.utils.paths import is_filesystem_root


class ValidationError(ValueError):
    """Raised when validation fails."""
    pass


def validate_shred_target(
    path: str | Path,
    home: Optional[Path] = None,
) -> Path:
    """
    Validate a path is a sane target for shredding.

    Refuses paths that would wipe a whole filesystem or a user's
    home directory in one go. The path is not resolved in the
    returned value, so a symlink target stays a symlink.

    Args:
        path: The path to validate
        home: Home directory to protect (defaults to ``Path.home()``)

    Returns:
        The path as a Path object

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(path, str) and not path.strip():
        raise ValidationError("Target path cannot be empty")

    if "\x00" in str(path):
        raise ValidationError("Target path contains invalid characters")

    target = Path(path)

    # A symlink is shredded as the link itself, so its target is irrelevant
    if target.is_symlink():
        return target

    try:
        if is_filesystem_root(target):
            raise ValidationError(f"Refusing to shred filesystem root: {target}")
    except (OSError, RuntimeError) as e:
        raise ValidationError(f"Invalid path: {e}") from e

    protected = home if home is not None else Path.home()
    try:
        if target.resolve() == protected.resolve():
            raise ValidationError(f"Refusing to shred home directory: {target}")
    except (OSError, RuntimeError) as e:
        raise ValidationError(f"Invalid path: {e}") from e

    return target
