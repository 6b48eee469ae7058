"""
Shredding parameters for a single invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from secureshred.core.shred.patterns import Pattern
from secureshred.security.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_PASSES,
    MIN_PASSES,
    MIN_RANDOM_NAME_LENGTH,
    RANDOM_NAME_LENGTH,
    RENAME_ATTEMPTS,
)


class PassFailurePolicy(Enum):
    """What to do with the remaining passes once a pass has failed."""
    STOP = "stop"
    CONTINUE = "continue"


@dataclass(frozen=True, slots=True)
class ShredConfig:
    """
    Immutable configuration for one shredding invocation.

    A file that had any failed pass is never renamed or unlinked,
    regardless of ``on_pass_failure``; the policy only decides
    whether the remaining passes are still written.
    """

    passes: int = DEFAULT_PASSES
    pattern: Pattern = Pattern.RANDOM
    confirmed: bool = False
    on_pass_failure: PassFailurePolicy = PassFailurePolicy.STOP
    chunk_size: int = DEFAULT_CHUNK_SIZE
    rename_attempts: int = RENAME_ATTEMPTS
    name_length: int = RANDOM_NAME_LENGTH

    def __post_init__(self) -> None:
        """Validate shredding settings."""
        if isinstance(self.passes, bool) or not isinstance(self.passes, int):
            raise ValueError("Passes must be an integer")
        if self.passes < MIN_PASSES:
            raise ValueError(f"Passes must be at least {MIN_PASSES}")
        if not isinstance(self.pattern, Pattern):
            raise ValueError(f"Invalid pattern: {self.pattern!r}")
        if self.chunk_size < 1:
            raise ValueError("Chunk size must be positive")
        if self.rename_attempts < 1:
            raise ValueError("Rename attempts must be at least 1")
        if self.name_length < MIN_RANDOM_NAME_LENGTH:
            raise ValueError(f"Random name length must be at least {MIN_RANDOM_NAME_LENGTH}")

    def with_confirmation(self) -> ShredConfig:
        """Return a copy with confirmation granted."""
        return replace(self, confirmed=True)
