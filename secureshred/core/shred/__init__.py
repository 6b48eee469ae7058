"""
SecureShred Shredding Module
============================

Provides irreversible deletion of files and directory trees.

Security Features:
- Multi-pass overwrite with fsync after every pass
- Zeros, ones or pseudorandom fill patterns
- Filename randomization before unlink
- Symbolic links are removed, never followed
- Partial failures reported per entry, never fatal to siblings

Components:
- patterns.py: Fill byte generation
- settings.py: Per-invocation parameters
- outcome.py: Per-entry result tree
- engine.py: Per-file protocol and directory recursion
"""

from secureshred.core.shred.errors import (
    ConfirmationRequiredError,
    FailureReason,
    ShredError,
    TargetNotFoundError,
    UnsupportedTargetError,
)
from secureshred.core.shred.patterns import (
    Pattern,
    RandomSource,
    default_random_source,
    generate_pattern,
    iter_pattern_chunks,
)
from secureshred.core.shred.outcome import EntryState, PassResult, ShredOutcome
from secureshred.core.shred.settings import PassFailurePolicy, ShredConfig
from secureshred.core.shred.engine import ShredEngine, shred

__all__ = [
    "ConfirmationRequiredError",
    "FailureReason",
    "ShredError",
    "TargetNotFoundError",
    "UnsupportedTargetError",
    "Pattern",
    "RandomSource",
    "default_random_source",
    "generate_pattern",
    "iter_pattern_chunks",
    "EntryState",
    "PassResult",
    "ShredOutcome",
    "PassFailurePolicy",
    "ShredConfig",
    "ShredEngine",
    "shred",
]
