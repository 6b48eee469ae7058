"""
SecureShred - Multi-Pass File and Directory Shredder
====================================================

Overwrites files several times, randomizes their names and unlinks
them, recursing through directory trees.

Security Notice:
- Symbolic links are never followed
- Fail-closed: nothing is destroyed without explicit confirmation
- Destroyed file names can be kept out of logs
- Best-effort only on SSDs and copy-on-write filesystems
"""

from secureshred.core.config import ShredderConfig
from secureshred.core.logging import get_shred_logger
from secureshred.core.shred import (
    FailureReason,
    Pattern,
    PassFailurePolicy,
    ShredConfig,
    ShredEngine,
    ShredOutcome,
    shred,
)

__version__ = "0.1.0"
__author__ = "SecureShred Team"

__all__ = [
    "ShredderConfig",
    "get_shred_logger",
    "FailureReason",
    "Pattern",
    "PassFailurePolicy",
    "ShredConfig",
    "ShredEngine",
    "ShredOutcome",
    "shred",
    "__version__",
]
