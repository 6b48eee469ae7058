"""
Utils module - Path classification and target validation helpers.
"""

from secureshred.utils.paths import EntryKind, classify_path, random_entry_name
from secureshred.utils.validators import ValidationError, validate_shred_target

__all__ = [
    "EntryKind",
    "classify_path",
    "random_entry_name",
    "ValidationError",
    "validate_shred_target",
]
