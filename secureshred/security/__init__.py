"""
Security module - Shredding defaults and the audit trail.
"""

from secureshred.security.constants import (
    DEFAULT_PASSES,
    DEFAULT_CHUNK_SIZE,
    RENAME_ATTEMPTS,
    RANDOM_NAME_LENGTH,
)
from secureshred.security.audit import (
    ShredAuditLog,
    AuditEvent,
    AuditEventType,
    digest_path,
)

__all__ = [
    # Constants
    "DEFAULT_PASSES",
    "DEFAULT_CHUNK_SIZE",
    "RENAME_ATTEMPTS",
    "RANDOM_NAME_LENGTH",
    # Audit
    "ShredAuditLog",
    "AuditEvent",
    "AuditEventType",
    "digest_path",
]
