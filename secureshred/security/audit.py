"""
Tamper-Aware Shred Audit Trail
==============================

Append-only record of what a shredding run destroyed.

Paths are stored only as SHA-256 digests, so the audit log proves
that a given file was destroyed without revealing its name to
anyone who does not already know it.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Final, List, Optional

if TYPE_CHECKING:
    from secureshred.core.shred.errors import ShredError
    from secureshred.core.shred.outcome import ShredOutcome
    from secureshred.core.shred.settings import ShredConfig


logger = logging.getLogger(__name__)

_GENESIS_HASH: Final[str] = "genesis"


class AuditEventType(Enum):
    """Types of auditable events."""
    RUN_STARTED = "RUN_STARTED"
    ENTRY_DESTROYED = "ENTRY_DESTROYED"
    ENTRY_FAILED = "ENTRY_FAILED"
    RUN_COMPLETED = "RUN_COMPLETED"


def digest_path(path: Path | str) -> str:
    """SHA-256 of the absolute path, as stored in audit records."""
    absolute = os.path.abspath(os.fspath(path))
    return hashlib.sha256(os.fsencode(absolute)).hexdigest()


@dataclass
class AuditEvent:
    """A single audit record."""
    event_type: AuditEventType
    timestamp: datetime
    path_digest: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    previous_hash: str = field(default="")
    event_hash: str = field(default="")

    def compute_hash(self, previous_hash: str) -> str:
        """Compute event hash for chain integrity."""
        self.previous_hash = previous_hash
        self.event_hash = hashlib.sha256(
            json.dumps(self._payload(), sort_keys=True).encode()
        ).hexdigest()
        return self.event_hash

    def _payload(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "path_digest": self.path_digest,
            "details": self.details,
            "previous_hash": self.previous_hash,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        data = self._payload()
        data["event_hash"] = self.event_hash
        return data


class ShredAuditLog:
    """
    Append-only audit log with chained hashes.

    Each line is a JSON object whose hash covers the previous line's
    hash, so removing or editing a record breaks the chain. Every
    append is fsynced before returning.
    """

    def __init__(self, log_path: Path) -> None:
        self._log_path = Path(log_path)
        self._lock = threading.Lock()
        self._last_hash = _GENESIS_HASH
        self._event_count = 0

        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._load_chain()

    @property
    def path(self) -> Path:
        return self._log_path

    @property
    def event_count(self) -> int:
        return self._event_count

    def _load_chain(self) -> None:
        """Resume the chain from the last record of an existing log."""
        if not self._log_path.exists():
            return

        with open(self._log_path, "r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("Skipping corrupt audit record in %s", self._log_path)
                    continue
                self._last_hash = record.get("event_hash", self._last_hash)
                self._event_count += 1

    def log(
        self,
        event_type: AuditEventType,
        path: Optional[Path] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Append an audit event.

        Returns:
            The event hash
        """
        event = AuditEvent(
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            path_digest=digest_path(path) if path is not None else None,
            details=details or {},
        )

        with self._lock:
            event.compute_hash(self._last_hash)

            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict()) + "\n")
                f.flush()
                os.fsync(f.fileno())

            self._last_hash = event.event_hash
            self._event_count += 1

        return event.event_hash

    def record_start(self, path: Path, config: ShredConfig) -> str:
        """Record the start of a run against one top-level target."""
        return self.log(
            AuditEventType.RUN_STARTED,
            path,
            {
                "passes": config.passes,
                "pattern": config.pattern.value,
                "on_pass_failure": config.on_pass_failure.value,
            },
        )

    def record_outcome(self, outcome: ShredOutcome) -> int:
        """
        Record one event per entry of an outcome tree, then a summary.

        Returns:
            Number of events written
        """
        written = 0
        for node in outcome.walk():
            if node.ok:
                self.log(
                    AuditEventType.ENTRY_DESTROYED,
                    node.path,
                    {
                        "kind": node.kind.value,
                        "passes": len(node.passes),
                        "bytes_overwritten": sum(p.bytes_written for p in node.passes),
                    },
                )
            else:
                self.log(
                    AuditEventType.ENTRY_FAILED,
                    node.path,
                    {
                        "kind": node.kind.value,
                        "reason": node.reason.value if node.reason else None,
                        "reached": node.reached.value,
                        "content_destroyed": node.content_destroyed,
                    },
                )
            written += 1

        self.log(
            AuditEventType.RUN_COMPLETED,
            outcome.path,
            {
                "ok": outcome.ok,
                "succeeded": outcome.succeeded_count,
                "failed": outcome.failed_count,
            },
        )
        return written + 1

    def record_error(self, path: Path, error: ShredError) -> str:
        """Close a run that was refused before any entry was touched."""
        return self.log(
            AuditEventType.RUN_COMPLETED,
            path,
            {
                "ok": False,
                "succeeded": 0,
                "failed": 0,
                "error": type(error).__name__,
                "reason": error.reason.value if error.reason else None,
            },
        )

    def verify_integrity(self) -> tuple[bool, int]:
        """
        Verify log chain integrity.

        Returns:
            Tuple of (is_valid, event_count)
        """
        if not self._log_path.exists():
            return True, 0

        previous_hash = _GENESIS_HASH
        count = 0

        with open(self._log_path, "r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue

                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    return False, count

                if record.get("previous_hash") != previous_hash:
                    return False, count

                stored_hash = record.pop("event_hash", "")
                expected = hashlib.sha256(
                    json.dumps(record, sort_keys=True).encode()
                ).hexdigest()
                if stored_hash != expected:
                    return False, count

                previous_hash = stored_hash
                count += 1

        return True, count

    def get_events(
        self,
        event_type: Optional[AuditEventType] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Get filtered events (read-only)."""
        events: List[Dict[str, Any]] = []

        if not self._log_path.exists():
            return events

        with open(self._log_path, "r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                record = json.loads(line)
                if event_type and record["event_type"] != event_type.value:
                    continue
                events.append(record)
                if len(events) >= limit:
                    break

        return events
