"""
Shred Outcomes
==============

Result types describing what happened to each filesystem entry.

A run produces a tree of ``ShredOutcome`` nodes mirroring the
directory structure that was processed. Directory nodes succeed
only when every descendant succeeded and the directory itself was
removed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from secureshred.core.shred.errors import FailureReason
from secureshred.utils.paths import EntryKind


class EntryState(Enum):
    """Lifecycle states of an entry during shredding."""
    PENDING = "pending"
    OVERWRITING = "overwriting"
    FLUSHED = "flushed"
    RENAMED = "renamed"
    UNLINKED = "unlinked"
    CHILDREN_PROCESSED = "children_processed"
    REMOVED = "removed"
    FAILED = "failed"


_TERMINAL_SUCCESS = frozenset({EntryState.UNLINKED, EntryState.REMOVED})


@dataclass(frozen=True)
class PassResult:
    """Outcome of one overwrite pass on one file."""
    pass_number: int
    bytes_written: int
    expected_bytes: int
    flushed: bool

    @property
    def complete(self) -> bool:
        return self.bytes_written == self.expected_bytes and self.flushed


@dataclass
class ShredOutcome:
    """Terminal result for one filesystem entry."""
    path: Path
    kind: EntryKind
    state: EntryState = EntryState.PENDING
    reached: EntryState = EntryState.PENDING
    reason: Optional[FailureReason] = None
    message: str = ""
    passes: List[PassResult] = field(default_factory=list)
    children: List[ShredOutcome] = field(default_factory=list)
    content_destroyed: bool = False
    final_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        """True if this entry reached a successful terminal state."""
        return self.state in _TERMINAL_SUCCESS

    def advance(self, state: EntryState) -> None:
        """Move to the next lifecycle state."""
        self.state = state
        self.reached = state

    def fail(self, reason: FailureReason, message: str = "") -> ShredOutcome:
        """Mark the entry as failed, keeping the last state it reached and earlier notes."""
        self.state = EntryState.FAILED
        self.reason = reason
        if message:
            self.note(message)
        return self

    def note(self, message: str) -> None:
        """Attach a non-fatal remark to the outcome."""
        self.message = f"{self.message}; {message}" if self.message else message

    def walk(self) -> Iterator[ShredOutcome]:
        """Iterate over this outcome and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def failures(self) -> List[ShredOutcome]:
        """All failed entries in this subtree."""
        return [node for node in self.walk() if node.state is EntryState.FAILED]

    @property
    def succeeded_count(self) -> int:
        return sum(1 for node in self.walk() if node.ok)

    @property
    def failed_count(self) -> int:
        return len(self.failures())

    @property
    def bytes_overwritten(self) -> int:
        return sum(p.bytes_written for node in self.walk() for p in node.passes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "path": str(self.path),
            "kind": self.kind.value,
            "state": self.state.value,
            "reached": self.reached.value,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "content_destroyed": self.content_destroyed,
            "passes": [
                {
                    "pass": p.pass_number,
                    "bytes_written": p.bytes_written,
                    "flushed": p.flushed,
                }
                for p in self.passes
            ],
            "children": [child.to_dict() for child in self.children],
        }
