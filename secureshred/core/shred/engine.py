"""
Shred Engine
============

Irreversibly deletes files and directory trees.

Per-file protocol:
1. Clear the read-only flag if set
2. Overwrite the full file length once per pass, each pass
   followed by fsync so the data reaches stable storage
3. Rename to a random name in the same directory
4. Unlink the renamed entry

Directories are processed depth-first: every child reaches a
terminal state before the directory itself is removed. A failure
on one entry is recorded on its outcome and processing moves on
to its siblings.

Security Notes:
- Symbolic links are never followed; the link itself is removed
- No rename or unlink happens until every pass has been flushed
- Best-effort only: SSD wear leveling and copy-on-write
  filesystems may keep old copies of the data
"""

from __future__ import annotations

import logging
import os
import stat
import threading
from pathlib import Path
from typing import BinaryIO, Callable, Final, Optional, Tuple

from secureshred.core.shred.errors import (
    ConfirmationRequiredError,
    FailureReason,
    TargetNotFoundError,
    UnsupportedTargetError,
)
from secureshred.core.shred.outcome import EntryState, PassResult, ShredOutcome
from secureshred.core.shred.patterns import (
    RandomSource,
    default_random_source,
    iter_pattern_chunks,
)
from secureshred.core.shred.settings import PassFailurePolicy, ShredConfig
from secureshred.utils.paths import (
    EntryKind,
    classify_path,
    kind_from_mode,
    random_entry_name,
)


ProgressCallback = Callable[[Path, int, int, int], None]
Failure = Tuple[FailureReason, str]

_NOFOLLOW: Final[int] = getattr(os, "O_NOFOLLOW", 0)
_BINARY: Final[int] = getattr(os, "O_BINARY", 0)  # Windows only
_OWNER_DIR_BITS: Final[int] = stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR

_logger = logging.getLogger("secureshred.engine")


def _open_existing_for_write(path: str | os.PathLike[str], flags: int) -> int:
    """
    Opener for ``open(..., "wb")`` that neither creates nor truncates.

    Truncating first would release the old blocks to the filesystem
    without overwriting them.
    """
    flags &= ~(os.O_TRUNC | os.O_CREAT)
    return os.open(path, flags | _NOFOLLOW | _BINARY)


def _write_all(handle: BinaryIO, data: bytes) -> int:
    """Write a buffer through an unbuffered handle, retrying short writes."""
    view = memoryview(data)
    total = 0
    while total < len(view):
        written = handle.write(view[total:])
        if not written:
            break
        total += written
    return total


class ShredEngine:
    """
    Overwrites, renames and removes filesystem entries.

    Usage:
        config = ShredConfig(passes=3, pattern=Pattern.ZEROS, confirmed=True)
        engine = ShredEngine(config)
        outcome = engine.shred("/path/to/secret")
        if not outcome.ok:
            for failure in outcome.failures():
                print(failure.path, failure.reason)

    The engine is synchronous. ``request_stop`` may be called from a
    signal handler or another thread; entries that have not started
    yet are then reported as cancelled, while a pass already being
    written always runs through its flush.
    """

    def __init__(
        self,
        config: ShredConfig,
        rng: Optional[RandomSource] = None,
        *,
        logger: Optional[logging.Logger] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self._config = config
        self._rng = rng if rng is not None else default_random_source()
        self._logger = logger or _logger
        self._progress = progress
        self._stop = threading.Event()

    @property
    def config(self) -> ShredConfig:
        return self._config

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        """Stop scheduling new entries. In-flight passes still complete."""
        self._stop.set()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def shred(self, path: Path | str) -> ShredOutcome:
        """
        Shred a file, symlink or directory tree.

        Args:
            path: Top-level target

        Returns:
            Outcome tree for the target and all its descendants

        Raises:
            ConfirmationRequiredError: If the config is not confirmed
            TargetNotFoundError: If the target does not exist
            UnsupportedTargetError: If the target is a FIFO, socket or device
        """
        path = Path(path)
        self._require_confirmation(path)

        kind = classify_path(path)
        if kind is EntryKind.MISSING:
            raise TargetNotFoundError(path)
        if kind is EntryKind.OTHER:
            raise UnsupportedTargetError(path)

        self._logger.info(
            "Starting secure delete of %s (%d passes, pattern: %s)",
            path, self._config.passes, self._config.pattern.value,
        )
        outcome = self._shred_entry(path, kind)

        if outcome.ok:
            self._logger.info("Shredded %s (%d entries)", path, outcome.succeeded_count)
        else:
            self._logger.warning(
                "Shredding %s finished with %d failed entries",
                path, outcome.failed_count,
            )
        return outcome

    def shred_file(self, path: Path | str) -> ShredOutcome:
        """
        Run the per-file protocol on a single regular file.

        A directory is handed to the directory walk, and a symlink or
        special file is removed without being written to.

        Raises:
            ConfirmationRequiredError: If the config is not confirmed
        """
        path = Path(path)
        self._require_confirmation(path)
        return self._shred_file(path)

    def shred_directory(self, path: Path | str) -> ShredOutcome:
        """
        Shred every entry below a directory, then remove the directory.

        Raises:
            ConfirmationRequiredError: If the config is not confirmed
        """
        path = Path(path)
        self._require_confirmation(path)
        return self._shred_directory(path)

    def _require_confirmation(self, path: Path) -> None:
        if not self._config.confirmed:
            raise ConfirmationRequiredError(path)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _shred_entry(self, path: Path, kind: Optional[EntryKind] = None) -> ShredOutcome:
        if kind is None:
            kind = classify_path(path)

        if self._stop.is_set():
            return ShredOutcome(path, kind).fail(
                FailureReason.CANCELLED, "stop requested before entry was processed"
            )

        if kind is EntryKind.DIRECTORY:
            return self._shred_directory(path)
        if kind is EntryKind.FILE:
            return self._shred_file(path)
        if kind is EntryKind.MISSING:
            return ShredOutcome(path, kind).fail(
                FailureReason.PATH_NOT_FOUND, "entry disappeared before processing"
            )
        return self._shred_leaf(path, kind)

    def _shred_file(self, path: Path) -> ShredOutcome:
        outcome = ShredOutcome(path, EntryKind.FILE)

        try:
            st = os.lstat(path)
        except OSError as e:
            return outcome.fail(FailureReason.PATH_NOT_FOUND, str(e))

        if stat.S_ISDIR(st.st_mode):
            return self._shred_directory(path)
        if not stat.S_ISREG(st.st_mode):
            return self._shred_leaf(path, kind_from_mode(st.st_mode))

        self._clear_read_only(path, st.st_mode, stat.S_IWUSR, outcome)

        if st.st_size > 0:
            if not self._overwrite(path, st.st_size, outcome):
                return outcome
        else:
            self._logger.debug("%s is empty, skipping overwrite", path)

        outcome.content_destroyed = True
        return self._rename_and_unlink(path, outcome)

    def _shred_directory(self, path: Path) -> ShredOutcome:
        outcome = ShredOutcome(path, EntryKind.DIRECTORY)

        try:
            st = os.lstat(path)
        except OSError as e:
            return outcome.fail(FailureReason.PATH_NOT_FOUND, str(e))

        if stat.S_ISREG(st.st_mode):
            return self._shred_file(path)
        # scandir would follow a symlink to a directory
        if not stat.S_ISDIR(st.st_mode):
            return self._shred_leaf(path, kind_from_mode(st.st_mode))

        # Entries can only be renamed and unlinked in a writable, searchable directory
        self._clear_read_only(path, st.st_mode, _OWNER_DIR_BITS, outcome)

        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except FileNotFoundError as e:
            return outcome.fail(FailureReason.PATH_NOT_FOUND, str(e))
        except OSError as e:
            self._logger.warning("Cannot list directory %s: %s", path, e.strerror or e)
            return outcome.fail(FailureReason.DIRECTORY_ENUMERATION_FAILED, str(e))

        for entry in entries:
            outcome.children.append(self._shred_entry(Path(entry.path)))

        outcome.advance(EntryState.CHILDREN_PROCESSED)

        surviving = sum(child.failed_count for child in outcome.children)
        if surviving:
            self._logger.warning(
                "Keeping directory %s: %d entries below it were not destroyed",
                path, surviving,
            )
            return outcome.fail(
                FailureReason.DIR_REMOVE_FAILED,
                f"directory not empty: {surviving} entries could not be destroyed",
            )

        try:
            os.rmdir(path)
        except OSError as e:
            self._logger.warning("Cannot remove directory %s: %s", path, e.strerror or e)
            return outcome.fail(FailureReason.DIR_REMOVE_FAILED, str(e))

        outcome.advance(EntryState.REMOVED)
        self._logger.info("Removed directory %s", path)
        return outcome

    def _shred_leaf(self, path: Path, kind: EntryKind) -> ShredOutcome:
        """Remove a symlink or special file without touching any content."""
        outcome = ShredOutcome(path, kind)
        self._logger.debug("%s is a %s, removing without overwrite", path, kind.value)
        return self._rename_and_unlink(path, outcome)

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------

    def _clear_read_only(
        self,
        path: Path,
        mode: int,
        required: int,
        outcome: ShredOutcome,
    ) -> None:
        if mode & required == required:
            return
        try:
            os.chmod(path, stat.S_IMODE(mode) | required)
        except OSError as e:
            # The write may still succeed, so only record it
            self._logger.warning("Could not clear read-only flag on %s: %s", path, e.strerror or e)
            outcome.note(f"read-only flag could not be cleared: {e}")

    def _overwrite(self, path: Path, size: int, outcome: ShredOutcome) -> bool:
        """Write every pass. Returns False if the entry failed."""
        first_failure: Optional[Failure] = None

        try:
            with open(path, "wb", buffering=0, opener=_open_existing_for_write) as handle:
                for pass_number in range(1, self._config.passes + 1):
                    outcome.advance(EntryState.OVERWRITING)
                    result, failure = self._write_pass(handle, pass_number, size)
                    outcome.passes.append(result)

                    if failure is None:
                        outcome.advance(EntryState.FLUSHED)
                        self._logger.debug(
                            "Pass %d/%d on %s flushed (%d bytes)",
                            pass_number, self._config.passes, path, result.bytes_written,
                        )
                        if self._progress is not None:
                            self._progress(path, pass_number, self._config.passes, result.bytes_written)
                        continue

                    self._logger.warning(
                        "Pass %d/%d on %s failed: %s",
                        pass_number, self._config.passes, path, failure[1],
                    )
                    if first_failure is None:
                        first_failure = failure
                    if self._config.on_pass_failure is PassFailurePolicy.STOP:
                        break
        except FileNotFoundError as e:
            outcome.fail(FailureReason.PATH_NOT_FOUND, str(e))
            return False
        except OSError as e:
            if not outcome.passes:
                self._logger.warning("Cannot open %s for writing: %s", path, e.strerror or e)
                outcome.fail(FailureReason.PERMISSION_DENIED, str(e))
                return False
            if first_failure is None:
                first_failure = (FailureReason.FLUSH_FAILED, f"closing file failed: {e}")

        if first_failure is not None:
            outcome.fail(*first_failure)
            return False
        return True

    def _write_pass(
        self,
        handle: BinaryIO,
        pass_number: int,
        size: int,
    ) -> Tuple[PassResult, Optional[Failure]]:
        written = 0
        try:
            handle.seek(0)
            for chunk in iter_pattern_chunks(
                self._config.pattern, size, self._config.chunk_size, self._rng
            ):
                count = _write_all(handle, chunk)
                written += count
                if count < len(chunk):
                    break
        except OSError as e:
            return (
                PassResult(pass_number, written, size, flushed=False),
                (FailureReason.INCOMPLETE_WRITE,
                 f"pass {pass_number}: write failed after {written} of {size} bytes: {e}"),
            )

        if written < size:
            return (
                PassResult(pass_number, written, size, flushed=False),
                (FailureReason.INCOMPLETE_WRITE,
                 f"pass {pass_number}: wrote {written} of {size} bytes"),
            )

        try:
            handle.flush()
            os.fsync(handle.fileno())
        except OSError as e:
            return (
                PassResult(pass_number, written, size, flushed=False),
                (FailureReason.FLUSH_FAILED, f"pass {pass_number}: fsync failed: {e}"),
            )

        return PassResult(pass_number, written, size, flushed=True), None

    def _rename_and_unlink(self, path: Path, outcome: ShredOutcome) -> ShredOutcome:
        target, failure = self._randomize_name(path)
        if failure is not None:
            self._logger.warning("Cannot rename %s: %s", path, failure[1])
            return outcome.fail(*failure)

        outcome.advance(EntryState.RENAMED)
        outcome.final_path = target

        try:
            os.unlink(target)
        except OSError as e:
            self._logger.warning("Cannot unlink %s (renamed from %s): %s", target, path, e.strerror or e)
            return outcome.fail(FailureReason.UNLINK_FAILED, str(e))

        outcome.advance(EntryState.UNLINKED)
        outcome.final_path = None
        self._logger.info("Removed %s", path)
        return outcome

    def _randomize_name(self, path: Path) -> Tuple[Optional[Path], Optional[Failure]]:
        attempts = self._config.rename_attempts
        for attempt in range(1, attempts + 1):
            candidate = path.with_name(random_entry_name(self._rng, self._config.name_length))

            # os.rename silently replaces an existing file on POSIX
            if os.path.lexists(candidate):
                self._logger.debug("Random name collision on attempt %d/%d", attempt, attempts)
                continue

            try:
                os.rename(path, candidate)
            except FileExistsError:
                self._logger.debug("Random name collision on attempt %d/%d", attempt, attempts)
                continue
            except FileNotFoundError as e:
                return None, (FailureReason.PATH_NOT_FOUND, str(e))
            except OSError as e:
                return None, (FailureReason.RENAME_FAILED, str(e))

            return candidate, None

        return None, (
            FailureReason.RENAME_COLLISION,
            f"no unused random name found after {attempts} attempts",
        )


def shred(
    path: Path | str,
    config: ShredConfig,
    rng: Optional[RandomSource] = None,
    *,
    logger: Optional[logging.Logger] = None,
    progress: Optional[ProgressCallback] = None,
) -> ShredOutcome:
    """
    Shred a path with the given configuration.

    Convenience wrapper around ``ShredEngine(config, rng).shred(path)``.
    """
    engine = ShredEngine(config, rng, logger=logger, progress=progress)
    return engine.shred(path)
