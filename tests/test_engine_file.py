"""
Tests for the per-file shredding protocol.
"""

import errno
import os
import random
import stat

import pytest

from secureshred.core.shred import engine as engine_module
from secureshred.core.shred import (
    ConfirmationRequiredError,
    EntryState,
    FailureReason,
    PassFailurePolicy,
    Pattern,
    ShredConfig,
    ShredEngine,
    TargetNotFoundError,
    UnsupportedTargetError,
    shred,
)
from secureshred.utils.paths import EntryKind

from conftest import FixedSequenceRandom, posix_only


@pytest.fixture
def secret_file(tmp_path):
    path = tmp_path / "secret.txt"
    path.write_bytes(b"TOP SECRET " * 9 + b"X")  # 100 bytes
    return path


@pytest.fixture
def io_trace(monkeypatch):
    """Record fsync and rename calls, with file contents at each fsync."""
    events = []
    snapshots = {}
    real_fsync = os.fsync
    real_rename = os.rename

    def tracking_fsync(fd):
        real_fsync(fd)
        events.append("fsync")
        for path in list(snapshots):
            snapshots[path].append(path.read_bytes())

    def tracking_rename(src, dst):
        events.append("rename")
        real_rename(src, dst)

    monkeypatch.setattr(os, "fsync", tracking_fsync)
    monkeypatch.setattr(os, "rename", tracking_rename)

    class Trace:
        def watch(self, path):
            snapshots[path] = []

        def contents(self, path):
            return snapshots[path]

    trace = Trace()
    trace.events = events
    return trace


class TestShredFileSuccess:
    """Happy-path behavior of the per-file protocol."""

    def test_zeros_three_passes(self, secret_file, zeros_config, io_trace):
        """100-byte file, 3 zero passes: three flushed full writes, then rename and unlink."""
        io_trace.watch(secret_file)

        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert outcome.ok
        assert outcome.state is EntryState.UNLINKED
        assert outcome.kind is EntryKind.FILE
        assert [p.bytes_written for p in outcome.passes] == [100, 100, 100]
        assert all(p.flushed and p.complete for p in outcome.passes)
        assert io_trace.events == ["fsync", "fsync", "fsync", "rename"]
        assert io_trace.contents(secret_file) == [b"\x00" * 100] * 3
        assert not secret_file.exists()

    def test_no_renamed_file_survives(self, secret_file, zeros_config):
        parent = secret_file.parent
        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert outcome.ok
        assert outcome.final_path is None
        assert list(parent.iterdir()) == []

    def test_ones_pattern(self, secret_file, io_trace):
        io_trace.watch(secret_file)
        config = ShredConfig(passes=2, pattern=Pattern.ONES, confirmed=True)

        assert ShredEngine(config).shred(secret_file).ok
        assert io_trace.contents(secret_file) == [b"\xff" * 100] * 2

    def test_random_passes_differ(self, secret_file, io_trace):
        original = secret_file.read_bytes()
        io_trace.watch(secret_file)
        config = ShredConfig(passes=3, pattern=Pattern.RANDOM, confirmed=True)

        assert ShredEngine(config, random.Random()).shred(secret_file).ok

        passes = io_trace.contents(secret_file)
        assert len(passes) == 3
        assert len(set(passes)) == 3
        assert original not in passes
        assert all(len(p) == 100 for p in passes)

    def test_chunked_writes_cover_whole_file(self, tmp_path, io_trace):
        path = tmp_path / "chunked.bin"
        path.write_bytes(b"A" * 50)
        io_trace.watch(path)
        config = ShredConfig(passes=2, pattern=Pattern.ZEROS, confirmed=True, chunk_size=7)

        outcome = ShredEngine(config).shred(path)

        assert outcome.ok
        assert [p.bytes_written for p in outcome.passes] == [50, 50]
        assert io_trace.contents(path) == [b"\x00" * 50] * 2

    def test_zero_length_file(self, tmp_path, zeros_config, io_trace):
        path = tmp_path / "empty"
        path.touch()

        outcome = ShredEngine(zeros_config).shred(path)

        assert outcome.ok
        assert outcome.passes == []
        assert io_trace.events == ["rename"]
        assert not path.exists()

    def test_read_only_file(self, secret_file, zeros_config, monkeypatch):
        """Read-only files are made writable, overwritten and removed."""
        secret_file.chmod(stat.S_IRUSR)
        chmod_calls = []
        real_chmod = os.chmod

        def tracking_chmod(path, mode, *args, **kwargs):
            chmod_calls.append(mode)
            return real_chmod(path, mode, *args, **kwargs)

        monkeypatch.setattr(os, "chmod", tracking_chmod)

        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert outcome.ok
        assert len(outcome.passes) == 3
        assert chmod_calls and chmod_calls[0] & stat.S_IWUSR
        assert not secret_file.exists()

    def test_extension_not_kept(self, tmp_path, zeros_config, monkeypatch):
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF")
        renamed = []
        real_rename = os.rename

        def tracking_rename(src, dst):
            renamed.append(dst)
            real_rename(src, dst)

        monkeypatch.setattr(os, "rename", tracking_rename)

        assert ShredEngine(zeros_config).shred(path).ok
        assert len(renamed) == 1
        assert renamed[0].parent == tmp_path
        assert renamed[0].suffix == ""
        assert len(renamed[0].name) == zeros_config.name_length

    def test_progress_callback(self, secret_file, zeros_config):
        calls = []
        engine = ShredEngine(zeros_config, progress=lambda *args: calls.append(args))

        engine.shred(secret_file)

        assert calls == [
            (secret_file, 1, 3, 100),
            (secret_file, 2, 3, 100),
            (secret_file, 3, 3, 100),
        ]

    def test_module_level_shred(self, secret_file, zeros_config):
        outcome = shred(secret_file, zeros_config, FixedSequenceRandom())
        assert outcome.ok
        assert not secret_file.exists()

    def test_accepts_string_path(self, secret_file, zeros_config):
        assert ShredEngine(zeros_config).shred(str(secret_file)).ok


class TestTopLevelErrors:
    """Fatal conditions raised before any work starts."""

    def test_missing_path(self, tmp_path, zeros_config):
        before = sorted(tmp_path.iterdir())

        with pytest.raises(TargetNotFoundError) as exc_info:
            ShredEngine(zeros_config).shred(tmp_path / "gone.txt")

        assert exc_info.value.reason is FailureReason.PATH_NOT_FOUND
        assert sorted(tmp_path.iterdir()) == before

    def test_repeat_invocation_is_path_not_found(self, secret_file, zeros_config):
        engine = ShredEngine(zeros_config)
        assert engine.shred(secret_file).ok

        with pytest.raises(TargetNotFoundError):
            engine.shred(secret_file)

    def test_confirmation_required(self, secret_file):
        content = secret_file.read_bytes()
        config = ShredConfig(pattern=Pattern.ZEROS)

        with pytest.raises(ConfirmationRequiredError):
            ShredEngine(config).shred(secret_file)

        assert secret_file.read_bytes() == content

    def test_shred_file_requires_confirmation(self, secret_file):
        content = secret_file.read_bytes()
        engine = ShredEngine(ShredConfig(pattern=Pattern.ZEROS))

        with pytest.raises(ConfirmationRequiredError):
            engine.shred_file(secret_file)

        assert secret_file.read_bytes() == content

    def test_shred_directory_requires_confirmation(self, tmp_path, secret_file):
        engine = ShredEngine(ShredConfig(pattern=Pattern.ZEROS))

        with pytest.raises(ConfirmationRequiredError):
            engine.shred_directory(tmp_path)

        assert secret_file.exists()

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires mkfifo")
    def test_fifo_target_unsupported(self, tmp_path, zeros_config):
        fifo = tmp_path / "pipe"
        os.mkfifo(fifo)

        with pytest.raises(UnsupportedTargetError):
            ShredEngine(zeros_config).shred(fifo)

        assert fifo.exists()


class TestSymlinks:
    """Symbolic links are removed, never followed."""

    @posix_only
    def test_link_removed_target_untouched(self, tmp_path, zeros_config):
        outside = tmp_path / "outside"
        outside.mkdir()
        target = outside / "precious.txt"
        target.write_bytes(b"keep me")

        inside = tmp_path / "inside"
        inside.mkdir()
        link = inside / "link.txt"
        link.symlink_to(target)

        outcome = ShredEngine(zeros_config).shred(link)

        assert outcome.ok
        assert outcome.kind is EntryKind.SYMLINK
        assert outcome.passes == []
        assert not os.path.lexists(link)
        assert target.read_bytes() == b"keep me"

    @posix_only
    def test_dangling_link(self, tmp_path, zeros_config):
        link = tmp_path / "dangling"
        link.symlink_to(tmp_path / "nowhere")

        assert ShredEngine(zeros_config).shred(link).ok
        assert not os.path.lexists(link)


class TestShredFileFailures:
    """Failures are recorded on the outcome instead of raised."""

    def test_permission_denied_after_failed_clear(self, secret_file, zeros_config, monkeypatch):
        content = secret_file.read_bytes()
        secret_file.chmod(stat.S_IRUSR)

        def failing_chmod(*args, **kwargs):
            raise PermissionError(errno.EPERM, "Operation not permitted")

        def failing_opener(path, flags):
            raise PermissionError(errno.EACCES, "Permission denied", str(path))

        monkeypatch.setattr(os, "chmod", failing_chmod)
        monkeypatch.setattr(engine_module, "_open_existing_for_write", failing_opener)

        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert not outcome.ok
        assert outcome.reason is FailureReason.PERMISSION_DENIED
        assert "read-only flag could not be cleared" in outcome.message
        assert "Permission denied" in outcome.message
        assert outcome.passes == []
        assert secret_file.read_bytes() == content

    def test_incomplete_write_stops_by_default(self, secret_file, zeros_config, monkeypatch):
        monkeypatch.setattr(engine_module, "_write_all", lambda handle, data: len(data) // 2)

        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert outcome.reason is FailureReason.INCOMPLETE_WRITE
        assert outcome.state is EntryState.FAILED
        assert len(outcome.passes) == 1
        assert outcome.passes[0].bytes_written == 50
        assert not outcome.content_destroyed
        assert secret_file.exists()

    def test_incomplete_write_continue_policy(self, secret_file, monkeypatch):
        monkeypatch.setattr(engine_module, "_write_all", lambda handle, data: len(data) // 2)
        config = ShredConfig(
            passes=3,
            pattern=Pattern.ZEROS,
            confirmed=True,
            on_pass_failure=PassFailurePolicy.CONTINUE,
        )

        outcome = ShredEngine(config).shred(secret_file)

        assert outcome.reason is FailureReason.INCOMPLETE_WRITE
        assert len(outcome.passes) == 3
        assert secret_file.exists()

    def test_continue_policy_still_blocks_rename(self, secret_file, monkeypatch):
        """Only the second pass fails, yet the file must not be renamed."""
        calls = {"n": 0}
        real_fsync = os.fsync

        def flaky_fsync(fd):
            calls["n"] += 1
            if calls["n"] == 2:
                raise OSError(errno.EIO, "I/O error")
            real_fsync(fd)

        monkeypatch.setattr(os, "fsync", flaky_fsync)
        config = ShredConfig(
            passes=3,
            pattern=Pattern.ZEROS,
            confirmed=True,
            on_pass_failure=PassFailurePolicy.CONTINUE,
        )

        outcome = ShredEngine(config).shred(secret_file)

        assert outcome.reason is FailureReason.FLUSH_FAILED
        assert [p.flushed for p in outcome.passes] == [True, False, True]
        assert secret_file.exists()

    def test_flush_failure(self, secret_file, zeros_config, monkeypatch):
        def failing_fsync(fd):
            raise OSError(errno.EIO, "I/O error")

        monkeypatch.setattr(os, "fsync", failing_fsync)

        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert outcome.reason is FailureReason.FLUSH_FAILED
        assert outcome.reached is EntryState.OVERWRITING
        assert len(outcome.passes) == 1
        assert not outcome.passes[0].flushed
        assert secret_file.exists()

    def test_rename_collision_exhausted(self, secret_file, zeros_config):
        occupied = secret_file.parent / ("a" * zeros_config.name_length)
        occupied.write_bytes(b"bystander")

        outcome = ShredEngine(zeros_config, FixedSequenceRandom()).shred(secret_file)

        assert outcome.reason is FailureReason.RENAME_COLLISION
        assert outcome.reached is EntryState.FLUSHED
        assert outcome.content_destroyed
        assert occupied.read_bytes() == b"bystander"
        assert secret_file.read_bytes() == b"\x00" * 100

    def test_rename_collision_retried(self, secret_file, zeros_config):
        taken = "a" * zeros_config.name_length
        free = "b" * zeros_config.name_length
        occupied = secret_file.parent / taken
        occupied.write_bytes(b"bystander")
        rng = FixedSequenceRandom(names=[taken, free])

        outcome = ShredEngine(zeros_config, rng).shred(secret_file)

        assert outcome.ok
        assert occupied.read_bytes() == b"bystander"
        assert not (secret_file.parent / free).exists()

    def test_rename_failed(self, secret_file, zeros_config, monkeypatch):
        def failing_rename(src, dst):
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr(os, "rename", failing_rename)

        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert outcome.reason is FailureReason.RENAME_FAILED
        assert secret_file.exists()

    def test_unlink_failure_after_overwrite(self, secret_file, zeros_config, monkeypatch):
        def failing_unlink(path, *args, **kwargs):
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr(os, "unlink", failing_unlink)

        outcome = ShredEngine(zeros_config).shred(secret_file)

        assert outcome.reason is FailureReason.UNLINK_FAILED
        assert outcome.reached is EntryState.RENAMED
        assert outcome.content_destroyed
        assert not secret_file.exists()
        assert outcome.final_path is not None
        assert outcome.final_path.read_bytes() == b"\x00" * 100
