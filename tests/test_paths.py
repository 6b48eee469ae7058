"""
Tests for path classification and target validation.
"""

import os
import stat
import sys
from pathlib import Path

import pytest

from secureshred.utils.paths import (
    EntryKind,
    classify_path,
    is_filesystem_root,
    kind_from_mode,
    random_entry_name,
)
from secureshred.utils.validators import ValidationError, validate_shred_target

from conftest import FixedSequenceRandom


class TestClassifyPath:

    def test_kinds(self, tmp_path):
        (tmp_path / "f").write_text("x")
        (tmp_path / "d").mkdir()
        assert classify_path(tmp_path / "f") is EntryKind.FILE
        assert classify_path(tmp_path / "d") is EntryKind.DIRECTORY
        assert classify_path(tmp_path / "missing") is EntryKind.MISSING

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_symlink_not_followed(self, tmp_path):
        (tmp_path / "d").mkdir()
        (tmp_path / "link").symlink_to(tmp_path / "d", target_is_directory=True)
        assert classify_path(tmp_path / "link") is EntryKind.SYMLINK

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires mkfifo")
    def test_fifo(self, tmp_path):
        os.mkfifo(tmp_path / "p")
        assert classify_path(tmp_path / "p") is EntryKind.OTHER

    def test_kind_from_mode(self):
        assert kind_from_mode(stat.S_IFREG | 0o600) is EntryKind.FILE
        assert kind_from_mode(stat.S_IFDIR | 0o700) is EntryKind.DIRECTORY
        assert kind_from_mode(stat.S_IFLNK | 0o777) is EntryKind.SYMLINK
        assert kind_from_mode(stat.S_IFIFO | 0o600) is EntryKind.OTHER


class TestRandomEntryName:

    def test_length_and_alphabet(self):
        import random
        name = random_entry_name(random.Random(), 16)
        assert len(name) == 16
        assert name.isalnum()
        assert "." not in name

    def test_uses_source(self):
        assert random_entry_name(FixedSequenceRandom(names=["xyzxyzxy"]), 8) == "xyzxyzxy"

    def test_invalid_length(self):
        with pytest.raises(ValueError):
            random_entry_name(FixedSequenceRandom(), 0)


class TestValidateShredTarget:

    def test_regular_path(self, tmp_path):
        assert validate_shred_target(tmp_path / "x") == tmp_path / "x"

    def test_root_refused(self):
        root = Path(Path.cwd().anchor)
        assert is_filesystem_root(root)
        with pytest.raises(ValidationError, match="root"):
            validate_shred_target(root)

    def test_home_refused(self, tmp_path):
        with pytest.raises(ValidationError, match="home"):
            validate_shred_target(tmp_path, home=tmp_path)

    def test_empty_refused(self):
        with pytest.raises(ValidationError):
            validate_shred_target("  ")

    def test_null_byte_refused(self):
        with pytest.raises(ValidationError):
            validate_shred_target("bad\x00name")
