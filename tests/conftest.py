"""Shared fixtures for SecureShred tests."""

import itertools
import logging
import os
import sys

import pytest

from secureshred.core.config import ShredderConfig
from secureshred.core.shred import Pattern, ShredConfig


class FixedSequenceRandom:
    """
    Deterministic stand-in for ``random.Random``.

    ``randbytes`` cycles through ``fill``; ``choice`` walks through the
    provided names one character at a time, so tests can force
    specific random filenames (and therefore collisions).
    """

    def __init__(self, fill=b"\xa5", names=None):
        self._fill = itertools.cycle(fill)
        self._names = list(names or [])
        self._chars = iter(())
        self.randbytes_calls = []

    def randbytes(self, n):
        self.randbytes_calls.append(n)
        return bytes(next(self._fill) for _ in range(n))

    def choice(self, seq):
        try:
            return next(self._chars)
        except StopIteration:
            pass
        if self._names:
            self._chars = iter(self._names.pop(0))
            return next(self._chars)
        return seq[0]


@pytest.fixture
def fixed_rng():
    return FixedSequenceRandom()


@pytest.fixture
def zeros_config():
    return ShredConfig(passes=3, pattern=Pattern.ZEROS, confirmed=True)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for key in list(os.environ):
        if key.startswith("SECURESHRED_"):
            monkeypatch.delenv(key, raising=False)
    ShredderConfig.reset_instance()
    yield
    ShredderConfig.reset_instance()
    root = logging.getLogger("secureshred")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission semantics")
not_root = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="root bypasses permission bits",
)
