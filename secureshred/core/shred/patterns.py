"""
Overwrite Pattern Generator
===========================

Produces the fill bytes for a single overwrite pass.

Patterns:
- ZEROS: every byte 0x00
- ONES: every byte 0xFF
- RANDOM: bytes drawn from a non-cryptographic PRNG

The random source is passed in explicitly. Random fill only has to
be unpredictable enough to mask the previous contents, so a seeded
``random.Random`` is sufficient and much faster than ``secrets``.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import Iterator, Optional, Protocol, Sequence

from secureshred.security.constants import DEFAULT_CHUNK_SIZE, ONE_BYTE, ZERO_BYTE


class Pattern(Enum):
    """Byte pattern used for an overwrite pass."""
    ZEROS = "zeros"
    ONES = "ones"
    RANDOM = "random"

    @classmethod
    def from_name(cls, name: str) -> Pattern:
        """Parse a pattern name, case-insensitively."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown pattern: {name!r} (expected one of {valid})") from None


class RandomSource(Protocol):
    """
    Randomness provider consumed by the generator and the engine.

    ``random.Random`` satisfies this protocol. Tests substitute a
    fixed-sequence double.
    """

    def randbytes(self, n: int) -> bytes: ...

    def choice(self, seq: Sequence[str]) -> str: ...


def default_random_source() -> RandomSource:
    """Create a PRNG seeded from OS entropy."""
    return random.Random()


def _check_length(length: int) -> None:
    if not isinstance(length, int) or isinstance(length, bool):
        raise TypeError(f"Pattern length must be an int, got {type(length).__name__}")
    if length < 0:
        raise ValueError(f"Pattern length cannot be negative: {length}")


def generate_pattern(
    pattern: Pattern,
    length: int,
    rng: Optional[RandomSource] = None,
) -> bytes:
    """
    Generate exactly ``length`` bytes of the given pattern.

    Args:
        pattern: Pattern selector
        length: Number of bytes to produce (>= 0)
        rng: Random source for RANDOM (a fresh PRNG if omitted)

    Returns:
        The fill bytes

    Raises:
        TypeError: If length is not an int
        ValueError: If length is negative
    """
    _check_length(length)

    if pattern is Pattern.ZEROS:
        return bytes([ZERO_BYTE]) * length
    if pattern is Pattern.ONES:
        return bytes([ONE_BYTE]) * length
    if pattern is Pattern.RANDOM:
        if length == 0:
            return b""
        source = rng if rng is not None else default_random_source()
        return source.randbytes(length)

    raise ValueError(f"Unsupported pattern: {pattern!r}")


def iter_pattern_chunks(
    pattern: Pattern,
    length: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    rng: Optional[RandomSource] = None,
) -> Iterator[bytes]:
    """
    Yield the fill for ``length`` bytes in chunks of at most ``chunk_size``.

    Constant patterns reuse one buffer; random chunks are drawn fresh
    each time, so consecutive passes never repeat each other.
    """
    _check_length(length)
    if chunk_size < 1:
        raise ValueError("Chunk size must be positive")

    source = rng
    if pattern is Pattern.RANDOM and source is None:
        source = default_random_source()

    constant: Optional[bytes] = None
    if pattern is not Pattern.RANDOM:
        constant = generate_pattern(pattern, min(chunk_size, length))

    remaining = length
    while remaining > 0:
        size = min(chunk_size, remaining)
        if constant is not None:
            yield constant if size == len(constant) else constant[:size]
        else:
            yield generate_pattern(pattern, size, source)
        remaining -= size
