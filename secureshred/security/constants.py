"""
Shredding Constants
===================

Defines the default parameters of the shredding engine.
Raising the defaults is always safe; lowering them should be
done only with a clear understanding of the storage involved.
"""

import string
from typing import Final

# Overwrite Settings
DEFAULT_PASSES: Final[int] = 3
MIN_PASSES: Final[int] = 1
DEFAULT_CHUNK_SIZE: Final[int] = 8 * 1024 * 1024  # 8 MiB per write call

# Filename Randomization
RENAME_ATTEMPTS: Final[int] = 8
RANDOM_NAME_LENGTH: Final[int] = 16
MIN_RANDOM_NAME_LENGTH: Final[int] = 8
RANDOM_NAME_ALPHABET: Final[str] = string.ascii_letters + string.digits

# Fill Bytes
ZERO_BYTE: Final[int] = 0x00
ONE_BYTE: Final[int] = 0xFF
