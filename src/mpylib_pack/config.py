"""Format constants and run configuration.

The on-disk constants here are shared by every writer and reader of the
packed container format. Changing any of them breaks existing consumers.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

# --- Packed container format ---

MAGIC0: Final[int] = 0x776B6F57  # b"Wokw" little endian
MAGIC1: Final[int] = 0x30524169  # b"iAR0" little endian

# magic0, magic1, name_length, payload_size (uint32 little endian)
HEADER_STRUCT: Final[struct.Struct] = struct.Struct("<4I")
HEADER_FIXED_LEN: Final[int] = HEADER_STRUCT.size
U32_MAX: Final[int] = 0xFFFFFFFF

PACKED_EXT: Final[str] = "mpylib"

# --- Bundle layout ---

LIB_DIR: Final[str] = "lib"
LIB_SUFFIX: Final[str] = ".mpy"
VERSIONS_FILE: Final[str] = "VERSIONS.txt"

# --- Manifest ---

MANIFEST_FORMAT: Final[int] = 1
MANIFEST_NAME: Final[str] = "index.json"

# --- Upstream release source ---

DEFAULT_RELEASES_URL: Final[str] = (
    "https://api.github.com/repos/adafruit/Adafruit_CircuitPython_Bundle/releases/latest"
)
DEFAULT_CHANNELS: Final[tuple[str, ...]] = ("7.x-mpy", "8.x-mpy")
DEFAULT_TARGET: Final[str] = "packages"
DEFAULT_TIMEOUT: Final[float] = 60.0


@dataclass(frozen=True)
class UpdateConfig:
    """Everything one update run needs to know.

    There are no environment variables: the CLI builds this from its
    (few) arguments and the defaults above.
    """

    target: Path = field(default_factory=lambda: Path(DEFAULT_TARGET))
    releases_url: str = DEFAULT_RELEASES_URL
    channels: tuple[str, ...] = DEFAULT_CHANNELS
    timeout: float = DEFAULT_TIMEOUT

    def channel_dir(self, channel: str) -> Path:
        return Path(self.target) / channel
