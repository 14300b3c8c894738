"""Archive entry header.

Layout (one per record, no padding):
  magic0        4B  uint32 little endian (MAGIC0)
  magic1        4B  uint32 little endian (MAGIC1)
  name_length   4B  uint32 little endian
  payload_size  4B  uint32 little endian
  name          name_length bytes (UTF-8, not NUL terminated)

The payload (payload_size bytes) follows the name immediately.
"""

from __future__ import annotations

from mpylib_pack.config import HEADER_FIXED_LEN, HEADER_STRUCT, MAGIC0, MAGIC1, U32_MAX
from mpylib_pack.errors import BadMagic, CorruptContainer, FormatOverflow, UsageError


def _name_bytes(name: str | bytes) -> bytes:
    if isinstance(name, str):
        return name.encode("utf-8")
    return bytes(name)


def encode_header(name: str | bytes, size: int) -> bytes:
    nb = _name_bytes(name)
    if not nb:
        raise UsageError("header: empty record name")
    if isinstance(size, bool) or not isinstance(size, int):
        raise UsageError(f"header: payload size must be an int, got {type(size).__name__} ({nb!r})")
    if size < 0:
        raise UsageError(f"header: negative payload size ({size}) for {nb!r}")
    if len(nb) > U32_MAX:
        raise FormatOverflow(f"header: name length {len(nb)} does not fit uint32")
    if size > U32_MAX:
        raise FormatOverflow(f"header: payload size {size} does not fit uint32 ({nb!r})")
    return HEADER_STRUCT.pack(MAGIC0, MAGIC1, len(nb), size) + nb


def header_size(name: str | bytes) -> int:
    return HEADER_FIXED_LEN + len(_name_bytes(name))


def decode_header(buf: bytes, offset: int = 0) -> tuple[bytes, int, int]:
    """Parse one header at ``offset``.

    Returns (name_bytes, payload_size, payload_offset). The payload itself is
    not checked here; the caller knows how many bytes it has left.
    """
    end = offset + HEADER_FIXED_LEN
    if end > len(buf):
        raise CorruptContainer(f"header truncated at offset {offset}")
    m0, m1, name_len, size = HEADER_STRUCT.unpack_from(buf, offset)
    if m0 != MAGIC0 or m1 != MAGIC1:
        raise BadMagic(f"bad magic at offset {offset}: {m0:#010x} {m1:#010x}")
    if end + name_len > len(buf):
        raise CorruptContainer(f"record name truncated at offset {offset}")
    return bytes(buf[end : end + name_len]), size, end + name_len
