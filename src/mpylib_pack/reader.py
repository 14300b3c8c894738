"""Sequential reader for packed containers.

Mirrors what the on-device consumer does: start at offset 0, read a header,
take payload_size bytes, repeat until the stream ends exactly on a record
boundary. Used for verification and tests.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from mpylib_pack.errors import CorruptContainer, IOFailure
from mpylib_pack.header import decode_header


@dataclass(frozen=True)
class ContainerRecord:
    name: str
    payload: bytes
    offset: int


def iter_records(data: bytes) -> Iterator[ContainerRecord]:
    off = 0
    n = len(data)
    while off < n:
        name_b, size, payload_off = decode_header(data, off)
        end = payload_off + size
        if end > n:
            raise CorruptContainer(
                f"payload truncated at offset {off}: need {size} bytes, have {n - payload_off}"
            )
        try:
            name = name_b.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptContainer(f"record name is not UTF-8 at offset {off}") from e
        yield ContainerRecord(name=name, payload=bytes(data[payload_off:end]), offset=off)
        off = end


def read_container(path: Path) -> list[ContainerRecord]:
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise IOFailure(f"cannot read container {p}: {e}") from e
    return list(iter_records(data))


def verify_container(path: Path) -> int:
    """Full parse + unique names. Returns the record count."""
    seen: set[str] = set()
    count = 0
    for rec in read_container(path):
        if rec.name in seen:
            raise CorruptContainer(f"duplicate record name {rec.name!r} in {path}")
        seen.add(rec.name)
        count += 1
    return count
