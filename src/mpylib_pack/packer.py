"""Packed container writers.

A packed container is a plain concatenation of records:
  [header0][payload0][header1][payload1]...

There is no index and no trailer: readers discover record boundaries by
scanning headers from offset 0 (see header.py for the header layout).

Two packers:
  - pack_file:      one source file -> one-record container
  - pack_directory: a nested directory -> flat records named "<prefix>/<rel>"
"""

from __future__ import annotations

import os
import stat
from collections import deque
from pathlib import Path
from typing import BinaryIO

from mpylib_pack.config import HEADER_FIXED_LEN
from mpylib_pack.errors import IOFailure, UnsupportedEntry, UsageError
from mpylib_pack.header import encode_header


class ContainerWriter:
    """Append-only writer for one packed container.

    The destination is created (or truncated) on open and written strictly
    sequentially. Leaving the ``with`` block through an exception removes the
    partial file: a half-written container is never left in place.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        try:
            self._fp: BinaryIO = self.path.open("wb")
        except OSError as e:
            raise IOFailure(f"cannot create container {self.path}: {e}") from e
        self._names: set[bytes] = set()
        self._closed = False
        self.count = 0
        self.bytes_written = 0

    def append(self, name: str | bytes, payload: bytes) -> None:
        if self._closed:
            raise ValueError("ContainerWriter: append on a closed writer")
        hdr = encode_header(name, len(payload))
        key = hdr[HEADER_FIXED_LEN:]
        if key in self._names:
            raise UsageError(f"duplicate record name in {self.path}: {key.decode('utf-8', 'replace')}")
        try:
            self._fp.write(hdr)
            self._fp.write(payload)
        except OSError as e:
            raise IOFailure(f"write failed on {self.path}: {e}") from e
        self._names.add(key)
        self.count += 1
        self.bytes_written += len(hdr) + len(payload)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._fp.close()
        except OSError as e:
            raise IOFailure(f"close failed on {self.path}: {e}") from e

    def discard(self) -> None:
        """Close and delete the (partial) destination."""
        self._closed = True
        try:
            self._fp.close()
        finally:
            self.path.unlink(missing_ok=True)

    def __enter__(self) -> "ContainerWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.discard()
            return
        try:
            self.close()
        except IOFailure:
            # buffered data is flushed on close: a failure here means a short file
            self.path.unlink(missing_ok=True)
            raise


def _read_bytes(p: Path) -> bytes:
    try:
        return p.read_bytes()
    except OSError as e:
        raise IOFailure(f"cannot read {p}: {e}") from e


def list_dir_sorted(d: Path) -> list[str]:
    try:
        return sorted(os.listdir(d))
    except OSError as e:
        raise IOFailure(f"cannot list {d}: {e}") from e


def is_dir_entry(p: Path) -> bool:
    """True for a directory, False for a file-like entry, raise otherwise.

    Symlinks are followed only when they point at a regular file; their
    content is packed under the link's own name. Symlinks to directories,
    dangling symlinks and special files (fifo, socket, device) are rejected.
    """
    try:
        st = os.lstat(p)
    except OSError as e:
        raise IOFailure(f"cannot stat {p}: {e}") from e

    if stat.S_ISDIR(st.st_mode):
        return True
    if stat.S_ISREG(st.st_mode):
        return False
    if stat.S_ISLNK(st.st_mode):
        try:
            target = os.stat(p)
        except OSError as e:
            raise UnsupportedEntry(f"dangling symlink: {p}") from e
        if stat.S_ISREG(target.st_mode):
            return False
        raise UnsupportedEntry(f"symlink to a non-regular file: {p}")
    raise UnsupportedEntry(f"not a regular file or directory: {p}")


def pack_file(source: Path, dest: Path) -> int:
    """Pack one file into a one-record container named after its basename.

    Returns the container size in bytes.
    """
    src = Path(source)
    content = _read_bytes(src)
    with ContainerWriter(dest) as w:
        w.append(src.name, content)
    return w.bytes_written


def pack_directory(source: Path, dest: Path, prefix: str) -> int:
    """Flatten ``source`` into a container, breadth first.

    Children are sorted before being queued and the queue is strictly FIFO,
    so the record order depends only on the names in the tree. Each regular
    file becomes one record named ``f"{prefix}/{rel}"``.

    Returns the number of records written.
    """
    root = Path(source)
    if not prefix:
        raise UsageError("pack_directory: empty archive prefix")

    queue: deque[str] = deque(list_dir_sorted(root))
    with ContainerWriter(dest) as w:
        while queue:
            rel = queue.popleft()
            p = root / rel
            if is_dir_entry(p):
                queue.extend(f"{rel}/{child}" for child in list_dir_sorted(p))
                continue
            w.append(f"{prefix}/{rel}", _read_bytes(p))
    return w.count
