"""Zip bundle -> plain directory tree.

Upstream bundles wrap everything in one top-level folder
(``adafruit-circuitpython-bundle-8.x-mpy-20240101/lib/...``). That first
path component is dropped so the tree starts at ``lib/`` + ``VERSIONS.txt``.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from mpylib_pack.errors import CorruptPayload, IOFailure, UpstreamFailure


def _strip_top_level(filename: str) -> str | None:
    """Member path without its first component; None when nothing is left."""
    parts = [p for p in filename.replace("\\", "/").split("/") if p]
    if filename.startswith("/") or any(p == ".." for p in parts):
        raise CorruptPayload(f"unsafe path in zip: {filename}")
    rest = parts[1:]
    if not rest:
        return None
    return str(PurePosixPath(*rest))


def extract_zip(data: bytes, dest: Path) -> int:
    """Extract ``data`` under ``dest``. Returns the number of files written."""
    out = Path(dest)
    n = 0
    try:
        zf = zipfile.ZipFile(io.BytesIO(data), "r")
    except zipfile.BadZipFile as e:
        raise UpstreamFailure(f"bundle is not a valid zip: {e}") from e

    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            rel = _strip_top_level(info.filename)
            if rel is None:
                continue
            target = out / rel
            try:
                content = zf.read(info)
            except (zipfile.BadZipFile, zlib.error) as e:
                raise UpstreamFailure(f"cannot decode zip member {info.filename}: {e}") from e
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
            except OSError as e:
                raise IOFailure(f"cannot write {target}: {e}") from e
            n += 1
    return n

