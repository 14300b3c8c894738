"""Library index (manifest) and the bundle packing pass.

Input bundle layout (as extracted from the upstream zip):
  <bundle_root>/
    VERSIONS.txt        # first line = release version
    lib/
      foo.mpy           # single-file library  -> foo.mpylib (1 record)
      bar/              # package directory    -> bar.mpylib (1 record per file)
        __init__.mpy
        sub/x.mpy

Output:
  <dest_dir>/foo.mpylib, <dest_dir>/bar.mpylib, ...
  <dest_dir>/index.json

Stable manifest schema:
  {
    "format": 1,
    "version": "<release version>",
    "libs": [{"name", "deps", "version"}, ...]   # sorted discovery order
  }
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mpylib_pack.config import (
    LIB_DIR,
    LIB_SUFFIX,
    MANIFEST_FORMAT,
    MANIFEST_NAME,
    PACKED_EXT,
    VERSIONS_FILE,
)
from mpylib_pack.dep_index import DependencyIndex
from mpylib_pack.errors import CorruptPayload, IOFailure, UsageError
from mpylib_pack.packer import is_dir_entry, list_dir_sorted, pack_directory, pack_file


@dataclass(frozen=True)
class LibraryRecord:
    name: str
    deps: tuple[str, ...]
    version: str

    @staticmethod
    def from_dict(raw: Any) -> "LibraryRecord":
        if not isinstance(raw, dict):
            raise CorruptPayload(f"manifest lib entry invalid (not an object): {raw}")

        name = raw.get("name")
        deps = raw.get("deps")
        version = raw.get("version")

        if not isinstance(name, str) or not name:
            raise CorruptPayload(f"manifest lib entry invalid (name): {raw}")
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise CorruptPayload(f"manifest lib entry invalid (deps): {raw}")
        if not isinstance(version, str):
            raise CorruptPayload(f"manifest lib entry invalid (version): {raw}")

        return LibraryRecord(name=name, deps=tuple(deps), version=version)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "deps": list(self.deps), "version": self.version}


@dataclass
class LibraryIndex:
    version: str
    libs: list[LibraryRecord]

    def put(self, name: str, deps: Iterable[str], version: str) -> None:
        self.libs.append(LibraryRecord(name=name, deps=tuple(deps), version=version))

    def get(self, name: str) -> LibraryRecord | None:
        for lib in self.libs:
            if lib.name == name:
                return lib
        return None

    def __len__(self) -> int:
        return len(self.libs)

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        # Keep key order stable (byte-identical reruns)
        return {
            "format": MANIFEST_FORMAT,
            "version": self.version,
            "libs": [lib.to_dict() for lib in self.libs],
        }

    def serialize(self, *, indent: int | None = None) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent).encode("utf-8")

    @classmethod
    def deserialize(cls, data: bytes) -> "LibraryIndex":
        try:
            raw = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptPayload(f"manifest JSON invalid: {e}") from e
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Any) -> "LibraryIndex":
        if not isinstance(raw, dict):
            raise CorruptPayload("manifest invalid (not an object)")
        if raw.get("format") != MANIFEST_FORMAT:
            raise CorruptPayload(f"manifest format unsupported: {raw.get('format')!r}")

        version = raw.get("version")
        libs_raw = raw.get("libs")
        if not isinstance(version, str):
            raise CorruptPayload("manifest invalid (version)")
        if not isinstance(libs_raw, list):
            raise CorruptPayload("manifest invalid (libs)")

        return cls(version=version, libs=[LibraryRecord.from_dict(x) for x in libs_raw])

    # --- File helpers ---

    @classmethod
    def read(cls, path: Path) -> "LibraryIndex":
        p = Path(path)
        try:
            data = p.read_bytes()
        except OSError as e:
            raise IOFailure(f"cannot read manifest {p}: {e}") from e
        return cls.deserialize(data)

    def write(self, path: Path) -> None:
        """Write the whole manifest at once (temp file + rename)."""
        p = Path(path)
        tmp = p.with_name(p.name + ".tmp")
        try:
            tmp.write_bytes(self.serialize())
            os.replace(tmp, p)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise IOFailure(f"cannot write manifest {p}: {e}") from e


def library_name(entry: str) -> str:
    """``foo.mpy`` -> ``foo``; directory names are kept as they are."""
    return entry.removesuffix(LIB_SUFFIX)


def read_release_version(bundle_root: Path) -> str:
    p = Path(bundle_root) / VERSIONS_FILE
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise IOFailure(f"cannot read release version from {p}: {e}") from e
    return text.split("\n", 1)[0].strip()


def pack_libraries(
    bundle_root: Path,
    dest_dir: Path,
    dep_index: DependencyIndex,
    *,
    manifest_path: Path | None = None,
    log: Callable[[str], None] | None = None,
) -> LibraryIndex:
    """Pack every library under ``<bundle_root>/lib`` and write the manifest.

    Libraries are processed in sorted order. A library missing from
    ``dep_index`` raises NotFound and aborts the pass: containers already
    written stay in ``dest_dir`` but the manifest is not written, so the
    caller must treat ``dest_dir`` as stale.
    """
    root = Path(bundle_root)
    dest = Path(dest_dir)
    lib_root = root / LIB_DIR

    index = LibraryIndex(version=read_release_version(root), libs=[])
    seen: set[str] = set()

    for entry in list_dir_sorted(lib_root):
        name = library_name(entry)
        if log is not None:
            log(f"-> {name}")
        if name in seen:
            raise UsageError(f"two bundle entries map to library {name!r} ({entry})")
        seen.add(name)

        dep = dep_index.lookup(name)

        src = lib_root / entry
        packed = dest / f"{name}.{PACKED_EXT}"
        if is_dir_entry(src):
            pack_directory(src, packed, name)
        else:
            pack_file(src, packed)

        index.put(name, dep.dependencies, dep.version)

    index.write(Path(manifest_path) if manifest_path is not None else dest / MANIFEST_NAME)
    return index
