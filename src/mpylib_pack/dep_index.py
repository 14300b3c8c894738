"""Upstream dependency index: library name -> dependencies + version.

The document is the bundle release's `*.json` asset, consumed as-is.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from mpylib_pack.errors import NotFound, UpstreamFailure


@dataclass(frozen=True)
class DependencyEntry:
    dependencies: tuple[str, ...]
    version: str

    @staticmethod
    def from_dict(name: str, raw: Any) -> "DependencyEntry":
        if not isinstance(raw, dict):
            raise UpstreamFailure(f"dependency index entry invalid (not an object): {name}")

        deps = raw.get("dependencies")
        version = raw.get("version")

        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise UpstreamFailure(f"dependency index entry invalid (dependencies): {name}")
        if not isinstance(version, str):
            raise UpstreamFailure(f"dependency index entry invalid (version): {name}")

        return DependencyEntry(dependencies=tuple(deps), version=version)


class DependencyIndex:
    """Upstream library name -> {dependencies, version}.

    The upstream document carries more fields than we use. Entries are
    validated on lookup, and only for the two fields copied into the
    manifest, so an odd entry for a library we never pack is harmless.
    """

    def __init__(self, raw: dict[str, Any]):
        self._raw = raw
        self._cache: dict[str, DependencyEntry] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._raw

    def __len__(self) -> int:
        return len(self._raw)

    def __iter__(self) -> Iterator[str]:
        return iter(self._raw)

    def get(self, name: str) -> DependencyEntry | None:
        if name not in self._raw:
            return None
        entry = self._cache.get(name)
        if entry is None:
            entry = DependencyEntry.from_dict(name, self._raw[name])
            self._cache[name] = entry
        return entry

    def lookup(self, name: str) -> DependencyEntry:
        entry = self.get(name)
        if entry is None:
            raise NotFound(f"library not in dependency index: {name}", name=name)
        return entry

    @classmethod
    def from_dict(cls, raw: Any) -> "DependencyIndex":
        if not isinstance(raw, dict):
            raise UpstreamFailure("dependency index invalid (not an object)")
        if not all(isinstance(k, str) and k for k in raw):
            raise UpstreamFailure("dependency index invalid (non-string or empty key)")
        return cls(dict(raw))

    @classmethod
    def deserialize(cls, data: bytes) -> "DependencyIndex":
        try:
            raw = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise UpstreamFailure(f"dependency index JSON invalid: {e}") from e
        return cls.from_dict(raw)
