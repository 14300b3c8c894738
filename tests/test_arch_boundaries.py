from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

# Orchestrator modules (pipeline + entrypoint).
# Packing/format code must NEVER import these: it has to stay usable without
# network access or a console.
ORCH_PREFIXES: tuple[str, ...] = (
    "mpylib_pack.cli",
    "mpylib_pack.update",
)

# Only these modules may talk to the network.
NETWORK_MODULES: tuple[str, ...] = (
    "mpylib_pack.release",
    "mpylib_pack.update",
)
NETWORK_LIBS: tuple[str, ...] = ("httpx",)

PACKAGE_ROOT = "mpylib_pack"


@dataclass(frozen=True)
class ImportEdge:
    src: str
    dst: str
    file: Path
    lineno: int


def _is_orch(mod: str) -> bool:
    return any(mod == p or mod.startswith(p + ".") for p in ORCH_PREFIXES)


def _module_name_from_path(src_dir: Path, py_file: Path) -> str | None:
    try:
        rel = py_file.relative_to(src_dir)
    except ValueError:
        return None

    parts = list(rel.parts)
    if not parts or parts[0] != PACKAGE_ROOT:
        return None

    if py_file.name == "__init__.py":
        parts = parts[:-1]
    else:
        parts[-1] = py_file.stem

    if not parts:
        return None
    return ".".join(parts)


def _resolve_relative(current_mod: str, level: int, module: str | None) -> str | None:
    if level <= 0:
        return module

    base = current_mod.split(".")[:-1]
    if level > len(base):
        return None
    base = base[: len(base) - level + 1]

    if module:
        return ".".join(base + module.split("."))
    return ".".join(base)


def _iter_import_edges(src_dir: Path) -> Iterable[ImportEdge]:
    """Every import in the package, internal and third-party."""
    for py in src_dir.rglob("*.py"):
        mod = _module_name_from_path(src_dir, py)
        if not mod:
            continue

        tree = ast.parse(py.read_text(encoding="utf-8"), filename=str(py))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    yield ImportEdge(src=mod, dst=alias.name, file=py, lineno=node.lineno)
            elif isinstance(node, ast.ImportFrom):
                if node.module is None and node.level == 0:
                    continue
                abs_mod = _resolve_relative(mod, node.level, node.module)
                if abs_mod:
                    yield ImportEdge(src=mod, dst=abs_mod, file=py, lineno=node.lineno)


def _src_dir() -> Path:
    src_dir = Path(__file__).resolve().parents[1] / "src"
    if not src_dir.is_dir():
        raise AssertionError(f"Expected src/ directory at: {src_dir}")
    return src_dir


def _fail(title: str, edges: list[ImportEdge], hint: str) -> None:
    lines = [title]
    for v in sorted(edges, key=lambda e: (str(e.file), e.lineno, e.src, e.dst)):
        lines.append(f"  {v.file}:{v.lineno}  {v.src}  ->  {v.dst}")
    lines.append("")
    lines.append(hint)
    raise AssertionError("\n".join(lines))


def test_no_low_level_imports_orchestrator() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if e.src != e.dst and e.dst.startswith(PACKAGE_ROOT) and not _is_orch(e.src) and _is_orch(e.dst)
    ]
    if violations:
        _fail(
            "Forbidden imports detected (LOW -> ORCH):",
            violations,
            "Fix: move pipeline logic out of LOW modules, or invert the dependency.",
        )


def test_network_access_is_confined() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if e.dst.split(".")[0] in NETWORK_LIBS and e.src not in NETWORK_MODULES
    ]
    if violations:
        _fail(
            "Network library imported outside the release/update modules:",
            violations,
            "Fix: go through mpylib_pack.release.ReleaseClient.",
        )
