"""Typed errors for mpylib-pack.

Single source of truth for exit codes and error kinds lives here.

Policy:
- Errors are small and boring.
- Every failure is fatal to the run: there is no partial-success mode.
- The CLI exits with EXIT_FAILURE for every error; the error *kind* is only
  for diagnostics (it prefixes the message on stderr).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success: every channel packed and its index.json written"),
    ExitCodeInfo(EXIT_FAILURE, "FAILURE", "Run aborted (any error kind below); output dirs may be stale"),
    ExitCodeInfo(EXIT_USAGE, "USAGE", "Invalid command line (argparse)"),
)

# ----------------------------
# Error kinds (diagnostics only)
# ----------------------------

KIND_GENERIC = "GENERIC"
KIND_USAGE = "USAGE"
KIND_NOT_FOUND = "NOT_FOUND"
KIND_IO_FAILURE = "IO_FAILURE"
KIND_FORMAT_OVERFLOW = "FORMAT_OVERFLOW"
KIND_UPSTREAM_FAILURE = "UPSTREAM_FAILURE"
KIND_CORRUPT = "CORRUPT"

ERROR_KINDS: tuple[tuple[str, str], ...] = (
    (KIND_NOT_FOUND, "Library missing from the dependency index, or release asset missing"),
    (KIND_IO_FAILURE, "Read/write/mkdir failure, or unsupported filesystem entry"),
    (KIND_FORMAT_OVERFLOW, "Name or payload length does not fit a 32-bit header field"),
    (KIND_UPSTREAM_FAILURE, "Network/download error, bad zip, or malformed upstream document"),
    (KIND_CORRUPT, "Malformed local container or manifest"),
    (KIND_USAGE, "Invalid arguments to a packing function (empty name, duplicate record)"),
    (KIND_GENERIC, "Unexpected error"),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE — do not edit manually.\n")
    lines.append("> Source of truth: `src/mpylib_pack/errors.py` (EXIT_CODES, ERROR_KINDS).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Error kinds\n\n")
    lines.append("Printed as `[mpylib-pack] KIND: message` on stderr.\n\n")
    lines.append("| Kind | Meaning |\n")
    lines.append("|---|---|\n")
    for kind, desc in ERROR_KINDS:
        lines.append(f"| `{kind}` | {desc} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every internal error extends `MpyLibPackError` and carries a `kind`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    lines.append(
        "- A failed run leaves the channel output directory stale; the next run clears it.\n"
    )
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class MpyLibPackError(Exception):
    """Base error for mpylib-pack."""

    exit_code: int = EXIT_FAILURE
    kind: str = KIND_GENERIC


class UsageError(MpyLibPackError):
    kind = KIND_USAGE


class NotFound(MpyLibPackError):
    """A name was looked up and is not there (dependency index, release assets)."""

    kind = KIND_NOT_FOUND

    def __init__(self, message: str, *, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class IOFailure(MpyLibPackError):
    kind = KIND_IO_FAILURE


class UnsupportedEntry(IOFailure):
    """Directory entry that is neither a regular file nor a directory."""


class FormatOverflow(MpyLibPackError):
    kind = KIND_FORMAT_OVERFLOW


class UpstreamFailure(MpyLibPackError):
    kind = KIND_UPSTREAM_FAILURE


class CorruptPayload(MpyLibPackError):
    kind = KIND_CORRUPT


class CorruptContainer(CorruptPayload):
    pass


class BadMagic(CorruptContainer):
    pass
