#!/usr/bin/env python3
"""Write (or check) docs/exit_codes.md from mpylib_pack.errors.

  scripts/gen_exit_codes_md.py           # rewrite the doc
  scripts/gen_exit_codes_md.py --check   # exit 1 if the doc is stale (CI)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO = Path(__file__).resolve().parents[1]
DOC = REPO / "docs" / "exit_codes.md"


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="gen_exit_codes_md")
    ap.add_argument("--check", action="store_true", help="compare only, do not write")
    ap.add_argument("--out", type=Path, default=DOC, help="doc path (default: docs/exit_codes.md)")
    args = ap.parse_args(argv)

    sys.path.insert(0, str(REPO / "src"))
    from mpylib_pack.errors import render_exit_codes_markdown  # noqa: E402

    text = render_exit_codes_markdown()
    out: Path = args.out

    if args.check:
        current = out.read_text(encoding="utf-8") if out.is_file() else None
        if current != text:
            print(f"[mpylib-pack] {out} is stale; run scripts/gen_exit_codes_md.py", file=sys.stderr)
            return 1
        print(f"[mpylib-pack] {out} is up to date")
        return 0

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    print(f"[mpylib-pack] wrote {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
