"""mpylib-pack CLI.

This is the stable CLI entrypoint (console-script: ``mpylib-pack``).

One run: fetch the latest upstream bundle release and rebuild
``<target>/<channel>/*.mpylib`` + ``<target>/<channel>/index.json`` for every
release channel. The channel list and upstream URL are fixed in config.py.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from mpylib_pack.config import DEFAULT_TARGET, UpdateConfig
from mpylib_pack.errors import EXIT_FAILURE, EXIT_OK, MpyLibPackError
from mpylib_pack.update import update_bundles


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="mpylib-pack",
        description="Pack the latest library bundle release into .mpylib containers + index.json",
    )
    ap.add_argument(
        "--target",
        type=Path,
        default=Path(DEFAULT_TARGET),
        help=f"Output root (one subdir per channel). Default: {DEFAULT_TARGET}",
    )
    ap.add_argument("--debug", action="store_true", help="Show stack traces on errors")
    return ap


def main(argv: list[str] | None = None) -> int:
    ap = _build_parser()
    ns = ap.parse_args(argv)

    try:
        update_bundles(UpdateConfig(target=ns.target))
        return EXIT_OK
    except MpyLibPackError as e:
        if ns.debug:
            raise
        print(f"[mpylib-pack] {e.kind}: {e}", file=sys.stderr)
        return int(e.exit_code)
    except Exception as e:
        if ns.debug:
            raise
        print(f"[mpylib-pack] error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
