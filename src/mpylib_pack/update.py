"""Update pipeline: latest upstream release -> packed libraries per channel.

Stages, strictly in order (a failure stops everything after it):
  1. fetch latest release metadata
  2. download the dependency index (*.json asset)
  3. per channel:
       download bundle zip -> extract into a temp dir -> reset channel dir
       -> pack libraries + manifest -> temp dir removed

Each stage only cleans up what it acquired: the HTTP client is closed by the
outer ``with``; the temp dir is removed by its own ``with`` on every exit
path. A channel dir left behind by a failed run is stale and is wiped at the
start of the next pack of that channel.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

import httpx

from mpylib_pack.config import UpdateConfig
from mpylib_pack.dep_index import DependencyIndex
from mpylib_pack.errors import IOFailure
from mpylib_pack.extract import extract_zip
from mpylib_pack.library_index import LibraryIndex, pack_libraries
from mpylib_pack.release import Release, ReleaseClient

Log = Callable[[str], None]


def print_progress(msg: str) -> None:
    print(msg, flush=True)


def reset_dir(path: Path) -> None:
    p = Path(path)
    try:
        if p.exists():
            shutil.rmtree(p)
        p.mkdir(parents=True)
    except OSError as e:
        raise IOFailure(f"cannot reset output dir {p}: {e}") from e


def fetch_dependency_index(rc: ReleaseClient, release: Release, *, log: Log) -> DependencyIndex:
    asset = release.dependency_index_asset()
    log(f"Downloading {asset.name} ...")
    return DependencyIndex.from_dict(rc.download_json(asset))


def update_channel(
    rc: ReleaseClient,
    release: Release,
    dep_index: DependencyIndex,
    channel: str,
    target: Path,
    *,
    log: Log,
) -> LibraryIndex:
    asset = release.bundle_asset(channel)
    log(f"Downloading {asset.name} ...")
    data = rc.download(asset)

    log(f"Extracting {asset.name} ...")
    with tempfile.TemporaryDirectory(prefix="update") as tmp:
        bundle_root = Path(tmp)
        extract_zip(data, bundle_root)

        log("Packing...")
        reset_dir(target)
        index = pack_libraries(bundle_root, target, dep_index, log=log)

    log(f"Successfully packed {len(index)} libraries.")
    return index


def update_bundles(
    config: UpdateConfig,
    *,
    client: httpx.Client | None = None,
    log: Log = print_progress,
) -> dict[str, LibraryIndex]:
    """Run the whole pipeline. Returns channel -> manifest."""
    out: dict[str, LibraryIndex] = {}
    with ReleaseClient(config.releases_url, timeout=config.timeout, client=client) as rc:
        release = rc.latest_release()
        dep_index = fetch_dependency_index(rc, release, log=log)
        for channel in config.channels:
            log(f"== {channel}")
            out[channel] = update_channel(
                rc, release, dep_index, channel, config.channel_dir(channel), log=log
            )
    return out
