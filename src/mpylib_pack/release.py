"""Upstream release source (GitHub releases API).

Only what the update pipeline needs: read the latest release's asset list,
pick an asset by name, download its bytes.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from mpylib_pack.config import DEFAULT_TIMEOUT
from mpylib_pack.errors import NotFound, UpstreamFailure


@dataclass(frozen=True)
class ReleaseAsset:
    name: str
    url: str

    @staticmethod
    def from_dict(raw: Any) -> "ReleaseAsset":
        if not isinstance(raw, dict):
            raise UpstreamFailure(f"release asset invalid (not an object): {raw!r}")
        name = raw.get("name")
        url = raw.get("browser_download_url")
        if not isinstance(name, str) or not name:
            raise UpstreamFailure(f"release asset invalid (name): {raw!r}")
        if not isinstance(url, str) or not url:
            raise UpstreamFailure(f"release asset invalid (browser_download_url): {name}")
        return ReleaseAsset(name=name, url=url)


@dataclass(frozen=True)
class Release:
    tag: str
    assets: tuple[ReleaseAsset, ...]

    @staticmethod
    def from_dict(raw: Any) -> "Release":
        if not isinstance(raw, dict):
            raise UpstreamFailure("release metadata invalid (not an object)")
        assets = raw.get("assets")
        if not isinstance(assets, list):
            raise UpstreamFailure("release metadata invalid (assets)")
        tag = raw.get("tag_name")
        return Release(
            tag=tag if isinstance(tag, str) else "",
            assets=tuple(ReleaseAsset.from_dict(a) for a in assets),
        )

    def find_asset(self, match: Callable[[str], bool], *, what: str) -> ReleaseAsset:
        """First asset whose name satisfies ``match``; NotFound otherwise."""
        for asset in self.assets:
            if match(asset.name):
                return asset
        raise NotFound(f"release {self.tag or '?'}: no asset for {what}", name=what)

    def dependency_index_asset(self) -> ReleaseAsset:
        return self.find_asset(lambda n: n.endswith(".json"), what="*.json")

    def bundle_asset(self, channel: str) -> ReleaseAsset:
        return self.find_asset(
            lambda n: f"-{channel}-" in n and n.endswith(".zip"),
            what=f"*-{channel}-*.zip",
        )


class ReleaseClient:
    """Thin wrapper over an ``httpx.Client``.

    Pass ``client`` to inject a preconfigured client (tests use
    ``httpx.MockTransport``); otherwise one is created and owned here.
    """

    def __init__(
        self,
        releases_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self.releases_url = releases_url
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ReleaseClient":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _get(self, url: str) -> httpx.Response:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"download failed: {url}: {e}") from e
        return response

    def latest_release(self) -> Release:
        return Release.from_dict(self._get_json(self.releases_url))

    def download(self, asset: ReleaseAsset) -> bytes:
        return self._get(asset.url).content

    def download_json(self, asset: ReleaseAsset) -> Any:
        return self._get_json(asset.url)

    def _get_json(self, url: str) -> Any:
        body = self._get(url).content
        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise UpstreamFailure(f"invalid JSON from {url}: {e}") from e
