"""Local manifest store.

Manifests (``elm.json`` files) are looked up in three places, in order:
the local Elm installation, the fetched-manifest cache, and the registry.
Remote manifests are written through to the cache immediately so the next
offline run can find them, provided they are well-formed JSON. Beyond that
check the contents are opaque.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog

from elmdeps.errors import MalformedRegistryResponse, NotFoundCached, NotFoundLocal

if TYPE_CHECKING:
    from elmdeps.bridge import BlockingRequestBridge
    from elmdeps.layout import ElmHome

log = structlog.get_logger()


class ManifestStore:
    def __init__(
        self,
        home: ElmHome,
        registry_url: str,
        bridge: BlockingRequestBridge | None = None,
    ) -> None:
        self._home = home
        self._registry_url = registry_url.rstrip("/")
        self._bridge = bridge

    def remote_url(self, pkg: str, version: str) -> str:
        return f"{self._registry_url}/packages/{pkg}/{version}/elm.json"

    def fetch_local(self, pkg: str, version: str) -> str:
        path = self._home.installed_manifest_path(pkg, version)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise NotFoundLocal(f"{pkg}@{version} is not installed at {path}") from exc

    def fetch_cached(self, pkg: str, version: str) -> str:
        path = self._home.cached_manifest_path(pkg, version)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise NotFoundCached(f"{pkg}@{version} is not cached at {path}") from exc

    def fetch_remote(self, pkg: str, version: str) -> str:
        if self._bridge is None:
            raise RuntimeError("ManifestStore was built without a request bridge")
        url = self.remote_url(pkg, version)
        elm_json = self._bridge.get(url)
        # A 404 page or a truncated body must not end up in the cache.
        try:
            json.loads(elm_json)
        except json.JSONDecodeError as exc:
            raise MalformedRegistryResponse(url, str(exc)) from exc
        path = self._home.cached_manifest_path(pkg, version)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(elm_json, encoding="utf-8")
        log.info("manifest_fetched_remote", pkg=pkg, version=version, path=str(path))
        return elm_json

    def fetch_offline(self, pkg: str, version: str) -> str:
        try:
            return self.fetch_local(pkg, version)
        except NotFoundLocal:
            pass
        try:
            return self.fetch_cached(pkg, version)
        except NotFoundCached as exc:
            url = self.remote_url(pkg, version)
            raise NotFoundCached(
                f"Not doing a remote request to {url}. "
                "Please run an online resolution at least once first.",
                remote_url=url,
            ) from exc

    def fetch_online(self, pkg: str, version: str) -> str:
        try:
            return self.fetch_local(pkg, version)
        except NotFoundLocal:
            pass
        try:
            return self.fetch_cached(pkg, version)
        except NotFoundCached:
            return self.fetch_remote(pkg, version)
