"""Dependency provider facade.

The resolver is an external, synchronous function that pulls package data
through two callbacks. ``Provider`` hands it one of two sources:

- ``OfflineSource`` only reads the local Elm home and the manifest cache;
- ``OnlineSource`` additionally consults the synced version directory and
  downloads missing manifests through the blocking request bridge.

Both sources share the provider's ``ResolutionMemo``, which is reset at the
start of every solve.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Protocol

import structlog

from elmdeps.bridge import BlockingRequestBridge, build_http_client
from elmdeps.config import Settings
from elmdeps.errors import ElmDepsError, SolverError
from elmdeps.layout import ElmHome
from elmdeps.manifests import ManifestStore
from elmdeps.memo import ResolutionMemo
from elmdeps.versions import VersionDirectoryCache

log = structlog.get_logger()

FetchElmJson = Callable[[str, str], str]
ListAvailableVersions = Callable[[str], list[str]]


class Resolver(Protocol):
    def __call__(
        self,
        elm_json: str,
        use_test: bool,
        extra: Mapping[str, str],
        fetch_elm_json: FetchElmJson,
        list_available_versions: ListAvailableVersions,
    ) -> str: ...


class DependencySource(Protocol):
    def fetch_elm_json(self, pkg: str, version: str) -> str: ...

    def list_available_versions(self, pkg: str) -> list[str]: ...


class OfflineSource:
    def __init__(
        self, manifests: ManifestStore, versions: VersionDirectoryCache, memo: ResolutionMemo
    ) -> None:
        self._manifests = manifests
        self._versions = versions
        self._memo = memo

    def fetch_elm_json(self, pkg: str, version: str) -> str:
        return self._manifests.fetch_offline(pkg, version)

    def list_available_versions(self, pkg: str) -> list[str]:
        return self._memo.get_or_compute(pkg, self._versions.list_local)


class OnlineSource:
    def __init__(
        self, manifests: ManifestStore, versions: VersionDirectoryCache, memo: ResolutionMemo
    ) -> None:
        self._manifests = manifests
        self._versions = versions
        self._memo = memo

    def fetch_elm_json(self, pkg: str, version: str) -> str:
        return self._manifests.fetch_online(pkg, version)

    def list_available_versions(self, pkg: str) -> list[str]:
        return self._memo.get_or_compute(pkg, self._versions.list_online)


class Provider:
    """Owns the version directory, the memo and the request bridge."""

    def __init__(
        self,
        resolver: Resolver,
        settings: Settings | None = None,
        bridge: BlockingRequestBridge | None = None,
    ) -> None:
        settings = settings or Settings()
        self._resolver = resolver
        self._owns_bridge = bridge is None
        if bridge is None:
            timeout = settings.registry.timeout_seconds
            bridge = BlockingRequestBridge(lambda: build_http_client(timeout))
        self.bridge = bridge
        self.home = ElmHome.from_settings(settings)
        self.memo = ResolutionMemo()
        self.manifests = ManifestStore(self.home, settings.registry.url, bridge)
        self.versions = VersionDirectoryCache(self.home, settings.registry.url, bridge)
        self._offline = OfflineSource(self.manifests, self.versions, self.memo)
        self._online = OnlineSource(self.manifests, self.versions, self.memo)

    def solve_offline(self, elm_json: str, use_test: bool, extra: Mapping[str, str]) -> str:
        """Solve without any network request."""
        self.memo.clear()
        return self._run(self._offline, elm_json, use_test, extra)

    def solve_online(self, elm_json: str, use_test: bool, extra: Mapping[str, str]) -> str:
        """Sync the version directory, then solve with network access."""
        self.versions.sync()
        self.memo.clear()
        return self._run(self._online, elm_json, use_test, extra)

    def close(self) -> None:
        if self._owns_bridge:
            self.bridge.shut_down()

    def __enter__(self) -> Provider:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _run(
        self,
        source: DependencySource,
        elm_json: str,
        use_test: bool,
        extra: Mapping[str, str],
    ) -> str:
        try:
            return self._resolver(
                elm_json,
                use_test,
                extra,
                source.fetch_elm_json,
                source.list_available_versions,
            )
        except Exception as exc:
            raise SolverError(str(exc)) from exc


def solve_with_fallback(
    provider: Provider, elm_json: str, use_test: bool, extra: Mapping[str, str]
) -> str:
    """Try offline first; an offline failure is routine, so retry online."""
    try:
        return provider.solve_offline(elm_json, use_test, extra)
    except ElmDepsError as exc:
        log.warning("offline_solve_failed", reason=exc.message)
    return provider.solve_online(elm_json, use_test, extra)
