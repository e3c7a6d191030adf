"""Unit tests for elmdeps.manifests."""

from __future__ import annotations

import httpx
import pytest
import respx

from elmdeps.bridge import BlockingRequestBridge
from elmdeps.errors import (
    FetchError,
    InvalidPackageId,
    MalformedRegistryResponse,
    NotFoundCached,
    NotFoundLocal,
)
from elmdeps.layout import ElmHome
from elmdeps.manifests import ManifestStore
from tests.factories import REGISTRY_URL, cache_manifest, install_package

CORE_JSON = '{"type": "package", "name": "elm/core", "version": "1.0.5"}'


@pytest.fixture()
def store(home: ElmHome, bridge: BlockingRequestBridge) -> ManifestStore:
    return ManifestStore(home, REGISTRY_URL, bridge)


class TestRemoteUrl:
    def test_manifest_endpoint(self, home: ElmHome) -> None:
        store = ManifestStore(home, REGISTRY_URL + "/")
        assert (
            store.remote_url("elm/core", "1.0.5")
            == "https://package.elm-lang.org/packages/elm/core/1.0.5/elm.json"
        )


class TestFetchLocal:
    def test_reads_installed_manifest(self, home: ElmHome) -> None:
        install_package(home, "elm/core", "1.0.5", CORE_JSON)
        assert ManifestStore(home, REGISTRY_URL).fetch_local("elm/core", "1.0.5") == CORE_JSON

    def test_missing_raises_not_found_local(self, home: ElmHome) -> None:
        with pytest.raises(NotFoundLocal):
            ManifestStore(home, REGISTRY_URL).fetch_local("elm/core", "1.0.5")

    def test_invalid_package_id_is_not_a_miss(self, home: ElmHome) -> None:
        with pytest.raises(InvalidPackageId):
            ManifestStore(home, REGISTRY_URL).fetch_local("not-a-package", "1.0.0")

    def test_undecodable_manifest_is_a_miss(self, home: ElmHome) -> None:
        path = home.installed_manifest_path("elm/core", "1.0.5")
        path.parent.mkdir(parents=True)
        path.write_bytes(b'{"name": "elm/core\xff\xfe')
        with pytest.raises(NotFoundLocal):
            ManifestStore(home, REGISTRY_URL).fetch_local("elm/core", "1.0.5")



class TestFetchCached:
    def test_reads_cached_manifest(self, home: ElmHome) -> None:
        cache_manifest(home, "elm/core", "1.0.5", CORE_JSON)
        assert ManifestStore(home, REGISTRY_URL).fetch_cached("elm/core", "1.0.5") == CORE_JSON

    def test_install_dir_is_not_the_cache(self, home: ElmHome) -> None:
        install_package(home, "elm/core", "1.0.5", CORE_JSON)
        with pytest.raises(NotFoundCached):
            ManifestStore(home, REGISTRY_URL).fetch_cached("elm/core", "1.0.5")


class TestFetchRemote:
    def test_writes_through_to_cache(
        self, registry: respx.MockRouter, store: ManifestStore, home: ElmHome
    ) -> None:
        registry.get("/packages/elm/core/1.0.5/elm.json").mock(
            return_value=httpx.Response(200, text=CORE_JSON)
        )
        assert store.fetch_remote("elm/core", "1.0.5") == CORE_JSON
        cached = home.cached_manifest_path("elm/core", "1.0.5")
        assert cached.read_text(encoding="utf-8") == CORE_JSON

    def test_transport_error_writes_nothing(
        self, registry: respx.MockRouter, store: ManifestStore, home: ElmHome
    ) -> None:
        registry.get("/packages/elm/core/1.0.5/elm.json").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )
        with pytest.raises(FetchError):
            store.fetch_remote("elm/core", "1.0.5")
        assert not home.cached_manifest_path("elm/core", "1.0.5").exists()

    def test_non_json_body_is_not_cached(
        self, registry: respx.MockRouter, store: ManifestStore, home: ElmHome
    ) -> None:
        registry.get("/packages/elm/core/1.0.5/elm.json").mock(
            return_value=httpx.Response(404, text="Not Found")
        )
        with pytest.raises(MalformedRegistryResponse):
            store.fetch_remote("elm/core", "1.0.5")
        assert not home.cached_manifest_path("elm/core", "1.0.5").exists()

    def test_requires_bridge(self, home: ElmHome) -> None:
        with pytest.raises(RuntimeError):
            ManifestStore(home, REGISTRY_URL).fetch_remote("elm/core", "1.0.5")


class TestFallbackChains:
    def test_offline_prefers_local(self, home: ElmHome) -> None:
        install_package(home, "elm/core", "1.0.5", "local")
        cache_manifest(home, "elm/core", "1.0.5", "cached")
        assert ManifestStore(home, REGISTRY_URL).fetch_offline("elm/core", "1.0.5") == "local"

    def test_offline_falls_back_to_cache(self, home: ElmHome) -> None:
        cache_manifest(home, "elm/core", "1.0.5", "cached")
        assert ManifestStore(home, REGISTRY_URL).fetch_offline("elm/core", "1.0.5") == "cached"

    def test_offline_skips_undecodable_install(self, home: ElmHome) -> None:
        path = home.installed_manifest_path("elm/core", "1.0.5")
        path.parent.mkdir(parents=True)
        path.write_bytes(b"\xff\xfe")
        cache_manifest(home, "elm/core", "1.0.5", "cached")
        assert ManifestStore(home, REGISTRY_URL).fetch_offline("elm/core", "1.0.5") == "cached"

    def test_offline_exhaustion_names_remote_url(self, home: ElmHome) -> None:
        with pytest.raises(NotFoundCached) as exc_info:
            ManifestStore(home, REGISTRY_URL).fetch_offline("elm/core", "1.0.5")
        url = "https://package.elm-lang.org/packages/elm/core/1.0.5/elm.json"
        assert exc_info.value.remote_url == url
        assert url in str(exc_info.value)

    def test_online_hits_network_only_after_both_misses(
        self, registry: respx.MockRouter, store: ManifestStore, home: ElmHome
    ) -> None:
        route = registry.get("/packages/elm/core/1.0.5/elm.json").mock(
            return_value=httpx.Response(200, text=CORE_JSON)
        )
        cache_manifest(home, "elm/core", "1.0.5", "cached")
        assert store.fetch_online("elm/core", "1.0.5") == "cached"
        assert route.call_count == 0

    def test_online_fetches_and_then_serves_from_cache(
        self, registry: respx.MockRouter, store: ManifestStore
    ) -> None:
        route = registry.get("/packages/elm/core/1.0.5/elm.json").mock(
            return_value=httpx.Response(200, text=CORE_JSON)
        )
        assert store.fetch_online("elm/core", "1.0.5") == CORE_JSON
        assert store.fetch_online("elm/core", "1.0.5") == CORE_JSON
        assert route.call_count == 1
