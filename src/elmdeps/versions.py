"""Version directory cache.

Keeps, per package, the list of versions published on the registry. The
list is persisted as one JSON object at ``<home>/pubgrub/versions_cache.json``
and kept up to date with the registry's ``/all-packages/since/N`` endpoint,
falling back to a full ``/all-packages`` download whenever the delta cannot
be trusted:

- no snapshot on disk, or a snapshot that does not parse;
- an empty delta (the registry shrank: something was deleted);
- a delta whose oldest entry is not the last version we already know.

The consistency check only looks at that single oldest entry. It is a
heuristic, not an integrity check.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from elmdeps.errors import InvalidPackageId, MalformedRegistryResponse
from elmdeps.models import PkgVersion, split_pkg_version

if TYPE_CHECKING:
    from elmdeps.bridge import BlockingRequestBridge
    from elmdeps.layout import ElmHome

log = structlog.get_logger()

_DIGITS = re.compile(r"(\d+)")


def version_sort_key(version: str) -> tuple[tuple[int | str, ...], str]:
    """Numeric-aware ordering: ``1.10.0`` sorts after ``1.9.0``.

    Splitting on digit runs alternates text and number parts, so two keys
    never compare an ``int`` against a ``str``. The raw string breaks ties.
    """
    parts = _DIGITS.split(version)
    return tuple(int(p) if i % 2 else p.casefold() for i, p in enumerate(parts)), version


def sort_newest_first(versions: Iterable[str]) -> list[str]:
    return sorted(versions, key=version_sort_key, reverse=True)


def _json_type(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


@dataclass
class VersionDirectory:
    """Package → versions, oldest first as published."""

    packages: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: object, source: str) -> VersionDirectory:
        if not isinstance(data, dict):
            raise MalformedRegistryResponse(
                source, f"Expected an object, but got: {_json_type(data)}"
            )
        packages: dict[str, list[str]] = {}
        for key, versions in data.items():
            if not isinstance(versions, list):
                raise MalformedRegistryResponse(
                    source,
                    f"Expected {json.dumps(key)} to be an array, but got: {_json_type(versions)}",
                )
            for index, item in enumerate(versions):
                if not isinstance(item, str):
                    raise MalformedRegistryResponse(
                        source,
                        f"Expected {json.dumps(key)}->{index} to be a string, "
                        f"but got: {_json_type(item)}",
                    )
            packages[key] = list(versions)
        return cls(packages)

    def versions_count(self) -> int:
        return sum(len(versions) for versions in self.packages.values())

    def versions_of(self, pkg: str) -> list[str]:
        return self.packages.get(pkg, [])

    def ends_with(self, pkg: str, version: str) -> bool:
        versions = self.packages.get(pkg)
        return bool(versions) and versions[-1] == version

    def append(self, pkg: str, version: str) -> None:
        self.packages.setdefault(pkg, []).append(version)

    def to_json(self) -> str:
        return json.dumps(self.packages)


def parse_delta(body: str, source: str) -> list[PkgVersion]:
    """Parse a ``since`` response: a JSON array of ``author/name@version``."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise MalformedRegistryResponse(source, str(exc)) from exc
    if not isinstance(data, list):
        raise MalformedRegistryResponse(source, f"Expected an array, but got: {_json_type(data)}")

    entries = []
    for index, item in enumerate(data):
        if not isinstance(item, str):
            raise MalformedRegistryResponse(
                source, f"Expected item {index} to be a string, but got: {_json_type(item)}"
            )
        try:
            entries.append(split_pkg_version(item))
        except InvalidPackageId as exc:
            raise MalformedRegistryResponse(source, f"Item {index}: {exc.message}") from exc
    return entries


class VersionDirectoryCache:
    def __init__(
        self,
        home: ElmHome,
        registry_url: str,
        bridge: BlockingRequestBridge | None = None,
    ) -> None:
        self._home = home
        self._registry_url = registry_url.rstrip("/")
        self._bridge = bridge
        self._directory: VersionDirectory | None = None

    @property
    def directory(self) -> VersionDirectory | None:
        return self._directory

    def invalidate(self) -> None:
        """Forget the in-memory directory; the next sync rereads the snapshot."""
        self._directory = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_local(self, pkg: str) -> list[str]:
        """Installed versions of ``pkg``, newest first. Never raises for a missing dir."""
        pkg_dir = self._home.installed_package_dir(pkg)
        try:
            versions = [entry.name for entry in pkg_dir.iterdir() if entry.is_dir()]
        except OSError:
            return []
        return sort_newest_first(versions)

    def list_online(self, pkg: str) -> list[str]:
        known = set(self.list_local(pkg))
        if self._directory is not None:
            known.update(self._directory.versions_of(pkg))
        return sort_newest_first(known)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync(self) -> None:
        """Bring the directory up to date with the registry.

        Raises ``FetchError`` when the registry is unreachable and
        ``MalformedRegistryResponse`` when it answers with something that
        is not a version listing.
        """
        if self._directory is None:
            snapshot = self._load_snapshot()
            if snapshot is None:
                self._full_resync(reason="no_snapshot")
                return
            self._directory = snapshot
        self._apply_delta(self._directory)

    def _load_snapshot(self) -> VersionDirectory | None:
        path = self._home.versions_cache_path
        try:
            raw = path.read_bytes()
        except OSError:
            return None
        try:
            return VersionDirectory.from_json(json.loads(raw.decode("utf-8")), source=str(path))
        except (UnicodeDecodeError, json.JSONDecodeError, MalformedRegistryResponse):
            log.warning("versions_cache_corrupt", path=str(path), exc_info=True)
            return None

    def _apply_delta(self, directory: VersionDirectory) -> None:
        # Ask for one entry we already have, to detect deletions upstream.
        since = directory.versions_count() - 1
        url = f"{self._registry_url}/all-packages/since/{since}"
        delta = parse_delta(self._get(url), source=url)
        if not delta:
            self._full_resync(reason="empty_delta")
            return

        # Newest first: the last entry is the oldest, and must already be known.
        oldest = delta.pop()
        if not directory.ends_with(oldest.pkg, oldest.version):
            self._full_resync(reason="delta_mismatch")
            return

        for entry in reversed(delta):
            directory.append(entry.pkg, entry.version)
        self._persist(directory)
        log.info("versions_cache_delta_applied", since=since, new_versions=len(delta))

    def _full_resync(self, reason: str) -> None:
        url = f"{self._registry_url}/all-packages"
        log.info("versions_cache_full_resync", reason=reason, url=url)
        body = self._get(url)
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise MalformedRegistryResponse(url, str(exc)) from exc
        directory = VersionDirectory.from_json(data, source=url)
        self._persist(directory)
        self._directory = directory

    def _persist(self, directory: VersionDirectory) -> None:
        path = self._home.versions_cache_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(directory.to_json(), encoding="utf-8")

    def _get(self, url: str) -> str:
        if self._bridge is None:
            raise RuntimeError("VersionDirectoryCache was built without a request bridge")
        return self._bridge.get(url)
