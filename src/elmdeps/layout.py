"""On-disk layout of the Elm home directory.

    <home>/<compiler>/packages/<author>/<name>/<version>/elm.json   installed
    <home>/pubgrub/elm_json_cache/<author>/<name>/<version>/elm.json fetched
    <home>/pubgrub/versions_cache.json                               directory
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import platformdirs

from elmdeps.config import DEFAULT_COMPILER_VERSION, Settings
from elmdeps.models import split_author_pkg

ELM_JSON = "elm.json"


def default_elm_home() -> Path:
    if sys.platform == "win32":
        # %APPDATA%\elm, falling back to ~\AppData\Roaming\elm
        return Path(platformdirs.user_data_dir("elm", appauthor=False, roaming=True))
    return Path.home() / ".elm"


def resolve_elm_home(settings: Settings) -> Path:
    """``Settings.elm_home`` already carries ``ELM_HOME`` when it is set."""
    if settings.elm_home:
        return Path(settings.elm_home)
    return default_elm_home()


@dataclass(frozen=True)
class ElmHome:
    root: Path
    compiler_version: str = DEFAULT_COMPILER_VERSION

    @classmethod
    def from_settings(cls, settings: Settings) -> ElmHome:
        return cls(root=resolve_elm_home(settings), compiler_version=settings.compiler_version)

    @property
    def pubgrub_dir(self) -> Path:
        return self.root / "pubgrub"

    @property
    def versions_cache_path(self) -> Path:
        return self.pubgrub_dir / "versions_cache.json"

    def installed_package_dir(self, pkg: str) -> Path:
        parts = split_author_pkg(pkg)
        return self.root / self.compiler_version / "packages" / parts.author / parts.pkg

    def installed_manifest_path(self, pkg: str, version: str) -> Path:
        return self.installed_package_dir(pkg) / version / ELM_JSON

    def cached_manifest_path(self, pkg: str, version: str) -> Path:
        parts = split_author_pkg(pkg)
        return self.pubgrub_dir / "elm_json_cache" / parts.author / parts.pkg / version / ELM_JSON
