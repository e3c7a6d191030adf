"""Shared fixtures: a throwaway Elm home and settings pointing at it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from elmdeps.config import Settings
from elmdeps.layout import ElmHome

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def elm_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "elm-home"
    root.mkdir()
    monkeypatch.setenv("ELM_HOME", str(root))
    return root


@pytest.fixture()
def home(elm_home: Path) -> ElmHome:
    return ElmHome(root=elm_home)


@pytest.fixture()
def settings(elm_home: Path) -> Settings:
    return Settings(elm_home=str(elm_home))
