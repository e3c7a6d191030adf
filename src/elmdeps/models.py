from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from elmdeps.errors import InvalidPackageId


class AuthorPkg(BaseModel):
    """The two halves of an ``author/name`` package identifier."""

    model_config = ConfigDict(frozen=True)

    author: str
    pkg: str


class PkgVersion(BaseModel):
    """A registry delta entry ``author/name@version``."""

    model_config = ConfigDict(frozen=True)

    pkg: str
    version: str


def split_author_pkg(identifier: str) -> AuthorPkg:
    parts = identifier.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidPackageId(f"Invalid package identifier: {identifier!r}")
    return AuthorPkg(author=parts[0], pkg=parts[1])


def split_pkg_version(entry: str) -> PkgVersion:
    parts = entry.split("@")
    if len(parts) != 2 or not all(parts):
        raise InvalidPackageId(f"Invalid package version: {entry!r}")
    split_author_pkg(parts[0])
    return PkgVersion(pkg=parts[0], version=parts[1])
