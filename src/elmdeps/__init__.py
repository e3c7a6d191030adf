from __future__ import annotations

from elmdeps.bridge import BlockingRequestBridge
from elmdeps.config import Settings
from elmdeps.errors import (
    ElmDepsError,
    ErrorCode,
    FetchError,
    InvalidPackageId,
    MalformedRegistryResponse,
    NotFoundCached,
    NotFoundLocal,
    SolverError,
)
from elmdeps.models import split_author_pkg, split_pkg_version
from elmdeps.provider import Provider, Resolver, solve_with_fallback

__version__ = "0.1.0"

__all__ = [
    # facade
    "Provider",
    "Resolver",
    "solve_with_fallback",
    "BlockingRequestBridge",
    "Settings",
    # identifiers
    "split_author_pkg",
    "split_pkg_version",
    # errors
    "ErrorCode",
    "ElmDepsError",
    "InvalidPackageId",
    "NotFoundLocal",
    "NotFoundCached",
    "FetchError",
    "MalformedRegistryResponse",
    "SolverError",
]
