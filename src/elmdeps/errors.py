"""Error taxonomy.

Every failure the provider raises is an ``ElmDepsError`` carrying a stable
``ErrorCode`` and a ``recoverable`` flag. Callers that fall back from
offline to online resolution catch the base class; everything else should
catch the specific subclass it can handle.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_PACKAGE_ID = "INVALID_PACKAGE_ID"
    NOT_FOUND_LOCAL = "NOT_FOUND_LOCAL"
    NOT_FOUND_CACHED = "NOT_FOUND_CACHED"
    FETCH_FAILED = "FETCH_FAILED"
    BRIDGE_SHUT_DOWN = "BRIDGE_SHUT_DOWN"
    MALFORMED_REGISTRY_RESPONSE = "MALFORMED_REGISTRY_RESPONSE"
    SOLVER_ERROR = "SOLVER_ERROR"


class ElmDepsError(Exception):
    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable


class InvalidPackageId(ElmDepsError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_PACKAGE_ID, message)


class NotFoundLocal(ElmDepsError):
    """The manifest is not installed in the local Elm home."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.NOT_FOUND_LOCAL, message, recoverable=True)


class NotFoundCached(ElmDepsError):
    """The manifest is not in the fetched-manifest cache.

    ``remote_url`` is set when no further offline fallback exists, so the
    caller knows what an online run would have to download.
    """

    def __init__(self, message: str, remote_url: str | None = None) -> None:
        super().__init__(ErrorCode.NOT_FOUND_CACHED, message, recoverable=True)
        self.remote_url = remote_url


class FetchError(ElmDepsError):
    """Transport failure while talking to the registry."""

    def __init__(
        self,
        url: str,
        message: str,
        cause: BaseException | None = None,
        code: ErrorCode = ErrorCode.FETCH_FAILED,
    ) -> None:
        super().__init__(code, message, recoverable=code is ErrorCode.FETCH_FAILED)
        self.url = url
        self.cause = cause


class MalformedRegistryResponse(ElmDepsError):
    def __init__(self, source: str, message: str) -> None:
        super().__init__(
            ErrorCode.MALFORMED_REGISTRY_RESPONSE,
            f"Failed to parse the response from {source}.\n{message}",
        )
        self.source = source


class SolverError(ElmDepsError):
    """Any failure raised by the external resolver, message kept verbatim."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.SOLVER_ERROR, message)
