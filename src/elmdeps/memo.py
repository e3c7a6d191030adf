from __future__ import annotations

from collections.abc import Callable


class ResolutionMemo:
    """Per-resolution cache of newest-first version lists.

    The resolver may ask for the same package many times during one solve
    and must get the same answer every time, even if the filesystem changes
    underneath. Cleared at the start of every solve.
    """

    def __init__(self) -> None:
        self._versions: dict[str, list[str]] = {}

    def clear(self) -> None:
        self._versions.clear()

    def get_or_compute(self, pkg: str, compute: Callable[[str], list[str]]) -> list[str]:
        versions = self._versions.get(pkg)
        if versions is None:
            versions = compute(pkg)
            self._versions[pkg] = versions
        return list(versions)

    def __contains__(self, pkg: object) -> bool:
        return pkg in self._versions

    def __len__(self) -> int:
        return len(self._versions)
