"""Semantic version helpers for base/project compatibility checks."""

import re
from typing import NamedTuple

MIGRATION_THRESHOLD = "2.1.0"

_NUMERIC_RE = re.compile(r"[0-9]+", re.ASCII)


class SemVer(NamedTuple):
    major: int
    minor: int
    patch: int
    prerelease: str = ""

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{self.prerelease}" if self.prerelease else core


def parse_semver(version: str | None) -> SemVer:
    """
    Parse ``major.minor.patch[-prerelease]`` leniently.

    Missing or non-numeric components become 0, so ``""`` parses as 0.0.0
    and ``"2.1"`` as 2.1.0.
    """
    if not version:
        return SemVer(0, 0, 0)

    core, _, prerelease = str(version).strip().partition("-")
    parts = core.split(".")

    def component(index: int) -> int:
        if index >= len(parts) or not _NUMERIC_RE.fullmatch(parts[index]):
            return 0
        return int(parts[index])

    return SemVer(component(0), component(1), component(2), prerelease)


def compare_semver(v1: str | None, v2: str | None) -> int:
    """
    Compare two versions.

    A release sorts after any prerelease of the same core version;
    prereleases compare lexically (alpha < beta < rc).

    Returns:
        -1 if v1 < v2, 0 if equal, 1 if v1 > v2
    """
    a, b = parse_semver(v1), parse_semver(v2)
    if a[:3] != b[:3]:
        return 1 if a[:3] > b[:3] else -1
    if a.prerelease == b.prerelease:
        return 0
    if not a.prerelease:
        return 1
    if not b.prerelease:
        return -1
    return 1 if a.prerelease > b.prerelease else -1


def check_version_compatibility(base_version: str | None, project_version: str | None) -> bool:
    """Versions are compatible when their major versions match."""
    return parse_semver(base_version).major == parse_semver(project_version).major


def needs_migration(project_version: str | None) -> bool:
    """Whether a project compiled with ``project_version`` predates the 2.1.0 layout."""
    if not project_version:
        return True
    return compare_semver(project_version, MIGRATION_THRESHOLD) < 0
