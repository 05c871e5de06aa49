"""Data models for profile file resolution."""

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path


class ResolutionStatus(str, Enum):
    """Outcome of resolving one relative path against a profile."""

    FOUND = "found"
    NOT_FOUND = "not found"
    EXCLUDED = "excluded"
    CIRCULAR = "circular inheritance"
    TOO_DEEP = "inheritance too deep"


@dataclass(frozen=True)
class ResolutionResult:
    """Result of ``ProfileResolver.resolve``.

    Attributes:
        status: Outcome of the lookup
        relative_path: The requested path, relative to a profile directory
        path: Absolute path of the file (FOUND only)
        profile: Profile that provided the file (FOUND) or excluded it (EXCLUDED)
        chain: Profiles visited, requested profile first
    """

    status: ResolutionStatus
    relative_path: str
    path: Path | None = None
    profile: str | None = None
    chain: tuple[str, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.FOUND

    @property
    def found_path(self) -> Path:
        """Path of the resolved file.

        Raises:
            LookupError: If the lookup did not find a file
        """
        if self.path is None or not self.found:
            raise LookupError(f"{self.relative_path} has no resolved file: {self.describe()}")
        return self.path

    def describe(self) -> str:
        """Human-readable outcome, used in warnings."""
        if self.status is ResolutionStatus.FOUND:
            return f"found in profile '{self.profile}'"
        if self.status is ResolutionStatus.EXCLUDED:
            return f"excluded from inheritance by profile '{self.profile}'"
        if self.status is ResolutionStatus.CIRCULAR:
            return f"circular inheritance ({' -> '.join(self.chain)})"
        if self.status is ResolutionStatus.TOO_DEEP:
            return f"inheritance chain too deep ({' -> '.join(self.chain)})"
        return f"not found (searched {', '.join(self.chain) or 'no profiles'})"


@dataclass(frozen=True)
class InheritanceChain:
    """Result of walking a profile's ``inherits_from`` links.

    Attributes:
        profiles: Profiles reached, requested profile first
        status: FOUND when the walk reached a root profile, otherwise
            CIRCULAR or TOO_DEEP
        stopped_at: Parent that was not followed when the walk was cut short
    """

    profiles: tuple[str, ...]
    status: ResolutionStatus = ResolutionStatus.FOUND
    stopped_at: str | None = None

    @property
    def complete(self) -> bool:
        return self.status is ResolutionStatus.FOUND

    def describe(self) -> str:
        path = " -> ".join((*self.profiles, self.stopped_at) if self.stopped_at else self.profiles)
        if self.status is ResolutionStatus.CIRCULAR:
            return f"circular inheritance ({path})"
        if self.status is ResolutionStatus.TOO_DEEP:
            return f"inheritance chain too deep ({path})"
        return f"inheritance chain {path}"
