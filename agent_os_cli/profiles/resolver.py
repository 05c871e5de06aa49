"""Profile-aware document resolution with inheritance and exclusions."""

import logging
import re
from pathlib import Path
from pathlib import PurePosixPath

from .loader import PROFILE_CONFIG_FILE
from .loader import ProfileLoader
from .models import InheritanceChain
from .models import ResolutionResult
from .models import ResolutionStatus
from .schema import ProfileConfig

logger = logging.getLogger(__name__)

# Maximum number of profiles in one inheritance chain
MAX_PROFILE_INHERITANCE_DEPTH = 10

DOCUMENT_SUFFIXES = (".md", ".yml", ".yaml")


def match_pattern(path: str, pattern: str) -> bool:
    """
    Match a relative path against an exclusion pattern.

    ``**`` matches across path separators, ``*`` matches within one segment
    and ``?`` matches a single character. Everything else is literal.

    Args:
        path: Relative path such as ``standards/backend/api.md``
        pattern: Glob pattern such as ``standards/backend/*``

    Returns:
        True if the whole path matches
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.fullmatch("".join(parts), path, flags=re.DOTALL) is not None


class ProfileResolver:
    """Resolves relative document paths through a profile's inheritance chain.

    Resolution rules:
    - A profile's own file always wins, whatever its exclusion list says.
      Exclusions only stop *inherited* lookups.
    - If the profile has no file and excludes the path, the lookup stops there.
    - Otherwise the parent is consulted, up to MAX_PROFILE_INHERITANCE_DEPTH
      profiles, with cycle detection.

    Failures are reported as ResolutionResult variants, never raised.
    """

    def __init__(self, loader: ProfileLoader):
        self.loader = loader

    @classmethod
    def for_base_dir(cls, base_dir: Path) -> "ProfileResolver":
        return cls(ProfileLoader(base_dir))

    def resolve(self, relative_path: str, profile_name: str) -> ResolutionResult:
        """
        Find the file that should be used for ``relative_path``.

        Args:
            relative_path: Path relative to a profile directory (``workflows/x.md``)
            profile_name: Profile to start from

        Returns:
            ResolutionResult with exactly one status
        """
        if not self._is_safe(relative_path):
            logger.warning(f"Path traversal attempt blocked: {relative_path}")
            return ResolutionResult(ResolutionStatus.NOT_FOUND, relative_path)

        visited: list[str] = []
        current = profile_name

        while True:
            visited.append(current)

            candidate = self.loader.profile_dir(current) / relative_path
            if candidate.is_file():
                return ResolutionResult(
                    ResolutionStatus.FOUND, relative_path, path=candidate, profile=current, chain=tuple(visited)
                )

            profile = self.loader.load_profile(current)
            if self.is_excluded(relative_path, profile):
                logger.debug(f"'{relative_path}' excluded from inheritance by profile '{current}'")
                return ResolutionResult(
                    ResolutionStatus.EXCLUDED, relative_path, profile=current, chain=tuple(visited)
                )

            parent = profile.inherits_from
            if parent is None:
                return ResolutionResult(ResolutionStatus.NOT_FOUND, relative_path, chain=tuple(visited))

            if len(visited) >= MAX_PROFILE_INHERITANCE_DEPTH:
                logger.error(
                    f"Profile inheritance chain too deep (max {MAX_PROFILE_INHERITANCE_DEPTH} levels) "
                    f"resolving '{relative_path}' from '{profile_name}'"
                )
                return ResolutionResult(ResolutionStatus.TOO_DEEP, relative_path, chain=(*visited, parent))

            if parent in visited:
                logger.warning(f"Circular inheritance detected at profile: {parent}")
                return ResolutionResult(ResolutionStatus.CIRCULAR, relative_path, chain=(*visited, parent))

            current = parent

    def is_excluded(self, relative_path: str, profile: ProfileConfig) -> bool:
        """Whether ``profile`` refuses to inherit ``relative_path`` from its parent."""
        return any(match_pattern(relative_path, pattern) for pattern in profile.exclude_inherited_files)

    def walk_chain(self, profile_name: str) -> InheritanceChain:
        """
        Follow a profile's ``inherits_from`` links up to the root.

        Uses the same limits as ``resolve``: at most MAX_PROFILE_INHERITANCE_DEPTH
        profiles, and a profile seen twice is a cycle. A walk cut short by
        either is reported on the result, never raised.
        """
        chain: list[str] = []
        current: str | None = profile_name
        while current is not None:
            if current in chain:
                logger.warning(f"Circular inheritance detected at profile: {current}")
                return InheritanceChain(tuple(chain), ResolutionStatus.CIRCULAR, stopped_at=current)
            if len(chain) >= MAX_PROFILE_INHERITANCE_DEPTH:
                logger.error(f"Profile inheritance chain too deep (max {MAX_PROFILE_INHERITANCE_DEPTH} levels)")
                return InheritanceChain(tuple(chain), ResolutionStatus.TOO_DEEP, stopped_at=current)
            chain.append(current)
            current = self.loader.load_profile(current).inherits_from
        return InheritanceChain(tuple(chain))

    def chain(self, profile_name: str) -> list[str]:
        """
        Inheritance chain of a profile, child first.

        A cycle or an overlong chain ends the list where the walk stopped, so
        listing still works for a misconfigured profile; use ``walk_chain``
        to learn whether it was cut short.
        """
        return list(self.walk_chain(profile_name).profiles)

    def list_files(
        self,
        profile_name: str,
        subdir: str = "",
        suffixes: tuple[str, ...] = DOCUMENT_SUFFIXES,
    ) -> list[ResolutionResult]:
        """
        List every document visible to a profile under ``subdir``.

        Candidates are gathered from every profile in the chain and kept only
        when ``resolve`` finds them for ``profile_name``; a child's file
        shadows the parent's file of the same relative path, and excluded
        files disappear. A chain cut short by a cycle or the depth limit only
        contributes the profiles reached; callers that must report that use
        ``walk_chain``.

        Args:
            profile_name: Profile to list for
            subdir: Relative directory to restrict the listing to (``standards/global``)
            suffixes: File suffixes to include

        Returns:
            FOUND results sorted by relative path
        """
        candidates: set[str] = set()
        for name in self.chain(profile_name):
            profile_dir = self.loader.profile_dir(name)
            search_dir = profile_dir / subdir if subdir else profile_dir
            if not search_dir.is_dir():
                continue
            for file in search_dir.rglob("*"):
                if not file.is_file() or file.suffix not in suffixes:
                    continue
                relative = file.relative_to(profile_dir).as_posix()
                if relative == PROFILE_CONFIG_FILE:
                    continue
                candidates.add(relative)

        results = []
        for relative in sorted(candidates):
            result = self.resolve(relative, profile_name)
            if result.found:
                results.append(result)
            else:
                logger.debug(f"Skipping '{relative}' for profile '{profile_name}': {result.describe()}")
        return results

    @staticmethod
    def _is_safe(relative_path: str) -> bool:
        path = PurePosixPath(relative_path)
        return bool(relative_path) and not path.is_absolute() and ".." not in path.parts
