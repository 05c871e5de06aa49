"""Profile loader for discovering profiles and reading their profile-config.yml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .schema import DEFAULT_PROFILE
from .schema import ProfileConfig

logger = logging.getLogger(__name__)

PROFILE_CONFIG_FILE = "profile-config.yml"


class ProfileLoader:
    """Discovers and loads profiles under ``<base_dir>/profiles``.

    Each profile config is read at most once per loader; the loaded
    ProfileConfig objects are immutable.
    """

    def __init__(self, base_dir: Path):
        """
        Initialize profile loader.

        Args:
            base_dir: Base installation directory containing ``profiles/``
        """
        self.base_dir = base_dir
        self.profiles_dir = base_dir / "profiles"
        self._cache: dict[str, ProfileConfig] = {}

    def profile_dir(self, name: str) -> Path:
        """Directory holding the documents of a profile."""
        return self.profiles_dir / name

    def exists(self, name: str) -> bool:
        return self.profile_dir(name).is_dir()

    def list_profiles(self) -> list[str]:
        """
        Discover all available profile names.

        Returns:
            Sorted list of profile directory names
        """
        if not self.profiles_dir.is_dir():
            return []
        return sorted(p.name for p in self.profiles_dir.iterdir() if p.is_dir() and not p.name.startswith("."))

    def load_profile(self, name: str) -> ProfileConfig:
        """
        Load the inheritance settings of a profile.

        A profile without profile-config.yml is a root profile. A config that
        does not mention ``inherits_from`` inherits from the default profile.
        A malformed config is logged and treated as a root profile so that one
        broken profile cannot stop a batch.

        Args:
            name: Profile name

        Returns:
            ProfileConfig for the profile
        """
        if name in self._cache:
            return self._cache[name]

        config_file = self.profile_dir(name) / PROFILE_CONFIG_FILE
        if not config_file.is_file():
            profile = ProfileConfig(name=name)
        else:
            profile = self._read_config(name, config_file)

        self._cache[name] = profile
        return profile

    def _read_config(self, name: str, config_file: Path) -> ProfileConfig:
        try:
            with open(config_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read {config_file}: {e}; treating '{name}' as a root profile")
            return ProfileConfig(name=name)

        if not isinstance(data, dict):
            logger.warning(f"Ignoring {config_file}: expected a mapping, got {type(data).__name__}")
            return ProfileConfig(name=name)

        if "inherits_from" not in data:
            data["inherits_from"] = None if name == DEFAULT_PROFILE else DEFAULT_PROFILE

        try:
            profile = ProfileConfig(
                name=name,
                inherits_from=data.get("inherits_from"),
                exclude_inherited_files=data.get("exclude_inherited_files"),
            )
        except ValidationError as e:
            logger.warning(f"Invalid profile config {config_file}: {e}; treating '{name}' as a root profile")
            return ProfileConfig(name=name)

        logger.debug(f"Loaded profile '{name}' from {config_file}")
        return profile
