"""Profile manager for creating new profiles.

Creation is non-interactive: the caller supplies the name and either a
parent to inherit from or an existing profile to copy.
"""

import logging
import re
import shutil
from pathlib import Path

from .loader import PROFILE_CONFIG_FILE
from .loader import ProfileLoader

logger = logging.getLogger(__name__)

RESERVED_PROFILE_NAMES = ("default", "_internal", "_template", "_base", "_system")

PROFILE_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$", re.ASCII)

NEW_PROFILE_DIRS = (
    "standards",
    "workflows/implementation",
    "workflows/planning",
    "workflows/specification",
)


class ProfileError(Exception):
    """Raised when a profile cannot be created."""


class ProfileManager:
    """Creates profiles under the base installation's profiles directory."""

    def __init__(self, loader: ProfileLoader):
        self.loader = loader

    def validate_name(self, name: str) -> None:
        """
        Check that a profile name is safe and not reserved.

        Raises:
            ProfileError: If the name is empty, reserved, or not a plain identifier
        """
        if not name:
            raise ProfileError("Profile name cannot be empty")
        if name in RESERVED_PROFILE_NAMES:
            raise ProfileError(f"Profile name '{name}' is reserved and cannot be used")
        if name.startswith("_"):
            raise ProfileError("Profile names starting with '_' are reserved for internal use")
        if ".." in name or "/" in name or "\\" in name:
            raise ProfileError("Profile name contains invalid characters (path traversal attempt detected)")
        if not PROFILE_NAME_PATTERN.match(name):
            raise ProfileError(
                "Profile name must start with a letter and contain only letters, numbers, hyphens, and underscores"
            )

    def create_profile(
        self,
        name: str,
        inherits_from: str | None = None,
        copy_from: str | None = None,
        dry_run: bool = False,
    ) -> list[Path]:
        """
        Create a new profile.

        Args:
            name: New profile name
            inherits_from: Parent profile for a fresh profile
            copy_from: Existing profile to copy instead (the copy does not inherit)
            dry_run: Only report what would be created

        Returns:
            Paths created (or that would be created)

        Raises:
            ProfileError: On an invalid name, an existing profile, or a missing source profile
        """
        self.validate_name(name)
        if inherits_from and copy_from:
            raise ProfileError("Use either inherits_from or copy_from, not both")

        profile_path = self.loader.profile_dir(name)
        if profile_path.exists():
            raise ProfileError(f"Profile '{name}' already exists")

        source = inherits_from or copy_from
        if source and not self.loader.exists(source):
            raise ProfileError(f"Profile '{source}' does not exist")

        config_file = profile_path / PROFILE_CONFIG_FILE
        if copy_from:
            created = [profile_path, config_file]
            config_text = f"inherits_from: false\n\n# Profile configuration for {name}\n# Copied from: {copy_from}\n"
        else:
            created = [profile_path, *(profile_path / d for d in NEW_PROFILE_DIRS), config_file]
            config_text = self._fresh_config(name, inherits_from)

        if dry_run:
            return created

        if copy_from:
            shutil.copytree(self.loader.profile_dir(copy_from), profile_path)
        else:
            for directory in created[:-1]:
                directory.mkdir(parents=True, exist_ok=True)
        config_file.write_text(config_text, encoding="utf-8")

        logger.info(f"Created profile '{name}' at {profile_path}")
        return created

    @staticmethod
    def _fresh_config(name: str, inherits_from: str | None) -> str:
        if not inherits_from:
            return f"inherits_from: false\n\n# Profile configuration for {name}\n"
        return (
            f"inherits_from: {inherits_from}\n"
            "\n"
            "# Uncomment and modify to exclude specific inherited files:\n"
            "# exclude_inherited_files:\n"
            "#   - standards/backend/api/*\n"
            "#   - standards/backend/database/migrations.md\n"
            "#   - workflows/implementation/specific-workflow.md\n"
        )
