"""CLI path policy and dependency construction helpers.

Components receive their directories by injection; this module holds the
CLI's choices of where those directories are.
"""

import os
from pathlib import Path

from .profiles.loader import ProfileLoader
from .profiles.manager import ProfileManager
from .profiles.resolver import ProfileResolver

BASE_DIR_ENV = "AGENT_OS_HOME"


def get_base_dir(base_dir: Path | str | None = None) -> Path:
    """
    Base installation directory.

    Precedence: explicit argument, ``AGENT_OS_HOME``, ``~/agent-os``.
    """
    if base_dir is None:
        base_dir = os.environ.get(BASE_DIR_ENV) or Path.home() / "agent-os"
    return Path(base_dir).expanduser()


def create_profile_loader(base_dir: Path | None = None) -> ProfileLoader:
    return ProfileLoader(get_base_dir(base_dir))


def create_profile_resolver(base_dir: Path | None = None) -> ProfileResolver:
    return ProfileResolver(create_profile_loader(base_dir))


def create_profile_manager(base_dir: Path | None = None) -> ProfileManager:
    return ProfileManager(create_profile_loader(base_dir))
