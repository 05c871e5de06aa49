"""Profile system for Agent OS.

Profiles are named, inheritable document sets under ``~/agent-os/profiles``.
"""

from .loader import ProfileLoader
from .manager import ProfileError
from .manager import ProfileManager
from .models import InheritanceChain
from .models import ResolutionResult
from .models import ResolutionStatus
from .resolver import MAX_PROFILE_INHERITANCE_DEPTH
from .resolver import ProfileResolver
from .resolver import match_pattern
from .schema import DEFAULT_PROFILE
from .schema import ProfileConfig

__all__ = [
    "DEFAULT_PROFILE",
    "MAX_PROFILE_INHERITANCE_DEPTH",
    "InheritanceChain",
    "ProfileConfig",
    "ProfileError",
    "ProfileLoader",
    "ProfileManager",
    "ProfileResolver",
    "ResolutionResult",
    "ResolutionStatus",
    "match_pattern",
]
