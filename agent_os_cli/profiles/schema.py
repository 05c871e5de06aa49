"""Pydantic schema for profile-config.yml."""

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

DEFAULT_PROFILE = "default"


class ProfileConfig(BaseModel):
    """Inheritance settings of one profile.

    Only ``inherits_from`` and ``exclude_inherited_files`` drive resolution;
    anything else in profile-config.yml is ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., description="Profile directory name")
    inherits_from: str | None = Field(None, description="Parent profile name, None for a root profile")
    exclude_inherited_files: tuple[str, ...] = Field(
        default=(), description="Relative paths or glob patterns not inherited from the parent"
    )

    @field_validator("inherits_from", mode="before")
    @classmethod
    def _normalize_parent(cls, value: Any) -> Any:
        # `inherits_from: false` opts out of inheritance
        if value is False or value is None:
            return None
        value = str(value).strip()
        if value == "" or value.lower() == "false":
            return None
        return value

    @field_validator("exclude_inherited_files", mode="before")
    @classmethod
    def _normalize_exclusions(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(str(item).strip() for item in value if item is not None and str(item).strip())

    @property
    def is_root(self) -> bool:
        return self.inherits_from is None
