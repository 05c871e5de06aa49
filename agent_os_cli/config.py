"""Configuration store for compilation runs.

The effective configuration is assembled once per run (base ``config.yml``,
then the project's ``agent-os/config.yml``, then command line overrides) and
handed to every component as an immutable ``CompileConfig``.

Fallback defaults live on the model fields. They must stay identical to the
shipped ``data/config.yml``; ``tests/test_config.py`` guards that.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

logger = logging.getLogger(__name__)

LEGACY_KEYS = ("multi_agent_mode", "single_agent_mode", "multi_agent_tool")


class ConfigError(Exception):
    """Raised when the effective configuration cannot be used."""


class CompileConfig(BaseModel):
    """Immutable snapshot of the flags a compilation run depends on."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    version: str = Field(default="2.1.0", description="Agent OS version stamped into compiled output")
    profile: str = Field(default="default", description="Profile to compile from")
    claude_code_commands: bool = Field(default=True, description="Install Claude Code commands")
    use_claude_code_subagents: bool = Field(default=True, description="Delegate to Claude Code subagents")
    agent_os_commands: bool = Field(default=False, description="Install agent-os commands")
    standards_as_claude_code_skills: bool = Field(default=True, description="Install standards as skills")
    lazy_load_workflows: bool = Field(default=False, description="Reference workflows instead of embedding")
    compiled_single_command: bool = Field(
        default=False, description="Set while embedding PHASE files into a single command"
    )
    flags: dict[str, bool] = Field(
        default_factory=dict, description="Additional named flags for conditional tags"
    )

    @field_validator("version", "profile", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> Any:
        # YAML reads `version: 2.1` as a float
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def flag_names(cls) -> set[str]:
        """Names usable in ``{{IF ...}}`` / ``{{UNLESS ...}}`` tags."""
        return {name for name, field in cls.model_fields.items() if field.annotation is bool}

    def flag(self, name: str) -> bool | None:
        """Return a boolean flag value, or None when the flag is unknown."""
        if name in self.flag_names():
            return bool(getattr(self, name))
        return self.flags.get(name)

    def with_flags(self, **flags: Any) -> CompileConfig:
        """Return a copy with some flags replaced; unknown names go to ``flags``."""
        data = self.model_dump()
        known = set(type(self).model_fields) - {"flags"}
        for name, value in flags.items():
            if name in known:
                data[name] = value
            else:
                data["flags"] = {**data["flags"], name: value}
        return self.model_validate(data)


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a flat YAML configuration file.

    Returns an empty dict when the file does not exist.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping
    """
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data


def load_config(
    base_dir: Path,
    project_dir: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> CompileConfig:
    """
    Build the effective configuration.

    Precedence (lowest to highest): field defaults, base ``config.yml``,
    project ``agent-os/config.yml``, explicit overrides. ``None`` overrides are
    ignored so unset CLI options fall through.

    Args:
        base_dir: Base installation directory (``~/agent-os``)
        project_dir: Project directory whose ``agent-os/config.yml`` is layered in
        overrides: Values given on the command line

    Returns:
        Frozen CompileConfig

    Raises:
        ConfigError: If a file is malformed or a value has the wrong type
    """
    data: dict[str, Any] = {}
    base_data = read_config_file(base_dir / "config.yml")
    data.update(base_data)

    if project_dir is not None:
        project_data = read_config_file(project_dir / "agent-os" / "config.yml")
        data.update({k: v for k, v in project_data.items() if v is not None and v != ""})

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    for key in LEGACY_KEYS:
        if data.get(key) not in (None, ""):
            logger.warning(f"Config key '{key}' is no longer supported and is ignored")

    try:
        config = CompileConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug(f"Loaded configuration: {config.model_dump()}")
    return config


def validate_config(config: CompileConfig, base_dir: Path) -> tuple[CompileConfig, list[str]]:
    """
    Check cross-field rules and return the effective configuration.

    Args:
        config: Configuration to validate
        base_dir: Base installation directory holding ``profiles/``

    Returns:
        Tuple of (effective config, warning messages)

    Raises:
        ConfigError: If no output is enabled or the profile does not exist
    """
    warnings: list[str] = []

    if not config.claude_code_commands and not config.agent_os_commands:
        raise ConfigError("At least one of 'claude_code_commands' or 'agent_os_commands' must be true")

    if config.use_claude_code_subagents and not config.claude_code_commands:
        warnings.append("use_claude_code_subagents requires claude_code_commands to be true; ignoring it")

    if config.standards_as_claude_code_skills and not config.claude_code_commands:
        warnings.append(
            "standards_as_claude_code_skills requires claude_code_commands to be true; treating it as false"
        )
        config = config.with_flags(standards_as_claude_code_skills=False)

    if not (base_dir / "profiles" / config.profile).is_dir():
        raise ConfigError(f"Profile not found: {config.profile}")

    for message in warnings:
        logger.warning(message)

    return config, warnings
