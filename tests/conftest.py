"""Pytest configuration for agent-os CLI tests."""

from pathlib import Path

import pytest
import yaml


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep CLI logging out of the user's home directory."""
    monkeypatch.setenv("AGENT_OS_LOG_PATH", str(tmp_path / "logs" / "agent-os.log.jsonl"))
    monkeypatch.delenv("AGENT_OS_HOME", raising=False)


@pytest.fixture
def base_dir(tmp_path) -> Path:
    """An empty base installation with the shipped config.yml values."""
    base = tmp_path / "agent-os"
    (base / "profiles").mkdir(parents=True)
    (base / "config.yml").write_text(
        "version: 2.1.0\n"
        "base_install: true\n"
        "profile: default\n"
        "claude_code_commands: true\n"
        "use_claude_code_subagents: true\n"
        "standards_as_claude_code_skills: true\n"
        "agent_os_commands: false\n"
        "lazy_load_workflows: false\n",
        encoding="utf-8",
    )
    return base


@pytest.fixture
def make_profile(base_dir):
    """
    Create a profile under ``base_dir``.

    Usage: ``make_profile("child", {"workflows/a.md": "text"}, inherits_from="default")``.
    profile-config.yml is only written when inherits_from or exclude is given.
    """

    def _make(
        name: str,
        files: dict[str, str] | None = None,
        inherits_from: str | bool | None = None,
        exclude: list[str] | None = None,
    ) -> Path:
        profile_dir = base_dir / "profiles" / name
        profile_dir.mkdir(parents=True, exist_ok=True)

        if inherits_from is not None or exclude:
            data: dict = {}
            if inherits_from is not None:
                data["inherits_from"] = inherits_from
            if exclude:
                data["exclude_inherited_files"] = exclude
            (profile_dir / "profile-config.yml").write_text(yaml.safe_dump(data), encoding="utf-8")

        for relative, content in (files or {}).items():
            path = profile_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return profile_dir

    return _make
