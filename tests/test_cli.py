"""Tests for the agent-os command line."""

import signal

import agent_os_cli.commands.install as install_command
import pytest
from agent_os_cli import __version__
from agent_os_cli.main import cli
from agent_os_cli.writer import TempFileRegistry
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch):
    """Wide console so rich does not wrap messages; exit and signal handlers are recorded, not installed."""
    monkeypatch.setenv("COLUMNS", "200")
    installed = {"atexit": [], "signals": []}
    monkeypatch.setattr(signal, "getsignal", lambda signum: signal.SIG_DFL)
    monkeypatch.setattr(signal, "signal", lambda signum, handler: installed["signals"].append(signum))
    monkeypatch.setattr("atexit.register", lambda func: installed["atexit"].append(func))
    monkeypatch.setattr(install_command, "TEMP_FILES", TempFileRegistry())
    return installed


@pytest.fixture
def project_dir(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def profile_files(make_profile):
    return make_profile(
        "default",
        {
            "standards/global/style.md": "Be consistent.\n",
            "workflows/build.md": "Build it.\n",
            "commands/build/single-agent/build.md": "{{workflows/build}}\n",
            "commands/build/multi-agent/build.md": "Delegate the build.\n",
            "agents/builder.md": "---\nname: builder\ntools: Write\n---\n{{workflows/build}}\n",
            "claude-code-skill-template.md": "Skill for {{standard_name_humanized}}\n",
        },
    )


def invoke(runner, base_dir, *args):
    return runner.invoke(cli, ["--base-dir", str(base_dir), *args])


class TestInstallCommand:
    def test_install(self, runner, base_dir, project_dir, profile_files):
        result = invoke(runner, base_dir, "install", "--project-dir", str(project_dir))

        assert result.exit_code == 0, result.output
        assert "successfully installed" in result.output
        assert (project_dir / ".claude/commands/agent-os/build.md").read_text() == "Delegate the build.\n"
        assert (project_dir / ".claude/skills/global-style/SKILL.md").exists()

    def test_bool_options_with_either_spelling(self, runner, base_dir, project_dir, profile_files):
        result = invoke(
            runner,
            base_dir,
            "install",
            "--project_dir",
            str(project_dir),
            "--use_claude_code_subagents",
            "false",
            "--standards-as-claude-code-skills",
            "no",
        )

        assert result.exit_code == 0, result.output
        assert (project_dir / ".claude/commands/agent-os/build.md").read_text() == "Build it.\n"
        assert not (project_dir / ".claude/skills").exists()

    def test_dry_run(self, runner, base_dir, project_dir, profile_files):
        result = invoke(runner, base_dir, "install", "--project-dir", str(project_dir), "--dry-run")

        assert result.exit_code == 0, result.output
        assert "DRY RUN" in result.output
        assert "agent-os/config.yml" in result.output
        assert list(project_dir.iterdir()) == []

    def test_no_outputs_enabled(self, runner, base_dir, project_dir, profile_files):
        result = invoke(
            runner,
            base_dir,
            "install",
            "--project-dir",
            str(project_dir),
            "--claude-code-commands",
            "false",
            "--agent-os-commands",
            "false",
        )

        assert result.exit_code == 1
        assert "must be true" in result.output

    def test_unknown_profile(self, runner, base_dir, project_dir, profile_files):
        result = invoke(runner, base_dir, "install", "--project-dir", str(project_dir), "--profile", "ghost")
        assert result.exit_code == 1
        assert "Profile not found" in result.output

    def test_existing_install_needs_re_install(self, runner, base_dir, project_dir, profile_files):
        assert invoke(runner, base_dir, "install", "--project-dir", str(project_dir)).exit_code == 0

        again = invoke(runner, base_dir, "install", "--project-dir", str(project_dir))
        assert again.exit_code == 1
        assert "already installed" in again.output

        re_install = invoke(runner, base_dir, "install", "--project-dir", str(project_dir), "--re_install")
        assert re_install.exit_code == 0, re_install.output

    def test_re_install_keeps_project_settings(self, runner, base_dir, project_dir, profile_files):
        first = invoke(runner, base_dir, "install", "--project-dir", str(project_dir), "--lazy-load-workflows", "true")
        assert first.exit_code == 0, first.output

        result = invoke(runner, base_dir, "install", "--project-dir", str(project_dir), "--re-install")

        assert result.exit_code == 0, result.output
        agent = (project_dir / ".claude/agents/agent-os/builder.md").read_text()
        assert "@agent-os/workflows/build.md" in agent

    def test_handlers_installed_once_per_process(self, runner, base_dir, project_dir, profile_files, cli_environment):
        for _ in range(2):
            result = invoke(runner, base_dir, "install", "--project-dir", str(project_dir), "--dry-run")
            assert result.exit_code == 0, result.output

        assert cli_environment["atexit"] == [install_command.TEMP_FILES.cleanup]
        assert cli_environment["signals"] == [signal.SIGINT, signal.SIGTERM]

    def test_missing_base_installation(self, runner, tmp_path, project_dir):
        result = invoke(runner, tmp_path / "nowhere", "install", "--project-dir", str(project_dir))
        assert result.exit_code == 1
        assert "not found" in result.output


class TestCompileCommand:
    def test_profile_relative_path(self, runner, base_dir, profile_files, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        result = invoke(runner, base_dir, "compile", "commands/build/single-agent/build.md")

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "Build it."

    def test_lazy_and_flags(self, runner, base_dir, profile_files, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        source = tmp_path / "doc.md"
        source.write_text("{{IF extra}}\nextra on\n{{ENDIF extra}}\n{{workflows/build}}\n")

        result = invoke(runner, base_dir, "compile", str(source), "--lazy", "--set", "extra=true")

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "extra on\n@agent-os/workflows/build.md"

    def test_missing_document_fails(self, runner, base_dir, profile_files, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        result = invoke(runner, base_dir, "compile", "agents/ghost.md")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_bad_set_syntax(self, runner, base_dir, profile_files, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        result = invoke(runner, base_dir, "compile", "agents/builder.md", "--set", "oops")
        assert result.exit_code == 1
        assert "FLAG=BOOL" in result.output


class TestProfileCommands:
    def test_list(self, runner, base_dir, profile_files, make_profile):
        make_profile("rails", inherits_from="default", exclude=["standards/*"])

        result = invoke(runner, base_dir, "profile", "list")

        assert result.exit_code == 0, result.output
        assert "default" in result.output
        assert "rails" in result.output

    def test_show(self, runner, base_dir, profile_files, make_profile):
        make_profile("rails", inherits_from="default")

        result = invoke(runner, base_dir, "profile", "show", "rails", "--files")

        assert result.exit_code == 0, result.output
        assert "rails -> default" in result.output
        assert "workflows/build.md" in result.output

    def test_show_unknown(self, runner, base_dir, profile_files):
        result = invoke(runner, base_dir, "profile", "show", "ghost")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_create(self, runner, base_dir, profile_files):
        result = invoke(runner, base_dir, "profile", "create", "rails", "--inherits_from", "default")

        assert result.exit_code == 0, result.output
        assert (base_dir / "profiles" / "rails" / "profile-config.yml").is_file()

    def test_create_reserved(self, runner, base_dir, profile_files):
        result = invoke(runner, base_dir, "profile", "create", "default")
        assert result.exit_code == 1
        assert "reserved" in result.output


class TestVersionCommand:
    def test_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_versions(self, runner, base_dir, profile_files, project_dir, monkeypatch):
        assert invoke(runner, base_dir, "install", "--project-dir", str(project_dir)).exit_code == 0
        monkeypatch.chdir(project_dir)

        result = invoke(runner, base_dir, "version")

        assert result.exit_code == 0, result.output
        assert "Base installation: 2.1.0" in result.output
        assert "Project: 2.1.0" in result.output
        assert "migrate" not in result.output

    def test_old_project_needs_migration(self, runner, base_dir, project_dir, monkeypatch):
        (project_dir / "agent-os").mkdir()
        (project_dir / "agent-os" / "config.yml").write_text("version: 2.0.3\n")
        monkeypatch.chdir(project_dir)

        result = invoke(runner, base_dir, "version")

        assert "Project: 2.0.3" in result.output
        assert "migrate" in result.output
