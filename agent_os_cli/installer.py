"""Project installation: compile a profile into a project directory.

Layout written into the project:
- ``agent-os/config.yml``: the effective configuration, stamped
- ``agent-os/standards/...``: standards, copied as-is
- ``.claude/commands/agent-os/<command>.md``: Claude Code commands
- ``.claude/agents/agent-os/<agent>.md``: Claude Code subagents
- ``.claude/skills/<standard>/SKILL.md``: standards as Claude Code skills
- ``agent-os/commands/<command>/<file>.md``: agent-os commands

A failure on one document is recorded and the batch carries on.
"""

import logging
import re
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from pathlib import Path
from pathlib import PurePosixPath

from .config import CompileConfig
from .config import read_config_file
from .profiles.resolver import ProfileResolver
from .skills import SKILL_TEMPLATE_FILE
from .skills import render_skill
from .skills import skill_name
from .skills import skill_relative_path
from .templates.compiler import DocumentCompiler
from .templates.models import CompiledArtifact
from .templates.models import CompileIssue
from .templates.models import DocumentKind
from .templates.models import Severity
from .writer import AtomicWriter
from .writer import WriteError

logger = logging.getLogger(__name__)

ORCHESTRATE_TASKS = "commands/orchestrate-tasks/orchestrate-tasks.md"
IMPROVE_SKILLS = "commands/improve-skills/improve-skills.md"

_NUMBERED_FILE_RE = re.compile(r"^[0-9]+-.*\.md$")
_SINGLE_AGENT_RE = re.compile(r"^commands/([^/]+)/single-agent/(.+)$")
_MULTI_AGENT_RE = re.compile(r"^commands/([^/]+)/multi-agent/.+$")


class InstallError(Exception):
    """Raised when a project cannot be installed into at all."""


@dataclass
class InstallFailure:
    """One document that could not be installed."""

    document: str
    reason: str


@dataclass
class InstallReport:
    """Everything one install run did (or would do, for a dry run)."""

    project_dir: Path
    dry_run: bool = False
    written: list[Path] = field(default_factory=list)
    failures: list[InstallFailure] = field(default_factory=list)
    issues: list[CompileIssue] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures and not any(i.severity is Severity.ERROR for i in self.issues)

    def relative_paths(self) -> list[str]:
        """Written paths relative to the project directory."""
        paths = []
        for path in self.written:
            try:
                paths.append(path.relative_to(self.project_dir).as_posix())
            except ValueError:
                paths.append(str(path))
        return paths


def is_installed(project_dir: Path) -> bool:
    return (project_dir / "agent-os" / "config.yml").is_file()


def render_project_config(config: CompileConfig, now: datetime | None = None) -> str:
    """Text of the project's ``agent-os/config.yml``."""
    now = now or datetime.now()

    def flag(value: bool) -> str:
        return "true" if value else "false"

    return "\n".join(
        [
            f"version: {config.version}",
            f"last_compiled: {now.strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "# ================================================",
            "# Compiled with the following settings:",
            "#",
            "# To change these settings, re-run `agent-os install --re-install` with new options.",
            "# ================================================",
            f"profile: {config.profile}",
            f"claude_code_commands: {flag(config.claude_code_commands)}",
            f"use_claude_code_subagents: {flag(config.use_claude_code_subagents)}",
            f"agent_os_commands: {flag(config.agent_os_commands)}",
            f"standards_as_claude_code_skills: {flag(config.standards_as_claude_code_skills)}",
            f"lazy_load_workflows: {flag(config.lazy_load_workflows)}",
        ]
    )


class ProjectInstaller:
    """
    Installs one profile into one project.

    Contract:
    - Inputs: base directory (``~/agent-os``), project directory, effective config
    - Outputs: InstallReport
    - Side Effects: files under ``<project>/agent-os`` and ``<project>/.claude``
      (none for a dry run)
    - Errors: InstallError only from ``check_installable``; per-document
      failures land on the report
    """

    def __init__(
        self,
        base_dir: Path,
        project_dir: Path,
        config: CompileConfig,
        *,
        writer: AtomicWriter | None = None,
        resolver: ProfileResolver | None = None,
    ):
        self.base_dir = base_dir
        self.project_dir = project_dir
        self.config = config
        self.writer = writer or AtomicWriter()
        self.resolver = resolver or ProfileResolver.for_base_dir(base_dir)
        self.compiler = DocumentCompiler(self.resolver, config)

    @property
    def dry_run(self) -> bool:
        return self.writer.dry_run

    def check_installable(self, re_install: bool = False) -> None:
        """
        Refuse to install into the base installation or over an existing install.

        Raises:
            InstallError: If the project is the base installation, or already
                has Agent OS and ``re_install`` is False
        """
        project_config = self.project_dir / "agent-os" / "config.yml"
        if project_config.is_file() and read_config_file(project_config).get("base_install") is True:
            raise InstallError(
                "Cannot install Agent OS in the base installation directory; run this from your project root"
            )
        if is_installed(self.project_dir) and not re_install:
            raise InstallError(
                f"Agent OS is already installed in {self.project_dir}; use --re-install to overwrite it"
            )

    def install(self, re_install: bool = False) -> InstallReport:
        """
        Run the full install batch.

        Args:
            re_install: Remove a previous installation's generated files first

        Returns:
            InstallReport
        """
        self.check_installable(re_install)
        report = InstallReport(project_dir=self.project_dir, dry_run=self.dry_run)

        walk = self.resolver.walk_chain(self.config.profile)
        if not walk.complete:
            # Install what the reachable profiles provide; the rest is reported.
            report.failures.append(InstallFailure(f"profiles/{self.config.profile}", walk.describe()))

        if re_install and is_installed(self.project_dir):
            self.remove_previous_install(report)

        self._section(report, "config", self.install_project_config)
        self._section(report, "standards", self.install_standards)

        if self.config.claude_code_commands:
            if self.config.use_claude_code_subagents:
                self._section(report, "claude_code_commands", self.install_claude_code_commands_with_delegation)
                self._section(report, "claude_code_agents", self.install_claude_code_agents)
            else:
                self._section(report, "claude_code_commands", self.install_claude_code_commands_without_delegation)
            if self.config.standards_as_claude_code_skills:
                self._section(report, "skills", self.install_claude_code_skills)
                self._section(report, "improve_skills", self.install_improve_skills_command)

        if self.config.agent_os_commands:
            self._section(report, "agent_os_commands", self.install_agent_os_commands)

        logger.info(
            f"Installed profile '{self.config.profile}' into {self.project_dir}: "
            f"{len(report.written)} file(s), {len(report.failures)} failure(s)"
        )
        return report

    def remove_previous_install(self, report: InstallReport) -> None:
        """
        Delete the generated files of an earlier install (skills included).

        A directory that cannot be removed is recorded on ``report`` and the
        rest are still removed.
        """
        if self.dry_run:
            return

        previous = read_config_file(self.project_dir / "agent-os" / "config.yml")
        previous_profile = str(previous.get("profile") or self.config.profile)

        targets: list[Path] = []
        skills_dir = self.project_dir / ".claude" / "skills"
        if skills_dir.is_dir() and self.resolver.loader.exists(previous_profile):
            for result in self.resolver.list_files(previous_profile, "standards", suffixes=(".md",)):
                targets.append(skills_dir / skill_name(result.relative_path))

        for relative in (
            ".claude/commands/agent-os",
            ".claude/agents/agent-os",
            "agent-os/standards",
            "agent-os/commands",
        ):
            targets.append(self.project_dir / relative)

        for target in targets:
            if not target.is_dir():
                continue
            logger.debug(f"Removing previous install: {target}")
            try:
                shutil.rmtree(target)
            except OSError as e:
                logger.error(f"Could not remove {target}: {e}")
                report.failures.append(
                    InstallFailure(target.relative_to(self.project_dir).as_posix(), f"could not remove: {e}")
                )

    # ----- sections -----

    def install_project_config(self, report: InstallReport) -> int:
        dest = self.project_dir / "agent-os" / "config.yml"
        return 1 if self._write(report, "agent-os/config.yml", dest, render_project_config(self.config)) else 0

    def install_standards(self, report: InstallReport) -> int:
        count = 0
        for result in self.resolver.list_files(self.config.profile, "standards"):
            try:
                content = result.found_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                report.failures.append(InstallFailure(result.relative_path, f"unreadable: {e}"))
                continue
            dest = self.project_dir / "agent-os" / result.relative_path
            if self._write(report, result.relative_path, dest, content):
                count += 1
        return count

    def install_claude_code_commands_with_delegation(self, report: InstallReport) -> int:
        count = 0
        for relative in self._files("commands"):
            match = _MULTI_AGENT_RE.match(relative)
            if match is None and relative != ORCHESTRATE_TASKS:
                continue
            command = match.group(1) if match else "orchestrate-tasks"
            dest = self.project_dir / ".claude" / "commands" / "agent-os" / f"{command}.md"
            if self._compile_and_write(report, relative, DocumentKind.COMMAND, dest):
                count += 1
        return count

    def install_claude_code_commands_without_delegation(self, report: InstallReport) -> int:
        count = 0
        for relative in self._files("commands"):
            if relative == ORCHESTRATE_TASKS:
                command = "orchestrate-tasks"
            else:
                match = _SINGLE_AGENT_RE.match(relative)
                if match is None or _NUMBERED_FILE_RE.match(PurePosixPath(relative).name):
                    continue
                command = match.group(1)
            dest = self.project_dir / ".claude" / "commands" / "agent-os" / f"{command}.md"
            if self._compile_and_write(report, relative, DocumentKind.COMMAND, dest):
                count += 1
        return count

    def install_claude_code_agents(self, report: InstallReport) -> int:
        count = 0
        for relative in self._files("agents", suffixes=(".md",)):
            if relative.startswith("agents/templates/"):
                continue
            dest = self.project_dir / ".claude" / "agents" / "agent-os" / PurePosixPath(relative).name
            if self._compile_and_write(report, relative, DocumentKind.AGENT, dest):
                count += 1
        return count

    def install_agent_os_commands(self, report: InstallReport) -> int:
        count = 0
        for relative in self._files("commands"):
            if relative == ORCHESTRATE_TASKS:
                dest = self.project_dir / "agent-os" / ORCHESTRATE_TASKS
            else:
                match = _SINGLE_AGENT_RE.match(relative)
                if match is None:
                    continue
                dest = self.project_dir / "agent-os" / "commands" / match.group(1) / match.group(2)
            if self._compile_and_write(report, relative, DocumentKind.COMMAND, dest):
                count += 1
        return count

    def install_claude_code_skills(self, report: InstallReport) -> int:
        template = self.resolver.resolve(SKILL_TEMPLATE_FILE, self.config.profile)
        if not template.found:
            report.failures.append(InstallFailure(SKILL_TEMPLATE_FILE, f"skill template {template.describe()}"))
            return 0
        try:
            template_text = template.found_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read skill template {template.found_path}: {e}")
            report.failures.append(InstallFailure(SKILL_TEMPLATE_FILE, f"unreadable: {e}"))
            return 0

        count = 0
        for result in self.resolver.list_files(self.config.profile, "standards", suffixes=(".md",)):
            dest = self.project_dir / skill_relative_path(result.relative_path)
            if self._write(report, result.relative_path, dest, render_skill(template_text, result.relative_path)):
                count += 1
        return count

    def install_improve_skills_command(self, report: InstallReport) -> int:
        if not self.resolver.resolve(IMPROVE_SKILLS, self.config.profile).found:
            logger.debug(f"No {IMPROVE_SKILLS} in profile '{self.config.profile}'")
            return 0
        dest = self.project_dir / ".claude" / "commands" / "agent-os" / "improve-skills.md"
        return 1 if self._compile_and_write(report, IMPROVE_SKILLS, DocumentKind.COMMAND, dest) else 0

    # ----- helpers -----

    def _section(self, report: InstallReport, name: str, install: Callable[[InstallReport], int]) -> None:
        count = install(report)
        report.counts[name] = count
        logger.debug(f"Section {name}: {count} file(s)")

    def _files(self, subdir: str, suffixes: tuple[str, ...] = (".md",)) -> list[str]:
        return [r.relative_path for r in self.resolver.list_files(self.config.profile, subdir, suffixes=suffixes)]

    def _compile_and_write(self, report: InstallReport, relative: str, kind: DocumentKind, dest: Path) -> bool:
        artifact: CompiledArtifact = self.compiler.compile(relative, kind)
        report.issues.extend(artifact.issues)
        if artifact.has_errors and not artifact.content:
            report.failures.append(InstallFailure(relative, "; ".join(i.message for i in artifact.errors)))
            return False
        return self._write(report, relative, dest, artifact.content)

    def _write(self, report: InstallReport, document: str, dest: Path, content: str) -> bool:
        try:
            self.writer.write(dest, content)
        except WriteError as e:
            logger.error(str(e))
            report.failures.append(InstallFailure(document, e.reason))
            return False
        report.written.append(dest)
        return True
