"""Install command: compile a profile into the current project."""

import logging
import sys
from pathlib import Path

import click

from ..config import CompileConfig
from ..config import ConfigError
from ..config import load_config
from ..config import validate_config
from ..console import console
from ..installer import InstallError
from ..installer import InstallReport
from ..installer import ProjectInstaller
from ..paths import get_base_dir
from ..templates.models import Severity
from ..utils.error_format import escape_markup
from ..writer import AtomicWriter
from ..writer import TempFileRegistry

logger = logging.getLogger(__name__)

# One registry per process; its exit and signal handlers are installed once.
TEMP_FILES = TempFileRegistry()


def _bool_option(name: str, help_text: str):
    """``--some-flag BOOL`` plus its ``--some_flag`` spelling; unset means "from config"."""
    dashed = f"--{name.replace('_', '-')}"
    return click.option(dashed, f"--{name}", name, type=click.BOOL, default=None, metavar="BOOL", help=help_text)


def _print_configuration(config: CompileConfig) -> None:
    console.print("[bold]Configuration:[/bold]")
    console.print(f"  Profile: [yellow]{escape_markup(config.profile)}[/yellow]")
    console.print(f"  Claude Code commands: [yellow]{config.claude_code_commands}[/yellow]")
    console.print(f"  Use Claude Code subagents: [yellow]{config.use_claude_code_subagents}[/yellow]")
    console.print(f"  Standards as Claude Code Skills: [yellow]{config.standards_as_claude_code_skills}[/yellow]")
    console.print(f"  Lazy load workflows: [yellow]{config.lazy_load_workflows}[/yellow]")
    console.print(f"  Agent OS commands: [yellow]{config.agent_os_commands}[/yellow]")
    console.print()


def _print_report(report: InstallReport) -> None:
    labels = {
        "standards": "standards in agent-os/standards",
        "claude_code_commands": "Claude Code commands",
        "claude_code_agents": "Claude Code agents",
        "skills": "Claude Code Skills",
        "agent_os_commands": "agent-os commands",
    }

    if report.dry_run:
        console.print("[bold]The following files would be created:[/bold]")
        for path in report.relative_paths():
            console.print(f"  - {escape_markup(path)}")
        console.print()
    else:
        for key, label in labels.items():
            count = report.counts.get(key, 0)
            if count:
                console.print(f"[green]✓[/green] Installed {count} {label}")
        if report.counts.get("skills"):
            console.print("[yellow]  👉 Be sure to run the /improve-skills command next using Claude Code[/yellow]")

    for issue in report.issues:
        color = "red" if issue.severity is Severity.ERROR else "yellow"
        console.print(f"[{color}]⚠️ {escape_markup(str(issue))}[/{color}]")

    for failure in report.failures:
        console.print(f"[red]✗ {escape_markup(failure.document)}:[/red] {escape_markup(failure.reason)}")


@click.command()
@click.option(
    "--project-dir",
    "--project_dir",
    "project_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project to install into (default: current directory)",
)
@click.option("--profile", default=None, help="Profile to install (default: from config.yml)")
@_bool_option("claude_code_commands", "Install Claude Code commands")
@_bool_option("use_claude_code_subagents", "Delegate Claude Code commands to subagents")
@_bool_option("agent_os_commands", "Install agent-os commands")
@_bool_option("standards_as_claude_code_skills", "Install standards as Claude Code Skills")
@_bool_option("lazy_load_workflows", "Reference workflows instead of embedding them")
@click.option("--re-install", "--re_install", "re_install", is_flag=True, help="Replace an existing installation")
@click.option("--dry-run", "--dry_run", "dry_run", is_flag=True, help="Show what would be installed")
@click.pass_context
def install(
    ctx: click.Context,
    project_dir: Path | None,
    profile: str | None,
    claude_code_commands: bool | None,
    use_claude_code_subagents: bool | None,
    agent_os_commands: bool | None,
    standards_as_claude_code_skills: bool | None,
    lazy_load_workflows: bool | None,
    re_install: bool,
    dry_run: bool,
):
    """Install Agent OS into a project.

    Options left unset fall back to the project's agent-os/config.yml (when
    re-installing) and then to the base installation's config.yml.

    Examples:

        \b
        # Install with the base configuration
        agent-os install

        \b
        # Preview a single-agent install of the rails profile
        agent-os install --profile rails --use-claude-code-subagents false --dry-run
    """
    base_dir = get_base_dir((ctx.obj or {}).get("base_dir"))
    project_dir = (project_dir or Path.cwd()).resolve()

    if not (base_dir / "config.yml").is_file():
        console.print(f"[red]Error:[/red] Agent OS base installation not found at {escape_markup(base_dir)}")
        sys.exit(1)

    overrides = {
        "profile": profile,
        "claude_code_commands": claude_code_commands,
        "use_claude_code_subagents": use_claude_code_subagents,
        "agent_os_commands": agent_os_commands,
        "standards_as_claude_code_skills": standards_as_claude_code_skills,
        "lazy_load_workflows": lazy_load_workflows,
    }

    try:
        config = load_config(base_dir, project_dir if re_install else None, overrides)
        config, warnings = validate_config(config, base_dir)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape_markup(e)}")
        sys.exit(1)

    for message in warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape_markup(message)}")

    if dry_run:
        console.print("[yellow]DRY RUN - No files will be actually created[/yellow]\n")
    _print_configuration(config)

    logger.debug(f"Installing from {base_dir} into {project_dir} (dry_run={dry_run}, re_install={re_install})")
    TEMP_FILES.install_handlers()
    installer = ProjectInstaller(base_dir, project_dir, config, writer=AtomicWriter(TEMP_FILES, dry_run=dry_run))

    try:
        report = installer.install(re_install=re_install)
    except InstallError as e:
        console.print(f"[red]Error:[/red] {escape_markup(e)}")
        sys.exit(1)

    _print_report(report)

    if not report.ok:
        errors = sum(1 for issue in report.issues if issue.severity is Severity.ERROR)
        console.print(
            f"\n[red]Installation finished with {len(report.failures)} failure(s) and {errors} error(s)[/red]"
        )
        sys.exit(1)
    if not dry_run:
        console.print("\n[bold green]Agent OS has been successfully installed in your project![/bold green]")
