"""Command line entry point for agent-os."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .commands.compile import compile_cmd
from .commands.install import install
from .commands.profile import profile
from .config import ConfigError
from .config import read_config_file
from .console import console
from .logging_setup import init_json_logging
from .paths import BASE_DIR_ENV
from .paths import get_base_dir
from .utils.error_format import escape_markup
from .versioning import check_version_compatibility
from .versioning import needs_migration

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.version_option(__version__, prog_name="agent-os")
@click.option(
    "--base-dir",
    "--base_dir",
    "base_dir",
    envvar=BASE_DIR_ENV,
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Base installation directory (default: ~/agent-os)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log to the console at DEBUG level")
@click.option("--log-file", "--log_file", "log_file", default=None, help="JSONL log file (default: AGENT_OS_LOG_PATH)")
@click.pass_context
def cli(ctx: click.Context, base_dir: Path | None, verbose: bool, log_file: str | None):
    """Agent OS - spec-driven development documents for AI coding agents."""
    init_json_logging(log_file, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["base_dir"] = get_base_dir(base_dir)
    logger.debug(f"agent-os {__version__}, base directory {ctx.obj['base_dir']}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.pass_context
def version(ctx: click.Context):
    """Show CLI, base installation and project versions."""
    base_dir = ctx.obj["base_dir"]
    console.print(f"[bold]agent-os CLI:[/bold] {__version__}")

    try:
        base_version = read_config_file(base_dir / "config.yml").get("version")
        project_version = read_config_file(Path.cwd() / "agent-os" / "config.yml").get("version")
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape_markup(e)}")
        sys.exit(1)

    if base_version is None:
        console.print(f"[yellow]Base installation:[/yellow] not found at {escape_markup(base_dir)}")
        return
    console.print(f"[bold]Base installation:[/bold] {base_version}")

    if project_version is None:
        console.print("[dim]Project: Agent OS is not installed in the current directory[/dim]")
        return
    console.print(f"[bold]Project:[/bold] {project_version}")

    if not check_version_compatibility(str(base_version), str(project_version)):
        console.print(
            "[yellow]Project and base installation have different major versions; re-install the project[/yellow]"
        )
    elif needs_migration(str(project_version)):
        console.print("[yellow]Project predates 2.1.0; run `agent-os install --re-install` to migrate[/yellow]")


cli.add_command(install)
cli.add_command(compile_cmd)
cli.add_command(profile)


def main():
    cli()


if __name__ == "__main__":
    main()
