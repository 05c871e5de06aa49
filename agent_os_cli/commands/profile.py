"""Profile management commands for the agent-os CLI."""

from __future__ import annotations

import sys

import click
from rich.table import Table

from ..console import console
from ..paths import create_profile_manager
from ..paths import create_profile_resolver
from ..paths import get_base_dir
from ..profiles.manager import ProfileError
from ..utils.error_format import escape_markup


@click.group(invoke_without_command=True)
@click.pass_context
def profile(ctx: click.Context):
    """Manage Agent OS profiles."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@profile.command(name="list")
@click.pass_context
def profile_list(ctx: click.Context):
    """List all available profiles."""
    resolver = create_profile_resolver(get_base_dir((ctx.obj or {}).get("base_dir")))
    profiles = resolver.loader.list_profiles()

    if not profiles:
        console.print("[yellow]No profiles found.[/yellow]")
        return

    table = Table(title="Available Profiles", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Inherits from", style="yellow")
    table.add_column("Exclusions", justify="right")

    for name in profiles:
        config = resolver.loader.load_profile(name)
        table.add_row(name, config.inherits_from or "-", str(len(config.exclude_inherited_files)))

    console.print(table)


@profile.command(name="show")
@click.argument("name")
@click.option("--files", "-f", "show_files", is_flag=True, help="List every document visible to the profile")
@click.pass_context
def profile_show(ctx: click.Context, name: str, show_files: bool):
    """Show a profile's inheritance chain and exclusions."""
    resolver = create_profile_resolver(get_base_dir((ctx.obj or {}).get("base_dir")))

    if not resolver.loader.exists(name):
        console.print(f"[red]Error:[/red] Profile '{escape_markup(name)}' not found")
        sys.exit(1)

    config = resolver.loader.load_profile(name)
    chain = resolver.chain(name)

    console.print(f"[bold]Profile:[/bold] {escape_markup(name)}")
    console.print(f"[bold]Inherits from:[/bold] {escape_markup(config.inherits_from or '(none)')}")
    console.print(f"[bold]Inheritance chain:[/bold] {escape_markup(' -> '.join(chain))}")

    if config.exclude_inherited_files:
        console.print("[bold]Excluded from inheritance:[/bold]")
        for pattern in config.exclude_inherited_files:
            console.print(f"  - {escape_markup(pattern)}")

    results = resolver.list_files(name)
    console.print(f"[bold]Documents:[/bold] {len(results)}")

    if show_files and results:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Document", style="green")
        table.add_column("Provided by", style="yellow")
        for result in results:
            table.add_row(result.relative_path, result.profile or "")
        console.print(table)


@profile.command(name="create")
@click.argument("name")
@click.option("--inherits-from", "--inherits_from", "inherits_from", default=None, help="Parent profile")
@click.option("--copy-from", "--copy_from", "copy_from", default=None, help="Profile to copy instead of inheriting")
@click.option("--dry-run", "--dry_run", "dry_run", is_flag=True, help="Show what would be created")
@click.pass_context
def profile_create(ctx: click.Context, name: str, inherits_from: str | None, copy_from: str | None, dry_run: bool):
    """Create a new profile.

    Examples:

        \b
        # A profile that inherits everything from default
        agent-os profile create rails --inherits-from default

        \b
        # A standalone copy of an existing profile
        agent-os profile create rails-copy --copy-from rails
    """
    manager = create_profile_manager(get_base_dir((ctx.obj or {}).get("base_dir")))

    try:
        created = manager.create_profile(name, inherits_from=inherits_from, copy_from=copy_from, dry_run=dry_run)
    except ProfileError as e:
        console.print(f"[red]Error:[/red] {escape_markup(e)}")
        sys.exit(1)

    verb = "Would create" if dry_run else "Created"
    console.print(f"[green]✓[/green] {verb} profile '{escape_markup(name)}'")
    for path in created:
        console.print(f"  - {escape_markup(path)}")
