"""Compile command: expand one document and print it."""

import sys
from pathlib import Path

import click

from ..config import ConfigError
from ..config import load_config
from ..console import err_console
from ..paths import create_profile_resolver
from ..paths import get_base_dir
from ..templates.compiler import DocumentCompiler
from ..templates.models import DocumentKind
from ..templates.models import Severity
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message


def guess_kind(source: str) -> DocumentKind:
    """Infer the document kind from its location in a profile."""
    parts = Path(source).parts
    if "agents" in parts:
        return DocumentKind.AGENT
    if "standards" in parts:
        return DocumentKind.STANDARD
    return DocumentKind.COMMAND


@click.command(name="compile")
@click.argument("path")
@click.option("--profile", default=None, help="Profile to resolve references against")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in DocumentKind]),
    default=None,
    help="Document kind (default: inferred from PATH)",
)
@click.option(
    "--lazy/--eager",
    "lazy",
    default=None,
    help="Reference workflows instead of embedding them (default: from config.yml)",
)
@click.option(
    "--set",
    "flags",
    multiple=True,
    metavar="FLAG=BOOL",
    help="Override a conditional flag, e.g. --set use_claude_code_subagents=false",
)
@click.pass_context
def compile_cmd(ctx: click.Context, path: str, profile: str | None, kind: str | None, lazy: bool | None, flags):
    """Compile one document to stdout.

    PATH is either a file on disk or a path relative to the profile
    (agents/implementer.md, commands/plan-product/single-agent/plan-product.md).
    Warnings and errors go to stderr.
    """
    base_dir = get_base_dir((ctx.obj or {}).get("base_dir"))

    overrides: dict[str, object] = {"profile": profile, "lazy_load_workflows": lazy}
    for item in flags:
        name, sep, value = item.partition("=")
        if not sep:
            err_console.print(f"[red]Error:[/red] --set expects FLAG=BOOL, got {escape_markup(item)}")
            sys.exit(1)
        overrides[name.strip()] = value.strip().lower() in ("1", "true", "yes", "on")

    try:
        config = load_config(base_dir, Path.cwd())
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {escape_markup(e)}")
        sys.exit(1)
    config = config.with_flags(**{k: v for k, v in overrides.items() if v is not None})

    text = None
    source = path
    file_path = Path(path)
    if file_path.is_file():
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            err_console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
            sys.exit(1)

    document_kind = DocumentKind(kind) if kind else guess_kind(source)
    compiler = DocumentCompiler(create_profile_resolver(base_dir), config)
    artifact = compiler.compile(source, document_kind, text=text)

    if artifact.content:
        click.echo(artifact.content.rstrip("\n"))

    for issue in artifact.issues:
        color = "red" if issue.severity is Severity.ERROR else "yellow"
        label = "Error" if issue.severity is Severity.ERROR else "Warning"
        err_console.print(f"[{color}]{label}:[/{color}] {escape_markup(str(issue))}")

    if artifact.has_errors:
        sys.exit(1)
