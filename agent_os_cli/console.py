"""Shared Rich console instances for CLI output."""

from rich.console import Console

console = Console()

# Compiled documents go to stdout untouched; diagnostics go here
err_console = Console(stderr=True)

__all__ = ["console", "err_console"]
