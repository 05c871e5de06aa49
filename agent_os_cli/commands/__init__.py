"""CLI commands for agent-os-cli."""

__all__ = [
    "compile",
    "install",
    "profile",
]
