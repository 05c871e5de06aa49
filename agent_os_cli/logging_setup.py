"""
JSONL logging bootstrap for the agent-os CLI.

One JSONL file sink is installed on the root logger early in CLI startup;
``--verbose`` adds a rich console handler on top of it.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

from rich.logging import RichHandler

from .console import err_console

DEFAULT_PATH = "~/.agent-os/logs/agent-os.log.jsonl"
DEFAULT_LEVEL = "INFO"

# Attributes every LogRecord carries; anything else was passed via ``extra=``
_RECORD_ATTRS = frozenset(
    (
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    )
)


class JsonlHandler(logging.Handler):
    """Appends one JSON object per record to a file."""

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(self, record: logging.LogRecord) -> dict:
        payload = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "agent-os.log", "ver": "1.0.0"},
            "logger": record.name,
            "message": record.getMessage(),
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)
        return payload

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_record(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(path: str | None = None, level: str | None = None, verbose: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        path: JSONL file to append to (default: ``AGENT_OS_LOG_PATH``)
        level: Level name (default: ``AGENT_OS_LOG_LEVEL``); forced to DEBUG when verbose
        verbose: Also log to the console through rich
    """
    path = path or os.environ.get("AGENT_OS_LOG_PATH", DEFAULT_PATH)
    level = "DEBUG" if verbose else (level or os.environ.get("AGENT_OS_LOG_LEVEL", DEFAULT_LEVEL)).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Re-running the CLI in one process (tests) must not stack handlers
    for handler in list(root.handlers):
        if isinstance(handler, JsonlHandler | RichHandler):
            root.removeHandler(handler)

    root.addHandler(JsonlHandler(path))
    if verbose:
        root.addHandler(RichHandler(console=err_console, show_path=False, markup=False))
