"""Tests for the JSONL logging bootstrap."""

import json
import logging

import pytest
from agent_os_cli.logging_setup import JsonlHandler
from agent_os_cli.logging_setup import init_json_logging
from rich.logging import RichHandler


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def test_records_are_json_lines(tmp_path, restore_root_logger):
    log_path = tmp_path / "out" / "log.jsonl"
    init_json_logging(str(log_path), level="debug")

    logging.getLogger("agent_os_cli.test").info("Compiled %s", "agents/a.md", extra={"profile": "rails"})

    lines = log_path.read_text().splitlines()
    record = json.loads(lines[-1])
    assert record["message"] == "Compiled agents/a.md"
    assert record["lvl"] == "INFO"
    assert record["logger"] == "agent_os_cli.test"
    assert record["profile"] == "rails"
    assert record["schema"]["name"] == "agent-os.log"


def test_env_path_and_no_stacking(tmp_path, monkeypatch, restore_root_logger):
    log_path = tmp_path / "env.jsonl"
    monkeypatch.setenv("AGENT_OS_LOG_PATH", str(log_path))

    init_json_logging()
    init_json_logging(verbose=True)

    jsonl = [h for h in restore_root_logger.handlers if isinstance(h, JsonlHandler)]
    rich = [h for h in restore_root_logger.handlers if isinstance(h, RichHandler)]
    assert [h.path for h in jsonl] == [log_path]
    assert len(rich) == 1
    assert restore_root_logger.level == logging.DEBUG
