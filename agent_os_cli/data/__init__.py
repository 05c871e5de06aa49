"""Data files shipped with the agent-os CLI."""

from pathlib import Path

DATA_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = DATA_DIR / "config.yml"
