"""Configuration management for TokenPulse."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _expand(path: str) -> Path:
    return Path(os.path.expanduser(path))


CLAUDE_DIR = _expand(os.getenv("CLAUDE_CONFIG_DIR", "~/.claude"))
DASHBOARD_HOST = os.getenv("TOKENPULSE_DASHBOARD_HOST", "127.0.0.1")
DASHBOARD_PORT = int(os.getenv("TOKENPULSE_DASHBOARD_PORT", "8879"))

# Seconds between snapshot mtime checks
WATCH_INTERVAL = float(os.getenv("TOKENPULSE_WATCH_INTERVAL", "1.0"))

STATS_FILE_NAME = "stats-cache.json"
PROJECTS_DIR_NAME = "projects"
SESSION_LOG_SUFFIX = ".jsonl"

# Bounds enforced by the HTTP and CLI layers for the daily views
DEFAULT_DAYS = 7
MAX_DAYS = 365


@dataclass(frozen=True)
class ClaudePaths:
    """Locations of the files Claude Code writes for the current user."""

    claude_dir: Path
    projects_dir: Path
    stats_file: Path


def resolve_paths(claude_dir: Path | str | None = None) -> ClaudePaths:
    """Resolve the snapshot and project locations once for this process."""
    root = _expand(str(claude_dir)) if claude_dir is not None else CLAUDE_DIR
    return ClaudePaths(
        claude_dir=root,
        projects_dir=root / PROJECTS_DIR_NAME,
        stats_file=root / STATS_FILE_NAME,
    )
