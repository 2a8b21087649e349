"""Aggregation of token usage from Claude Code session logs.

Session logs live under ``<claude dir>/projects/<project>/<session>.jsonl``.
Every call rescans the tree; nothing is cached between calls.
"""

import logging
import os
import threading
from collections.abc import Iterable, Iterator
from datetime import date
from pathlib import Path

from .config import SESSION_LOG_SUFFIX
from .models import LiveUsage, SessionUsageTotal
from .parser import RequestDeduplicator, parse_usage_line

logger = logging.getLogger("tokenpulse")


class ScanCancelled(Exception):
    """Raised when a live usage scan is stopped through its cancel event."""


class SessionLog:
    """Lazy sequence of raw lines from one session file.

    Each iteration reopens the file, so the sequence can be consumed again
    after the file has grown.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def __iter__(self) -> Iterator[bytes]:
        with open(self.path, "rb") as f:
            yield from f

    def __repr__(self):
        return f"SessionLog({str(self.path)!r})"


def _fold(lines: Iterable[str | bytes], total: SessionUsageTotal):
    dedup = RequestDeduplicator()
    for line in lines:
        event = parse_usage_line(line)
        if event is None:
            continue
        if dedup.accept(event.request_id):
            total.add_event(event)


def aggregate_session(lines: Iterable[str | bytes]) -> SessionUsageTotal:
    """Fold the usage events of one session into a single total."""
    total = SessionUsageTotal()
    _fold(lines, total)
    return total


def aggregate_session_file(path: Path) -> SessionUsageTotal:
    """Aggregate one session file, keeping the partial total on I/O errors."""
    total = SessionUsageTotal()
    try:
        _fold(SessionLog(path), total)
    except OSError as e:
        logger.warning("Failed reading session file %s: %s", path, e)
    return total


def _modified_on(path: Path, day: date) -> bool:
    mtime = path.stat().st_mtime
    return date.fromtimestamp(mtime) == day


def iter_today_session_files(projects_dir: Path, today: date | None = None) -> Iterator[Path]:
    """Yield session logs, one project directory at a time, whose mtime falls on today."""
    today = today or date.today()
    projects_dir = Path(projects_dir)
    if not projects_dir.is_dir():
        return

    try:
        projects = sorted(os.scandir(projects_dir), key=lambda e: e.name)
    except OSError as e:
        logger.warning("Cannot list projects directory %s: %s", projects_dir, e)
        return

    for project in projects:
        try:
            if not project.is_dir():
                continue
            names = sorted(os.listdir(project.path))
        except OSError as e:
            logger.warning("Skipping project directory %s: %s", project.path, e)
            continue

        for name in names:
            if not name.endswith(SESSION_LOG_SUFFIX):
                continue
            path = Path(project.path) / name
            try:
                if not path.is_file() or not _modified_on(path, today):
                    continue
            except OSError as e:
                logger.warning("Cannot stat session file %s: %s", path, e)
                continue
            yield path


def aggregate_live_usage(
    projects_dir: Path,
    today: date | None = None,
    cancel: threading.Event | None = None,
) -> LiveUsage:
    """Sum usage of every session log modified today across all projects.

    A missing projects directory yields zero usage. When ``cancel`` is set the
    scan stops before the next file and raises ScanCancelled.
    """
    usage = LiveUsage()
    files = 0
    for path in iter_today_session_files(projects_dir, today):
        if cancel is not None and cancel.is_set():
            logger.info("Live usage scan cancelled after %d files", files)
            raise ScanCancelled(str(projects_dir))
        usage.add_totals(aggregate_session_file(path))
        files += 1

    logger.debug(
        "Live usage: files=%d messages=%d in=%d out=%d",
        files,
        usage.message_count,
        usage.input_tokens,
        usage.output_tokens,
    )
    return usage
