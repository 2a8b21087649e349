"""Push-style change notifications for the stats snapshot file."""

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from .config import WATCH_INTERVAL
from .models import StatsSnapshot
from .snapshot import SnapshotReader

logger = logging.getLogger("tokenpulse")

SnapshotCallback = Callable[[StatsSnapshot | None], None]
Unsubscribe = Callable[[], None]


class WatchHandle(Protocol):
    def close(self) -> None: ...


class FileWatcher(Protocol):
    """Mechanism that calls ``on_change`` whenever the file at ``path`` changes."""

    def watch(self, path: Path, on_change: Callable[[], None]) -> WatchHandle: ...


def _signature(path: Path) -> tuple[int, int] | None:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return st.st_mtime_ns, st.st_size


class _PollingHandle:
    def __init__(self, path: Path, on_change: Callable[[], None], interval: float):
        self._path = path
        self._on_change = on_change
        self._interval = interval
        self._stop = threading.Event()
        self._last = _signature(path)
        self._thread = threading.Thread(
            target=self._run, name=f"tokenpulse-watch:{path.name}", daemon=True
        )
        self._thread.start()

    def _run(self):
        while not self._stop.wait(self._interval):
            current = _signature(self._path)
            if current == self._last:
                continue
            self._last = current
            self._on_change()

    def close(self):
        self._stop.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=self._interval + 1)


class PollingFileWatcher:
    """Detects changes by comparing mtime and size every ``interval`` seconds."""

    def __init__(self, interval: float = WATCH_INTERVAL):
        self.interval = interval

    def watch(self, path: Path, on_change: Callable[[], None]) -> WatchHandle:
        return _PollingHandle(Path(path), on_change, self.interval)


class ChangeNotifier:
    """Reloads the snapshot and hands it to subscribers each time it changes."""

    def __init__(self, reader: SnapshotReader, watcher: FileWatcher | None = None):
        self.reader = reader
        self.watcher = watcher or PollingFileWatcher()

    def watch(self, callback: SnapshotCallback) -> Unsubscribe:
        path = self.reader.path
        if not self.reader.exists():
            logger.warning("Cannot watch non-existent file: %s", path)
            return lambda: None

        lock = threading.Lock()
        active = True

        def on_change():
            if not active:
                return
            snapshot = self.reader.read()
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Snapshot change callback failed")

        handle = self.watcher.watch(path, on_change)
        logger.info("Watching stats file %s", path)

        def unsubscribe():
            nonlocal active
            with lock:
                if not active:
                    return
                active = False
            handle.close()
            logger.info("Stopped watching stats file %s", path)

        return unsubscribe
