"""Usage engine: the operations the dashboard and CLI call into."""

import asyncio
import logging
import threading
from datetime import date

from .config import ClaudePaths, resolve_paths
from .merger import merge_metrics, recent_daily_activity, recent_daily_model_tokens
from .models import (
    DailyActivity,
    DailyModelTokens,
    DashboardMetrics,
    LiveUsage,
    SnapshotFileInfo,
    StatsSnapshot,
)
from .notifier import ChangeNotifier, FileWatcher, SnapshotCallback, Unsubscribe
from .sessions import aggregate_live_usage
from .snapshot import SnapshotReader

logger = logging.getLogger("tokenpulse")


class UsageEngine:
    """Combines the snapshot reader, live session scan and change notifier.

    Blocking file work runs in worker threads so concurrent requests do not
    wait on each other. Each call builds its own scan state.
    """

    def __init__(self, paths: ClaudePaths | None = None, watcher: FileWatcher | None = None):
        self.paths = paths or resolve_paths()
        self.reader = SnapshotReader(self.paths)
        self.notifier = ChangeNotifier(self.reader, watcher)

    async def get_live_usage(self, today: date | None = None) -> LiveUsage:
        cancel = threading.Event()
        try:
            return await asyncio.to_thread(
                aggregate_live_usage, self.paths.projects_dir, today, cancel
            )
        except asyncio.CancelledError:
            # Stop the worker thread before its next file
            cancel.set()
            raise

    async def get_raw_stats(self) -> StatsSnapshot | None:
        return await asyncio.to_thread(self.reader.read)

    async def get_dashboard_metrics(self, today: date | None = None) -> DashboardMetrics | None:
        today = today or date.today()
        snapshot, live = await asyncio.gather(
            self.get_raw_stats(),
            self.get_live_usage(today),
        )
        metrics = merge_metrics(snapshot, live, today)
        if metrics is None:
            logger.info("No stats snapshot at %s, metrics unavailable", self.paths.stats_file)
        return metrics

    async def get_file_info(self) -> SnapshotFileInfo:
        return await asyncio.to_thread(self.reader.file_info)

    async def get_daily_activity(self, days: int) -> list[DailyActivity]:
        return recent_daily_activity(await self.get_raw_stats(), days)

    async def get_daily_model_tokens(self, days: int) -> list[DailyModelTokens]:
        return recent_daily_model_tokens(await self.get_raw_stats(), days)

    def watch(self, callback: SnapshotCallback) -> Unsubscribe:
        return self.notifier.watch(callback)
