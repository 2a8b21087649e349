"""Reader for the stats-cache.json snapshot maintained by Claude Code."""

import json
import logging
from datetime import datetime

from pydantic import ValidationError

from .config import ClaudePaths
from .models import SnapshotFileInfo, StatsSnapshot

logger = logging.getLogger("tokenpulse")


class SnapshotReader:
    """Read-only access to the snapshot file.

    A missing or corrupt snapshot is reported as None, never raised.
    """

    def __init__(self, paths: ClaudePaths):
        self.paths = paths

    @property
    def path(self):
        return self.paths.stats_file

    def exists(self) -> bool:
        try:
            return self.path.is_file()
        except OSError:
            return False

    def read(self) -> StatsSnapshot | None:
        if not self.exists():
            logger.warning("Claude Code stats file not found at: %s", self.path)
            return None
        try:
            raw = self.path.read_bytes()
            return StatsSnapshot.model_validate(json.loads(raw))
        except OSError as e:
            logger.warning("Cannot read stats file %s: %s", self.path, e)
        except ValueError as e:
            # json.JSONDecodeError and pydantic ValidationError are both ValueErrors
            kind = "invalid" if isinstance(e, ValidationError) else "malformed"
            logger.warning("Ignoring %s stats file %s: %s", kind, self.path, e)
        except RecursionError:
            logger.warning("Ignoring malformed stats file %s: nested too deeply", self.path)
        return None

    def file_info(self) -> SnapshotFileInfo:
        path = str(self.path)
        if not self.exists():
            return SnapshotFileInfo(exists=False, path=path)
        try:
            st = self.path.stat()
        except OSError:
            return SnapshotFileInfo(exists=False, path=path)

        snapshot = self.read()
        return SnapshotFileInfo(
            exists=True,
            path=path,
            size=st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime).astimezone(),
            last_computed_date=snapshot.last_computed_date if snapshot else None,
        )
