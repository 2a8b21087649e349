"""Decoding of Claude Code session log lines into usage events."""

import json
import logging

from .models import UsageEvent

logger = logging.getLogger("tokenpulse")

ASSISTANT_TYPE = "assistant"


def _safe_json(line: str | bytes) -> dict | None:
    try:
        data = json.loads(line)
    except (ValueError, RecursionError):
        # Covers JSONDecodeError, UnicodeDecodeError and pathologically nested input
        return None
    return data if isinstance(data, dict) else None


def _count(usage: dict, key: str) -> int:
    value = usage.get(key)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def parse_usage_line(line: str | bytes) -> UsageEvent | None:
    """Parse one JSONL line. Returns None unless it is an assistant turn carrying usage."""
    if not line.strip():
        return None
    entry = _safe_json(line)
    if entry is None:
        logger.debug("Skipping undecodable session log line")
        return None
    if entry.get("type") != ASSISTANT_TYPE:
        return None
    message = entry.get("message")
    if not isinstance(message, dict):
        return None
    usage = message.get("usage")
    if not isinstance(usage, dict):
        return None

    request_id = entry.get("requestId")
    if not isinstance(request_id, str) or not request_id:
        request_id = None

    return UsageEvent(
        request_id=request_id,
        input_tokens=_count(usage, "input_tokens"),
        output_tokens=_count(usage, "output_tokens"),
        cache_creation_tokens=_count(usage, "cache_creation_input_tokens"),
        cache_read_tokens=_count(usage, "cache_read_input_tokens"),
    )


class RequestDeduplicator:
    """Tracks request ids seen within one session file.

    Claude Code writes one line per streamed content block, each repeating the
    same requestId and usage, so only the first line per id is counted. Lines
    without an id are always counted.
    """

    def __init__(self):
        self._seen: set[str] = set()

    def accept(self, request_id: str | None) -> bool:
        if request_id is None:
            return True
        if request_id in self._seen:
            return False
        self._seen.add(request_id)
        return True

    def __len__(self):
        return len(self._seen)
