"""Merging of snapshot history with today's live usage."""

from datetime import date

from .models import (
    DailyActivity,
    DailyModelTokens,
    DashboardMetrics,
    LiveUsage,
    ModelBreakdown,
    StatsSnapshot,
)


def merge_metrics(
    snapshot: StatsSnapshot | None,
    live: LiveUsage,
    today: date | None = None,
) -> DashboardMetrics | None:
    """Build dashboard metrics. Returns None when there is no snapshot to merge.

    Today's message count comes from the live scan when it saw any messages,
    otherwise from the snapshot's activity entry for today.
    """
    if snapshot is None:
        return None
    today = today or date.today()

    metrics = DashboardMetrics(
        total_sessions=snapshot.total_sessions,
        total_messages=snapshot.total_messages,
    )
    breakdown = []
    for model, usage in snapshot.model_usage.items():
        metrics.total_input_tokens += usage.input_tokens
        metrics.total_output_tokens += usage.output_tokens
        metrics.total_cache_read_tokens += usage.cache_read_input_tokens
        metrics.total_cache_creation_tokens += usage.cache_write_input_tokens or 0
        breakdown.append(
            ModelBreakdown(
                model=model,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
                cache_read_tokens=usage.cache_read_input_tokens,
                total_tokens=usage.input_tokens + usage.output_tokens,
            )
        )
    # sorted() is stable, so ties keep snapshot order
    metrics.model_breakdown = sorted(breakdown, key=lambda m: m.total_tokens, reverse=True)

    activity = snapshot.activity_for(today)
    if live.message_count > 0:
        metrics.today_messages = live.message_count
    elif activity is not None:
        metrics.today_messages = activity.message_count
    metrics.today_tool_calls = activity.tool_call_count if activity else 0
    metrics.today_input_tokens = live.input_tokens
    metrics.today_output_tokens = live.output_tokens
    metrics.today_cache_read_tokens = live.cache_read_tokens
    metrics.today_cache_creation_tokens = live.cache_creation_tokens
    return metrics


def _last_days(entries, days: int) -> list:
    newest_first = sorted(entries, key=lambda e: e.date, reverse=True)
    return list(reversed(newest_first[:days]))


def recent_daily_activity(snapshot: StatsSnapshot | None, days: int) -> list[DailyActivity]:
    """Last ``days`` activity entries, oldest first."""
    if snapshot is None:
        return []
    return _last_days(snapshot.daily_activity, days)


def recent_daily_model_tokens(snapshot: StatsSnapshot | None, days: int) -> list[DailyModelTokens]:
    if snapshot is None:
        return []
    return _last_days(snapshot.daily_model_tokens, days)
