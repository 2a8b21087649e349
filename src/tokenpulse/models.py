"""Pydantic models for TokenPulse usage data."""

from datetime import date, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UsageEvent(BaseModel):
    """Token counters of one assistant turn, decoded from a session log line."""

    model_config = ConfigDict(frozen=True)

    request_id: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0


class UsageTotals(BaseModel):
    """Running sum of usage counters."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    message_count: int = 0

    def add_event(self, event: UsageEvent):
        self.input_tokens += event.input_tokens
        self.output_tokens += event.output_tokens
        self.cache_creation_tokens += event.cache_creation_tokens
        self.cache_read_tokens += event.cache_read_tokens
        self.message_count += 1

    def add_totals(self, other: "UsageTotals"):
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.cache_creation_tokens += other.cache_creation_tokens
        self.cache_read_tokens += other.cache_read_tokens
        self.message_count += other.message_count


class SessionUsageTotal(UsageTotals):
    """Usage folded from a single session log file."""


class LiveUsage(UsageTotals):
    """Usage summed across every session log modified today."""


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class DailyActivity(_CamelModel):
    date: date
    message_count: int = 0
    session_count: int = 0
    tool_call_count: int = 0


class DailyModelTokens(_CamelModel):
    date: date
    tokens_by_model: dict[str, int] = Field(default_factory=dict)


class ModelUsage(_CamelModel):
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    # Claude Code writes cacheCreationInputTokens; older exports use cacheWriteInputTokens
    cache_write_input_tokens: int | None = Field(
        default=None,
        validation_alias=AliasChoices("cacheWriteInputTokens", "cacheCreationInputTokens"),
        serialization_alias="cacheWriteInputTokens",
    )


class StatsSnapshot(_CamelModel):
    """Precomputed statistics written by Claude Code to stats-cache.json."""

    daily_activity: list[DailyActivity] = Field(default_factory=list)
    daily_model_tokens: list[DailyModelTokens] = Field(default_factory=list)
    model_usage: dict[str, ModelUsage] = Field(default_factory=dict)
    total_sessions: int = 0
    total_messages: int = 0
    last_computed_date: date | None = None

    def activity_for(self, day: date) -> DailyActivity | None:
        for activity in self.daily_activity:
            if activity.date == day:
                return activity
        return None


class SnapshotFileInfo(_CamelModel):
    exists: bool
    path: str
    size: int | None = None
    last_modified: datetime | None = None
    last_computed_date: date | None = None


class ModelBreakdown(_CamelModel):
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    total_tokens: int = 0


class DashboardMetrics(_CamelModel):
    """Historical totals from the snapshot merged with today's live usage."""

    total_sessions: int = 0
    total_messages: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cache_read_tokens: int = 0
    total_cache_creation_tokens: int = 0
    today_messages: int = 0
    today_tool_calls: int = 0
    today_input_tokens: int = 0
    today_output_tokens: int = 0
    today_cache_read_tokens: int = 0
    today_cache_creation_tokens: int = 0
    model_breakdown: list[ModelBreakdown] = Field(default_factory=list)
