"""Tests for session log line parsing and request dedup."""

import json

from tokenpulse.parser import RequestDeduplicator, parse_usage_line


def test_parse_assistant_usage(line):
    event = parse_usage_line(line(
        "req_abc",
        input_tokens=100,
        output_tokens=50,
        cache_creation_input_tokens=10,
        cache_read_input_tokens=5,
    ))
    assert event is not None
    assert event.request_id == "req_abc"
    assert event.input_tokens == 100
    assert event.output_tokens == 50
    assert event.cache_creation_tokens == 10
    assert event.cache_read_tokens == 5


def test_parse_accepts_bytes(line):
    event = parse_usage_line(line("req_b", input_tokens=3).encode() + b"\n")
    assert event.input_tokens == 3


def test_missing_counter_defaults_to_zero(line):
    event = parse_usage_line(line("r", input_tokens=10, output_tokens=5, cache_creation_input_tokens=1))
    assert event.cache_read_tokens == 0
    assert event.input_tokens == 10
    assert event.cache_creation_tokens == 1


def test_negative_counter_passes_through(line):
    event = parse_usage_line(line("r", input_tokens=-4))
    assert event.input_tokens == -4


def test_non_integer_counter_counts_as_zero(line):
    event = parse_usage_line(line("r", input_tokens="12", output_tokens=None, cache_read_input_tokens=True))
    assert event.input_tokens == 0
    assert event.output_tokens == 0
    assert event.cache_read_tokens == 0


def test_non_assistant_lines_ignored():
    user = json.dumps({"type": "user", "message": {"usage": {"input_tokens": 5}}})
    summary = json.dumps({"type": "summary", "summary": "x"})
    assert parse_usage_line(user) is None
    assert parse_usage_line(summary) is None


def test_assistant_without_usage_ignored():
    assert parse_usage_line(json.dumps({"type": "assistant", "message": {"content": []}})) is None
    assert parse_usage_line(json.dumps({"type": "assistant", "message": "text"})) is None
    assert parse_usage_line(json.dumps({"type": "assistant", "message": {"usage": 5}})) is None


def test_malformed_lines_return_none():
    assert parse_usage_line("not json at all") is None
    assert parse_usage_line('{"type": "assistant", "message": {') is None
    assert parse_usage_line(b'{"type": "assistant"}\xff\xfe') is None
    assert parse_usage_line("[1, 2, 3]") is None
    assert parse_usage_line("") is None
    assert parse_usage_line("   \n") is None


def test_missing_or_empty_request_id(line):
    assert parse_usage_line(line(None, input_tokens=1)).request_id is None
    assert parse_usage_line(line("", input_tokens=1)).request_id is None


def test_dedup_first_sighting_only():
    dedup = RequestDeduplicator()
    assert dedup.accept("a") is True
    assert dedup.accept("a") is False
    assert dedup.accept("b") is True
    assert len(dedup) == 2


def test_dedup_never_drops_missing_ids():
    dedup = RequestDeduplicator()
    assert dedup.accept(None) is True
    assert dedup.accept(None) is True
    assert len(dedup) == 0


def test_deeply_nested_line_returns_none():
    assert parse_usage_line("[" * 100000) is None
    assert parse_usage_line(b'{"a":' * 100000) is None


def test_integral_float_counters_are_counted(line):
    event = parse_usage_line(line("r", input_tokens=12.0, output_tokens=3.5, cache_read_input_tokens=-2.0))
    assert event.input_tokens == 12
    assert event.output_tokens == 0
    assert event.cache_read_tokens == -2
