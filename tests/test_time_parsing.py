from datetime import datetime, timedelta, timezone

import pytest

from promql_cli.utils import parse_duration, parse_time

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("30s", timedelta(seconds=30)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("2w", timedelta(weeks=2)),
        ("1d12h", timedelta(days=1, hours=12)),
        ("1y", timedelta(days=365)),
        ("250ms", timedelta(milliseconds=250)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "h", "10", "1x", "1m1h", "-5m"])
def test_parse_duration_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parse_time_now_and_relative():
    assert parse_time("now", now=NOW) == NOW
    assert parse_time("15m", now=NOW) == NOW - timedelta(minutes=15)


def test_parse_time_unix_timestamp():
    assert parse_time("1700000000", now=NOW) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_parse_time_rfc3339():
    parsed = parse_time("2024-05-01T10:00:00Z", now=NOW)

    assert parsed == datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)
    assert parse_time("2024-05-01T12:00:00+02:00", now=NOW) == parsed


@pytest.mark.parametrize("text", ["", "yesterday", "2024-13-01T00:00:00Z"])
def test_parse_time_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_time(text, now=NOW)
