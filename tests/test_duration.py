"""Tests for duration parsing."""

import datetime

import pytest

from kube_components.duration import format_duration, parse_duration


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("0", datetime.timedelta(0)),
        ("10m", datetime.timedelta(minutes=10)),
        ("1h30m", datetime.timedelta(hours=1, minutes=30)),
        ("1.5h", datetime.timedelta(hours=1, minutes=30)),
        ("300ms", datetime.timedelta(milliseconds=300)),
        ("2h45m10s", datetime.timedelta(hours=2, minutes=45, seconds=10)),
        ("-5s", datetime.timedelta(seconds=-5)),
        ("1500us", datetime.timedelta(microseconds=1500)),
        ("2562047h", datetime.timedelta(hours=2562047)),
    ],
)
def test_parse_duration(value: str, expected: datetime.timedelta) -> None:
    """Test parsing valid durations."""
    assert parse_duration(value) == expected


@pytest.mark.parametrize(
    ("value", "match"),
    [
        ("10 minutes", "missing or unknown unit"),
        ("1h 30m", "invalid duration"),
        ("10", "missing or unknown unit"),
        ("5d", "missing or unknown unit"),
        ("", "invalid duration"),
        ("-", "invalid duration"),
        ("m", "invalid duration"),
        ("2562048h", "invalid duration"),
        ("30000000000h", "invalid duration"),
    ],
)
def test_parse_duration_invalid(value: str, match: str) -> None:
    """Test that malformed durations are rejected."""
    with pytest.raises(ValueError, match=match):
        parse_duration(value)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (datetime.timedelta(0), "0s"),
        (datetime.timedelta(minutes=10), "10m0s"),
        (datetime.timedelta(hours=1, minutes=30), "1h30m0s"),
        (datetime.timedelta(seconds=45), "45s"),
        (datetime.timedelta(milliseconds=300), "300ms"),
        (datetime.timedelta(seconds=1, milliseconds=500), "1.5s"),
    ],
)
def test_format_duration(value: datetime.timedelta, expected: str) -> None:
    """Test formatting durations for component values."""
    assert format_duration(value) == expected
