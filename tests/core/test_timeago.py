from __future__ import annotations

from datetime import datetime

import pytest

from tabkeeper.core.timeago import format_time_ago

NOW = 1_700_000_000_000
MIN = 60_000
HOUR = 60 * MIN
DAY = 24 * HOUR


@pytest.mark.parametrize(
    ("age", "expected"),
    [
        (0, "just now"),
        (MIN - 1, "just now"),
        (MIN, "1m ago"),
        (59 * MIN, "59m ago"),
        (HOUR, "1h ago"),
        (23 * HOUR + 59 * MIN, "23h ago"),
        (DAY, "1d ago"),
        (29 * DAY, "29d ago"),
    ],
)
def test_relative_buckets(age: int, expected: str) -> None:
    assert format_time_ago(NOW - age, NOW) == expected


def test_older_than_thirty_days_shows_date() -> None:
    stamp = int(datetime(2023, 3, 5, 12, 0).timestamp() * 1000)
    assert format_time_ago(stamp, stamp + 40 * DAY) == "Mar 5"


def test_defaults_to_current_time() -> None:
    assert format_time_ago(NOW) != "just now"
