from datetime import datetime, timedelta, timezone
from enum import Enum

from lp_analytics.algo.models import DAY_SECONDS, DayBucket


class Timeframe(Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL_TIME = "all_time"


def window_start(timeframe: Timeframe | None, now: int) -> int:
    """Unix timestamp one second before the start of the selected window."""
    end = datetime.fromtimestamp(now, tz=timezone.utc)
    start_of_day = end.replace(hour=0, minute=0, second=0, microsecond=0)

    if timeframe == Timeframe.WEEK:
        start = start_of_day - timedelta(weeks=1)
    elif timeframe == Timeframe.MONTH:
        start = start_of_day - timedelta(days=30)
    elif timeframe == Timeframe.ALL_TIME:
        start = end - timedelta(days=365)
    else:
        start = datetime(end.year - 1, 1, 1, tzinfo=timezone.utc)

    return int(start.timestamp()) - 1


def day_index(timestamp: int) -> int:
    return timestamp // DAY_SECONDS


def bucket_start(window_start_timestamp: int, first_snapshot_timestamp: int | None) -> int:
    # the window never begins after the first recorded activity
    if first_snapshot_timestamp is None:
        return window_start_timestamp
    return min(window_start_timestamp, first_snapshot_timestamp)


def day_timestamps(start: int, now: int, include_current: bool = True) -> list[int]:
    index = day_index(start)
    current = day_index(now)
    last = current if include_current else current - 1

    timestamps = []
    while index <= last:
        timestamps.append(index * DAY_SECONDS)
        index += 1
    return timestamps


def day_buckets(start: int, now: int, include_current: bool = True) -> list[DayBucket]:
    return [
        DayBucket(start_timestamp=ts)
        for ts in day_timestamps(start, now, include_current=include_current)
    ]
