"""Arithmetic for spreading Kubernetes event counts over minutes and partitions."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

from sloopkit.kubeextractor import ZERO_TIME, EventInfo

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MINUTE_MICROS = 60_000_000
_MICROSECOND = timedelta(microseconds=1)
_SECOND = timedelta(seconds=1)


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _round_to_minute(ts: datetime) -> datetime:
    """Round to the nearest whole minute; halfway values round up."""
    micros = (_as_utc(ts) - EPOCH) // _MICROSECOND
    remainder = micros % _MINUTE_MICROS
    if remainder * 2 < _MINUTE_MICROS:
        micros -= remainder
    else:
        micros += _MINUTE_MICROS - remainder
    return EPOCH + timedelta(microseconds=micros)


def _unix_seconds(ts: datetime) -> int:
    return (_as_utc(ts) - EPOCH) // _SECOND


def distribute_value(value: int, buckets: int) -> list[int]:
    """Split ``value`` into ``buckets`` near-equal parts, larger parts first."""
    if buckets <= 0:
        return []
    base, extra = divmod(value, buckets)
    return [base + 1 if pos < extra else base for pos in range(buckets)]


def spread_out_events(first_ts: datetime, last_ts: datetime, count: int) -> dict[int, int]:
    """Map unix minute timestamps to the share of ``count`` that falls on each minute."""
    first_round = _round_to_minute(first_ts)
    last_round = _round_to_minute(last_ts)
    if first_round == last_round:
        return {_unix_seconds(first_round): count}

    num_minutes = max(1, math.ceil((last_round - first_round).total_seconds() / 60))
    spread: dict[int, int] = {}
    for idx, minute_count in enumerate(distribute_value(count, num_minutes)):
        if minute_count > 0:
            minute = first_round + timedelta(minutes=idx)
            spread[_unix_seconds(minute)] = minute_count
    return spread


def compute_events_diff(
    prev_event_info: EventInfo | None, new_event_info: EventInfo
) -> tuple[datetime, datetime, int]:
    """Return the time range and count of occurrences new since the previous copy of an event."""
    nothing_new = (ZERO_TIME, ZERO_TIME, 0)
    new_first = new_event_info.first_timestamp
    new_last = new_event_info.last_timestamp

    if prev_event_info is None:
        return new_first, new_last, new_event_info.count

    prev_first = prev_event_info.first_timestamp
    prev_last = prev_event_info.last_timestamp

    # The previous copy ended before this one started: nothing overlaps.
    if prev_last < new_first:
        return new_first, new_last, new_event_info.count

    # A duplicate, or an older copy than the one already seen.
    if prev_last >= new_last:
        return nothing_new

    # Same start, later end: the difference is what is new.
    if prev_first == new_first:
        if new_event_info.count < prev_event_info.count:
            logger.error(
                "New event has a lower count than previous event wth same start time! "
                "Old %s New %s",
                prev_event_info,
                new_event_info,
            )
            return nothing_new
        return prev_last, new_last, new_event_info.count - prev_event_info.count

    # Partially overlapping ranges: discount the old count by the share that overlaps.
    logger.error("Encountered partially overlapping events.  Attempting to guess new count")
    old_seconds = (prev_last - prev_first).total_seconds()
    overlap_seconds = (prev_last - new_first).total_seconds()
    if old_seconds <= 0:
        return nothing_new
    pct_overlap = overlap_seconds / old_seconds
    new_count = max(0, new_event_info.count - int(prev_event_info.count * pct_overlap))
    return prev_last, new_last, new_count


def adjust_for_available_partitions(
    first_ts: datetime,
    last_ts: datetime,
    count: int,
    min_partition_end_time: datetime,
    max_partition_start_time: datetime,
    max_partition_end_time: datetime,
) -> tuple[datetime, datetime, int]:
    """Clip an event range to the stored partitions, scaling the count by the share kept."""
    begin = min_partition_end_time
    end = max_partition_end_time

    # With a single partition, let the count land in that partition.
    if begin == end:
        begin = max_partition_start_time

    if last_ts < begin or first_ts > end:
        return begin, end, 0

    total_seconds = (last_ts - first_ts).total_seconds()
    seconds_to_keep = total_seconds

    if first_ts < begin:
        seconds_to_keep -= (begin - first_ts).total_seconds()
    else:
        begin = first_ts

    if last_ts > end:
        seconds_to_keep -= (last_ts - end).total_seconds()
    else:
        end = last_ts

    # An instantaneous event inside the range is kept whole.
    pct_to_keep = seconds_to_keep / total_seconds if total_seconds else 1.0
    return begin, end, int(count * pct_to_keep)