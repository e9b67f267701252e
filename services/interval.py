from datetime import datetime
from typing import NamedTuple, Optional

from services.errors import InvalidInterval
from utils.clock import to_naive_utc


class Interval(NamedTuple):
    """Half-open time range [start, end)."""

    start: datetime
    end: datetime


def overlaps(a, b) -> bool:
    # touching ranges (a.end == b.start) are back-to-back, not overlapping
    return a.start < b.end and a.end > b.start


def is_well_formed(start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None or end is None:
        return False
    return start < end


def validate(start: Optional[datetime], end: Optional[datetime], now: Optional[datetime] = None) -> Interval:
    """
    Normalise both bounds to naive UTC and check them.

    Raises InvalidInterval when a bound is missing, when start is not strictly
    before end, or (if ``now`` is given) when start lies in the past or end is
    not strictly in the future.
    """
    if start is None or end is None:
        raise InvalidInterval("start_time and end_time are required")

    start = to_naive_utc(start)
    end = to_naive_utc(end)

    if not is_well_formed(start, end):
        raise InvalidInterval()

    if now is not None:
        if start < now:
            raise InvalidInterval("start_time must be in the present or future")
        if end <= now:
            raise InvalidInterval("end_time must be in the future")

    return Interval(start, end)
