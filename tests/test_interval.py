from datetime import datetime, timedelta, timezone

import pytest

from services.errors import InvalidInterval
from services.interval import Interval, is_well_formed, overlaps, validate
from conftest import NOW, at


def test_strict_overlap():
    assert overlaps(Interval(at(10), at(12)), Interval(at(11), at(13)))
    assert overlaps(Interval(at(11), at(13)), Interval(at(10), at(12)))


def test_containment_overlaps_both_ways():
    outer = Interval(at(9), at(17))
    inner = Interval(at(12), at(13))
    assert overlaps(outer, inner)
    assert overlaps(inner, outer)


def test_touching_intervals_do_not_overlap():
    assert not overlaps(Interval(at(10), at(11)), Interval(at(11), at(12)))
    assert not overlaps(Interval(at(11), at(12)), Interval(at(10), at(11)))


def test_disjoint_intervals_do_not_overlap():
    assert not overlaps(Interval(at(8), at(9)), Interval(at(14), at(15)))


def test_well_formed_requires_strict_order():
    assert is_well_formed(at(10), at(11))
    assert not is_well_formed(at(10), at(10))
    assert not is_well_formed(at(11), at(10))
    assert not is_well_formed(None, at(10))


@pytest.mark.parametrize("start,end", [(at(10), at(10)), (at(11), at(10)), (None, at(10)), (at(10), None)])
def test_validate_rejects_malformed(start, end):
    with pytest.raises(InvalidInterval):
        validate(start, end)


def test_validate_rejects_past_start():
    with pytest.raises(InvalidInterval, match="present or future"):
        validate(NOW - timedelta(minutes=1), NOW + timedelta(hours=1), now=NOW)


def test_validate_accepts_start_equal_to_now():
    interval = validate(NOW, NOW + timedelta(hours=1), now=NOW)
    assert interval == Interval(NOW, NOW + timedelta(hours=1))


def test_validate_normalises_aware_datetimes_to_naive_utc():
    plus_two = timezone(timedelta(hours=2))
    interval = validate(datetime(2030, 1, 2, 12, 0, tzinfo=plus_two), datetime(2030, 1, 2, 13, 0, tzinfo=plus_two))
    assert interval.start == datetime(2030, 1, 2, 10, 0)
    assert interval.end == datetime(2030, 1, 2, 11, 0)
    assert interval.start.tzinfo is None
