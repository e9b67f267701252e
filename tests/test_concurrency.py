import threading
from datetime import timedelta
from itertools import combinations

import pytest

from models import db
from models.booking import Booking
from services.errors import BookingConflict
from services.interval import overlaps
from conftest import at, make_app, make_service


def _run_concurrently(app, jobs):
    """
    Run each job in its own thread and app context, released together by a barrier.

    ``app`` may be a list with one app per job to mimic separate worker processes.
    """
    apps = app if isinstance(app, (list, tuple)) else [app] * len(jobs)
    barrier = threading.Barrier(len(jobs))
    results = [None] * len(jobs)

    def worker(index, job):
        with apps[index].app_context():
            service = make_service(apps[index])
            barrier.wait()
            try:
                results[index] = ("ok", job(service))
            except BookingConflict:
                results[index] = ("conflict", None)
            except Exception as exc:  # surfaced through the results list
                results[index] = ("error", repr(exc))

    threads = [threading.Thread(target=worker, args=(i, job)) for i, job in enumerate(jobs)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def _committed(resource_id):
    db.session.expire_all()
    return Booking.query.filter_by(resource_id=resource_id).all()


def _assert_no_overlap(resource_id):
    rows = _committed(resource_id)
    for b1, b2 in combinations(rows, 2):
        assert not overlaps(b1.interval, b2.interval), f"{b1} overlaps {b2}"
    return rows


def test_two_overlapping_creates_exactly_one_wins(app, alice, bob, room):
    results = _run_concurrently(app, [
        lambda s: s.create(alice, room, at(10), at(12)).id,
        lambda s: s.create(bob, room, at(11), at(13)).id,
    ])

    outcomes = sorted(kind for kind, _ in results)
    assert outcomes == ["conflict", "ok"], results
    assert len(_assert_no_overlap(room)) == 1


def test_identical_slot_race_many_threads(app, alice, room):
    results = _run_concurrently(app, [
        (lambda s: s.create(alice, room, at(9), at(10)).id) for _ in range(8)
    ])

    assert [kind for kind, _ in results].count("ok") == 1, results
    assert [kind for kind, _ in results].count("conflict") == 7
    assert len(_committed(room)) == 1


def test_staggered_overlapping_creates_never_commit_overlaps(app, alice, bob, room):
    def job(i):
        start = at(8) + timedelta(minutes=20 * i)
        owner = alice if i % 2 else bob
        return lambda s: s.create(owner, room, start, start + timedelta(hours=1)).id

    results = _run_concurrently(app, [job(i) for i in range(10)])

    assert all(kind in ("ok", "conflict") for kind, _ in results), results
    rows = _assert_no_overlap(room)
    assert len(rows) == [kind for kind, _ in results].count("ok")
    assert rows


def test_concurrent_creates_on_different_resources_all_succeed(app, alice, room, projector):
    results = _run_concurrently(app, [
        lambda s: s.create(alice, room, at(10), at(11)).id,
        lambda s: s.create(alice, projector, at(10), at(11)).id,
    ])

    assert [kind for kind, _ in results] == ["ok", "ok"], results


def test_update_moving_resource_races_with_create(app, alice, bob, room, projector):
    service = make_service(app)
    moving = service.create(alice, room, at(14), at(15))
    moving_id = moving.id
    db.session.commit()

    results = _run_concurrently(app, [
        lambda s: s.update(alice, moving_id, projector, at(10), at(11)).id,
        lambda s: s.create(bob, projector, at(10, 30), at(11, 30)).id,
    ])

    assert sorted(kind for kind, _ in results) == ["conflict", "ok"], results
    _assert_no_overlap(projector)
    _assert_no_overlap(room)


def test_concurrent_updates_of_separate_bookings_into_same_slot(app, alice, bob, room):
    service = make_service(app)
    a_id = service.create(alice, room, at(8), at(9)).id
    b_id = service.create(bob, room, at(16), at(17)).id

    results = _run_concurrently(app, [
        lambda s: s.update(alice, a_id, room, at(12), at(13)).id,
        lambda s: s.update(bob, b_id, room, at(12, 30), at(13, 30)).id,
    ])

    assert sorted(kind for kind, _ in results) == ["conflict", "ok"], results
    assert len(_assert_no_overlap(room)) == 2


@pytest.fixture
def sibling(app, tmp_path):
    # a second app on the same file stands in for another worker process
    other = make_app(tmp_path / "test.db")
    yield other
    with other.app_context():
        db.session.remove()
        db.engine.dispose()


def test_two_apps_on_one_sqlite_file_never_double_book(app, sibling, alice, bob, room):
    assert sibling.extensions["resource_exclusion"] is not app.extensions["resource_exclusion"]

    for day in range(2, 22):
        results = _run_concurrently([app, sibling], [
            lambda s, d=day: s.create(alice, room, at(10, day=d), at(12, day=d)).id,
            lambda s, d=day: s.create(bob, room, at(11, day=d), at(13, day=d)).id,
        ])
        assert sorted(kind for kind, _ in results) == ["conflict", "ok"], (day, results)

    assert len(_assert_no_overlap(room)) == 20
