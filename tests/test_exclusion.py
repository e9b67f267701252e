import threading
import time

import pytest

from models import db
from models.resource import Resource
from services.errors import ResourceNotFound
from services.exclusion import ResourceExclusion
from conftest import at, make_service


def test_hold_yields_only_existing_resources(ctx, room):
    exclusion = ResourceExclusion()

    with exclusion.hold(room, 9999) as present:
        assert present == {room}
    db.session.rollback()


def test_hold_with_no_ids_yields_empty_set(ctx):
    with ResourceExclusion().hold(None) as present:
        assert present == set()


def _wait_until(predicate, timeout=10):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


def test_second_holder_waits_for_first(app, room):
    exclusion = app.extensions["resource_exclusion"]
    acquired = threading.Event()

    def worker():
        with app.app_context():
            with exclusion.hold(room):
                acquired.set()
                db.session.rollback()

    with app.app_context():
        with exclusion.hold(room):
            t = threading.Thread(target=worker)
            t.start()
            # the worker has checked out the same lock and is blocked on it
            assert _wait_until(lambda: exclusion._locks[room][1] == 2)
            assert not acquired.wait(timeout=0.3)
            db.session.rollback()
    t.join(timeout=10)

    assert acquired.is_set()


def test_lock_entries_are_dropped_once_released(ctx, room, projector):
    exclusion = ResourceExclusion()

    with exclusion.hold(room, projector, 9999):
        assert set(exclusion._locks) == {room, projector, 9999}
        db.session.rollback()

    assert exclusion._locks == {}


class StaleCatalog:
    """Answers lookups from a snapshot taken before the resource was removed."""

    def __init__(self, resource_id):
        self.resource = Resource(id=resource_id, name="gone")

    def get(self, resource_id):
        return self.resource


def test_create_on_resource_deleted_before_lock(ctx, alice, room):
    service = make_service(ctx, resources=StaleCatalog(room))
    db.session.query(Resource).filter(Resource.id == room).delete()
    db.session.commit()

    with pytest.raises(ResourceNotFound):
        service.create(alice, room, at(10), at(11))
