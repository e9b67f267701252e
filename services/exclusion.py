import threading
from contextlib import contextmanager

from sqlalchemy import update

from models import db
from models.resource import Resource


class ResourceExclusion:
    """
    Per-resource mutual exclusion for check-then-write sequences.

    Two layers: an in-process lock per resource id (worker threads of one
    process) and a database lock taken before anything is read, which
    serialises separate worker processes. On PostgreSQL and MySQL that is
    ``SELECT ... FOR UPDATE`` on the resource rows. SQLite has no row locks,
    so a no-op ``UPDATE`` on the same rows takes the database write lock
    instead; other writers then wait on it until the holder commits.

    ``hold`` yields the ids of the resources that still exist once the locks
    are taken. The caller must commit or roll back before leaving it.
    """

    def __init__(self, session=None):
        self._session = session
        # resource id -> [lock, holders and waiters]; dropped at zero
        self._locks = {}
        self._registry_lock = threading.Lock()

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _checkout(self, resource_id):
        with self._registry_lock:
            entry = self._locks.get(resource_id)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[resource_id] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, resource_id):
        with self._registry_lock:
            entry = self._locks[resource_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[resource_id]

    def _needs_write_lock(self):
        return self.session.get_bind().dialect.name == "sqlite"

    def _lock_rows(self, resource_ids):
        if self._needs_write_lock():
            # first statement of the transaction, so SQLite waits for the
            # write lock instead of failing on an upgrade
            self.session.execute(
                update(Resource)
                .where(Resource.id.in_(resource_ids))
                .values(id=Resource.id),
                execution_options={"synchronize_session": False},
            )
        rows = (
            self.session.query(Resource.id)
            .filter(Resource.id.in_(resource_ids))
            .order_by(Resource.id.asc())
            .with_for_update()
            .all()
        )
        return {row.id for row in rows}

    @contextmanager
    def hold(self, *resource_ids):
        # ascending id order so two holders of the same pair cannot deadlock
        ids = sorted({rid for rid in resource_ids if rid is not None})
        acquired = []
        try:
            for rid in ids:
                lock = self._checkout(rid)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(rid)
                    raise
                acquired.append((rid, lock))
            # ids of the resources that still exist once locked
            yield self._lock_rows(ids) if ids else set()
        finally:
            for rid, lock in reversed(acquired):
                lock.release()
                self._checkin(rid)
