from contextlib import contextmanager

from services.errors import BookingConflict, InvalidInterval, ResourceNotFound
from services.interval import is_well_formed


class ConflictDetector:
    def __init__(self, store, exclusion):
        self._store = store
        self._exclusion = exclusion

    def check(self, resource_id, start, end, exclude_id=None) -> None:
        """Raise unless [start, end) is free on the resource. Caller must hold the exclusion."""
        if not is_well_formed(start, end):
            raise InvalidInterval()

        if self._store.find_conflicts(resource_id, start, end, exclude_id=exclude_id):
            # which booking collides is not disclosed
            raise BookingConflict()

    @contextmanager
    def check_and_reserve(self, resource_id, start, end, exclude_id=None, also_hold=()):
        """
        Hold the resource exclusion, verify the slot is free, and keep holding
        it while the caller writes and commits inside the ``with`` block.

            with detector.check_and_reserve(rid, start, end):
                store.insert(booking)
                db.session.commit()
        """
        if not is_well_formed(start, end):
            raise InvalidInterval()

        with self._exclusion.hold(resource_id, *also_hold) as present:
            if resource_id not in present:
                # deleted between lookup and lock
                raise ResourceNotFound()
            self.check(resource_id, start, end, exclude_id=exclude_id)
            yield
