"""
Booking lifecycle: create, read, update and delete reservations.

Every call takes the caller's Identity explicitly; nothing here reads the
request context. The service owns the transaction boundary: the conflict
check and the write it guards are committed while the per-resource
exclusion is still held, so no two overlapping bookings can both commit.
"""
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from models.booking import Booking
from security.ownership import Action, OwnershipAuthorizer
from services.booking_store import BookingStore
from services.conflicts import ConflictDetector
from services.errors import (
    BookingError,
    BookingNotFound,
    ResourceNotFound,
    StoreUnavailable,
    Unauthenticated,
    Unauthorized,
)
from services.exclusion import ResourceExclusion
from services.interval import validate
from services.resources import ResourceCatalog
from utils.clock import SystemClock


class BookingService:
    def __init__(
        self,
        store: BookingStore = None,
        authorizer: OwnershipAuthorizer = None,
        resources: ResourceCatalog = None,
        clock=None,
        exclusion: ResourceExclusion = None,
        enforce_future: bool = True,
    ):
        # the exclusion must be shared by every service instance in the process
        self.clock = clock or SystemClock()
        self.exclusion = exclusion or ResourceExclusion()
        self.store = store or BookingStore(clock=self.clock)
        self.resources = resources or ResourceCatalog(exclusion=self.exclusion)
        self.authorizer = authorizer or OwnershipAuthorizer(self.store)
        self.detector = ConflictDetector(self.store, self.exclusion)
        self.enforce_future = enforce_future

    # ---------- helpers ----------

    @contextmanager
    def _guarded(self):
        session = self.store.session
        try:
            yield session
        except BookingError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreUnavailable() from exc

    def _validate(self, start, end):
        now = self.clock.now() if self.enforce_future else None
        return validate(start, end, now)

    def _get(self, booking_id) -> Booking:
        booking = self.store.find_by_id(booking_id)
        if booking is None:
            raise BookingNotFound()
        return booking

    def _require(self, identity, booking: Booking, action: Action) -> None:
        if identity is None:
            raise Unauthenticated()
        if not self.authorizer.authorize(identity, booking.id, action):
            raise Unauthorized(f"You are not allowed to {action.value} this booking")

    # ---------- C ----------

    def create(self, identity, resource_id, start, end) -> Booking:
        if identity is None:
            raise Unauthenticated()

        resource = self.resources.get(resource_id)
        interval = self._validate(start, end)

        booking = Booking(
            resource_id=resource.id,
            user_id=identity.owner_id,
            start_time=interval.start,
            end_time=interval.end,
            booking_time=self.clock.now(),
        )

        with self._guarded() as session:
            with self.detector.check_and_reserve(resource.id, interval.start, interval.end):
                self.store.insert(booking)
                session.commit()
        return booking

    # ---------- R ----------

    def get_by_id(self, identity, booking_id) -> Booking:
        booking = self._get(booking_id)
        self._require(identity, booking, Action.READ)
        return booking

    def list_all(self, page: int = 1, size: int = 20):
        return self.store.find_all(page, size)

    def list_mine(self, identity, page: int = 1, size: int = 10):
        if identity is None:
            raise Unauthenticated()
        return self.store.find_by_owner(identity.owner_id, page, size)

    # ---------- U ----------

    def update(self, identity, booking_id, resource_id, start, end) -> Booking:
        booking = self._get(booking_id)
        self._require(identity, booking, Action.UPDATE)
        resource = self.resources.get(resource_id)
        interval = self._validate(start, end)
        # plain ids; a rollback in the retry branch expires loaded objects
        target_id = resource.id

        with self._guarded() as session:
            held_from = booking.resource_id
            while True:
                # exclusion on both the resource being left and the one being entered
                with self.exclusion.hold(held_from, target_id) as present:
                    if target_id not in present:
                        raise ResourceNotFound()
                    current = self.store.find_by_id(booking_id, refresh=True)
                    if current is None:
                        raise BookingNotFound()
                    if current.resource_id != held_from:
                        # moved by a concurrent update; retry holding its actual resource
                        held_from = current.resource_id
                        session.rollback()
                        continue

                    self.detector.check(target_id, interval.start, interval.end, exclude_id=current.id)

                    current.resource_id = target_id
                    current.start_time = interval.start
                    current.end_time = interval.end
                    self.store.update(current)
                    session.commit()
                    return current

    # ---------- D ----------

    def delete(self, identity, booking_id) -> None:
        booking = self._get(booking_id)
        self._require(identity, booking, Action.DELETE)

        with self._guarded() as session:
            with self.exclusion.hold(booking.resource_id):
                if not self.store.delete(booking_id):
                    raise BookingNotFound()
                session.commit()
