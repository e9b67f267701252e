import math

from models import db
from models.booking import Booking
from utils.clock import utcnow


class Page:
    def __init__(self, items, page: int, size: int, total: int):
        self.items = items
        self.page = page
        self.size = size
        self.total = total

    @property
    def pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)


class BookingStore:
    """
    Persistence for bookings on top of the Flask-SQLAlchemy session.

    The store never commits; the lifecycle service owns the transaction so
    that a conflict check and the write it guards end up in the same commit.
    """

    def __init__(self, session=None, clock=None):
        self._session = session
        self._clock = clock

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _now(self):
        return self._clock.now() if self._clock is not None else utcnow()

    def insert(self, booking: Booking) -> int:
        if booking.booking_time is None:
            booking.booking_time = self._now()
        self.session.add(booking)
        self.session.flush()
        return booking.id

    def find_by_id(self, booking_id, refresh: bool = False):
        if booking_id is None:
            return None
        # refresh bypasses the identity map so a row deleted or moved by
        # another worker is seen as it is now
        return self.session.get(Booking, booking_id, populate_existing=refresh)

    def _paged(self, query, page: int, size: int) -> Page:
        page = max(int(page or 1), 1)
        size = max(int(size or 1), 1)
        total = query.order_by(None).count()
        rows = (
            query
            .order_by(Booking.start_time.desc(), Booking.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return Page(rows, page, size, total)

    def find_all(self, page: int = 1, size: int = 20) -> Page:
        return self._paged(self.session.query(Booking), page, size)

    def find_by_owner(self, owner_id, page: int = 1, size: int = 10) -> Page:
        return self._paged(self.session.query(Booking).filter(Booking.user_id == owner_id), page, size)

    def find_by_resource(self, resource_id):
        return (
            self.session.query(Booking)
            .filter(Booking.resource_id == resource_id)
            .order_by(Booking.start_time.asc())
            .all()
        )

    def find_conflicts(self, resource_id, start, end, exclude_id=None):
        q = self.session.query(Booking).filter(
            Booking.resource_id == resource_id,
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_id is not None:
            q = q.filter(Booking.id != exclude_id)
        return q.all()

    def update(self, booking: Booking) -> Booking:
        self.session.add(booking)
        self.session.flush()
        return booking

    def delete(self, booking_id) -> bool:
        booking = self.find_by_id(booking_id, refresh=True)
        if booking is None:
            return False
        self.session.delete(booking)
        self.session.flush()
        return True
