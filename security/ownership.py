import enum

from services.booking_store import BookingStore


class Action(enum.Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"

    def __bool__(self):
        return self is Decision.ALLOW


class OwnershipAuthorizer:
    """
    Decides whether an identity may read, update or delete a booking.

    ADMIN is always allowed. Anyone else must own the booking. A booking that
    does not exist is a DENY so the decision itself never reveals existence.
    Nothing is cached; every call reads current state.
    """

    def __init__(self, store: BookingStore = None):
        self._store = store or BookingStore()

    def authorize(self, identity, booking_id, action: Action) -> Decision:
        if identity is not None and identity.is_admin:
            return Decision.ALLOW
        return self.authorize_booking(identity, self._store.find_by_id(booking_id), action)

    def authorize_booking(self, identity, booking, action: Action) -> Decision:
        if identity is None:
            return Decision.DENY
        if identity.is_admin:
            return Decision.ALLOW
        if booking is None:
            return Decision.DENY
        if booking.user_id == identity.owner_id:
            return Decision.ALLOW
        return Decision.DENY
