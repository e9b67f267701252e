"""
Error kinds surfaced by the booking engine.

Every kind is an expected, caller-recoverable condition except
StoreUnavailable, which wraps infrastructure failures so they are never
confused with a booking conflict. The HTTP layer maps ``status_code``
straight onto the response.
"""


class BookingError(Exception):
    status_code = 500
    kind = "error"
    default_message = "Booking operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidInterval(BookingError):
    status_code = 400
    kind = "invalid_interval"
    default_message = "start_time must be strictly before end_time"


class ValidationFailed(BookingError):
    status_code = 400
    kind = "validation_failed"
    default_message = "Invalid request"


class ResourceNotFound(BookingError):
    status_code = 404
    kind = "resource_not_found"
    default_message = "Resource not found"


class BookingNotFound(BookingError):
    status_code = 404
    kind = "booking_not_found"
    default_message = "Booking not found"


class BookingConflict(BookingError):
    status_code = 409
    kind = "booking_conflict"
    default_message = "Resource is already booked during the requested time slot"


class ResourceNameTaken(BookingError):
    status_code = 409
    kind = "resource_name_taken"
    default_message = "Resource name already exists"


class ResourceInUse(BookingError):
    status_code = 409
    kind = "resource_in_use"
    default_message = "Resource still has bookings"


class Unauthorized(BookingError):
    status_code = 403
    kind = "unauthorized"
    default_message = "Forbidden"


class Unauthenticated(BookingError):
    status_code = 401
    kind = "unauthenticated"
    default_message = "Authentication required"


class StoreUnavailable(BookingError):
    status_code = 500
    kind = "store_unavailable"
    default_message = "Storage failure"
