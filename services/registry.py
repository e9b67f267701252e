from flask import current_app

from services.bookings import BookingService
from services.exclusion import ResourceExclusion
from services.resources import ResourceCatalog
from utils.clock import SystemClock


def init_app(app):
    # one exclusion per process; every request's service shares it
    app.extensions.setdefault("resource_exclusion", ResourceExclusion())
    app.extensions.setdefault("clock", SystemClock())


def resource_exclusion() -> ResourceExclusion:
    return current_app.extensions["resource_exclusion"]


def clock():
    return current_app.extensions["clock"]


def resource_catalog() -> ResourceCatalog:
    return ResourceCatalog(exclusion=resource_exclusion())


def booking_service() -> BookingService:
    exclusion = resource_exclusion()
    return BookingService(
        clock=clock(),
        exclusion=exclusion,
        resources=ResourceCatalog(exclusion=exclusion),
        enforce_future=current_app.config.get("ENFORCE_FUTURE_BOOKINGS", True),
    )
