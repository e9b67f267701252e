from flask import Blueprint, request, jsonify, g

from security.identity import ADMIN
from security.rbac import require_roles
from services.errors import BookingConflict, Unauthorized
from services.registry import booking_service
from routes.helpers import parse_int, parse_iso, page_args, page_json
from utils.auth_context import login_required
from utils.audit import log_event

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def booking_json(b):
    return {
        "id": b.id,
        "user_id": b.user_id,
        "user_email": b.user.email if b.user else None,
        "resource_id": b.resource_id,
        "resource_name": b.resource.name if b.resource else None,
        "start_time": b.start_time.isoformat(),
        "end_time": b.end_time.isoformat(),
        "booking_time": b.booking_time.isoformat(),
    }


def _booking_request():
    data = request.get_json(silent=True) or {}
    resource_id = parse_int(data.get("resource_id"), "resource_id")
    start = parse_iso(data.get("start_time"), "start_time")
    end = parse_iso(data.get("end_time"), "end_time")
    return resource_id, start, end


# ---------- USERS: book a resource (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("")
@login_required
def create_booking():
    resource_id, start, end = _booking_request()

    try:
        booking = booking_service().create(g.identity, resource_id, start, end)
    except BookingConflict:
        log_event("BOOKING_FAIL_CONFLICT", user_id=g.identity.owner_id, entity="resource", entity_id=resource_id)
        raise

    log_event(
        "BOOKING_CREATE",
        user_id=g.identity.owner_id,
        entity="booking",
        entity_id=booking.id,
        metadata={"resource_id": booking.resource_id},
    )
    return jsonify(booking_json(booking)), 201


# ---------- ADMIN: list all bookings ----------
@booking_bp.get("")
@require_roles(ADMIN)
def list_all_bookings():
    page, size = page_args("DEFAULT_PAGE_SIZE")
    result = booking_service().list_all(page, size)
    return jsonify(page_json(result, booking_json)), 200


# ---------- USERS: view my bookings ----------
@booking_bp.get("/my")
@login_required
def my_bookings():
    page, size = page_args("MY_BOOKINGS_PAGE_SIZE")
    result = booking_service().list_mine(g.identity, page, size)
    return jsonify(page_json(result, booking_json)), 200


@booking_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    try:
        booking = booking_service().get_by_id(g.identity, booking_id)
    except Unauthorized:
        log_event("BOOKING_FAIL_FORBIDDEN", user_id=g.identity.owner_id, entity="booking", entity_id=booking_id,
                  metadata={"action": "read"})
        raise
    return jsonify(booking_json(booking)), 200


@booking_bp.put("/<int:booking_id>")
@login_required
def update_booking(booking_id: int):
    resource_id, start, end = _booking_request()

    try:
        booking = booking_service().update(g.identity, booking_id, resource_id, start, end)
    except Unauthorized:
        log_event("BOOKING_FAIL_FORBIDDEN", user_id=g.identity.owner_id, entity="booking", entity_id=booking_id,
                  metadata={"action": "update"})
        raise
    except BookingConflict:
        log_event("BOOKING_FAIL_CONFLICT", user_id=g.identity.owner_id, entity="booking", entity_id=booking_id,
                  metadata={"resource_id": resource_id})
        raise

    log_event("BOOKING_UPDATE", user_id=g.identity.owner_id, entity="booking", entity_id=booking.id,
              metadata={"resource_id": booking.resource_id})
    return jsonify(booking_json(booking)), 200


@booking_bp.delete("/<int:booking_id>")
@login_required
def delete_booking(booking_id: int):
    try:
        booking_service().delete(g.identity, booking_id)
    except Unauthorized:
        log_event("BOOKING_FAIL_FORBIDDEN", user_id=g.identity.owner_id, entity="booking", entity_id=booking_id,
                  metadata={"action": "delete"})
        raise

    log_event("BOOKING_DELETE", user_id=g.identity.owner_id, entity="booking", entity_id=booking_id)
    return "", 204
