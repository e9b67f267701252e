from datetime import datetime
from flask import current_app, request

from services.errors import ValidationFailed


def parse_iso(value, field: str):
    # Expect ISO format like "2026-01-20T18:00:00", offset optional
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationFailed(f"{field} must be an ISO 8601 string")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationFailed(f"Invalid {field}. Use ISO e.g. 2026-01-20T18:00:00")


def parse_int(value, field: str):
    if value is None or isinstance(value, bool):
        raise ValidationFailed(f"{field} is required")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationFailed(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{field} must be an integer")


def page_args(default_size_key: str = "DEFAULT_PAGE_SIZE"):
    page = request.args.get("page", default=1, type=int) or 1
    size = request.args.get("size", default=current_app.config.get(default_size_key, 20), type=int)
    max_size = current_app.config.get("MAX_PAGE_SIZE", 100)
    return max(page, 1), min(max(size or 1, 1), max_size)


def page_json(page, serialize):
    return {
        "items": [serialize(item) for item in page.items],
        "page": page.page,
        "size": page.size,
        "total": page.total,
        "pages": page.pages,
    }
