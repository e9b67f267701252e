from functools import wraps
from flask import g, jsonify


def require_roles(*role_names: str):
    """
    Boundary gate for whole endpoints, e.g. listing every booking.
    Per-booking ownership is decided by security.ownership instead.

    Usage: @require_roles("ADMIN")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = getattr(g, "identity", None)
            if identity is None:
                return jsonify(error="Authentication required", kind="unauthenticated"), 401

            if not any(identity.has_role(name) for name in role_names):
                return jsonify(error="Forbidden", kind="unauthorized"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
