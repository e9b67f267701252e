import secrets
from flask import request, jsonify, current_app


def _names():
    return (
        current_app.config.get("CSRF_COOKIE_NAME", "csrf_token"),
        current_app.config.get("CSRF_HEADER_NAME", "X-CSRF-Token"),
    )


def issue_csrf_token(resp):
    cookie_name, _ = _names()
    resp.set_cookie(
        cookie_name,
        secrets.token_urlsafe(32),
        httponly=False,  # must be readable by client JS
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def require_csrf():
    """Double-submit check. Returns an error response, or None when the request passes."""
    cookie_name, header_name = _names()
    cookie_token = request.cookies.get(cookie_name)
    header_token = request.headers.get(header_name)
    if not cookie_token or not header_token or not secrets.compare_digest(cookie_token, header_token):
        return jsonify(error="CSRF validation failed", kind="csrf_failed"), 403
    return None
