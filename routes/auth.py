from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.user import User, Role
from security.identity import USER
from security.password import MIN_PASSWORD_LENGTH, hash_password, verify_password
from security.session import create_session, revoke_session, revoke_all_sessions, raw_token_from_request
from security.csrf import issue_csrf_token
from utils.audit import log_event
from utils.auth_context import login_required


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _clean_name(value):
    if not isinstance(value, str):
        return None
    return value.strip()[:80] or None


def _set_session_cookie(resp, raw_token):
    resp.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "resourcebook_session"),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    return issue_csrf_token(resp)


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not _is_valid_email(email):
        return jsonify(error="Invalid email", kind="validation_failed"), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify(
            error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            kind="validation_failed",
        ), 400

    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered", kind="email_taken"), 409

    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=_clean_name(data.get("first_name")),
        last_name=_clean_name(data.get("last_name")),
    )
    db.session.add(user)
    db.session.flush()

    user_role = Role.query.filter_by(name=USER).first()
    if user_role:
        user.roles.append(user_role)

    db.session.commit()
    log_event("REGISTER_SUCCESS", user_id=user.id)

    return jsonify(message="Registered successfully", id=user.id), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials", kind="unauthenticated"), 401

    # Rotate: revoke any existing sessions for this user
    revoked_count = revoke_all_sessions(user.id)
    raw_token = create_session(user.id)

    # token is also returned for clients that send it as a Bearer header
    resp = jsonify(message="Login OK", token=raw_token)
    resp = _set_session_cookie(resp, raw_token)

    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(
        id=g.user.id,
        email=g.user.email,
        first_name=g.user.first_name,
        last_name=g.user.last_name,
        roles=sorted(g.identity.roles),
    ), 200


@auth_bp.post("/logout")
@login_required
def logout():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "resourcebook_session")

    revoke_session(raw_token_from_request())
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(cookie_name, path="/")
    return resp, 200
