from functools import wraps
from flask import g, jsonify

from models import db
from models.user import User
from security.identity import identity_for
from security.session import get_session_from_request


def load_current_user():
    sess = get_session_from_request()
    if not sess:
        g.user = None
        g.session = None
        g.identity = None
        return
    g.session = sess
    g.user = db.session.get(User, sess.user_id)
    # roles are re-read on every request, never carried over
    g.identity = identity_for(g.user)


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "identity", None) is None:
            return jsonify(error="Authentication required", kind="unauthenticated"), 401
        return fn(*args, **kwargs)
    return wrapper
