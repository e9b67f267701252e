from datetime import datetime

import pytest

from app import create_app
from config import Config
from models import db
from models.resource import Resource
from models.user import Role, User
from security.identity import ADMIN, USER, identity_for
from security.password import hash_password
from services.bookings import BookingService
from services.resources import ResourceCatalog
from utils.clock import FixedClock

NOW = datetime(2030, 1, 1, 8, 0)
PASSWORD = "correct-horse-42"


def at(hour, minute=0, day=2):
    """A naive UTC instant on 2030-01-<day>."""
    return datetime(2030, 1, day, hour, minute)


def make_app(db_path):
    """An app on the given SQLite file; two of them behave like two worker processes."""

    class TestConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_path}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}
        CREATE_TABLES_ON_STARTUP = True
        BCRYPT_ROUNDS = 4

    app = create_app(TestConfig)
    app.extensions["clock"] = FixedClock(NOW)
    return app


@pytest.fixture
def app(tmp_path):
    # file-backed so worker threads get real, separate connections
    app = make_app(tmp_path / "test.db")

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


def _make_user(email, *role_names):
    roles = Role.query.filter(Role.name.in_(role_names or (USER,))).all()
    user = User(email=email, password_hash=hash_password(PASSWORD), roles=roles)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def make_user(ctx):
    return _make_user


@pytest.fixture
def alice(make_user):
    return identity_for(make_user("alice@example.com"))


@pytest.fixture
def bob(make_user):
    return identity_for(make_user("bob@example.com"))


@pytest.fixture
def admin(make_user):
    return identity_for(make_user("admin@example.com", USER, ADMIN))


def _make_resource(name, description=None):
    resource = Resource(name=name, description=description)
    db.session.add(resource)
    db.session.commit()
    return resource.id


@pytest.fixture
def room(ctx):
    return _make_resource("Room 1", "Ground floor meeting room")


@pytest.fixture
def projector(ctx):
    return _make_resource("Projector", "Portable HD projector")


def make_service(app, **kwargs):
    exclusion = app.extensions["resource_exclusion"]
    kwargs.setdefault("clock", FixedClock(NOW))
    kwargs.setdefault("exclusion", exclusion)
    kwargs.setdefault("resources", ResourceCatalog(exclusion=exclusion))
    return BookingService(**kwargs)


@pytest.fixture
def service(ctx):
    return make_service(ctx)


# ---------- HTTP helpers ----------

def login(client, email, password=PASSWORD):
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp


def csrf_headers(client):
    cookie = client.get_cookie("csrf_token")
    return {"X-CSRF-Token": cookie.value} if cookie else {}


class ApiClient:
    """Test client logged in as one user; adds the CSRF header to writes."""

    def __init__(self, client):
        self.client = client

    def get(self, path, **kwargs):
        return self.client.get(path, **kwargs)

    def post(self, path, **kwargs):
        return self.client.post(path, headers=csrf_headers(self.client), **kwargs)

    def put(self, path, **kwargs):
        return self.client.put(path, headers=csrf_headers(self.client), **kwargs)

    def delete(self, path, **kwargs):
        return self.client.delete(path, headers=csrf_headers(self.client), **kwargs)


@pytest.fixture
def api_as(app, ctx):
    def factory(email, *role_names):
        if User.query.filter_by(email=email).first() is None:
            _make_user(email, *role_names)
        client = app.test_client()
        login(client, email)
        return ApiClient(client)
    return factory


@pytest.fixture
def http_room(ctx):
    return _make_resource("Board room", "Top floor")


def iso(dt):
    return dt.isoformat()


def slot(resource_id, start, end):
    return {"resource_id": resource_id, "start_time": iso(start), "end_time": iso(end)}

